"""Forms for the user blueprint."""

import re

from flask_wtf import FlaskForm  # type: ignore
from wtforms import StringField, TextAreaField, ValidationError
from wtforms.validators import DataRequired, Optional, Regexp

from suitematch.core.constants import INSTAGRAM_HANDLE_MAX_LENGTH

INSTAGRAM_HANDLE_RE = re.compile(
    rf"^[A-Za-z0-9._]{{1,{INSTAGRAM_HANDLE_MAX_LENGTH}}}$"
)


class ProfileForm(FlaskForm):
    """Form for editing the signed-in user's profile."""

    name = StringField("Name", validators=[DataRequired()])
    bio = TextAreaField("Bio", validators=[Optional()])
    graduation_year = StringField(
        "Graduation Year",
        validators=[
            DataRequired(),
            Regexp(r"^\d{4}$", message="Graduation year must be a valid 4-digit number."),
        ],
    )
    interests = StringField("Interests", validators=[Optional()])
    registration_time = StringField(
        "Registration Time",
        validators=[
            DataRequired(),
            Regexp(
                r"^\d{1,2}:\d{2}$",
                message="Registration time must be in H:MM or HH:MM format.",
            ),
        ],
    )
    instagram_handle = StringField("Instagram", validators=[Optional()])

    def validate_name(self, field):
        """Reject names that are only whitespace."""
        if not field.data or not field.data.strip():
            raise ValidationError("Name cannot be empty.")

    def validate_instagram_handle(self, field):
        """Accept an optional handle, with or without a leading @."""
        handle = (field.data or "").strip().removeprefix("@")
        if handle and not INSTAGRAM_HANDLE_RE.match(handle):
            raise ValidationError(
                "Please enter a valid Instagram username "
                "(letters, numbers, ., _ , max 30 chars) or leave it empty."
            )
