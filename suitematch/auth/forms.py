"""Forms for the auth blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import PasswordField, SelectField, StringField, ValidationError
from wtforms.validators import DataRequired, Email, Length, Regexp

from suitematch.core.constants import SCHOOL_EMAIL_DOMAINS


class RegisterForm(FlaskForm):
    """Sign-up form."""

    email = StringField("Email", validators=[DataRequired(), Email()])
    password = PasswordField("Password", validators=[DataRequired(), Length(min=6)])
    first_name = StringField("First Name", validators=[DataRequired()])
    last_name = StringField("Last Name", validators=[DataRequired()])
    school = SelectField(
        "School",
        choices=[(name, name) for name in SCHOOL_EMAIL_DOMAINS],
        validators=[DataRequired()],
    )
    graduation_year = StringField(
        "Graduation Year",
        validators=[
            DataRequired(),
            Regexp(r"^\d{4}$", message="Please enter a valid 4-digit graduation year."),
        ],
    )
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

    def validate_email(self, field):
        """Require the student email domain of the selected school."""
        expected = SCHOOL_EMAIL_DOMAINS.get(self.school.data or "")
        domain = field.data.rsplit("@", 1)[-1].lower() if field.data else ""
        if not expected or domain != expected:
            raise ValidationError(
                f"Please use a valid @{expected} email address for {self.school.data}."
                if expected
                else "Invalid school selection."
            )
