"""Forms for the group blueprint."""

from flask_wtf import FlaskForm
from wtforms import IntegerField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, NumberRange


class GroupForm(FlaskForm):
    """Form for creating a new group."""

    name = StringField("Group Name", validators=[DataRequired(), Length(max=80)])
    description = TextAreaField("Description", validators=[Length(max=500)])
    capacity = IntegerField(
        "Capacity",
        validators=[NumberRange(min=1, message="Capacity must be at least 1.")],
    )
