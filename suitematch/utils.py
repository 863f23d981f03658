"""Utility functions for the application."""

from __future__ import annotations

from typing import Any

from flask import jsonify

from .errors import ValidationError


def validate_form(form: Any) -> None:
    """Raise a ValidationError carrying the first field error of an invalid form."""
    if form.validate_on_submit():
        return
    for field_name, messages in form.errors.items():
        if messages:
            raise ValidationError(f"{field_name}: {messages[0]}")
    raise ValidationError()


def success(message: str | None = None, status_code: int = 200, **data: Any) -> Any:
    """Build the JSON body returned by every successful API call."""
    body: dict[str, Any] = {"status": "success"}
    if message:
        body["message"] = message
    body.update(data)
    return jsonify(body), status_code
