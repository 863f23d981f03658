"""The membership blueprint: join requests and invites."""

from flask import Blueprint

bp = Blueprint("membership", __name__, url_prefix="/requests")

from . import routes  # noqa: E402

__all__ = ["routes"]
