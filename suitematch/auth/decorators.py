"""Decorators for the auth blueprint."""

from functools import wraps

from flask import g, session

from suitematch.errors import NotAuthenticated


def login_required(f):
    """Reject the request unless a signed-in user was resolved for it.

    The resolved user is available as ``g.user``; views pass
    ``g.user["uid"]`` to the service layer explicitly.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if "user_id" not in session or g.get("user") is None:
            raise NotAuthenticated()
        return f(*args, **kwargs)

    return decorated_function
