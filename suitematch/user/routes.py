"""Routes for the user blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g, request

from suitematch.auth.decorators import login_required
from suitematch.core.constants import GROUPS_COLLECTION
from suitematch.core.transactions import snapshot_data
from suitematch.errors import UserNotFound
from suitematch.utils import success, validate_form

from . import bp
from .forms import ProfileForm
from .services import UserService


@bp.route("/me", methods=["GET"])
@login_required
def me() -> Any:
    """Return the signed-in user's document."""
    return success(user=g.user)


@bp.route("/<string:user_id>", methods=["GET"])
@login_required
def view_user(user_id: str) -> Any:
    """Return another user's profile."""
    db = firestore.client()
    user = UserService.get_user_by_id(db, user_id)
    if user is None:
        raise UserNotFound()
    return success(user=user)


@bp.route("/profile", methods=["POST"])
@login_required
def edit_profile() -> Any:
    """Update the signed-in user's profile."""
    form = ProfileForm()
    validate_form(form)
    db = firestore.client()
    UserService.update_profile(db, g.user["uid"], form.data)
    current_app.logger.info(f"Profile updated for user {g.user['uid']}")
    return success("Profile updated successfully!")


@bp.route("/ungrouped", methods=["GET"])
@login_required
def ungrouped_users() -> Any:
    """List ungrouped users at a school, defaulting to the signed-in user's."""
    db = firestore.client()
    school = request.args.get("school") or g.user.get("school", "")
    exclude_ids = [g.user["uid"]]
    group_id = g.user.get("groupId")
    if group_id:
        # Users already invited to the caller's group are not candidates again
        group = snapshot_data(db.collection(GROUPS_COLLECTION).document(group_id).get())
        if group is not None:
            exclude_ids.extend(group.get("pendingUsers", []))
    users = UserService.list_ungrouped_users(db, school, exclude_ids=exclude_ids)
    return success(users=users)
