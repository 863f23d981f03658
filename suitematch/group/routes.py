"""Routes for the group blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g, request

from suitematch.auth.decorators import login_required
from suitematch.errors import NotInGroup
from suitematch.membership.services import MembershipService
from suitematch.utils import success, validate_form

from . import bp
from .forms import GroupForm
from .services import GroupService


@bp.route("/create", methods=["POST"])
@login_required
def create_group() -> Any:
    """Create a new group led by the signed-in user."""
    form = GroupForm()
    validate_form(form)
    db = firestore.client()
    group_id = GroupService.create_group(
        db,
        g.user["uid"],
        form.name.data,
        form.description.data,
        form.capacity.data,
    )
    return success("Group created successfully.", 201, group_id=group_id)


@bp.route("/mine", methods=["GET"])
@login_required
def my_group() -> Any:
    """Return the signed-in user's current group."""
    group_id = g.user.get("groupId")
    if not g.user.get("is_grouped") or not group_id:
        raise NotInGroup("You are not in a group.")
    db = firestore.client()
    return success(group=GroupService.get_group(db, group_id))


@bp.route("/recommended", methods=["GET"])
@login_required
def recommended_groups() -> Any:
    """List groups at the signed-in user's school."""
    db = firestore.client()
    school = request.args.get("school") or g.user.get("school", "")
    groups = GroupService.list_groups_by_school(
        db,
        school,
        limit=current_app.config["GROUP_RECOMMENDATION_LIMIT"],
        exclude_group_id=g.user.get("groupId"),
    )
    return success(groups=groups)


@bp.route("/<string:group_id>", methods=["GET"])
@login_required
def view_group(group_id: str) -> Any:
    """Return a group with its members."""
    db = firestore.client()
    return success(group=GroupService.get_group(db, group_id))


@bp.route("/<string:group_id>/leave", methods=["POST"])
@login_required
def leave_group(group_id: str) -> Any:
    """Leave a group."""
    db = firestore.client()
    new_leader = MembershipService.leave_group(db, g.user["uid"], group_id)
    return success("You have left the group.", new_leader=new_leader)


@bp.route("/<string:group_id>/remove/<string:member_id>", methods=["POST"])
@login_required
def remove_member(group_id: str, member_id: str) -> Any:
    """Remove a member from the signed-in leader's group."""
    db = firestore.client()
    MembershipService.remove_member(db, g.user["uid"], group_id, member_id)
    return success("Member removed from the group.")


@bp.route("/<string:group_id>/delete", methods=["POST"])
@login_required
def delete_group(group_id: str) -> Any:
    """Delete a group."""
    db = firestore.client()
    GroupService.delete_group(db, g.user["uid"], group_id)
    return success("Group deleted successfully.")
