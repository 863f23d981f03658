"""Routes for join requests and invites."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import g

from suitematch.auth.decorators import login_required
from suitematch.utils import success

from . import bp
from .services import MembershipService


@bp.route("/", methods=["GET"])
@login_required
def list_requests() -> Any:
    """Return the signed-in user's incoming and outgoing pending requests."""
    db = firestore.client()
    user_id = g.user["uid"]
    return success(
        incoming=MembershipService.list_incoming_requests(db, user_id),
        outgoing=MembershipService.list_outgoing_requests(db, user_id),
    )


@bp.route("/unseen_count", methods=["GET"])
@login_required
def unseen_count() -> Any:
    """Return the notification badge count."""
    db = firestore.client()
    return success(count=MembershipService.count_unseen_requests(db, g.user["uid"]))


@bp.route("/seen", methods=["POST"])
@login_required
def mark_seen() -> Any:
    """Mark every incoming request as seen."""
    db = firestore.client()
    updated = MembershipService.mark_requests_seen(db, g.user["uid"])
    return success(updated=updated)


@bp.route("/join/<string:group_id>", methods=["POST"])
@login_required
def request_to_join(group_id: str) -> Any:
    """Ask to join a group."""
    db = firestore.client()
    request_id = MembershipService.request_to_join(db, g.user["uid"], group_id)
    return success("Request sent!", 201, request_id=request_id)


@bp.route("/invite/<string:group_id>/<string:user_id>", methods=["POST"])
@login_required
def invite(group_id: str, user_id: str) -> Any:
    """Invite a user into the signed-in leader's group."""
    db = firestore.client()
    request_id = MembershipService.invite_to_group(
        db, g.user["uid"], group_id, user_id
    )
    return success("Invitation sent!", 201, request_id=request_id)


@bp.route("/<string:request_id>/accept", methods=["POST"])
@login_required
def accept(request_id: str) -> Any:
    """Accept a join request or an invitation."""
    db = firestore.client()
    MembershipService.accept_request(db, g.user["uid"], request_id)
    return success("Request accepted.")


@bp.route("/<string:request_id>/decline", methods=["POST"])
@bp.route("/<string:request_id>/cancel", methods=["POST"])
@login_required
def decline(request_id: str) -> Any:
    """Decline a received request or cancel a sent one."""
    db = firestore.client()
    MembershipService.decline_or_cancel(db, g.user["uid"], request_id)
    return success("Request removed.")
