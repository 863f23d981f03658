"""Service layer for group operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app

from suitematch.core.constants import (
    GROUP_RECOMMENDATION_LIMIT,
    GROUPS_COLLECTION,
    USERS_COLLECTION,
)
from suitematch.core.transactions import run_transaction, snapshot_data
from suitematch.errors import (
    AlreadyGrouped,
    GroupNotFound,
    NotLeader,
    UserNotFound,
    ValidationError,
)
from suitematch.membership.services import (
    delete_requests,
    existing_user_ids,
    pending_requests_for_group,
)
from suitematch.user.models import is_grouped

from .models import Group

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction


class GroupService:
    """Service class for group-related operations."""

    @staticmethod
    def _create_group(  # noqa: PLR0913
        transaction: Transaction,
        db: Client,
        actor_id: str,
        name: str,
        description: str,
        capacity: int,
    ) -> str:
        user_ref = db.collection(USERS_COLLECTION).document(actor_id)
        user = snapshot_data(user_ref.get(transaction=transaction))
        if user is None:
            raise UserNotFound()
        if is_grouped(user):
            raise AlreadyGrouped(
                "You are already in a group. Leave it before creating a new one."
            )

        group_ref = db.collection(GROUPS_COLLECTION).document()
        transaction.set(
            group_ref,
            {
                "groupId": group_ref.id,
                "groupName": name,
                "description": description,
                "capacity": capacity,
                "creatorId": actor_id,
                "members": [actor_id],
                "pendingUsers": [],
                "school": user.get("school", ""),
                "createdAt": firestore.SERVER_TIMESTAMP,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        transaction.update(
            user_ref,
            {
                "is_grouped": True,
                "group_leader": True,
                "groupId": group_ref.id,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        return group_ref.id

    @staticmethod
    def create_group(
        db: Client, actor_id: str, name: str, description: str, capacity: int
    ) -> str:
        """Create a group led by the actor, who becomes its only member."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Group name is required.")
        if capacity is None or int(capacity) < 1:
            raise ValidationError("Capacity must be at least 1.")
        group_id = run_transaction(
            db,
            GroupService._create_group,
            db,
            actor_id,
            name,
            (description or "").strip(),
            int(capacity),
        )
        current_app.logger.info(f"User {actor_id} created group {group_id}")
        return group_id

    @staticmethod
    def get_group(db: Client, group_id: str) -> Group:
        """Fetch a group with its members' profiles, in join order."""
        group_doc = db.collection(GROUPS_COLLECTION).document(group_id).get()
        group = snapshot_data(group_doc)
        if group is None:
            raise GroupNotFound()
        group["id"] = group_doc.id

        users_ref = db.collection(USERS_COLLECTION)
        member_details = []
        for member_id in group.get("members", []):
            member = snapshot_data(users_ref.document(member_id).get())
            if member is not None:
                member["id"] = member_id
                member_details.append(member)
        group["member_details"] = member_details
        return cast("Group", group)

    @staticmethod
    def list_groups_by_school(
        db: Client,
        school: str,
        limit: int = GROUP_RECOMMENDATION_LIMIT,
        exclude_group_id: str | None = None,
    ) -> list[Group]:
        """Fetch groups at a school for the dashboard recommendations."""
        query = (
            db.collection(GROUPS_COLLECTION)
            .where(filter=firestore.FieldFilter("school", "==", school))
            .limit(limit + (1 if exclude_group_id else 0))
        )
        groups = []
        for doc in query.stream():
            if doc.id == exclude_group_id:
                continue
            data = snapshot_data(doc)
            if data is None:
                continue
            data["id"] = doc.id
            groups.append(cast("Group", data))
        return groups[:limit]

    @staticmethod
    def _delete_group(
        transaction: Transaction, db: Client, leader_id: str, group_id: str
    ) -> list[str]:
        group_ref = db.collection(GROUPS_COLLECTION).document(group_id)
        group = snapshot_data(group_ref.get(transaction=transaction))
        if group is None:
            raise GroupNotFound()
        if group.get("creatorId") != leader_id:
            raise NotLeader("Only the group leader can delete the group.")

        members = group.get("members", [])
        pending = pending_requests_for_group(transaction, db, group_id)
        requesters = [(snap.to_dict() or {}).get("userid") for snap in pending]
        live_users = existing_user_ids(transaction, db, members + requesters)

        delete_requests(transaction, db, pending, live_users)
        for member_id in members:
            if member_id in live_users:
                transaction.update(
                    db.collection(USERS_COLLECTION).document(member_id),
                    {
                        "is_grouped": False,
                        "group_leader": False,
                        "groupId": firestore.DELETE_FIELD,
                        "updatedAt": firestore.SERVER_TIMESTAMP,
                    },
                )
        transaction.delete(group_ref)
        return members

    @staticmethod
    def delete_group(db: Client, leader_id: str, group_id: str) -> None:
        """Delete a group, ungrouping its members and dropping its pending requests."""
        members = run_transaction(
            db, GroupService._delete_group, db, leader_id, group_id
        )
        current_app.logger.info(
            f"Leader {leader_id} deleted group {group_id} ({len(members)} members)"
        )
