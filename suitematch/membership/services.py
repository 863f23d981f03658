"""Service layer for the join request and invite lifecycle.

Every operation takes the acting user's id explicitly and runs in a single
Firestore transaction that reads the request, group and user documents it
needs, validates against those reads, and only then writes. A failed
precondition raises before any write is queued, so nothing is committed.
"""

from __future__ import annotations

import threading
from functools import partial
from typing import TYPE_CHECKING, Any, Callable, cast

from firebase_admin import firestore
from flask import current_app

from suitematch.core.constants import (
    GROUPS_COLLECTION,
    REASON_GROUP_FULL,
    REASON_GROUP_GONE,
    REASON_USER_GONE,
    REASON_USER_GROUPED,
    REQUESTS_COLLECTION,
    STATUS_ACCEPTED,
    STATUS_DECLINED,
    STATUS_PENDING,
    USERS_COLLECTION,
)
from suitematch.core.transactions import run_transaction, snapshot_data
from suitematch.errors import (
    AlreadyGrouped,
    AlreadyMember,
    AppError,
    DuplicateInvite,
    DuplicateRequest,
    GroupFull,
    GroupNotFound,
    NotAuthorized,
    NotInGroup,
    NotLeader,
    RequestNotFound,
    UserNotFound,
    ValidationError,
)
from suitematch.user.models import is_grouped

from .models import MembershipRequest, request_id_for

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction


def is_full(group: dict[str, Any]) -> bool:
    """Return True if the group has no free slot."""
    return len(group.get("members", [])) >= int(group.get("capacity", 0))


def is_pending(snapshot: DocumentSnapshot) -> bool:
    """Return True if the snapshot is an existing request awaiting an answer."""
    data = snapshot_data(snapshot)
    return data is not None and data.get("status") == STATUS_PENDING


def pending_requests_for_group(
    transaction: Transaction, db: Client, group_id: str
) -> list[DocumentSnapshot]:
    """Read the group's pending requests inside a transaction."""
    query = (
        db.collection(REQUESTS_COLLECTION)
        .where(filter=firestore.FieldFilter("GroupId", "==", group_id))
        .where(filter=firestore.FieldFilter("status", "==", STATUS_PENDING))
    )
    return [snap for snap in transaction.get(query) if snap.exists]


def delete_requests(
    transaction: Transaction,
    db: Client,
    request_snaps: list[DocumentSnapshot],
    existing_user_ids: set[str],
) -> None:
    """Queue deletion of requests together with their pending-set entries.

    Only users in ``existing_user_ids`` are updated; an update to a missing
    document would fail the whole transaction.
    """
    for snap in request_snaps:
        data = snap.to_dict() or {}
        transaction.delete(snap.reference)
        user_id = data.get("userid")
        if user_id in existing_user_ids:
            transaction.update(
                db.collection(USERS_COLLECTION).document(user_id),
                {"pendingRequests": firestore.ArrayRemove([data.get("GroupId")])},
            )


def existing_user_ids(
    transaction: Transaction, db: Client, user_ids: list[str]
) -> set[str]:
    """Read the given users inside a transaction and return the ids that exist."""
    found = set()
    for user_id in dict.fromkeys(uid for uid in user_ids if uid):
        snap = db.collection(USERS_COLLECTION).document(user_id).get(
            transaction=transaction
        )
        if snap.exists:
            found.add(user_id)
    return found


def _request_dict(snapshot: DocumentSnapshot) -> MembershipRequest:
    data = snapshot.to_dict() or {}
    data["id"] = snapshot.id
    return cast("MembershipRequest", data)


def _ungroup_fields() -> dict[str, Any]:
    return {
        "is_grouped": False,
        "group_leader": False,
        "groupId": firestore.DELETE_FIELD,
        "updatedAt": firestore.SERVER_TIMESTAMP,
    }


class MembershipService:
    """Service class for join requests, invites and membership changes."""

    # --- request-to-join ---

    @staticmethod
    def _request_to_join(
        transaction: Transaction, db: Client, actor_id: str, group_id: str
    ) -> str:
        user_ref = db.collection(USERS_COLLECTION).document(actor_id)
        group_ref = db.collection(GROUPS_COLLECTION).document(group_id)
        request_ref = db.collection(REQUESTS_COLLECTION).document(
            request_id_for(group_id, actor_id)
        )

        user = snapshot_data(user_ref.get(transaction=transaction))
        group = snapshot_data(group_ref.get(transaction=transaction))
        request_snap = request_ref.get(transaction=transaction)

        if user is None:
            raise UserNotFound()
        if is_grouped(user):
            raise AlreadyGrouped(
                "You are already in a group. "
                "Leave your current group to join another one."
            )
        if group is None:
            raise GroupNotFound("This group no longer exists.")
        if is_full(group):
            raise GroupFull("This group is already at full capacity.")
        if is_pending(request_snap) or group_id in user.get("pendingRequests", []):
            raise DuplicateRequest()

        transaction.set(
            request_ref,
            {
                "fromGroup": False,
                "userid": actor_id,
                "nameuser": user.get("name", ""),
                "GroupId": group_id,
                "GroupName": group.get("groupName", ""),
                "GroupLeaderId": group.get("creatorId"),
                "status": STATUS_PENDING,
                "hasSeen": False,
                "createdAt": firestore.SERVER_TIMESTAMP,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        transaction.update(
            user_ref,
            {
                "pendingRequests": firestore.ArrayUnion([group_id]),
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        transaction.update(
            group_ref,
            {
                "pendingUsers": firestore.ArrayUnion([actor_id]),
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        return request_ref.id

    @staticmethod
    def request_to_join(db: Client, actor_id: str, group_id: str) -> str:
        """Ask to join a group. Returns the new request's id."""
        request_id = run_transaction(
            db, MembershipService._request_to_join, db, actor_id, group_id
        )
        current_app.logger.info(f"User {actor_id} requested to join group {group_id}")
        return request_id

    # --- invite-to-group ---

    @staticmethod
    def _invite_to_group(
        transaction: Transaction,
        db: Client,
        leader_id: str,
        group_id: str,
        target_user_id: str,
    ) -> str:
        group_ref = db.collection(GROUPS_COLLECTION).document(group_id)
        target_ref = db.collection(USERS_COLLECTION).document(target_user_id)
        request_ref = db.collection(REQUESTS_COLLECTION).document(
            request_id_for(group_id, target_user_id)
        )

        group = snapshot_data(group_ref.get(transaction=transaction))
        target = snapshot_data(target_ref.get(transaction=transaction))
        request_snap = request_ref.get(transaction=transaction)

        if group is None:
            raise GroupNotFound()
        if group.get("creatorId") != leader_id:
            raise NotLeader("Only the group leader can send invitations.")
        if is_full(group):
            raise GroupFull("Your group is already at full capacity.")
        if target_user_id in group.get("members", []):
            raise AlreadyMember()
        if target is None:
            raise UserNotFound("User to invite not found.")
        if is_grouped(target):
            raise AlreadyGrouped("That user is already in a group.")
        if target_user_id in group.get("pendingUsers", []) or is_pending(
            request_snap
        ):
            raise DuplicateInvite()

        transaction.set(
            request_ref,
            {
                "fromGroup": True,
                "userid": target_user_id,
                "nameuser": target.get("name", ""),
                "GroupId": group_id,
                "GroupName": group.get("groupName", ""),
                "GroupLeaderId": leader_id,
                "status": STATUS_PENDING,
                "hasSeen": False,
                "createdAt": firestore.SERVER_TIMESTAMP,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        transaction.update(
            group_ref,
            {
                "pendingUsers": firestore.ArrayUnion([target_user_id]),
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        return request_ref.id

    @staticmethod
    def invite_to_group(
        db: Client, leader_id: str, group_id: str, target_user_id: str
    ) -> str:
        """Invite a user into the leader's group. Returns the new request's id."""
        request_id = run_transaction(
            db,
            MembershipService._invite_to_group,
            db,
            leader_id,
            group_id,
            target_user_id,
        )
        current_app.logger.info(
            f"Leader {leader_id} invited user {target_user_id} to group {group_id}"
        )
        return request_id

    # --- accept ---

    @staticmethod
    def _decline_with_reason(  # noqa: PLR0913
        transaction: Transaction,
        request_ref: Any,
        reason: str,
        group_ref: Any = None,
        user_ref: Any = None,
        request: dict[str, Any] | None = None,
    ) -> None:
        """Mark a request declined and drop it from the pending sets that still exist."""
        transaction.update(
            request_ref,
            {
                "status": STATUS_DECLINED,
                "reason": reason,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        request = request or {}
        if group_ref is not None:
            transaction.update(
                group_ref,
                {"pendingUsers": firestore.ArrayRemove([request.get("userid")])},
            )
        if user_ref is not None:
            transaction.update(
                user_ref,
                {"pendingRequests": firestore.ArrayRemove([request.get("GroupId")])},
            )

    @staticmethod
    def _accept_request(
        transaction: Transaction, db: Client, actor_id: str, request_id: str
    ) -> AppError | None:
        """Accept inside a transaction.

        Conflicts found at commit time mark the request declined and return
        the error to raise, so the decline is committed with the transaction.
        """
        request_ref = db.collection(REQUESTS_COLLECTION).document(request_id)
        request_snap = request_ref.get(transaction=transaction)
        if not is_pending(request_snap):
            raise RequestNotFound()
        request = request_snap.to_dict() or {}

        group_id = request.get("GroupId", "")
        user_id = request.get("userid", "")
        group_ref = db.collection(GROUPS_COLLECTION).document(group_id)
        user_ref = db.collection(USERS_COLLECTION).document(user_id)
        group = snapshot_data(group_ref.get(transaction=transaction))
        user = snapshot_data(user_ref.get(transaction=transaction))

        if request.get("fromGroup"):
            if actor_id != user_id:
                raise NotAuthorized("Only the invited user can accept this invitation.")
        else:
            leader_id = group.get("creatorId") if group else request.get("GroupLeaderId")
            if actor_id != leader_id:
                raise NotLeader("Only the group leader can accept join requests.")

        if group is None:
            MembershipService._decline_with_reason(
                transaction,
                request_ref,
                REASON_GROUP_GONE,
                user_ref=user_ref if user is not None else None,
                request=request,
            )
            return GroupNotFound("Group no longer exists.")
        if user is None:
            MembershipService._decline_with_reason(
                transaction,
                request_ref,
                REASON_USER_GONE,
                group_ref=group_ref,
                request=request,
            )
            return UserNotFound("Requesting user no longer exists.")

        user_updates = {
            "is_grouped": True,
            "groupId": group_id,
            "group_leader": group.get("creatorId") == user_id,
            "pendingRequests": firestore.ArrayRemove([group_id]),
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }
        accepted = {"status": STATUS_ACCEPTED, "updatedAt": firestore.SERVER_TIMESTAMP}

        if user_id in group.get("members", []):
            # A concurrent accept already added the user: finish without adding twice.
            current_app.logger.warning(
                f"User {user_id} was already in group {group_id}; reconciling."
            )
            transaction.update(request_ref, accepted)
            transaction.update(
                group_ref, {"pendingUsers": firestore.ArrayRemove([user_id])}
            )
            transaction.update(user_ref, user_updates)
            return None

        if is_grouped(user) and user.get("groupId") != group_id:
            MembershipService._decline_with_reason(
                transaction, request_ref, REASON_USER_GROUPED, group_ref, user_ref, request
            )
            return AlreadyGrouped(
                "You are already in a group."
                if request.get("fromGroup")
                else "Requesting user is already in a group."
            )
        if is_full(group):
            MembershipService._decline_with_reason(
                transaction, request_ref, REASON_GROUP_FULL, group_ref, user_ref, request
            )
            return GroupFull("Group is already full.")

        transaction.update(request_ref, accepted)
        transaction.update(
            group_ref,
            {
                "members": firestore.ArrayUnion([user_id]),
                "pendingUsers": firestore.ArrayRemove([user_id]),
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        transaction.update(user_ref, user_updates)
        return None

    @staticmethod
    def accept_request(db: Client, actor_id: str, request_id: str) -> None:
        """Accept a join request (as leader) or an invite (as the invitee)."""
        conflict = run_transaction(
            db, MembershipService._accept_request, db, actor_id, request_id
        )
        if conflict is not None:
            current_app.logger.warning(
                f"Request {request_id} declined at accept time: {conflict.message}"
            )
            raise conflict
        current_app.logger.info(f"Request {request_id} accepted by {actor_id}")

    # --- decline / cancel ---

    @staticmethod
    def _decline_or_cancel(
        transaction: Transaction, db: Client, actor_id: str, request_id: str
    ) -> None:
        request_ref = db.collection(REQUESTS_COLLECTION).document(request_id)
        request_snap = request_ref.get(transaction=transaction)
        if not is_pending(request_snap):
            raise RequestNotFound("Request no longer exists.")
        request = request_snap.to_dict() or {}

        group_id = request.get("GroupId", "")
        user_id = request.get("userid", "")
        group_ref = db.collection(GROUPS_COLLECTION).document(group_id)
        user_ref = db.collection(USERS_COLLECTION).document(user_id)
        group = snapshot_data(group_ref.get(transaction=transaction))
        user = snapshot_data(user_ref.get(transaction=transaction))

        leader_id = group.get("creatorId") if group else request.get("GroupLeaderId")
        if actor_id not in (user_id, leader_id):
            raise NotAuthorized("You are not a party to this request.")

        transaction.delete(request_ref)
        if group is not None:
            transaction.update(
                group_ref, {"pendingUsers": firestore.ArrayRemove([user_id])}
            )
        if user is not None:
            transaction.update(
                user_ref, {"pendingRequests": firestore.ArrayRemove([group_id])}
            )

    @staticmethod
    def decline_or_cancel(db: Client, actor_id: str, request_id: str) -> None:
        """Delete a request, answered by its recipient or withdrawn by its sender.

        The group's pending-invite entry and the user's outgoing-request entry
        are retracted in the same transaction.
        """
        run_transaction(
            db, MembershipService._decline_or_cancel, db, actor_id, request_id
        )
        current_app.logger.info(f"Request {request_id} removed by {actor_id}")

    # --- leave / remove member ---

    @staticmethod
    def _leave_group(
        transaction: Transaction, db: Client, user_id: str, group_id: str
    ) -> str | None:
        group_ref = db.collection(GROUPS_COLLECTION).document(group_id)
        user_ref = db.collection(USERS_COLLECTION).document(user_id)
        group = snapshot_data(group_ref.get(transaction=transaction))
        user = snapshot_data(user_ref.get(transaction=transaction))

        if group is None:
            raise GroupNotFound()
        members = group.get("members", [])
        if user_id not in members:
            raise NotInGroup("You are not a member of this group.")

        remaining = [member for member in members if member != user_id]
        new_leader = None
        pending = []
        live_users: set[str] = set()
        if not remaining:
            pending = pending_requests_for_group(transaction, db, group_id)
            live_users = existing_user_ids(
                transaction, db, [(s.to_dict() or {}).get("userid") for s in pending]
            )
        elif group.get("creatorId") == user_id:
            # Earliest-joined remaining member takes over.
            new_leader = remaining[0]
            pending = pending_requests_for_group(transaction, db, group_id)
            live_users = existing_user_ids(transaction, db, [new_leader])

        if not remaining:
            delete_requests(transaction, db, pending, live_users)
            transaction.delete(group_ref)
        else:
            group_updates: dict[str, Any] = {
                "members": firestore.ArrayRemove([user_id]),
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }
            if new_leader is not None:
                group_updates["creatorId"] = new_leader
                for snap in pending:
                    transaction.update(snap.reference, {"GroupLeaderId": new_leader})
                if new_leader in live_users:
                    transaction.update(
                        db.collection(USERS_COLLECTION).document(new_leader),
                        {"group_leader": True, "updatedAt": firestore.SERVER_TIMESTAMP},
                    )
            transaction.update(group_ref, group_updates)

        if user is not None:
            transaction.update(user_ref, _ungroup_fields())
        return new_leader

    @staticmethod
    def leave_group(db: Client, user_id: str, group_id: str) -> str | None:
        """Leave a group. Returns the new leader's id if leadership moved.

        When the last member leaves, the group and its pending requests are
        deleted.
        """
        new_leader = run_transaction(
            db, MembershipService._leave_group, db, user_id, group_id
        )
        current_app.logger.info(f"User {user_id} left group {group_id}")
        if new_leader:
            current_app.logger.info(f"Group {group_id} leadership passed to {new_leader}")
        return new_leader

    @staticmethod
    def _remove_member(
        transaction: Transaction,
        db: Client,
        leader_id: str,
        group_id: str,
        member_id: str,
    ) -> None:
        group_ref = db.collection(GROUPS_COLLECTION).document(group_id)
        member_ref = db.collection(USERS_COLLECTION).document(member_id)
        group = snapshot_data(group_ref.get(transaction=transaction))
        member = snapshot_data(member_ref.get(transaction=transaction))

        if group is None:
            raise GroupNotFound()
        if group.get("creatorId") != leader_id:
            raise NotLeader("Only the group leader can remove members.")
        if member_id == leader_id:
            raise ValidationError("You cannot remove yourself. Leave the group instead.")
        if member_id not in group.get("members", []):
            raise NotInGroup("This user is not currently in your group.")

        transaction.update(
            group_ref,
            {
                "members": firestore.ArrayRemove([member_id]),
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        if member is not None:
            transaction.update(member_ref, _ungroup_fields())

    @staticmethod
    def remove_member(db: Client, leader_id: str, group_id: str, member_id: str) -> None:
        """Remove a member from the leader's group."""
        run_transaction(
            db, MembershipService._remove_member, db, leader_id, group_id, member_id
        )
        current_app.logger.info(
            f"Leader {leader_id} removed {member_id} from group {group_id}"
        )

    # --- listings and notifications ---

    @staticmethod
    def _incoming_queries(db: Client, user_id: str) -> dict[str, Any]:
        requests_ref = db.collection(REQUESTS_COLLECTION)
        pending = firestore.FieldFilter("status", "==", STATUS_PENDING)
        return {
            # Join requests waiting on this user as group leader
            "join": requests_ref.where(
                filter=firestore.FieldFilter("GroupLeaderId", "==", user_id)
            )
            .where(filter=pending)
            .where(filter=firestore.FieldFilter("fromGroup", "==", False)),
            # Invites addressed to this user
            "invite": requests_ref.where(
                filter=firestore.FieldFilter("userid", "==", user_id)
            )
            .where(filter=pending)
            .where(filter=firestore.FieldFilter("fromGroup", "==", True)),
        }

    @staticmethod
    def _outgoing_queries(db: Client, user_id: str) -> dict[str, Any]:
        requests_ref = db.collection(REQUESTS_COLLECTION)
        pending = firestore.FieldFilter("status", "==", STATUS_PENDING)
        return {
            "join": requests_ref.where(
                filter=firestore.FieldFilter("userid", "==", user_id)
            )
            .where(filter=pending)
            .where(filter=firestore.FieldFilter("fromGroup", "==", False)),
            "invite": requests_ref.where(
                filter=firestore.FieldFilter("GroupLeaderId", "==", user_id)
            )
            .where(filter=pending)
            .where(filter=firestore.FieldFilter("fromGroup", "==", True)),
        }

    @staticmethod
    def _collect(queries: dict[str, Any]) -> list[MembershipRequest]:
        results = []
        for query in queries.values():
            results.extend(_request_dict(doc) for doc in query.stream() if doc.exists)
        return results

    @staticmethod
    def list_incoming_requests(db: Client, user_id: str) -> list[MembershipRequest]:
        """Pending requests the user must answer."""
        return MembershipService._collect(
            MembershipService._incoming_queries(db, user_id)
        )

    @staticmethod
    def list_outgoing_requests(db: Client, user_id: str) -> list[MembershipRequest]:
        """Pending requests the user is waiting on."""
        return MembershipService._collect(
            MembershipService._outgoing_queries(db, user_id)
        )

    @staticmethod
    def count_unseen_requests(db: Client, user_id: str) -> int:
        """Count incoming pending requests not yet seen, for the notification badge."""
        incoming = MembershipService.list_incoming_requests(db, user_id)
        return sum(1 for request in incoming if request.get("hasSeen") is not True)

    @staticmethod
    def mark_requests_seen(db: Client, user_id: str) -> int:
        """Mark every incoming pending request as seen. Returns how many changed."""
        unseen = [
            request
            for request in MembershipService.list_incoming_requests(db, user_id)
            if request.get("hasSeen") is not True
        ]
        if not unseen:
            return 0
        batch = db.batch()
        requests_ref = db.collection(REQUESTS_COLLECTION)
        for request in unseen:
            batch.update(requests_ref.document(request["id"]), {"hasSeen": True})
        batch.commit()
        return len(unseen)

    @staticmethod
    def watch_incoming_requests(
        db: Client, user_id: str, callback: Callable[[list[MembershipRequest]], None]
    ) -> IncomingRequestsWatch:
        """Subscribe to the user's incoming pending requests."""
        return IncomingRequestsWatch(
            MembershipService._incoming_queries(db, user_id), callback
        )


class IncomingRequestsWatch:
    """Merges the live results of several request queries into one list.

    Firestore delivers snapshots on a background thread, one query at a time;
    the callback always receives the latest results of every query.
    """

    def __init__(
        self,
        queries: dict[str, Any],
        callback: Callable[[list[MembershipRequest]], None],
    ) -> None:
        """Start listening to every query."""
        self._callback = callback
        self._lock = threading.Lock()
        self._latest: dict[str, list[MembershipRequest]] = {key: [] for key in queries}
        self._watches = [
            query.on_snapshot(partial(self._on_snapshot, key))
            for key, query in queries.items()
        ]

    def _on_snapshot(self, key: str, docs: list[Any], changes: Any, read_time: Any) -> None:
        with self._lock:
            self._latest[key] = [_request_dict(doc) for doc in docs if doc.exists]
            merged = [request for results in self._latest.values() for request in results]
            # Deliver under the lock so a slower listener cannot overwrite newer results.
            self._callback(merged)

    def unsubscribe(self) -> None:
        """Stop every underlying listener."""
        for watch in self._watches:
            watch.unsubscribe()
