"""Data models for the group blueprint."""

from __future__ import annotations

from typing import Any

from suitematch.core.types import FirestoreDocument


class Group(FirestoreDocument, total=False):
    """A group document in Firestore.

    ``creatorId`` holds the current leader, who is always one of ``members``.
    ``members`` keeps join order. ``pendingUsers`` lists the users with an
    open join request or invite for this group.
    """

    groupId: str
    groupName: str
    description: str
    capacity: int
    creatorId: str
    members: list[str]
    pendingUsers: list[str]
    school: str
    member_details: list[dict[str, Any]]
