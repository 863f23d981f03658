"""Data models for the membership blueprint."""

from __future__ import annotations

from suitematch.core.types import FirestoreDocument


class MembershipRequest(FirestoreDocument, total=False):
    """A join request or invite document in Firestore.

    ``fromGroup`` is True when the group's leader invited ``userid`` and
    False when ``userid`` asked to join. The document id is
    ``{GroupId}_{userid}``, so a (group, user) pair has at most one document.
    """

    fromGroup: bool
    userid: str
    nameuser: str
    GroupId: str
    GroupName: str
    GroupLeaderId: str
    status: str
    reason: str
    hasSeen: bool


def request_id_for(group_id: str, user_id: str) -> str:
    """Return the document id of the request for a (group, user) pair."""
    return f"{group_id}_{user_id}"
