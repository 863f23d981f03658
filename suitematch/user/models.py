"""Data models for the user blueprint."""

from __future__ import annotations

from typing import Any

from suitematch.core.types import FirestoreDocument


class User(FirestoreDocument, total=False):
    """A user document in Firestore."""

    uid: str
    name: str
    email: str
    school: str
    graduationYear: int
    registrationTime: str
    bio: str
    interests: list[str]
    instagramHandle: str
    pfpUrl: str
    is_grouped: bool
    group_leader: bool
    groupId: str
    pendingRequests: list[str]


def is_grouped(user: dict[str, Any]) -> bool:
    """Return True if the user document shows a current group."""
    return bool(user.get("is_grouped") or user.get("groupId"))
