"""Service layer for user profile data."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from suitematch.core.constants import UNGROUPED_USERS_LIMIT, USERS_COLLECTION

from .models import User

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client


def parse_interests(raw: str | None) -> list[str]:
    """Split a comma-separated interests string into trimmed, non-empty tags."""
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def clean_instagram_handle(raw: str | None) -> str:
    """Strip whitespace and a leading @ from an Instagram handle."""
    return (raw or "").strip().removeprefix("@")


class UserService:
    """Service class for user-related operations."""

    @staticmethod
    def get_user_by_id(db: Client, user_id: str) -> User | None:
        """Fetch a user by their ID."""
        user_doc = cast(
            "DocumentSnapshot", db.collection(USERS_COLLECTION).document(user_id).get()
        )
        if not user_doc.exists:
            return None
        data = user_doc.to_dict()
        if data is None:
            return None
        data["id"] = user_id
        return cast("User", data)

    @staticmethod
    def create_user_profile(  # noqa: PLR0913
        db: Client,
        uid: str,
        email: str,
        name: str,
        school: str,
        graduation_year: int,
        registration_time: str,
    ) -> None:
        """Create the Firestore document for a newly signed-up user."""
        db.collection(USERS_COLLECTION).document(uid).set(
            {
                "uid": uid,
                "email": email,
                "school": school,
                "graduationYear": graduation_year,
                "registrationTime": registration_time,
                "name": name,
                "group_leader": False,
                "pfpUrl": "",
                "is_grouped": False,
                "bio": "",
                "interests": [],
                "pendingRequests": [],
                "createdAt": firestore.SERVER_TIMESTAMP,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }
        )

    @staticmethod
    def update_profile(db: Client, uid: str, form_data: dict[str, Any]) -> dict[str, Any]:
        """Apply a validated profile edit. Grouping fields are never touched here."""
        update_data = {
            "name": form_data["name"].strip(),
            "bio": (form_data.get("bio") or "").strip(),
            "graduationYear": int(form_data["graduation_year"]),
            "interests": parse_interests(form_data.get("interests")),
            "registrationTime": form_data["registration_time"].strip(),
            "instagramHandle": clean_instagram_handle(form_data.get("instagram_handle")),
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }
        db.collection(USERS_COLLECTION).document(uid).update(update_data)
        return update_data

    @staticmethod
    def list_ungrouped_users(
        db: Client,
        school: str,
        exclude_ids: list[str] | None = None,
        limit: int = UNGROUPED_USERS_LIMIT,
    ) -> list[User]:
        """Fetch ungrouped users at a school, the candidates for an invite."""
        exclude = set(exclude_ids or [])
        query = (
            db.collection(USERS_COLLECTION)
            .where(filter=firestore.FieldFilter("is_grouped", "==", False))
            .where(filter=firestore.FieldFilter("school", "==", school))
            .limit(limit + len(exclude))
        )
        users = []
        for doc in query.stream():
            if doc.id in exclude:
                continue
            data = doc.to_dict()
            if data is not None:
                data["id"] = doc.id
                users.append(cast("User", data))
            if len(users) >= limit:
                break
        return users
