"""Helpers for running service logic inside Firestore transactions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from firebase_admin import firestore
from flask import current_app
from google.api_core.exceptions import GoogleAPIError

from suitematch.errors import StoreUnavailable

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def run_transaction(db: Client, func: Callable[..., Any], *args: Any) -> Any:
    """Run ``func(transaction, *args)`` in one Firestore transaction.

    Reads and writes made through the transaction commit together or not at
    all. Application errors raised by ``func`` propagate unchanged and nothing
    is written. Infrastructure failures, including exhausted contention
    retries, surface as StoreUnavailable.
    """
    transaction = db.transaction()
    try:
        return firestore.transactional(func)(transaction, *args)
    except GoogleAPIError as e:
        current_app.logger.error(f"Firestore transaction failed: {e}")
        raise StoreUnavailable() from e
    except ValueError as e:
        # Retries exhausted are reported as ValueError chained to the API error.
        if isinstance(e.__cause__, GoogleAPIError):
            current_app.logger.error(f"Firestore transaction retries exhausted: {e}")
            raise StoreUnavailable() from e
        raise


def snapshot_data(snapshot: Any) -> dict[str, Any] | None:
    """Return a snapshot's data, or None when the document does not exist."""
    if not snapshot.exists:
        return None
    return snapshot.to_dict() or {}
