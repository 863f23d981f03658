"""Core module for the suitematch application."""

from .types import FirestoreDocument

__all__ = ["FirestoreDocument"]
