"""Remote notes API client."""

from backend.client.http import HttpNoteStore

__all__ = ["HttpNoteStore"]
