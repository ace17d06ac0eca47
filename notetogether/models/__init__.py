"""
Data Models.

Pydantic models shared by the store, sync and auth layers.
"""

from notetogether.models.auth import AuthResult, AuthSession
from notetogether.models.note import DEFAULT_PREVIEW_LENGTH, NoteRecord

__all__ = [
    "AuthResult",
    "AuthSession",
    "DEFAULT_PREVIEW_LENGTH",
    "NoteRecord",
]
