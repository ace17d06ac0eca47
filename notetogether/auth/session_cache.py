"""
Session Cache.

Keeps the signed-in session on disk so separate CLI invocations act as the
same user. The file holds tokens; it is written with owner-only permissions.
"""

import os
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from notetogether.core.logging import get_logger
from notetogether.models.auth import AuthSession

logger = get_logger(__name__)


class SessionCache:
    """JSON file holding one AuthSession."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> AuthSession | None:
        """Read the cached session; a missing or unreadable file means signed out."""
        if not self.path.exists():
            return None
        try:
            return AuthSession.model_validate_json(self.path.read_text(encoding="utf-8"))
        except PydanticValidationError as e:
            logger.warning("Ignoring unreadable session cache", extra={"path": str(self.path), "error": str(e)})
            return None

    def save(self, session: AuthSession) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(session.model_dump_json(), encoding="utf-8")
        os.chmod(self.path, 0o600)
        logger.debug("Session cached", extra={"path": str(self.path), "user_id": session.user_id})

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
