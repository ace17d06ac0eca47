"""
Authentication.

Identity provider integration. Everything else only needs the user id.
"""

from notetogether.auth.authenticator import Authenticator, FirebaseAuthenticator
from notetogether.auth.session_cache import SessionCache

_authenticator: FirebaseAuthenticator | None = None


def get_authenticator() -> FirebaseAuthenticator:
    """Get the shared authenticator (lazy initialization)."""
    global _authenticator
    if _authenticator is None:
        _authenticator = FirebaseAuthenticator()
    return _authenticator


__all__ = [
    "Authenticator",
    "FirebaseAuthenticator",
    "SessionCache",
    "get_authenticator",
]
