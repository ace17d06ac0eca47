"""Unit tests for auth models."""

from datetime import timedelta

from notetogether.core.utils import utc_now
from notetogether.models.auth import AuthResult, AuthSession


def _session(**overrides) -> AuthSession:
    data = {
        "user_id": "uid-1",
        "email": "ana@example.com",
        "id_token": "secret-token",
        "refresh_token": "refresh",
        "expires_at": utc_now() + timedelta(hours=1),
    }
    data.update(overrides)
    return AuthSession(**data)


class TestAuthSession:
    def test_not_expired(self):
        assert not _session().is_expired

    def test_expired(self):
        assert _session(expires_at=utc_now() - timedelta(seconds=1)).is_expired

    def test_tokens_hidden_from_repr(self):
        text = repr(_session())
        assert "secret-token" not in text
        assert "uid-1" in text


class TestAuthResult:
    def test_ok(self):
        session = _session()
        result = AuthResult.ok(session)
        assert result.success
        assert result.session == session
        assert result.error is None

    def test_failed_keeps_raw_text(self):
        result = AuthResult.failed("EMAIL_NOT_FOUND")
        assert not result.success
        assert result.session is None
        assert result.error == "EMAIL_NOT_FOUND"
