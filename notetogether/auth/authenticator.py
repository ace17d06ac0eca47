"""
Authenticator.

Email/password and Google sign-in against the Firebase Identity Toolkit
REST API. The sync core only consumes `current_user()`; how the user got
there is this module's business.

Failed email/password calls report the provider's raw error text
(e.g. ``EMAIL_NOT_FOUND``); a failed Google sign-in reports a fixed
message. An ID token past its expiry no longer counts as signed in until
`refresh()` swaps the refresh token for a new one.

Usage:
    from notetogether.auth import get_authenticator

    auth = get_authenticator()
    result = await auth.sign_in("ana@example.com", "secret")
    if result.success:
        user_id = auth.current_user()
"""

from typing import Any, Protocol, runtime_checkable

import httpx

from notetogether.auth.session_cache import SessionCache
from notetogether.core.config import get_app_config, get_settings, resolve_project_path
from notetogether.core.exceptions import AuthenticationError
from notetogether.core.logging import get_logger, log_with_source
from notetogether.core.utils import expires_at
from notetogether.models.auth import AuthResult, AuthSession

logger = get_logger(__name__)

GOOGLE_SIGN_IN_FAILED = "Google sign-in failed"


@runtime_checkable
class Authenticator(Protocol):
    """Identity provider as seen by the rest of the application."""

    def current_user(self) -> str | None:
        """Id of the signed-in user, or None."""
        ...

    async def sign_in(self, email: str, password: str) -> AuthResult:
        ...

    async def sign_up(self, email: str, password: str) -> AuthResult:
        ...

    async def sign_in_with_google_token(self, token: str) -> AuthResult:
        ...

    async def refresh(self) -> AuthResult:
        ...

    def sign_out(self) -> None:
        ...


class FirebaseAuthenticator:
    """
    Authenticator over the Identity Toolkit REST API.

    Features:
    - API key, endpoint and timeout from config (overridable)
    - Successful sign-ins cached through SessionCache
    - Expired ID tokens renewed through the Secure Token API
    - Structured logging of attempts (never passwords or tokens)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        token_url: str | None = None,
        timeout: float | None = None,
        session_cache: SessionCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        config = get_app_config().auth
        self.api_key = api_key if api_key is not None else get_settings().firebase_api_key
        self.base_url = (base_url or config.base_url).rstrip("/")
        self.token_url = (token_url or config.token_url).rstrip("/")
        self.timeout = timeout if timeout is not None else config.timeout
        self._google_provider_id = config.google_provider_id
        self._request_uri = config.request_uri
        self._cache = session_cache or SessionCache(resolve_project_path(config.session_file))
        self._transport = transport
        self._session: AuthSession | None = None

    @property
    def session(self) -> AuthSession | None:
        """The signed-in session, loading the cached one on first access."""
        if self._session is None:
            self._session = self._cache.load()
        return self._session

    def current_user(self) -> str | None:
        """Id of the signed-in user; None when signed out or the ID token has expired."""
        session = self.session
        if session is None or session.is_expired:
            return None
        return session.user_id

    async def sign_in(self, email: str, password: str) -> AuthResult:
        """Sign in with email and password."""
        return await self._password_call("accounts:signInWithPassword", email, password)

    async def sign_up(self, email: str, password: str) -> AuthResult:
        """Create an account and sign in to it."""
        return await self._password_call("accounts:signUp", email, password)

    async def sign_in_with_google_token(self, token: str) -> AuthResult:
        """Exchange a Google ID token for a session."""
        payload = {
            "postBody": f"id_token={token}&providerId={self._google_provider_id}",
            "requestUri": self._request_uri,
            "returnIdpCredential": True,
            "returnSecureToken": True,
        }
        log_with_source(logger, "auth", "info", "Google sign-in attempt")
        result = await self._call("accounts:signInWithIdp", payload)
        if not result.success:
            return AuthResult.failed(GOOGLE_SIGN_IN_FAILED)
        return result

    async def refresh(self) -> AuthResult:
        """
        Exchange the refresh token for a new ID token.

        A rejected refresh token ends the session (the user must sign in
        again); a transport failure leaves it in place for a later retry.
        """
        session = self.session
        if session is None or not session.refresh_token:
            return AuthResult.failed("Not signed in")

        payload = {"grant_type": "refresh_token", "refresh_token": session.refresh_token}
        try:
            response = await self._post(f"{self.token_url}/token", payload)
        except httpx.HTTPError as e:
            log_with_source(logger, "auth", "error", "Token refresh failed", error=str(e))
            return AuthResult.failed(str(e) or type(e).__name__)

        data = _json_or_empty(response)
        if response.is_error:
            message = _error_message(data, response.status_code)
            log_with_source(
                logger, "auth", "warning", "Token refresh rejected",
                status_code=response.status_code, error=message, user_id=session.user_id,
            )
            self._session = None
            self._cache.clear()
            return AuthResult.failed(message)

        refreshed = AuthSession(
            user_id=data.get("user_id", session.user_id),
            email=session.email,
            id_token=data["id_token"],
            refresh_token=data.get("refresh_token", session.refresh_token),
            expires_at=expires_at(data.get("expires_in", 3600)),
        )
        self._store(refreshed)
        log_with_source(logger, "auth", "info", "Token refreshed", user_id=refreshed.user_id)
        return AuthResult.ok(refreshed)

    def sign_out(self) -> None:
        session = self.session
        user_id = session.user_id if session is not None else None
        self._session = None
        self._cache.clear()
        log_with_source(logger, "auth", "info", "Signed out", user_id=user_id)

    async def _password_call(self, endpoint: str, email: str, password: str) -> AuthResult:
        log_with_source(logger, "auth", "info", "Password auth attempt", endpoint=endpoint, email=email)
        return await self._call(
            endpoint,
            {"email": email, "password": password, "returnSecureToken": True},
        )

    async def _post(self, url: str, payload: dict[str, Any]) -> httpx.Response:
        """
        POST `payload` as JSON with the API key attached.

        Raises:
            AuthenticationError: If no API key is configured
            httpx.HTTPError: On transport failure
        """
        if not self.api_key:
            raise AuthenticationError("FIREBASE_API_KEY is not configured in config/.env")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            return await client.post(url, params={"key": self.api_key}, json=payload)

    async def _call(self, endpoint: str, payload: dict[str, Any]) -> AuthResult:
        """POST to one Identity Toolkit endpoint and turn the reply into a result."""
        try:
            response = await self._post(f"{self.base_url}/{endpoint}", payload)
        except httpx.HTTPError as e:
            log_with_source(logger, "auth", "error", "Auth request failed", endpoint=endpoint, error=str(e))
            return AuthResult.failed(str(e) or type(e).__name__)

        data = _json_or_empty(response)
        if response.is_error:
            message = _error_message(data, response.status_code)
            log_with_source(
                logger, "auth", "warning", "Auth rejected",
                endpoint=endpoint, status_code=response.status_code, error=message,
            )
            return AuthResult.failed(message)

        session = AuthSession(
            user_id=data["localId"],
            email=data.get("email"),
            id_token=data["idToken"],
            refresh_token=data.get("refreshToken", ""),
            expires_at=expires_at(data.get("expiresIn", 3600)),
        )
        self._store(session)
        log_with_source(logger, "auth", "info", "Signed in", endpoint=endpoint, user_id=session.user_id)
        return AuthResult.ok(session)

    def _store(self, session: AuthSession) -> None:
        self._session = session
        self._cache.save(session)


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _error_message(data: dict[str, Any], status_code: int) -> str:
    """Provider error text from either `{"error": {"message": ...}}` or `{"error": "..."}`."""
    error = data.get("error")
    if isinstance(error, dict):
        error = error.get("message")
    if isinstance(error, str) and error:
        return error
    return f"HTTP {status_code}"
