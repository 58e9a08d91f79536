"""
Student session: the in-memory view of the stored credentials, and the TokenHooks implementation
APIClient is wired to at startup. Restores from the credential store on construction; logout (and a
failed refresh, via clear_tokens) wipes every stored key.
"""
import logging
import time
from dataclasses import dataclass

import jwt
from sqlalchemy.exc import SQLAlchemyError

from student_client.api_client import APIClient
from student_client.credential_store import CredentialStore
from student_client.errors import APIError
from student_client.schemas import MeResponse, TokenResponse

logger = logging.getLogger(__name__)

# Credential store keys
KEY_ACCESS = "edulens.access_token"
KEY_REFRESH = "edulens.refresh_token"
KEY_ROLE = "edulens.role"
KEY_USER_ID = "edulens.user_id"
KEY_EMAIL = "edulens.email"
ALL_KEYS = [KEY_ACCESS, KEY_REFRESH, KEY_ROLE, KEY_USER_ID, KEY_EMAIL]

SESSION_EXPIRED_MESSAGE = "Session expired. Please log in again."


@dataclass
class Credentials:
    access_token: str | None = None
    refresh_token: str | None = None
    role: str | None = None
    user_id: str | None = None
    email: str | None = None

    def __repr__(self) -> str:
        # Token values stay out of logs and tracebacks
        return (
            f"Credentials(access_token={'***' if self.access_token else None}, "
            f"refresh_token={'***' if self.refresh_token else None}, "
            f"role={self.role!r}, user_id={self.user_id!r}, email={self.email!r})"
        )

    def access_token_expires_at(self) -> float | None:
        """exp claim of a JWT access token (unverified; the server is the authority). None if opaque."""
        if not self.access_token:
            return None
        try:
            claims = jwt.decode(self.access_token, options={"verify_signature": False})
        except jwt.PyJWTError:
            return None
        exp = claims.get("exp")
        return float(exp) if isinstance(exp, (int, float)) else None

    def access_token_expired_or_soon(self, buffer_seconds: int = 60) -> bool:
        """True if the access token's exp is within buffer_seconds (for proactive refresh)."""
        expires_at = self.access_token_expires_at()
        if expires_at is None:
            return False
        return time.time() >= expires_at - buffer_seconds


class StudentSession:
    def __init__(self, store: CredentialStore) -> None:
        self._store = store
        self.credentials = Credentials(
            access_token=store.get(KEY_ACCESS),
            refresh_token=store.get(KEY_REFRESH),
            role=store.get(KEY_ROLE),
            user_id=store.get(KEY_USER_ID),
            email=store.get(KEY_EMAIL),
        )
        self.last_error: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.credentials.access_token)

    def set_session(
        self,
        access_token: str,
        refresh_token: str,
        role: str | None = None,
        user_id: str | None = None,
        email: str | None = None,
    ) -> None:
        """Call after a successful login or refresh. role/user_id/email are only written when given."""
        creds = self.credentials
        creds.access_token = access_token
        creds.refresh_token = refresh_token
        self._store.set(KEY_ACCESS, access_token)
        self._store.set(KEY_REFRESH, refresh_token)
        if role is not None:
            creds.role = role
            self._store.set(KEY_ROLE, role)
        if user_id is not None:
            creds.user_id = user_id
            self._store.set(KEY_USER_ID, user_id)
        if email is not None:
            creds.email = email
            self._store.set(KEY_EMAIL, email)

    def apply_token_response(self, tokens: TokenResponse, email: str | None = None) -> None:
        self.set_session(
            tokens.access_token,
            tokens.refresh_token,
            role=tokens.role,
            user_id=tokens.user_id,
            email=email,
        )

    def logout(self, reason: str | None = None) -> None:
        """Clear in-memory state and stored credentials."""
        if reason:
            self.last_error = reason
        self.credentials = Credentials()
        self._store.clear(ALL_KEYS)
        logger.info("Session cleared%s", f": {reason}" if reason else "")

    async def validate_session_with_me(self, client: APIClient) -> bool:
        """
        Check a restored session on launch. Refreshes first if the JWT access token is expired or
        about to expire, then calls GET /me. Any failure logs the user out. Returns True if valid.
        """
        if not self.is_authenticated:
            return False
        try:
            if self.credentials.access_token_expired_or_soon(buffer_seconds=60):
                logger.info("Restored access token expired or expiring; refreshing before /me")
                await client.refresh_session(stale_token=self.credentials.access_token)
            await client.request("GET", "/me", MeResponse)
        except APIError as e:
            logger.info("Session validation failed: %s", type(e).__name__)
            self.logout(SESSION_EXPIRED_MESSAGE)
            return False
        return True

    # --- TokenHooks ---

    def get_access_token(self) -> str | None:
        return self.credentials.access_token

    def get_refresh_token(self) -> str | None:
        return self.credentials.refresh_token

    # Hooks never raise on storage errors; in-memory credentials are updated first.

    def set_tokens(self, access_token: str, refresh_token: str) -> None:
        try:
            self.set_session(access_token, refresh_token)
        except SQLAlchemyError as e:
            logger.error("Could not persist refreshed tokens: %s", type(e).__name__)

    def clear_tokens(self) -> None:
        try:
            self.logout()
        except SQLAlchemyError as e:
            logger.error("Could not clear stored credentials: %s", type(e).__name__)
