"""
Auth endpoints: dev login, /me, logout.
"""
import logging

from student_client.api_client import APIClient, EmptyResponse
from student_client.errors import APIError
from student_client.schemas import DevLoginRequest, MeResponse, TokenResponse
from student_client.session import StudentSession

logger = logging.getLogger(__name__)


async def dev_login(
    client: APIClient,
    email: str,
    role: str = "student",
    secret: str | None = None,
) -> TokenResponse:
    """POST /auth/dev-login. Pass the pilot password as `secret` if the backend requires one."""
    return await client.request(
        "POST",
        "/auth/dev-login",
        TokenResponse,
        body=DevLoginRequest(email=email, role=role, secret=secret),
        requires_auth=False,
    )


async def fetch_me(client: APIClient) -> MeResponse:
    return await client.request("GET", "/me", MeResponse)


async def dev_login_and_store_session(
    client: APIClient,
    session: StudentSession,
    email: str,
    role: str = "student",
    secret: str | None = None,
    validate_me: bool = True,
) -> None:
    """Login, persist tokens in the session, then optionally check them against /me."""
    tokens = await dev_login(client, email, role=role, secret=secret)
    session.apply_token_response(tokens, email=email)
    if validate_me:
        await session.validate_session_with_me(client)


async def logout(client: APIClient, session: StudentSession) -> None:
    """Best-effort server logout; local teardown happens regardless."""
    try:
        await client.request("POST", "/auth/logout", EmptyResponse)
    except APIError as e:
        logger.info("Server logout failed (%s); clearing local session anyway", type(e).__name__)
    session.logout()
