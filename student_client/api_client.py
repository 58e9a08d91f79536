"""
HTTP request engine for the EduLens API. Every network call from the service modules goes through
APIClient.request: it attaches the bearer token, classifies the response, and on a 401 performs one
coordinated refresh (POST /auth/refresh) followed by exactly one retry.
Never logs headers or token values; decoding errors quote at most a bounded, redacted body snippet.
"""
import json
import logging
import re
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from student_client.config import BACKEND_URL, BODY_SNIPPET_BYTES, DEBUG_HTTP, HTTP_TIMEOUT, REFRESH_PATH
from student_client.errors import (
    APIError,
    DecodingError,
    HttpError,
    InvalidURLError,
    NotHttpResponseError,
    RefreshFailedError,
    TransportError,
    UnauthenticatedError,
    UnknownError,
)
from student_client.refresh_lock import RefreshCoordinator
from student_client.schemas import RefreshRequest, RefreshResponse
from student_client.token_hooks import NoTokenHooks, TokenHooks

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Correlation id headers, in lookup order (httpx headers are case-insensitive)
REQUEST_ID_HEADERS = ("x-request-id", "x-requestid", "request-id")

# JSON string fields blanked out of body snippets
_SECRET_FIELD_RE = re.compile(
    r'("(?:access_token|refresh_token|id_token|token|secret|password)"\s*:\s*)"(?:[^"\\]|\\.)*"?'
)


@dataclass(frozen=True)
class EmptyResponse:
    """Result type for endpoints with no meaningful body; the body is never parsed."""


@dataclass(frozen=True)
class RequestDescriptor:
    method: str
    path: str
    body: Any = None
    explicit_token: str | None = field(default=None, repr=False)
    requires_auth: bool = True
    timeout: float = HTTP_TIMEOUT


@lru_cache(maxsize=256)
def _adapter(response_model: Any) -> TypeAdapter:
    return TypeAdapter(response_model)


def _type_name(response_model: Any) -> str:
    if getattr(response_model, "__origin__", None) is None and hasattr(response_model, "__name__"):
        return response_model.__name__
    return str(response_model)


def _redact(text: str) -> str:
    return _SECRET_FIELD_RE.sub(r'\1"***"', text)


def body_snippet(content: bytes, limit: int = BODY_SNIPPET_BYTES) -> str:
    """First `limit` bytes of a body as text, with token-like fields redacted."""
    text = _redact(content[:limit].decode("utf-8", errors="replace"))
    if len(content) > limit:
        text += "..."
    return text


def extract_request_id(headers: httpx.Headers) -> str | None:
    for name in REQUEST_ID_HEADERS:
        value = headers.get(name)
        if value:
            return value
    return None


def encode_body(body: Any) -> bytes:
    """Serialize a request body to JSON. Pydantic models drop unset optionals (None)."""
    try:
        if isinstance(body, BaseModel):
            return body.model_dump_json(exclude_none=True).encode("utf-8")
        return json.dumps(body).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise UnknownError(f"Failed to encode request body ({type(body).__name__}): {type(e).__name__}") from e


class APIClient:
    """
    One instance per process, constructed at startup and passed to the service modules.
    Token hooks start as NoTokenHooks; install the session's hooks once before issuing requests.
    """

    def __init__(
        self,
        base_url: str = BACKEND_URL,
        *,
        token_hooks: TokenHooks | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        debug_logging: bool = DEBUG_HTTP,
    ) -> None:
        self.base_url = base_url.strip().rstrip("/")
        self.debug_logging = debug_logging
        self._token_hooks: TokenHooks = token_hooks if token_hooks is not None else NoTokenHooks()
        self._http = httpx.AsyncClient(transport=transport)
        self._refresh_lock = RefreshCoordinator()
        self._requests_sent = 0

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def token_hooks(self) -> TokenHooks:
        return self._token_hooks

    @property
    def refresh_lock(self) -> RefreshCoordinator:
        return self._refresh_lock

    def install_token_hooks(self, hooks: TokenHooks) -> None:
        """Swap the token hooks. Meant to be called once at startup, before the first request."""
        if self._requests_sent:
            logger.warning("Token hooks replaced after %d request(s) were sent", self._requests_sent)
        self._token_hooks = hooks

    def url_for(self, path: str) -> httpx.URL:
        trimmed = path[1:] if path.startswith("/") else path
        raw = f"{self.base_url}/{trimmed}"
        try:
            url = httpx.URL(raw)
        except httpx.InvalidURL as e:
            raise InvalidURLError(raw) from e
        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidURLError(raw)
        return url

    async def request(
        self,
        method: str,
        path: str,
        response_model: type[T] | Any = EmptyResponse,
        *,
        body: Any = None,
        access_token: str | None = None,
        requires_auth: bool = True,
        timeout: float = HTTP_TIMEOUT,
    ) -> T:
        """
        Send one API call and decode the response into response_model.
        Raises an APIError subclass on failure. A 401 on an authenticated call triggers one
        coordinated refresh and one retry; a second 401 raises UnauthenticatedError.
        """
        desc = RequestDescriptor(
            method=method.upper(),
            path=path,
            body=body,
            explicit_token=access_token or None,
            requires_auth=requires_auth,
            timeout=timeout,
        )
        token = self._resolve_token(desc)
        if desc.requires_auth and not token:
            logger.info("%s %s: no access token available; not sending", desc.method, desc.path)
            raise UnauthenticatedError()

        response = await self._send(desc, token)
        if response.status_code == 401 and desc.requires_auth:
            response = await self._refresh_and_retry(desc, stale_token=token)
        return self._handle_response(desc, response, response_model)

    async def refresh_session(self, stale_token: str | None = None) -> bool:
        """
        Run one refresh under the coordinator. stale_token is the access token the caller saw
        rejected (or expiring); if the hooks already hold a different non-empty token, another
        caller refreshed while we waited and no network call is made.
        Returns False when there is no refresh token; raises RefreshFailedError (after clearing
        tokens) when the refresh call fails or returns no access token.
        """
        async with self._refresh_lock.hold():
            current = self._token_hooks.get_access_token()
            if current and current != stale_token:
                logger.debug("Access token already refreshed by a concurrent request")
                return True

            refresh_token = self._token_hooks.get_refresh_token()
            if not refresh_token:
                logger.info("No refresh token available; cannot refresh session")
                return False

            try:
                data = await self.request(
                    "POST",
                    REFRESH_PATH,
                    RefreshResponse,
                    body=RefreshRequest(refresh_token=refresh_token),
                    requires_auth=False,
                )
            except APIError as e:
                self._token_hooks.clear_tokens()
                logger.warning("Token refresh failed (%s); session cleared", type(e).__name__)
                raise RefreshFailedError(str(e)) from e

            if not data.access_token:
                self._token_hooks.clear_tokens()
                logger.warning("Token refresh returned no access_token; session cleared")
                raise RefreshFailedError("refresh response missing access_token")

            # Rotation is opportunistic: keep the old refresh token if the server didn't send one
            self._token_hooks.set_tokens(data.access_token, data.refresh_token or refresh_token)
            logger.info("Access token refreshed (refresh token %s)", "rotated" if data.refresh_token else "kept")
            return True

    def _resolve_token(self, desc: RequestDescriptor) -> str | None:
        if desc.explicit_token:
            return desc.explicit_token
        if desc.requires_auth:
            return self._token_hooks.get_access_token() or None
        return None

    async def _refresh_and_retry(self, desc: RequestDescriptor, stale_token: str | None) -> httpx.Response:
        if not await self.refresh_session(stale_token):
            raise UnauthenticatedError()
        token = self._token_hooks.get_access_token()
        if not token:
            raise UnauthenticatedError()
        response = await self._send(desc, token)
        if response.status_code == 401:
            logger.warning("%s %s: still 401 after refresh; giving up", desc.method, desc.path)
            raise UnauthenticatedError()
        return response

    async def _send(self, desc: RequestDescriptor, token: str | None) -> httpx.Response:
        url = self.url_for(desc.path)
        headers = {"Accept": "application/json"}
        content = None
        if desc.body is not None:
            content = encode_body(desc.body)
            headers["Content-Type"] = "application/json"
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._requests_sent += 1
        started = time.monotonic()
        try:
            response = await self._http.request(
                desc.method,
                url,
                content=content,
                headers=headers,
                timeout=desc.timeout,
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise InvalidURLError(str(url)) from e
        except httpx.RemoteProtocolError as e:
            raise NotHttpResponseError(f"Malformed HTTP response: {e}") from e
        except httpx.DecodingError as e:
            # Body could not be decoded per its content-encoding
            raise NotHttpResponseError(f"Undecodable response body: {e}") from e
        except httpx.RequestError as e:
            logger.info("%s %s failed: %s", desc.method, desc.path, type(e).__name__)
            raise TransportError(str(e) or type(e).__name__) from e

        log = logger.info if self.debug_logging else logger.debug
        log(
            "%s %s -> %d in %.0fms (request-id %s)",
            desc.method,
            desc.path,
            response.status_code,
            (time.monotonic() - started) * 1000,
            extract_request_id(response.headers) or "-",
        )
        return response

    def _handle_response(self, desc: RequestDescriptor, response: httpx.Response, response_model: Any) -> Any:
        status = response.status_code
        if not 200 <= status < 300:
            raise HttpError(status, response.text, extract_request_id(response.headers))

        if response_model is EmptyResponse:
            return EmptyResponse()

        name = _type_name(response_model)
        content = response.content
        if not content.strip():
            raise DecodingError(f"empty response body for {desc.method} {desc.path}; expected {name}")
        try:
            return _adapter(response_model).validate_json(content)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in e.errors()[:3]
            )
            # Not chained: pydantic's message quotes raw input values
            raise DecodingError(f"expected {name} ({problems}); body: {body_snippet(content)}") from None
