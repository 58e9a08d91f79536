"""
Error taxonomy for the request layer. Every failure from APIClient.request is an APIError subclass.
Messages never include the Authorization header or token values.
"""


class APIError(Exception):
    """Base class for all request-layer failures."""


class InvalidURLError(APIError):
    """Endpoint URL could not be built. Programmer error; never retried."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid API URL: {url}")


class TransportError(APIError):
    """DNS, connect, reset or timeout. Not retried by this layer."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Network error: {message}")


class NotHttpResponseError(APIError):
    """Transport returned something that isn't a well-formed HTTP response."""

    def __init__(self, message: str = "No HTTP response"):
        self.message = message
        super().__init__(message)


class HttpError(APIError):
    """Non-2xx status other than a 401 handled by refresh. Body kept raw for diagnostics."""

    def __init__(self, status: int, body_text: str, request_id: str | None = None):
        self.status = status
        self.body_text = body_text
        self.request_id = request_id
        msg = f"HTTP {status}: {body_text}"
        if request_id:
            msg += f" (request-id {request_id})"
        super().__init__(msg)


class UnauthenticatedError(APIError):
    """No token when one is required, or refresh-and-retry exhausted. UI should force re-login."""

    def __init__(self, message: str = "Not authenticated. Please log in again."):
        self.message = message
        super().__init__(message)


class RefreshFailedError(UnauthenticatedError):
    """The refresh call failed or returned an invalid payload. Tokens have already been cleared."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Token refresh failed: {reason}")


class DecodingError(APIError):
    """Response body empty or not parseable into the expected type. Detail holds a bounded, redacted snippet."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Failed to decode server response: {detail}")


class UnknownError(APIError):
    """Anything not otherwise classified (e.g. request body could not be serialized)."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
