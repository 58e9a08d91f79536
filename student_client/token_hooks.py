"""
Token hooks: the capability interface between APIClient and whatever owns the session.
APIClient reads/writes tokens only through these four calls; none of them may block or raise.
"""
from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenHooks(Protocol):
    def get_access_token(self) -> str | None: ...

    def get_refresh_token(self) -> str | None: ...

    def set_tokens(self, access_token: str, refresh_token: str) -> None: ...

    def clear_tokens(self) -> None: ...


class NoTokenHooks:
    """No session (pre-login). Reads return None; writes are ignored."""

    def get_access_token(self) -> str | None:
        return None

    def get_refresh_token(self) -> str | None:
        return None

    def set_tokens(self, access_token: str, refresh_token: str) -> None:
        pass

    def clear_tokens(self) -> None:
        pass
