"""
Store errors.

Every failure the UI can recover from is one of these; screens catch
``StoreError``, show a notice, and keep their previous state.
"""

from typing import Literal, Optional


class StoreError(Exception):
    """Base exception for all storefront and admin failures."""


class ValidationError(StoreError):
    """Bad form input. Raised before anything is written."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class AuthError(StoreError):
    """Missing session, ended session, or missing admin grant."""

    def __init__(
        self,
        message: str,
        reason: Literal["no_session", "access_denied", "bad_credentials"],
    ) -> None:
        super().__init__(message)
        self.reason = reason


class DataAccessError(StoreError):
    """A store call failed."""


class RateLimitError(StoreError):
    """Purchase submitted too soon after the previous one."""

    def __init__(self, retry_after: int) -> None:
        super().__init__(
            f"Please wait {retry_after} second{'s' if retry_after != 1 else ''}"
            " before placing another order."
        )
        self.retry_after = retry_after
