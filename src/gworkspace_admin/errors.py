"""Error taxonomy for gworkspace-admin.

Every failure the tool reports derives from AdminError. The classes describe
kinds of failure rather than where they happen:

- ArgumentError: malformed flag, bad CSV cell, unknown column. Terminal.
- ComposerError: a structured-string value could not be parsed. Terminal per row.
- ConfigError: missing or unreadable configuration / credentials. Terminal.
- TransportError: network, TLS or token refresh failure. Retryable if transient.
- RemoteError: the API answered with an HTTP error status.
"""

from typing import Any

import httpx


class AdminError(Exception):
    """Base class for all errors raised by gworkspace-admin."""

    exit_code = 1


class ArgumentError(AdminError):
    """A flag, CSV cell or command line value is invalid."""

    exit_code = 2


class ComposerError(ArgumentError):
    """A request body could not be composed from the supplied values."""


class ConfigError(AdminError):
    """Configuration or credentials are missing or invalid."""


class TransportError(AdminError):
    """The request never produced an HTTP response.

    Attributes:
        transient: True if the failure is worth retrying (timeouts, resets).
    """

    def __init__(self, message: str, transient: bool = True) -> None:
        super().__init__(message)
        self.transient = transient


class RemoteError(AdminError):
    """The remote API returned an HTTP error status.

    Attributes:
        status: HTTP status code.
        reason: First error reason from the Google error envelope, if any.
        message: Human readable error message.
    """

    def __init__(self, status: int, message: str, reason: str | None = None) -> None:
        super().__init__(f"HTTP {status}: {message}")
        self.status = status
        self.reason = reason
        self.message = message

    @classmethod
    def from_response(cls, response: httpx.Response) -> "RemoteError":
        """Build a RemoteError from a failed httpx response.

        Google APIs return ``{"error": {"code", "message", "errors": [{"reason"}]}}``;
        anything else falls back to the raw body text.
        """
        message = response.reason_phrase or "request failed"
        reason = None
        try:
            payload: Any = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            error = payload["error"]
            message = error.get("message") or message
            details = error.get("errors") or []
            if details and isinstance(details[0], dict):
                reason = details[0].get("reason")
            elif isinstance(error.get("status"), str):
                reason = error["status"]
        elif response.text:
            message = response.text.strip()[:500]
        return cls(response.status_code, message, reason)
