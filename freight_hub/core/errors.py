from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


CREDENTIALS_HINT = "Please check your .env file contains TIMOCOM_USERNAME, TIMOCOM_PASSWORD, and TIMOCOM_ID"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class HubError(Exception):
    """Base class for errors the API layer maps to a JSON envelope."""


class ConfigurationError(HubError):
    def __init__(self, message: str, *, hint: str = CREDENTIALS_HINT):
        super().__init__(message)
        self.hint = hint


class UpstreamApiError(HubError):
    """
    The freight exchange answered with a non-2xx status, or could not be reached.

    status_code is None for transport failures (timeout, DNS, refused connection).
    """

    def __init__(self, message: str, *, status_code: int | None = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class CsvDataError(HubError):
    pass


def error_message(error: BaseException | str | None) -> str:
    if error is None:
        return "Unknown error occurred"
    if isinstance(error, str):
        return error
    message = str(error)
    return message or error.__class__.__name__


def error_body(message: str, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": message}
    body.update({k: v for k, v in extra.items() if v is not None})
    body["timestamp"] = utc_now_iso()
    return body
