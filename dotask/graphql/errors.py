"""ClientError — structured error kinds for the GraphQL client and stores.

Error kinds:
  transport   → network failure, timeout, non-auth HTTP error status
  server      → server-reported application error (response "errors" list)
  auth        → no session, or the server refused the credentials
  validation  → precondition failed locally; no request was sent
  malformed   → response body missing, not JSON, or missing the root field
"""

from __future__ import annotations

from typing import Any, Literal

ErrorKind = Literal["transport", "server", "auth", "validation", "malformed"]

AUTH_REQUIRED_MESSAGE = "authentication required"
_UNAUTHENTICATED_CODES = frozenset({"UNAUTHENTICATED", "UNAUTHORIZED", "FORBIDDEN"})


class ClientError(Exception):
    """Error raised by the transport binding and the state stores."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = "transport",
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind: ErrorKind = kind
        self.errors = errors or []

    @property
    def is_auth_error(self) -> bool:
        return self.kind == "auth"

    def __repr__(self) -> str:
        return f"ClientError(kind={self.kind!r}, message={self.message!r})"


def classify_graphql_errors(errors: list[dict[str, Any]]) -> ErrorKind:
    """Tag a GraphQL "errors" list as auth or server.

    The server reports missing sessions either with an
    ``extensions.code`` or with its plain "authentication required" message.
    """
    for err in errors:
        if not isinstance(err, dict):
            continue
        code = (err.get("extensions") or {}).get("code", "")
        if isinstance(code, str) and code.upper() in _UNAUTHENTICATED_CODES:
            return "auth"
        if str(err.get("message", "")).strip().lower() == AUTH_REQUIRED_MESSAGE:
            return "auth"
    return "server"


def first_error_message(errors: list[dict[str, Any]], default: str) -> str:
    for err in errors:
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
    return default


def error_message(exc: BaseException) -> str:
    """Message string stored in a store's error field."""
    if isinstance(exc, ClientError):
        return exc.message
    return str(exc) or "Unknown error occurred"


def validation_message(exc: Exception) -> str:
    """First human-readable message of a pydantic ValidationError."""
    errors = getattr(exc, "errors", None)
    if callable(errors):
        details = errors()
        if details:
            first = details[0]
            loc = ".".join(str(p) for p in first.get("loc", ()))
            msg = str(first.get("msg", ""))
            return f"{loc}: {msg}" if loc else msg
    return str(exc)
