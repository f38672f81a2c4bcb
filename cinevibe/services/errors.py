"""Error taxonomy shared by the service layer and the HTTP surface."""

from __future__ import annotations

from typing import Literal


UpstreamKind = Literal["ai", "metadata"]

DEFAULT_UPSTREAM_STATUS: dict[str, int] = {"ai": 502, "metadata": 503}


class CineVibeError(Exception):
    """Base exception for recoverable application failures."""


class ValidationError(CineVibeError):
    """Raised when client input is missing, malformed or oversized."""


class NotFoundError(CineVibeError):
    """Raised when a requested movie, show or room does not exist."""


class ConflictError(CineVibeError):
    """Raised when a resource with the same key already exists."""


class UpstreamError(CineVibeError):
    """Raised when the LLM or metadata provider fails for a whole request.

    ``status_code`` defaults by kind (502 for the LLM, 503 for metadata) and
    can be overridden per call site.
    """

    def __init__(self, kind: UpstreamKind, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code or DEFAULT_UPSTREAM_STATUS[kind]
