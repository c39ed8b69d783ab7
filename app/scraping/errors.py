"""
Pipeline exception taxonomy for browser scraping runs.
"""

from __future__ import annotations

from app.failure_codes import (
    CAPACITY_EXCEEDED,
    CHALLENGE_DETECTED,
    CONTROL_NOT_FOUND,
    NETWORK_TIMEOUT,
    NO_DATA_FOUND,
    UNEXPECTED_FAILURE,
)


class PipelineError(Exception):
    """Base exception for scraping pipeline failures.

    Attributes:
        code: Stable failure code from ``app.failure_codes``.
        detail: Optional free-form context for logs.
    """

    code: str = UNEXPECTED_FAILURE

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(message)


class CapacityExceeded(PipelineError):
    """Raised when every browser session slot is in use."""

    code = CAPACITY_EXCEEDED


class ChallengeDetected(PipelineError):
    """Raised when the target page shows an anti-bot challenge."""

    code = CHALLENGE_DETECTED

    def __init__(
        self,
        message: str,
        *,
        indicators: list[str] | None = None,
        snapshot_paths: list[str] | None = None,
        detail: str | None = None,
    ) -> None:
        self.indicators = indicators or []
        self.snapshot_paths = snapshot_paths or []
        super().__init__(message, detail=detail)


class ControlNotFound(PipelineError):
    """Raised when no candidate resolves to a usable control."""

    code = CONTROL_NOT_FOUND


class NoDataFound(PipelineError):
    """Raised when extraction completes with zero records."""

    code = NO_DATA_FOUND


class NetworkTimeout(PipelineError):
    """Raised when a suspension point exceeds its time bound."""

    code = NETWORK_TIMEOUT
