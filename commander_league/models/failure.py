"""
Failure classification for league operations.

Every error a handler can surface is a ``LeagueError`` subclass carrying a
``FailureKind`` and the HTTP status it maps to. The application registers a
single exception handler that renders them as ``FailureDetail`` bodies.

Taxonomy:
- ValidationError: bad or missing input, never retried
- NotFoundError: unknown deck, version, season, player or user
- UpstreamRateLimitError: the card catalog is throttling us, callers back off
- PersistenceError: a store write failed, not retried automatically
- CleanupError: retention pruning failed, logged by callers and never surfaced
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"
    MISSING_REQUIRED = "missing_required"
    EMPTY_DECKLIST = "empty_decklist"
    FORBIDDEN = "forbidden"

    # Resource failures
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"

    # Service failures
    UPSTREAM_RATE_LIMITED = "upstream_rate_limited"
    PERSISTENCE_FAILED = "persistence_failed"
    CLEANUP_FAILED = "cleanup_failed"


class FailureDetail(BaseModel):
    """Error body returned to API clients."""

    detail: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )


class LeagueError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    status_code: int = 400

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        status_code: int | None = None,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> FailureDetail:
        """Convert to an error body."""
        return FailureDetail(detail=self.message, kind=self.kind)


class ValidationError(LeagueError):
    """Bad or missing input."""

    def __init__(
        self,
        message: str,
        kind: FailureKind = FailureKind.INVALID_INPUT,
        detail: str | None = None,
    ):
        super().__init__(kind=kind, message=message, detail=detail, status_code=400)


class ForbiddenError(LeagueError):
    """The caller is not allowed to perform this operation."""

    def __init__(self, message: str):
        super().__init__(kind=FailureKind.FORBIDDEN, message=message, status_code=403)


class NotFoundError(LeagueError):
    """A referenced document does not exist."""

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"{resource} not found",
            detail=resource_id,
            status_code=404,
        )


class ConflictError(LeagueError):
    """The request contradicts existing state (duplicate registration etc.)."""

    def __init__(self, message: str):
        super().__init__(kind=FailureKind.CONFLICT, message=message, status_code=409)


class UpstreamRateLimitError(LeagueError):
    """The card catalog answered with HTTP 429."""

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.UPSTREAM_RATE_LIMITED,
            message="Rate limit exceeded. Please try again later.",
            detail=detail,
            status_code=429,
        )


class PersistenceError(LeagueError):
    """A write to the document store failed."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.PERSISTENCE_FAILED,
            message=message,
            detail=detail,
            status_code=500,
        )


class CleanupError(LeagueError):
    """Retention pruning failed. Best-effort: callers log and continue."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.CLEANUP_FAILED,
            message=message,
            detail=detail,
            status_code=500,
        )
