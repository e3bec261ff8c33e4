"""
Tests for failure classification.

Every known failure maps to one kind and one HTTP status, and is rendered as
a ``{"detail", "kind"}`` body.
"""

import pytest

from commander_league.models.failure import (
    CleanupError,
    ConflictError,
    FailureKind,
    ForbiddenError,
    LeagueError,
    NotFoundError,
    PersistenceError,
    UpstreamRateLimitError,
    ValidationError,
)


class TestFailureStatus:
    @pytest.mark.parametrize(
        ("error", "kind", "status_code"),
        [
            (ValidationError("bad"), FailureKind.INVALID_INPUT, 400),
            (ForbiddenError("no"), FailureKind.FORBIDDEN, 403),
            (NotFoundError("Deck", "d-1"), FailureKind.NOT_FOUND, 404),
            (ConflictError("twice"), FailureKind.CONFLICT, 409),
            (UpstreamRateLimitError(), FailureKind.UPSTREAM_RATE_LIMITED, 429),
            (PersistenceError("write failed"), FailureKind.PERSISTENCE_FAILED, 500),
            (CleanupError("prune failed"), FailureKind.CLEANUP_FAILED, 500),
        ],
    )
    def test_kind_and_status(
        self, error: LeagueError, kind: FailureKind, status_code: int
    ) -> None:
        assert error.kind is kind
        assert error.status_code == status_code
        assert isinstance(error, LeagueError)

    def test_validation_kind_override(self) -> None:
        error = ValidationError("Decklist text is required", kind=FailureKind.MISSING_REQUIRED)

        assert error.kind is FailureKind.MISSING_REQUIRED
        assert error.status_code == 400


class TestFailureBody:
    def test_not_found_message(self) -> None:
        error = NotFoundError("Deck", "d-1")

        assert error.message == "Deck not found"
        assert error.detail == "d-1"
        assert error.to_response().model_dump(mode="json") == {
            "detail": "Deck not found",
            "kind": "not_found",
        }

    def test_rate_limit_message(self) -> None:
        body = UpstreamRateLimitError(detail="Sol Ring").to_response()

        assert body.detail == "Rate limit exceeded. Please try again later."
        assert body.kind is FailureKind.UPSTREAM_RATE_LIMITED
