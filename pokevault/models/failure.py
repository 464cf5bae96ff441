"""
Failure classification for API responses.

Every failure that reaches a client is classified:

- KnownFailure: the system knows why it failed (missing set, card not owned,
  storage unreachable)
- UnknownFailure: anything else

Domain code raises subclasses of KnownError; the application turns them into
an ApiResponse envelope with the error's status code.
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"

    # Resource failures
    NOT_FOUND = "not_found"

    # Storage failures
    FETCH_FAILED = "fetch_failed"
    MUTATION_FAILED = "mutation_failed"
    CONFLICT = "conflict"

    # Service failures
    EXTERNAL_API_ERROR = "external_api_error"

    # Unknown
    UNKNOWN = "unknown"


class OutcomeType(str, Enum):
    """High-level outcome classification."""

    SUCCESS = "success"
    KNOWN_FAILURE = "known_failure"
    UNKNOWN_FAILURE = "unknown_failure"


T = TypeVar("T")


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class ApiResponse(BaseModel, Generic[T]):
    """Response envelope used for failures (and optionally successes)."""

    outcome: OutcomeType = Field(
        ...,
        description="High-level classification of the result",
    )
    data: T | None = Field(
        default=None,
        description="Response data (present on success)",
    )
    failure: FailureDetail | None = Field(
        default=None,
        description="Failure details (present on non-success)",
    )

    @classmethod
    def known_failure(
        cls,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> "ApiResponse[Any]":
        """Create a known failure response."""
        return cls(
            outcome=OutcomeType.KNOWN_FAILURE,
            failure=FailureDetail(
                kind=kind,
                message=message,
                detail=detail,
                suggestion=suggestion,
            ),
        )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ApiResponse[Any]:
        """Convert to an ApiResponse."""
        return ApiResponse.known_failure(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class SetNotFoundError(KnownError):
    """Raised when a set id is not in the catalog."""

    def __init__(self, set_id: str):
        self.set_id = set_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Set '{set_id}' was not found.",
            suggestion="Sync the set into the catalog first.",
            status_code=404,
        )


class CardNotFoundError(KnownError):
    """Raised when a card id is not in the catalog."""

    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Card '{card_id}' was not found.",
            status_code=404,
        )


class VariantNotOwnedError(KnownError):
    """Raised when removing a variant the user does not own."""

    def __init__(self, card_id: str, variant: str):
        self.card_id = card_id
        self.variant = variant
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"No '{variant}' copy of card '{card_id}' in the collection.",
            status_code=404,
        )


class ConcurrentChangeError(KnownError):
    """Raised when another request changed the same collection row first."""

    def __init__(self, card_id: str, variant: str):
        self.card_id = card_id
        self.variant = variant
        super().__init__(
            kind=FailureKind.CONFLICT,
            message=f"Card '{card_id}' was changed by another request.",
            detail=f"variant={variant}",
            suggestion="Reload the card and try again.",
            status_code=409,
        )


class CollectionFetchError(KnownError):
    """
    Raised when collection rows cannot be loaded.

    Previously loaded summaries are left untouched.
    """

    def __init__(self, user_id: str, detail: str | None = None):
        self.user_id = user_id
        super().__init__(
            kind=FailureKind.FETCH_FAILED,
            message="Your collection could not be loaded.",
            detail=detail,
            suggestion="Retry in a moment.",
            status_code=503,
        )


class MutationFailedError(KnownError):
    """
    Raised when an add/remove/reset could not be stored.

    The local summary has already been restored to its pre-mutation state
    when this is raised.
    """

    def __init__(self, card_id: str | None, action: str, detail: str | None = None):
        self.card_id = card_id
        self.action = action
        target = f"card '{card_id}'" if card_id else "the set"
        super().__init__(
            kind=FailureKind.MUTATION_FAILED,
            message=f"Could not {action} {target}. Your collection was not changed.",
            detail=detail,
            suggestion="Retry in a moment.",
            status_code=503,
        )
