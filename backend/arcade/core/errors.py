"""Error Hierarchy — typed, categorized exceptions for every arcade failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - User errors (400-level) leave session state untouched
    - Provider/gateway errors (500-level) never escape the engine as uncaught faults
    - to_response() produces the REST envelope; no internal details in user-facing messages
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"
    AUTHORIZATION = "authorization"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    community_id: str | None = None
    game_type: str | None = None
    round_number: int | None = None
    participant_id: str | None = None
    debug_info: dict[str, Any] | None = None


class ArcadeError(Exception):
    """Base exception for all arcade errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "community_id": self.context.community_id,
                    "game_type": self.context.game_type,
                    "round_number": self.context.round_number,
                },
            }
        }


# ─── Session Errors (400-level) ─────────────────────────────────

class AlreadyActiveError(ArcadeError):
    """A live session already holds the (community, game type) slot."""
    def __init__(self, key: str, context: ErrorContext | None = None):
        super().__init__(
            f"A session is already running for {key}",
            "ALREADY_ACTIVE", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )
        self.key = key


class NotAuthorizedError(ArcadeError):
    """Cancellation attempted by someone other than the session creator."""
    def __init__(self, participant_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"Participant {participant_id} did not start this session",
            "NOT_AUTHORIZED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


class SessionNotFoundError(ArcadeError):
    """No live session for the requested key."""
    def __init__(self, key: str, context: ErrorContext | None = None):
        super().__init__(
            f"No session is running for {key}",
            "SESSION_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.INFO, context, 404,
        )


class InvalidTransitionError(ArcadeError):
    """Lifecycle transition not present in the state machine table."""
    def __init__(self, current: str, target: str, context: ErrorContext | None = None):
        super().__init__(
            f"Illegal session transition {current} -> {target}",
            "INVALID_TRANSITION", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.current = current
        self.target = target


# ─── Submission Errors (400-level) ──────────────────────────────

class SubmissionRejectedError(ArcadeError):
    """Base for submission-time user errors. Never changes session state."""
    def __init__(self, message: str, code: str, context: ErrorContext | None = None):
        super().__init__(
            message, code, ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.INFO, context, 400,
        )


class NoActiveRoundError(SubmissionRejectedError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__("No round is accepting answers", "NO_ACTIVE_ROUND", context)


class AlreadyAnsweredError(SubmissionRejectedError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__("You already answered this round", "ALREADY_ANSWERED", context)


class NotYourTurnError(SubmissionRejectedError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__("It is not your turn", "NOT_YOUR_TURN", context)


class InvalidChoiceError(SubmissionRejectedError):
    def __init__(self, choice_index: int, context: ErrorContext | None = None):
        super().__init__(
            f"Choice {choice_index} is not one of the options", "INVALID_CHOICE", context,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class ProviderOverloadedError(ArcadeError):
    """Transient overload signal from the content provider. Retried by the client."""
    def __init__(self, message: str = "Content provider overloaded", context: ErrorContext | None = None):
        super().__init__(
            message, "PROVIDER_OVERLOADED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 503,
        )


class GenerationFailedError(ArcadeError):
    """Provider returned unusable content, failed hard, or stayed overloaded after retries."""
    def __init__(
        self,
        message: str,
        reason: str,
        attempts: int = 1,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Content generation failed ({reason}): {message}",
            "GENERATION_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 502,
        )
        self.reason = reason
        self.attempts = attempts


class GatewayError(ArcadeError):
    """Chat gateway could not deliver a presentation or notice."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Gateway {operation} failed: {message}",
            "GATEWAY_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 502,
        )
        self.operation = operation


class TimerAlreadyArmedError(ArcadeError):
    """A deadline is already pending for this session — cancel it first."""
    def __init__(self, key: str, context: ErrorContext | None = None):
        super().__init__(
            f"Timer already armed for {key}",
            "TIMER_ALREADY_ARMED", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
