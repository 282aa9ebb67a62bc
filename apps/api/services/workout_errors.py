"""
Workout generation error taxonomy.

Every failure inside the generation pipeline is one of these. The
orchestrator catches them all and records `error_reason` on the day row;
none of them is allowed to fail the HTTP request that accepted the work.
"""
from typing import Iterable, List, Optional

# Stored reasons are truncated to this length
MAX_ERROR_REASON_LENGTH = 200


class WorkoutGenerationError(Exception):
    """Base class; `error_reason` is the human-readable text stored on the row."""

    code = "generation_failed"

    def __init__(self, error_reason: str):
        super().__init__(error_reason)
        self.error_reason = error_reason[:MAX_ERROR_REASON_LENGTH]


class PayloadValidationError(WorkoutGenerationError):
    """Schema or structural-invariant violation in a generated workout."""

    code = "validation_failed"

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"Workout validation failed: {'; '.join(self.errors)}")


class ExerciseNotFoundError(WorkoutGenerationError):
    """One or more generated exercise names resolve to no catalog entry."""

    code = "exercise_not_found"

    def __init__(self, names: Iterable[str]):
        self.names = list(names)
        if len(self.names) == 1:
            reason = f"exercise not found: {self.names[0]}"
        else:
            reason = f"exercise not found: {', '.join(self.names)}"
        super().__init__(reason)


class GenerationTimeoutError(WorkoutGenerationError):
    """The generation call exceeded its time bound."""

    code = "timeout"

    def __init__(self, timeout_s: float):
        self.timeout_s = timeout_s
        super().__init__(f"Generation timeout after {timeout_s:g}s")


class StoreUnavailableError(WorkoutGenerationError):
    """Persistence layer unreachable after the retry policy gave up."""

    code = "store_unavailable"

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Workout store unavailable during {operation}")


class UnknownGenerationError(WorkoutGenerationError):
    """Unparsable or otherwise unusable generation output."""

    code = "unknown"
