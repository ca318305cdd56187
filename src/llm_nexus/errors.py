"""Error types shared across the LLM Nexus package."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence


class ArgumentError(ValueError):
    """Raised when a caller passes a missing or unusable argument."""

    def __init__(self, argument: str, message: str, *, value: Any = None):
        super().__init__(message)
        self.argument = argument
        self.value = value
        self.message = message


@dataclass(frozen=True)
class FieldViolation:
    """Single constraint violation found while validating a request."""

    field: str
    message: str
    value_type: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message} (got {self.value_type})"


class ValidationError(ValueError):
    """Raised when a request breaks one or more field constraints."""

    def __init__(self, violations: Sequence[FieldViolation]):
        self.violations: List[FieldViolation] = list(violations)
        details = "; ".join(str(item) for item in self.violations)
        super().__init__(f"Request validation failed with {len(self.violations)} error(s): {details}")

    @property
    def fields(self) -> List[str]:
        return [item.field for item in self.violations]


class CancellationError(Exception):
    """Raised when a generate call is aborted through its cancellation signal.

    This is an ordinary failure of the call; the awaiting task itself is not
    marked cancelled.
    """

    def __init__(self, provider: Optional[str] = None, *, before_call: bool = True):
        stage = "before the provider call" if before_call else "during the provider call"
        label = provider or "unknown"
        super().__init__(f"Generation for provider '{label}' was cancelled {stage}")
        self.provider = provider
        self.before_call = before_call
