"""Error and warning types raised or reported by the engine."""
from __future__ import annotations


class ConfigurationError(ValueError):
    """A record cannot be used: malformed date, negative amount, unknown frequency."""

    def __init__(self, message: str, field: str | None = None, record_id: str | None = None) -> None:
        super().__init__(message)
        self.field = field
        self.record_id = record_id


class EngineWarning(UserWarning):
    """Non-fatal condition returned next to a partial result."""

    kind = "warning"

    def __init__(self, subject: str, message: str) -> None:
        super().__init__(f"{subject}: {message}")
        self.subject = subject
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "subject": self.subject, "message": self.message}


class ConfigurationWarning(EngineWarning):
    """A configuration item was skipped."""

    kind = "configuration"


class InsufficientDataWarning(EngineWarning):
    """Too few observations to infer a spending pattern."""

    kind = "insufficient-data"


class PaymentInsufficientWarning(EngineWarning):
    """Monthly payment does not exceed the accruing interest."""

    kind = "payment-insufficient"
