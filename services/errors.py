from typing import Optional


class RiskRegisterError(Exception):
    """Base class for errors raised by the risk register core."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RiskRegisterError):
    """Bad input: a missing field, a value outside its canonical set, or a forbidden transition."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


class PreconditionError(RiskRegisterError):
    """The record is not in a state that allows the operation."""


class NotFoundError(RiskRegisterError):
    def __init__(self, entity: str, key):
        super().__init__(f"{entity} {key!r} not found")
        self.entity = entity
        self.key = key


def describe(error: RiskRegisterError) -> dict:
    """Flatten an error for per-item bulk results and JSON responses."""
    field: Optional[str] = getattr(error, "field", None)
    payload = {"type": type(error).__name__, "error": error.message}
    if field:
        payload["field"] = field
    return payload
