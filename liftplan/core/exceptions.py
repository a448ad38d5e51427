from dataclasses import dataclass, field
from typing import Any


class DomainError(Exception):
    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(DomainError):
    def __init__(self, entity: str, message: str | None = None, details: dict | None = None):
        code = f"NF_{entity.upper()}_001"
        msg = message or f"{entity} not found"
        super().__init__(code, msg, details)


class ValidationError(DomainError):
    def __init__(self, field: str, message: str, details: dict | None = None):
        code = f"VAL_{field.upper()}_001"
        msg = f"Validation failed for {field}: {message}"
        super().__init__(code, msg, details or {"field": field})


class ConflictError(DomainError):
    def __init__(self, message: str, code: str = "CF_001", details: dict | None = None):
        super().__init__(code, message, details)


class AuthorizationError(DomainError):
    def __init__(self, message: str, code: str = "AUTH_006", details: dict | None = None):
        super().__init__(code, message, details)


class PlanResolutionError(DomainError):
    """A plan cannot be mapped onto program versions."""

    def __init__(self, message: str, code: str = "PLAN_RESOLUTION_001", details: dict | None = None):
        super().__init__(code, message, details)


class UnsupportedDefinitionKindError(DomainError):
    def __init__(self, kind: Any, details: dict | None = None):
        super().__init__(
            "GEN_UNSUPPORTED_KIND",
            f"Unsupported program definition kind: {kind!r}",
            details or {"kind": kind},
        )


class MissingContextError(DomainError):
    def __init__(self, missing: list[str], message: str | None = None):
        msg = message or f"Missing generation context: {', '.join(missing)}"
        super().__init__("GEN_MISSING_CONTEXT", msg, {"missing": missing})


class StatsParamsError(DomainError):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__("STATS_PARAMS_001", message, details)


@dataclass
class OverridePatchWarning:
    """Non-fatal problem with a stored override; generation continues without it."""

    override_id: int | None
    op: str | None
    reason: str
    details: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "overrideId": self.override_id,
            "op": self.op,
            "reason": self.reason,
            **({"details": self.details} if self.details else {}),
        }
