# tools/plan_errors.py
"""
FitPlan AI — Error Taxonomy
===========================
Every way a plan submission can fail. The specific class is logged for
operators; end users only ever see USER_FACING_ERROR.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


USER_FACING_ERROR = (
    "Plan generation failed. Please check your internet connection and try again."
)


class ErrorKind(Enum):
    VALIDATION = "validation_error"
    SERVICE = "service_error"
    MALFORMED_PLAN = "malformed_plan"
    CONFIGURATION = "configuration_error"


class PlanGenerationError(Exception):
    """Base class for everything that stops a plan from being produced."""

    kind: ErrorKind = ErrorKind.SERVICE

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    @property
    def user_message(self) -> str:
        return USER_FACING_ERROR

    def to_log_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "detail": self.detail}


class ValidationError(PlanGenerationError):
    """The submitted profile is incomplete or out of range."""

    kind = ErrorKind.VALIDATION

    def __init__(self, detail: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(detail)
        self.errors = errors or []

    def to_log_dict(self) -> Dict[str, Any]:
        data = super().to_log_dict()
        data["errors"] = self.errors
        return data


class ServiceError(PlanGenerationError):
    """Network, authentication or non-success response from Gemini."""

    kind = ErrorKind.SERVICE

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(detail)
        self.status_code = status_code

    def to_log_dict(self) -> Dict[str, Any]:
        data = super().to_log_dict()
        data["status_code"] = self.status_code
        return data


class MalformedPlanError(PlanGenerationError):
    """A response arrived but is not a complete, valid plan."""

    kind = ErrorKind.MALFORMED_PLAN


class ConfigurationError(PlanGenerationError):
    """The process is missing configuration, e.g. the API key."""

    kind = ErrorKind.CONFIGURATION


__all__ = [
    "USER_FACING_ERROR",
    "ErrorKind",
    "PlanGenerationError",
    "ValidationError",
    "ServiceError",
    "MalformedPlanError",
    "ConfigurationError",
]
