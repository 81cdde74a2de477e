"""Validation of generated formulae with the local brew toolchain.

Public API:
    run_validation(kind, target, timeout) -> ValidationResult
    require_success(result) -> ValidationResult
"""

from brewpr.validator.executor import require_success, run_validation
from brewpr.validator.types import ValidationFailure, ValidationKind, ValidationResult

__all__ = [
    "run_validation",
    "require_success",
    "ValidationFailure",
    "ValidationKind",
    "ValidationResult",
]
