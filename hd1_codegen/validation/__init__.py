"""
Validation for the unified specification.

- handler_validators: handler-implementation files referenced by operations
"""

from .handler_validators import (
    MissingHandler,
    ValidationReport,
    find_missing_handlers,
    validate_handlers,
)

__all__ = [
    "MissingHandler",
    "ValidationReport",
    "find_missing_handlers",
    "validate_handlers",
]
