"""
Validation and error handling for the procparser package.

This module provides the exception taxonomy, consistent error logging and
input validation used across the application.
"""

from .exceptions import (
    ErrorSeverity,
    ProcFormatError,
    ProcNotFoundError,
    ProcParseError,
    ProcPermissionError,
    SystemConfigError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
)

from .validators import (
    validate_enum_choice,
    validate_pid,
    validate_pid_list,
    validate_positive_integer,
)

__all__ = [
    # Exceptions
    "ErrorSeverity",
    "ValidationError",
    "SystemConfigError",
    "ProcParseError",
    "ProcNotFoundError",
    "ProcFormatError",
    "ProcPermissionError",
    # Handlers
    "handle_error",
    "handle_config_error",
    "handle_cli_error",
    # Validators
    "validate_enum_choice",
    "validate_pid",
    "validate_pid_list",
    "validate_positive_integer",
]
