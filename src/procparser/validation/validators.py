"""
Simplified validation functions.

Value checks used by the configuration validators and the CLI.
"""

from typing import Any, List, Optional

from .exceptions import ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    # bool is an int subclass; reject it so `true` in TOML is not read as 1
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_enum_choice(
    value: Any,
    valid_choices: List[str],
    field_name: str = "value",
    case_sensitive: bool = True
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Args:
        value: Value to validate
        valid_choices: List of valid choices
        field_name: Name of the field being validated
        case_sensitive: Whether comparison should be case sensitive

    Returns:
        Validated choice, as spelled in valid_choices

    Raises:
        ValidationError: If value is not a valid choice
    """
    if not isinstance(value, str):
        raise ValidationError(
            f"{field_name} must be a string, got {type(value).__name__}",
            field_name=field_name,
            value=value
        )

    if case_sensitive:
        if value in valid_choices:
            return value
    else:
        for choice in valid_choices:
            if choice.lower() == value.lower():
                return choice

    raise ValidationError(
        f"{field_name} must be one of {valid_choices}, got '{value}'",
        field_name=field_name,
        value=value
    )


def validate_pid(value: Any, field_name: str = "pid") -> int:
    """
    Validate a process ID.

    Raises:
        ValidationError: If the value is not a positive integer
    """
    return validate_positive_integer(value, min_value=1, field_name=field_name)


def validate_pid_list(values: List[Any], field_name: str = "pids") -> List[int]:
    """
    Validate a list of process IDs, dropping duplicates but keeping order.

    Raises:
        ValidationError: If the list is empty or any entry is not a valid PID
    """
    if not values:
        raise ValidationError(
            f"{field_name} must contain at least one PID",
            field_name=field_name,
            value=values
        )
    pids: List[int] = []
    for raw in values:
        pid = validate_pid(raw, field_name=field_name)
        if pid not in pids:
            pids.append(pid)
    return pids
