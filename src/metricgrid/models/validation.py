import re
from collections.abc import Callable

from .constants import (
    COLUMN_NAME_MAX_LENGTH,
    DATA_TYPE_NAMES,
    DESCRIPTION_MAX_LENGTH,
    NAME_MAX_LENGTH,
)
from .metric import Metric

COLUMN_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_name(name: str) -> tuple[bool, str]:
    """Validate a metric name.

    Args:
        name: The name to validate

    Returns:
        Tuple of (is_valid, error_message) - error_message is "" if valid
    """
    if not name or not name.strip():
        return False, "Name is required"

    if len(name) > NAME_MAX_LENGTH:
        return False, f"Too long ({len(name)}/{NAME_MAX_LENGTH})"

    return True, ""


def validate_data_type(data_type: object) -> tuple[bool, str]:
    """Validate that a data type key is one of DATA_TYPE_NAMES."""
    if data_type not in DATA_TYPE_NAMES:
        return False, f"Unknown data type: {data_type}"
    return True, ""


def validate_size(size: object) -> tuple[bool, str]:
    """Validate data size: empty, or a non-negative integer."""
    if size is None:
        return True, ""

    # bool is an int subclass but never a size
    if isinstance(size, bool) or not isinstance(size, int):
        return False, f"Not a number: {size}"

    if size < 0:
        return False, "Must be >= 0"

    return True, ""


def validate_description(description: str) -> tuple[bool, str]:
    """Validate description length."""
    if len(description) > DESCRIPTION_MAX_LENGTH:
        return False, f"Too long ({len(description)}/{DESCRIPTION_MAX_LENGTH})"
    return True, ""


def validate_column_name(
    column_name: str,
    current_key: int,
    is_duplicate_fn: Callable[[str, int], bool] | None = None,
) -> tuple[bool, str]:
    """Validate a column name format and uniqueness.

    Args:
        column_name: The column name to validate
        current_key: Tracking key of the row being validated (excluded from uniqueness)
        is_duplicate_fn: Optional duplicate checker (column_name, exclude_key) -> bool

    Returns:
        Tuple of (is_valid, error_message) - error_message is "" if valid
    """
    if column_name == "":
        return True, ""  # Empty is valid (store derives one on export)

    if len(column_name) > COLUMN_NAME_MAX_LENGTH:
        return False, f"Too long ({len(column_name)}/{COLUMN_NAME_MAX_LENGTH})"

    if not COLUMN_NAME_PATTERN.match(column_name):
        return False, "Letters, digits and _ only"

    # Case-insensitive, column names end up as SQL identifiers
    if is_duplicate_fn is not None and is_duplicate_fn(column_name, current_key):
        return False, "Duplicate"

    return True, ""


def validate_metric(
    metric: Metric,
    is_duplicate_fn: Callable[[str, int], bool] | None = None,
) -> tuple[bool, str]:
    """Validate a metric against all rules, returning the first failure."""
    checks = (
        validate_name(metric.name),
        validate_data_type(metric.data_type),
        validate_size(metric.size),
        validate_description(metric.description),
        validate_column_name(metric.column_name, metric.tracking_key, is_duplicate_fn),
    )
    for is_valid, error in checks:
        if not is_valid:
            return is_valid, error
    return True, ""
