"""
Input validation utilities for caller-supplied identifiers and references.

Each helper returns the cleaned value or raises ValidationError naming the
offending field, which the caller turns into a VALIDATION failure.
"""

from typing import Any

from brandguard.core.errors import ValidationError

MAX_IDENTIFIER_LENGTH = 255
MAX_URL_LENGTH = 4096


def require_non_empty_string(value: Any, field_name: str, max_length: int | None = None) -> str:
    """
    Validate that a value is a non-blank string.

    Args:
        value: The value to validate
        field_name: Name of the field (for error messages)
        max_length: Optional upper bound on the stripped length

    Returns:
        The value stripped of surrounding whitespace

    Raises:
        ValidationError: If validation fails

    Examples:
        >>> require_non_empty_string(" brand-1 ", "brandId")
        'brand-1'
        >>> require_non_empty_string("", "brandId")  # doctest: +SKIP
        ValidationError: Missing or invalid brandId
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Missing or invalid {field_name}", field=field_name)

    value = value.strip()

    if max_length is not None and len(value) > max_length:
        raise ValidationError(
            f"{field_name} exceeds maximum length of {max_length} characters",
            field=field_name,
        )

    return value


def validate_identifier(value: Any, field_name: str) -> str:
    """
    Validate a record identifier (brand, rule or evaluation id).

    Examples:
        >>> validate_identifier("eval-1", "evaluationId")
        'eval-1'
    """
    return require_non_empty_string(value, field_name, max_length=MAX_IDENTIFIER_LENGTH)


def validate_asset_reference(value: Any, field_name: str = "assetUrl") -> str:
    """Validate the URL of the asset being evaluated."""
    return require_non_empty_string(value, field_name, max_length=MAX_URL_LENGTH)
