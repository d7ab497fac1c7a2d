from __future__ import annotations

from typing import Any


# Largest quantity a single scan or edit may carry
MAX_SCAN_QUANTITY = 1_000_000


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate barcode registration)."""


def coerce_int(value: Any, field: str, *, minimum: int | None = None, maximum: int | None = None) -> int:
    """
    Strict integer coercion for request payloads.

    Accepts ints and plain digit strings; rejects bools, floats,
    decimals and scientific notation.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")

    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    elif isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    else:
        raise ValidationError(f"{field} must be an integer")

    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    if maximum is not None and result > maximum:
        raise ValidationError(f"{field} must be at most {maximum}")
    return result


def coerce_quantity(value: Any, field: str = "quantity", *, allow_zero: bool = False) -> int:
    """Scan quantities are whole units; a scan adds at least one unless edits allow zero."""
    return coerce_int(
        value,
        field,
        minimum=0 if allow_zero else 1,
        maximum=MAX_SCAN_QUANTITY,
    )


def parse_bool(value: Any, default: bool) -> bool:
    """
    Interpret query-string and JSON flags.

    Anything other than an explicit false-ish value keeps the flag on when
    the default is on, mirroring `?check_inventory=false` style toggles.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in ("false", "0", "no", "off"):
        return False
    if text in ("true", "1", "yes", "on"):
        return True
    return default


def optional_str(value: Any, field: str, *, max_length: int = 255) -> str | None:
    """Trimmed optional text field; empty strings become None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    value = value.strip()
    if not value:
        return None
    if len(value) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return value
