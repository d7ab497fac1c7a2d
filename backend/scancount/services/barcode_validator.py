# Overview: Pure barcode classification and checksum verification; no I/O.

"""
Barcode Validator

Classifies a raw scanner string into a UPC/EAN format and verifies its
trailing check digit.

FORMATS (by cleaned length):
- 6 digits: UPC-E
- 8 digits: EAN-8
- 11 or 12 digits: UPC-A (11 = leading zero dropped by the scanner)
- 13 digits: EAN-13
- anything else: unknown

CHECKSUM:
The UPC/EAN family shares one weighted mod-10 rule. Reading the body
(all digits except the check digit) from right to left, weights alternate
3, 1, 3, 1, ... The check digit is (10 - sum % 10) % 10. Counting weights
from the right makes leading zeros irrelevant, which is why an 11-digit
UPC-A validates the same as its zero-padded 12-digit form.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..validation import ValidationError


FORMAT_UPC_A = "UPC-A"
FORMAT_UPC_E = "UPC-E"
FORMAT_EAN_13 = "EAN-13"
FORMAT_EAN_8 = "EAN-8"
FORMAT_UNKNOWN = "unknown"

FORMATS_BY_LENGTH = {
    6: FORMAT_UPC_E,
    8: FORMAT_EAN_8,
    11: FORMAT_UPC_A,
    12: FORMAT_UPC_A,
    13: FORMAT_EAN_13,
}

_NON_DIGITS = re.compile(r"\D")


class BarcodeError(ValidationError):
    """Raised when a barcode cannot be accepted."""


class InvalidBarcodeFormat(BarcodeError):
    """Cleaned length does not match any supported format."""


class ChecksumMismatch(BarcodeError):
    """Length matches a format but the check digit is wrong."""


@dataclass(frozen=True)
class Barcode:
    code: str
    format: str
    checksum_valid: bool

    @property
    def is_valid(self) -> bool:
        return self.format != FORMAT_UNKNOWN and self.checksum_valid

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "format": self.format,
            "isValid": self.is_valid,
            "checksumValid": self.checksum_valid,
        }


def clean_barcode(raw: str | None) -> str:
    """Strip every non-digit character. Idempotent."""
    if raw is None:
        return ""
    return _NON_DIGITS.sub("", str(raw))


def classify_barcode(code: str) -> str:
    return FORMATS_BY_LENGTH.get(len(code), FORMAT_UNKNOWN)


def compute_check_digit(body: str) -> int:
    """
    Check digit for the given body digits (check digit excluded).

    Raises ValueError on non-digit input.
    """
    if not body or not body.isdigit():
        raise ValueError("Barcode body must be a non-empty digit string")

    total = 0
    for position, char in enumerate(reversed(body)):
        weight = 3 if position % 2 == 0 else 1
        total += int(char) * weight
    return (10 - (total % 10)) % 10


def verify_checksum(code: str) -> bool:
    if len(code) < 2 or not code.isdigit():
        return False
    return compute_check_digit(code[:-1]) == int(code[-1])


def inspect_barcode(raw: str | None) -> Barcode:
    """
    Non-raising classification.

    Unknown lengths come back with format "unknown" and checksum_valid=False.
    """
    code = clean_barcode(raw)
    barcode_format = classify_barcode(code)
    if barcode_format == FORMAT_UNKNOWN:
        return Barcode(code=code, format=FORMAT_UNKNOWN, checksum_valid=False)
    return Barcode(code=code, format=barcode_format, checksum_valid=verify_checksum(code))


def validate_barcode(raw: str | None) -> Barcode:
    """
    Clean, classify and verify a barcode.

    Returns:
        Barcode with checksum_valid=True

    Raises:
        InvalidBarcodeFormat: If the cleaned length matches no supported format
        ChecksumMismatch: If the check digit is wrong
    """
    barcode = inspect_barcode(raw)

    if barcode.format == FORMAT_UNKNOWN:
        if not barcode.code:
            raise InvalidBarcodeFormat("Barcode must contain digits")
        raise InvalidBarcodeFormat(f"Unsupported barcode length: {len(barcode.code)} digits")

    if not barcode.checksum_valid:
        raise ChecksumMismatch(f"Invalid {barcode.format} checksum")

    return barcode
