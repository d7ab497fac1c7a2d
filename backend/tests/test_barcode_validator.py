# Overview: Pytest coverage for barcode cleaning, classification and checksums.

"""
Barcode Validator Tests

Pure functions; no database or app context needed.
"""

import pytest

from scancount.services.barcode_validator import (
    ChecksumMismatch,
    FORMAT_EAN_8,
    FORMAT_EAN_13,
    FORMAT_UNKNOWN,
    FORMAT_UPC_A,
    FORMAT_UPC_E,
    InvalidBarcodeFormat,
    clean_barcode,
    compute_check_digit,
    inspect_barcode,
    validate_barcode,
    verify_checksum,
)
from scancount.validation import ValidationError


VALID_VECTORS = [
    ("036000291452", FORMAT_UPC_A),
    ("03600029143", FORMAT_UPC_A),
    ("4006381333931", FORMAT_EAN_13),
    ("96385074", FORMAT_EAN_8),
    ("123457", FORMAT_UPC_E),
]


def corrupt_check_digit(code: str) -> str:
    last = int(code[-1])
    return code[:-1] + str((last + 1) % 10)


class TestCleanBarcode:

    def test_strips_non_digits(self):
        assert clean_barcode(" 0-36000 29145-2 ") == "036000291452"

    def test_is_idempotent(self):
        for raw in ["abc-123 456", "4006381333931", "", "  ", "UPC: 0 36000 29145 2"]:
            once = clean_barcode(raw)
            assert clean_barcode(once) == once

    def test_none_is_empty(self):
        assert clean_barcode(None) == ""


class TestChecksum:

    @pytest.mark.parametrize("code,expected_format", VALID_VECTORS)
    def test_valid_vectors(self, code, expected_format):
        barcode = validate_barcode(code)
        assert barcode.format == expected_format
        assert barcode.checksum_valid is True
        assert barcode.is_valid is True

    @pytest.mark.parametrize("code,expected_format", VALID_VECTORS)
    def test_corrupted_check_digit_fails(self, code, expected_format):
        corrupted = corrupt_check_digit(code)
        assert verify_checksum(corrupted) is False

        inspected = inspect_barcode(corrupted)
        assert inspected.format == expected_format
        assert inspected.checksum_valid is False

    def test_compute_check_digit(self):
        assert compute_check_digit("03600029145") == 2
        assert compute_check_digit("400638133393") == 1
        assert compute_check_digit("9638507") == 4

    def test_leading_zero_does_not_change_check_digit(self):
        assert compute_check_digit("0360002914") == compute_check_digit("00360002914")

    def test_compute_rejects_non_digits(self):
        with pytest.raises(ValueError):
            compute_check_digit("12a4")


class TestValidateBarcode:

    def test_cleans_before_validating(self):
        barcode = validate_barcode("0 36000 29145 2")
        assert barcode.code == "036000291452"

    def test_unknown_length_raises_format_error(self):
        with pytest.raises(InvalidBarcodeFormat) as exc:
            validate_barcode("12345")
        assert "5 digits" in str(exc.value)

    def test_empty_raises_format_error(self):
        with pytest.raises(InvalidBarcodeFormat):
            validate_barcode("---")

    def test_checksum_mismatch(self):
        with pytest.raises(ChecksumMismatch) as exc:
            validate_barcode("036000291453")
        assert "UPC-A" in str(exc.value)

    def test_errors_are_validation_errors(self):
        """Routes map ValidationError to 400; barcode errors must be covered."""
        with pytest.raises(ValidationError):
            validate_barcode("1")


class TestInspectBarcode:

    def test_unknown_format_never_raises(self):
        result = inspect_barcode("123")
        assert result.format == FORMAT_UNKNOWN
        assert result.checksum_valid is False
        assert result.to_dict() == {
            "code": "123",
            "format": FORMAT_UNKNOWN,
            "isValid": False,
            "checksumValid": False,
        }
