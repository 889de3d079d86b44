"""
utils/validation_utils.py

Purpose: Field-level input validation

- Regex validators for Aadhaar, PAN, OTP, mobile, email and PIN code
- Closed field-name enum and dispatch table
- Fixed per-field success and failure messages
- Correction hints for invalid values
"""

import re
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Callable, Dict, List, Tuple

from app.core.exceptions import InvalidFieldNameError

# Values are matched in full and never stripped, so whitespace is invalid
AADHAAR_PATTERN = re.compile(r"[0-9]{12}")
PAN_PATTERN = re.compile(r"[A-Z]{5}[0-9]{4}[A-Z]")
OTP_PATTERN = re.compile(r"[0-9]{6}")
MOBILE_PATTERN = re.compile(r"[6-9][0-9]{9}")
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PINCODE_PATTERN = re.compile(r"[0-9]{6}")


class FieldName(str, Enum):
    """Fields that have a dedicated validator."""

    AADHAAR_NUMBER = "aadhaarNumber"
    PAN_NUMBER = "panNumber"
    OTP = "otp"
    MOBILE_NUMBER = "mobileNumber"
    EMAIL = "email"
    PINCODE = "pincode"

    @classmethod
    def parse(cls, name: str) -> "FieldName":
        """
        Resolves a raw field name.

        Raises:
            InvalidFieldNameError: If no validator exists for the name
        """
        try:
            return cls(name)
        except ValueError:
            raise InvalidFieldNameError(name) from None


@dataclass(frozen=True)
class FieldValidationResult:
    field: str
    value: str
    is_valid: bool
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


def _matches(pattern: re.Pattern, value) -> bool:
    if not isinstance(value, str) or not value:
        return False
    return pattern.fullmatch(value) is not None


def validate_aadhaar(value: str) -> bool:
    """Exactly 12 ASCII digits."""
    return _matches(AADHAAR_PATTERN, value)


def validate_pan(value: str) -> bool:
    """
    5 uppercase letters, 4 digits, 1 uppercase letter.
    Example: ABCDE1234F
    """
    return _matches(PAN_PATTERN, value)


def validate_otp_format(otp: str) -> bool:
    return _matches(OTP_PATTERN, otp)


def validate_mobile_number(value: str) -> bool:
    """10 digits starting with 6, 7, 8 or 9."""
    return _matches(MOBILE_PATTERN, value)


def validate_email(value: str) -> bool:
    return _matches(EMAIL_PATTERN, value)


def validate_pincode(value: str) -> bool:
    return _matches(PINCODE_PATTERN, value)


# field -> (validator, success message, failure message)
FIELD_VALIDATORS: Dict[FieldName, Tuple[Callable[[str], bool], str, str]] = {
    FieldName.AADHAAR_NUMBER: (
        validate_aadhaar,
        "Valid Aadhaar number",
        "Aadhaar number must be exactly 12 digits",
    ),
    FieldName.PAN_NUMBER: (
        validate_pan,
        "Valid PAN number",
        "PAN number must follow format: 5 letters, 4 digits, 1 letter",
    ),
    FieldName.OTP: (
        validate_otp_format,
        "Valid OTP format",
        "OTP must be exactly 6 digits",
    ),
    FieldName.MOBILE_NUMBER: (
        validate_mobile_number,
        "Valid mobile number",
        "Mobile number must be 10 digits starting with 6, 7, 8, or 9",
    ),
    FieldName.EMAIL: (
        validate_email,
        "Valid email address",
        "Please provide a valid email address",
    ),
    FieldName.PINCODE: (
        validate_pincode,
        "Valid PIN code",
        "PIN code must be exactly 6 digits",
    ),
}


def validate_field(field: str, value: str) -> FieldValidationResult:
    """
    Validates a single field value.

    Args:
        field: Field name (one of FieldName)
        value: Raw value as entered

    Returns:
        FieldValidationResult with a fixed per-field message

    Raises:
        InvalidFieldNameError: If the field has no validator
    """
    field_name = FieldName.parse(field)
    validator, success_message, failure_message = FIELD_VALIDATORS[field_name]

    is_valid = validator(value)

    return FieldValidationResult(
        field=field_name.value,
        value=value,
        is_valid=is_valid,
        message=success_message if is_valid else failure_message,
    )


def is_validated_field(name: str) -> bool:
    """True if the name has a dedicated validator."""
    return name in FieldName._value2member_map_


def field_suggestions(field: str, value: str) -> List[str]:
    """
    Hints explaining why a value is invalid.

    Returns an empty list for valid values and for fields without hints.
    """
    field_name = FieldName.parse(field)
    value = value or ""
    suggestions = []

    if field_name == FieldName.AADHAAR_NUMBER:
        if len(value) < 12:
            suggestions.append("Aadhaar number should be 12 digits long")
        elif len(value) > 12:
            suggestions.append("Aadhaar number should not exceed 12 digits")
        if not re.fullmatch(r"[0-9]+", value):
            suggestions.append("Aadhaar number should contain only digits")

    elif field_name == FieldName.PAN_NUMBER:
        if len(value) != 10:
            suggestions.append("PAN number should be exactly 10 characters")
        if not re.match(r"[A-Za-z]{5}", value):
            suggestions.append("PAN should start with 5 letters")
        if not re.fullmatch(r"[0-9]{4}", value[5:9]):
            suggestions.append("PAN should have 4 digits after the first 5 letters")
        if not re.search(r"[A-Za-z]$", value):
            suggestions.append("PAN should end with a letter")
        if value != value.upper():
            suggestions.append("PAN should be in uppercase letters")

    elif field_name == FieldName.OTP:
        if len(value) != 6:
            suggestions.append("OTP should be exactly 6 digits")
        if not re.fullmatch(r"[0-9]+", value):
            suggestions.append("OTP should contain only digits")

    elif field_name == FieldName.MOBILE_NUMBER:
        if len(value) != 10:
            suggestions.append("Mobile number should be 10 digits long")
        if not re.match(r"[6-9]", value):
            suggestions.append("Mobile number should start with 6, 7, 8, or 9")

    elif field_name == FieldName.EMAIL:
        if "@" not in value:
            suggestions.append("Email should contain @ symbol")
        if "." not in value.rpartition("@")[2]:
            suggestions.append("Email should contain a domain extension")

    elif field_name == FieldName.PINCODE:
        if len(value) != 6:
            suggestions.append("PIN code should be exactly 6 digits")
        if not re.fullmatch(r"[0-9]+", value):
            suggestions.append("PIN code should contain only digits")

    if suggestions and validate_field(field_name.value, value).is_valid:
        return []
    return suggestions
