import pytest

from app.core.exceptions import InvalidFieldNameError
from utils.validation_utils import FieldName, field_suggestions, validate_field


@pytest.mark.parametrize("value", ["123456789012", "000000000000", "999999999999"])
def test_valid_aadhaar(value):
    result = validate_field("aadhaarNumber", value)
    assert result.is_valid is True
    assert result.message == "Valid Aadhaar number"


@pytest.mark.parametrize(
    "value",
    ["12345678901", "1234567890123", "12345678901a", " 123456789012", "123456789012\n", "１２３４５６７８９０１２"],
)
def test_invalid_aadhaar(value):
    result = validate_field("aadhaarNumber", value)
    assert result.is_valid is False
    assert result.message == "Aadhaar number must be exactly 12 digits"


def test_pan_format_is_case_sensitive():
    assert validate_field("panNumber", "ABCDE1234F").is_valid is True

    lower = validate_field("panNumber", "abcde1234f")
    assert lower.is_valid is False
    assert lower.message == "PAN number must follow format: 5 letters, 4 digits, 1 letter"


@pytest.mark.parametrize("value", ["INVALID123", "ABCD1234F", "ABCDE12345", "ABCDE1234FG"])
def test_invalid_pan(value):
    assert validate_field("panNumber", value).is_valid is False


def test_otp():
    assert validate_field("otp", "123456").message == "Valid OTP format"
    assert validate_field("otp", "12345").message == "OTP must be exactly 6 digits"


@pytest.mark.parametrize("value,valid", [
    ("9876543210", True),
    ("6000000000", True),
    ("5876543210", False),
    ("987654321", False),
    ("98765432101", False),
])
def test_mobile_number(value, valid):
    result = validate_field("mobileNumber", value)
    assert result.is_valid is valid
    expected = "Valid mobile number" if valid else "Mobile number must be 10 digits starting with 6, 7, 8, or 9"
    assert result.message == expected


@pytest.mark.parametrize("value,valid", [
    ("asha@example.com", True),
    ("a.b@sub.example.in", True),
    ("asha@example", False),
    ("asha example@x.com", False),
    ("@example.com", False),
])
def test_email(value, valid):
    result = validate_field("email", value)
    assert result.is_valid is valid
    assert result.message == ("Valid email address" if valid else "Please provide a valid email address")


def test_pincode():
    assert validate_field("pincode", "411001").message == "Valid PIN code"
    assert validate_field("pincode", "41100").message == "PIN code must be exactly 6 digits"


@pytest.mark.parametrize("field", [f.value for f in FieldName])
@pytest.mark.parametrize("value", ["", "   ", "\t"])
def test_empty_and_whitespace_invalid_for_every_field(field, value):
    assert validate_field(field, value).is_valid is False


def test_unknown_field_raises():
    with pytest.raises(InvalidFieldNameError) as exc_info:
        validate_field("firstName", "Asha")

    assert exc_info.value.message == "Invalid field name"
    assert exc_info.value.code == "INVALID_FIELD_NAME"


def test_validation_is_repeatable():
    assert validate_field("panNumber", "ABCDE1234F") == validate_field("panNumber", "ABCDE1234F")


def test_result_echoes_field_and_value():
    result = validate_field("otp", "12ab56")
    assert result.to_dict() == {
        "field": "otp",
        "value": "12ab56",
        "is_valid": False,
        "message": "OTP must be exactly 6 digits",
    }


def test_suggestions_for_short_aadhaar_with_letters():
    assert field_suggestions("aadhaarNumber", "12ab") == [
        "Aadhaar number should be 12 digits long",
        "Aadhaar number should contain only digits",
    ]


def test_suggestions_for_lowercase_pan():
    assert field_suggestions("panNumber", "abcde1234f") == ["PAN should be in uppercase letters"]


def test_suggestions_for_email_without_domain():
    assert field_suggestions("email", "asha@example") == ["Email should contain a domain extension"]


def test_no_suggestions_for_valid_value():
    assert field_suggestions("mobileNumber", "9876543210") == []
