import asyncio

import pytest

from app.services.verification_service import verify_aadhaar_otp, verify_pan


@pytest.mark.parametrize("otp", ["123456", "000000"])
def test_test_otps_are_accepted_for_any_aadhaar(otp):
    assert asyncio.run(verify_aadhaar_otp("111122223333", otp)) is True


def test_otp_matching_last_six_digits_is_accepted():
    assert asyncio.run(verify_aadhaar_otp("123456789012", "789012")) is True


@pytest.mark.parametrize("otp", ["789013", "654321", "", "12345"])
def test_other_otps_are_rejected(otp):
    assert asyncio.run(verify_aadhaar_otp("123456789012", otp)) is False


@pytest.mark.parametrize("pan", ["ABCDE1234F", "AAAAA0000A", "abcde1234f"])
def test_well_formed_pan_is_accepted(pan):
    assert asyncio.run(verify_pan(pan)) is True


@pytest.mark.parametrize("pan", ["INVALID01A", "invalid01a", "TEST12345", "test12345"])
def test_deny_listed_pan_is_rejected(pan):
    assert asyncio.run(verify_pan(pan)) is False


@pytest.mark.parametrize("pan", ["INVALID123", "ABCDE12345", ""])
def test_malformed_pan_is_rejected(pan):
    assert asyncio.run(verify_pan(pan)) is False
