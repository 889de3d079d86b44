"""
app/services/verification_service.py

Purpose: Mock identity verification

- Aadhaar OTP check against fixed test OTPs or the Aadhaar's last 6 digits
- PAN check against a deny-list of test values
- No network calls; optional simulated latency from config
"""

import asyncio

from app.core.config import settings
from app.core.logging import get_logger, mask_aadhaar
from utils.validation_utils import PAN_PATTERN

logger = get_logger(__name__)

VALID_TEST_OTPS = frozenset({"123456", "000000"})
INVALID_TEST_PANS = frozenset({"INVALID01A", "TEST12345"})


async def _simulate_latency():
    if settings.VERIFICATION_DELAY_SECONDS > 0:
        await asyncio.sleep(settings.VERIFICATION_DELAY_SECONDS)


async def verify_aadhaar_otp(aadhaar_number: str, otp: str) -> bool:
    """
    Verifies an Aadhaar OTP.

    Accepts either test OTP ("123456", "000000") or an OTP equal to the
    last 6 digits of the Aadhaar number.

    Args:
        aadhaar_number: 12-digit Aadhaar number
        otp: 6-digit OTP

    Returns:
        True if the OTP is accepted
    """
    await _simulate_latency()

    is_valid = otp in VALID_TEST_OTPS or (
        len(aadhaar_number) >= 6 and otp == aadhaar_number[-6:]
    )

    logger.debug(
        f"Aadhaar OTP verification {'passed' if is_valid else 'failed'} for {mask_aadhaar(aadhaar_number)}"
    )
    return is_valid


async def verify_pan(pan_number: str) -> bool:
    """
    Verifies a PAN.

    Format-based only: any value with the PAN shape that is not one of the
    known invalid test values is accepted. Both checks ignore case.

    Args:
        pan_number: PAN to verify

    Returns:
        True if the PAN is accepted
    """
    await _simulate_latency()

    normalized = pan_number.upper()
    if normalized in INVALID_TEST_PANS:
        logger.info(f"PAN {normalized} rejected (deny-listed)")
        return False

    is_valid = PAN_PATTERN.fullmatch(normalized) is not None
    if not is_valid:
        logger.info(f"PAN {normalized} rejected (malformed)")
    return is_valid
