"""
app/flow/states.py

Purpose: Defines registration steps and statuses

- Enums for user status and submission validation status
- Single source of truth for the registration steps
- Status transition validation
- Metadata for each step (title, verifier, resulting status)
"""

from enum import Enum
from typing import Dict, List, Optional
from dataclasses import dataclass


class RegistrationStatus(str, Enum):
    """
    Overall status of a registration session (User.status).
    Statuses are ordered; a session only ever moves forward.
    """

    IN_PROGRESS = "in_progress"
    STEP1_COMPLETED = "step1_completed"
    COMPLETED = "completed"


class ValidationStatus(str, Enum):
    """
    Outcome recorded on a FormSubmission row.
    """

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Verifier(str, Enum):
    """Mock verification call run after a step's fields validate."""

    AADHAAR_OTP = "aadhaar_otp"
    PAN = "pan"


@dataclass
class StepMetadata:
    """
    Metadata associated with each registration step.
    """
    step_number: int
    title: str
    completed_status: RegistrationStatus
    verifier: Optional[Verifier] = None
    starts_session: bool = False  # Whether a submission may create the session
    success_message: str = ""
    verification_failed_message: str = ""


STEP_METADATA: Dict[int, StepMetadata] = {
    1: StepMetadata(
        step_number=1,
        title="Aadhaar Verification",
        completed_status=RegistrationStatus.STEP1_COMPLETED,
        verifier=Verifier.AADHAAR_OTP,
        starts_session=True,
        success_message="Aadhaar verification completed successfully",
        verification_failed_message="Invalid OTP. Please check and try again.",
    ),
    2: StepMetadata(
        step_number=2,
        title="PAN & Personal Details",
        completed_status=RegistrationStatus.COMPLETED,
        verifier=Verifier.PAN,
        success_message="Registration completed successfully",
        verification_failed_message="Invalid PAN number. Please check and try again.",
    ),
}

TOTAL_STEPS = len(STEP_METADATA)

STATUS_ORDER: List[RegistrationStatus] = [
    RegistrationStatus.IN_PROGRESS,
    RegistrationStatus.STEP1_COMPLETED,
    RegistrationStatus.COMPLETED,
]


def get_step_metadata(step_number: int) -> Optional[StepMetadata]:
    return STEP_METADATA.get(step_number)


def is_valid_step(step_number: int) -> bool:
    return step_number in STEP_METADATA


def is_valid_transition(from_status: RegistrationStatus, to_status: RegistrationStatus) -> bool:
    """
    Checks whether a status change is allowed.

    Staying put is allowed (a resubmitted step); moving backwards is not.
    """
    return STATUS_ORDER.index(to_status) >= STATUS_ORDER.index(from_status)


def next_step_after(step_number: int) -> Optional[int]:
    """Returns the step that follows, or None after the last one."""
    following = step_number + 1
    return following if following in STEP_METADATA else None
