"""
app/api/registration.py

Purpose: Registration endpoints

- Step 1 (Aadhaar + OTP) and step 2 (PAN + personal details) submission
- Registration status per session
- Real-time single-field validation

Routes only translate HTTP to service calls; a failed step is answered
with a 422 error envelope carrying the per-field errors.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.db.database import get_db
from app.schemas.registration import (
    FieldValidationRequest,
    FieldValidationResponse,
    RegistrationStatusResponse,
    Step1Request,
    Step2Request,
    StepResponse,
)
from app.services import registration_service
from app.services.registration_service import StepOutcome

logger = get_logger(__name__)
router = APIRouter(prefix="/registration")


def _step_response(outcome: StepOutcome) -> StepResponse:
    if not outcome.success:
        raise ValidationError(
            outcome.message,
            details={
                "session_id": outcome.session_id,
                "step_number": outcome.step_number,
                "status": outcome.validation_status.value,
                "errors": outcome.errors,
            },
        )

    return StepResponse(
        session_id=outcome.session_id,
        step_number=outcome.step_number,
        status=outcome.validation_status.value,
        next_step=outcome.next_step,
        submission_id=outcome.submission_id,
        message=outcome.message,
    )


@router.post("/step1", response_model=StepResponse, status_code=status.HTTP_201_CREATED)
async def submit_step1(payload: Step1Request, db: AsyncSession = Depends(get_db)):
    """
    Step 1 - Aadhaar verification with OTP.
    Starts a new session unless a known sessionId is supplied.
    """
    outcome = await registration_service.process_step1(
        db,
        aadhaar_number=payload.aadhaar_number,
        otp=payload.otp,
        session_id=payload.session_id or None,
    )
    return _step_response(outcome)


@router.post("/step2", response_model=StepResponse, status_code=status.HTTP_201_CREATED)
async def submit_step2(payload: Step2Request, db: AsyncSession = Depends(get_db)):
    """
    Step 2 - PAN verification and personal details.
    """
    outcome = await registration_service.process_step2(
        db,
        session_id=payload.session_id,
        pan_number=payload.pan_number,
        personal_details=payload.personal_details.to_form_data(),
    )
    return _step_response(outcome)


@router.get("/{session_id}/status", response_model=RegistrationStatusResponse)
async def registration_status(session_id: str, db: AsyncSession = Depends(get_db)):
    return await registration_service.get_registration_status(db, session_id)


@router.post("/validate-field", response_model=FieldValidationResponse)
async def validate_field(payload: FieldValidationRequest):
    result = await registration_service.validate_field(payload.field, payload.value)
    return FieldValidationResponse(**result.to_dict())
