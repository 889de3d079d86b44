"""
app/services/registration_service.py

Purpose: Registration workflow orchestration

- Field validation entry point (dispatch by field name)
- Step submission: validate, verify, persist in one transaction
- Registration status per session
- Submission lookup and revision
"""

from dataclasses import dataclass, field as dataclass_field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    InvalidFieldNameError,
    ResourceNotFoundError,
    SessionNotFoundError,
    StepOrderError,
    ValidationError,
)
from app.core.logging import get_logger, LogContext, mask_aadhaar
from app.flow.states import (
    RegistrationStatus,
    ValidationStatus,
    Verifier,
    get_step_metadata,
    is_valid_transition,
    next_step_after,
)
from app.models.form_submission import FormSubmission
from app.models.user import User
from app.services import form_schema_service, session_service, verification_service
from utils.time_utils import utc_isoformat
from utils.validation_utils import (
    FieldName,
    FieldValidationResult,
    is_validated_field,
    validate_field as run_field_validator,
)

logger = get_logger(__name__)


@dataclass
class StepOutcome:
    """Result of one step submission."""

    session_id: str
    step_number: int
    validation_status: ValidationStatus
    message: str
    submission_id: Optional[str] = None
    next_step: Optional[int] = None
    errors: List[Dict[str, Any]] = dataclass_field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.validation_status == ValidationStatus.COMPLETED


async def validate_field(field: str, value: str) -> FieldValidationResult:
    """
    Validates one field value.

    Args:
        field: Field name (aadhaarNumber, panNumber, otp, mobileNumber, email, pincode)
        value: Raw value

    Returns:
        FieldValidationResult

    Raises:
        InvalidFieldNameError: If the field has no validator
    """
    try:
        return run_field_validator(field, value)
    except InvalidFieldNameError:
        logged_value = mask_aadhaar(value) if "aadhaar" in field.lower() else value
        logger.warning(f"Field validation failed: unknown field {field!r} (value={logged_value!r})")
        raise


def _iter_leaves(data: Dict[str, Any], prefix: str = "") -> Iterator[Tuple[str, Any]]:
    """Yields (dot.path, value) for every non-dict value and every empty dict."""
    for key, value in data.items():
        path = f"{prefix}{key}"
        if isinstance(value, dict) and value:
            yield from _iter_leaves(value, f"{path}.")
        else:
            yield path, value


async def _validate_step_fields(
    db: AsyncSession,
    step_number: int,
    form_data: Dict[str, Any],
) -> Tuple[List[Dict[str, Any]], Dict[str, str]]:
    """
    Checks every field of a step.

    Fields with a dedicated validator go through validate_field whenever
    the key is present, so a blank or whitespace value gets that field's
    fixed format message; an absent key gets the schema's "required"
    message. The remaining fields use the step's form-schema rules.

    An empty object only counts as known when it groups schema fields
    (e.g. "personalDetails": {}).

    Returns:
        (errors as [{field, errors}], {FieldName value: submitted value})

    Raises:
        InvalidFieldNameError: If form_data has a key the step does not define
    """
    step = await form_schema_service.get_step_schema(db, step_number)
    fields_by_name = {f["name"]: f for f in step.get("fields", [])}
    groups = {name.rsplit(".", i)[0] for name in fields_by_name for i in range(1, name.count(".") + 1)}

    for path, value in _iter_leaves(form_data):
        known = path in fields_by_name or (value == {} and path in groups)
        if not known:
            logger.warning(f"Unknown field {path!r} submitted for step {step_number}")
            raise InvalidFieldNameError(path)

    errors: List[Dict[str, Any]] = []
    identity_values: Dict[str, str] = {}

    for name, field in fields_by_name.items():
        value = form_schema_service.get_nested_value(form_data, name)
        leaf = name.rsplit(".", 1)[-1]

        if is_validated_field(leaf):
            if value is None:
                messages = form_schema_service.field_errors(value, field, only_required=True)
            else:
                result = await validate_field(leaf, value)
                messages = [] if result.is_valid else [result.message]
                if result.is_valid:
                    identity_values[leaf] = value
        else:
            messages = form_schema_service.field_errors(value, field)

        if messages:
            errors.append({"field": name, "errors": messages})

    return errors, identity_values


async def _run_verifier(verifier: Optional[Verifier], values: Dict[str, str]) -> bool:
    if verifier == Verifier.AADHAAR_OTP:
        return await verification_service.verify_aadhaar_otp(
            values[FieldName.AADHAAR_NUMBER.value], values[FieldName.OTP.value]
        )
    if verifier == Verifier.PAN:
        return await verification_service.verify_pan(values[FieldName.PAN_NUMBER.value])
    return True


def _stored_form_data(form_data: Dict[str, Any], verified: bool) -> Dict[str, Any]:
    """Copy of the step data as persisted: Aadhaar masked, OTP dropped."""
    stored: Dict[str, Any] = {}
    for path, value in _iter_leaves(form_data):
        leaf = path.rsplit(".", 1)[-1]
        if leaf == FieldName.OTP.value:
            continue
        if leaf == FieldName.AADHAAR_NUMBER.value and isinstance(value, str):
            value = mask_aadhaar(value)
        form_schema_service.set_nested_value(stored, path, value)

    if verified:
        stored["verifiedAt"] = utc_isoformat()
    return stored


async def get_latest_submission(
    db: AsyncSession,
    user_id: str,
    step_number: int,
    validation_status: Optional[ValidationStatus] = None,
) -> Optional[FormSubmission]:
    """
    Returns the most recent submission of a step, optionally filtered by status.
    """
    query = select(FormSubmission).where(
        FormSubmission.user_id == user_id,
        FormSubmission.step_number == step_number,
    )
    if validation_status is not None:
        query = query.where(FormSubmission.validation_status == validation_status.value)

    result = await db.execute(query.order_by(FormSubmission.submitted_at.desc()).limit(1))
    return result.scalar_one_or_none()


async def _resolve_user(db: AsyncSession, step_number: int, session_id: Optional[str]) -> User:
    metadata = get_step_metadata(step_number)

    if metadata.starts_session:
        return await session_service.get_or_create_user(db, session_id)

    user = await session_service.get_user_by_session(db, session_id)
    if not user:
        raise SessionNotFoundError("Invalid session. Please start from Step 1.")

    previous_step = step_number - 1
    completed = await get_latest_submission(db, user.id, previous_step, ValidationStatus.COMPLETED)
    if not completed:
        raise StepOrderError(
            f"Step {previous_step} not completed. Please complete it first.",
            details={"required_step": previous_step},
        )
    return user


async def submit_step(
    db: AsyncSession,
    step_number: int,
    form_data: Dict[str, Any],
    session_id: Optional[str] = None,
) -> StepOutcome:
    """
    Validates, verifies and records one registration step.

    Exactly one FormSubmission row is written per call, together with the
    user status change, in a single commit. A failed validation or a
    rejected verification is recorded as a "failed" submission; it is not
    an exception.

    Args:
        db: Database session (committed or rolled back here)
        step_number: Registration step (1 or 2)
        form_data: The step's field values, nested as in the form schema
        session_id: Existing session ID (optional for step 1)

    Returns:
        StepOutcome

    Raises:
        ValidationError: Unknown step number
        InvalidFieldNameError: form_data has a field the step does not define
        SessionNotFoundError: Step after the first without a known session
        StepOrderError: Previous step not completed
        SQLAlchemyError: Propagated unchanged after rollback
    """
    metadata = get_step_metadata(step_number)
    if metadata is None:
        raise ValidationError("Step number must be 1 or 2")

    with LogContext(session_id=session_id, step_number=step_number):
        try:
            errors, identity_values = await _validate_step_fields(db, step_number, form_data)
            user = await _resolve_user(db, step_number, session_id)

            verified = False
            if errors:
                message = "Validation failed"
            else:
                verified = await _run_verifier(metadata.verifier, identity_values)
                message = metadata.success_message if verified else metadata.verification_failed_message
                if not verified:
                    errors.append({"field": "verification", "errors": [message]})

            status = ValidationStatus.COMPLETED if verified else ValidationStatus.FAILED

            submission = FormSubmission(
                user_id=user.id,
                step_number=step_number,
                form_data=_stored_form_data(form_data, verified),
                validation_status=status.value,
            )
            db.add(submission)

            if verified and is_valid_transition(RegistrationStatus(user.status), metadata.completed_status):
                await session_service.update_user_status(db, user, metadata.completed_status)

            await db.commit()

        except SQLAlchemyError:
            await db.rollback()
            logger.error(f"Step {step_number} submission could not be saved", exc_info=True)
            raise
        except Exception:
            await db.rollback()
            raise

        logger.info(f"Step {step_number} submission recorded as {status.value} for {user.session_id}")

        return StepOutcome(
            session_id=user.session_id,
            step_number=step_number,
            validation_status=status,
            message=message,
            submission_id=submission.id,
            next_step=next_step_after(step_number) if verified else step_number,
            errors=errors,
        )


async def process_step1(
    db: AsyncSession,
    aadhaar_number: str,
    otp: str,
    session_id: Optional[str] = None,
) -> StepOutcome:
    """Aadhaar + OTP verification; starts a session when needed."""
    return await submit_step(
        db,
        1,
        {FieldName.AADHAAR_NUMBER.value: aadhaar_number, FieldName.OTP.value: otp},
        session_id=session_id,
    )


async def process_step2(
    db: AsyncSession,
    session_id: str,
    pan_number: str,
    personal_details: Dict[str, Any],
) -> StepOutcome:
    """PAN verification and personal details for an existing session."""
    return await submit_step(
        db,
        2,
        {FieldName.PAN_NUMBER.value: pan_number, "personalDetails": personal_details},
        session_id=session_id,
    )


async def get_registration_status(db: AsyncSession, session_id: str) -> Dict[str, Any]:
    """
    Summarizes a registration session.

    Returns:
        Dict with session_id, status, current_step, per-step completion,
        created_at and updated_at

    Raises:
        SessionNotFoundError: If the session is unknown
    """
    user = await session_service.get_user_by_session(db, session_id)
    if not user:
        raise SessionNotFoundError()

    steps: Dict[str, Dict[str, Any]] = {}
    current_step = 1
    for step_number in (1, 2):
        completed = await get_latest_submission(db, user.id, step_number, ValidationStatus.COMPLETED)
        steps[f"step{step_number}"] = {
            "completed": completed is not None,
            "completed_at": completed.submitted_at if completed else None,
        }
        if completed is not None:
            current_step = next_step_after(step_number) or step_number

    return {
        "session_id": user.session_id,
        "status": user.status,
        "current_step": current_step,
        "steps": steps,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


async def list_submissions(db: AsyncSession, user_id: str) -> List[FormSubmission]:
    """All submissions of a user, oldest first."""
    result = await db.execute(
        select(FormSubmission)
        .where(FormSubmission.user_id == user_id)
        .order_by(FormSubmission.submitted_at)
    )
    return list(result.scalars().all())


async def list_submissions_between(
    db: AsyncSession,
    start: datetime,
    end: datetime,
) -> List[FormSubmission]:
    """Submissions with start <= submitted_at < end, oldest first."""
    result = await db.execute(
        select(FormSubmission)
        .where(FormSubmission.submitted_at >= start, FormSubmission.submitted_at < end)
        .order_by(FormSubmission.submitted_at)
    )
    return list(result.scalars().all())


async def update_submission(
    db: AsyncSession,
    submission_id: str,
    form_data: Optional[Dict[str, Any]] = None,
    validation_status: Optional[ValidationStatus] = None,
) -> FormSubmission:
    """
    Revises a stored submission's form data and/or validation status.

    Raises:
        ResourceNotFoundError: If the submission does not exist
        SQLAlchemyError: Propagated unchanged after rollback
    """
    submission = await db.get(FormSubmission, submission_id)
    if submission is None:
        raise ResourceNotFoundError("Submission not found", details={"submission_id": submission_id})

    if form_data is not None:
        submission.form_data = form_data
    if validation_status is not None:
        submission.validation_status = validation_status.value

    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise

    logger.info(f"Submission {submission_id} revised (status={submission.validation_status})")
    return submission
