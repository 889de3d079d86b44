"""
app/services/form_schema_service.py

Purpose: Registration form definition

- Serves the active stored form schema, falling back to the built-in one
- Saves new schema versions (one active at a time)
- Looks up steps and field rules
- Validates a step's form data against its rules
"""

import copy
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.core.logging import get_logger
from app.flow.states import is_valid_step
from app.models.form_schema import FormSchema

logger = get_logger(__name__)

# Rule value resolved to the current date when a rule is applied
TODAY = "today"

NAME_PATTERN = r"^[A-Za-z\s]+$"


def _rule(rule_type: str, value: Any, message: str) -> Dict[str, Any]:
    return {"type": rule_type, "value": value, "message": message}


def _text_rules(label: str, min_length: int, max_length: int, letters_only: bool = True) -> List[Dict[str, Any]]:
    rules = [
        _rule("required", True, f"{label} is required"),
        _rule("min", min_length, f"{label} must be at least {min_length} characters"),
        _rule("max", max_length, f"{label} cannot exceed {max_length} characters"),
    ]
    if letters_only:
        rules.append(_rule("pattern", NAME_PATTERN, f"{label} can only contain letters and spaces"))
    return rules


DEFAULT_SCHEMA: Dict[str, Any] = {
    "version": "1.0.0",
    "title": "Udyam Registration Form",
    "description": "Replica of the official Udyam registration process - Steps 1 & 2",
    "steps": [
        {
            "stepNumber": 1,
            "title": "Aadhaar Verification",
            "description": "Verify your identity using Aadhaar number and OTP",
            "fields": [
                {
                    "id": "aadhaarNumber",
                    "name": "aadhaarNumber",
                    "type": "text",
                    "label": "Aadhaar Number",
                    "placeholder": "Enter 12-digit Aadhaar number",
                    "required": True,
                    "validationRules": [
                        _rule("required", True, "Aadhaar number is required"),
                        _rule("pattern", r"^\d{12}$", "Aadhaar number must be exactly 12 digits"),
                        _rule("length", 12, "Aadhaar number must be exactly 12 digits"),
                    ],
                    "attributes": {"maxLength": 12, "inputMode": "numeric", "autoComplete": "off"},
                },
                {
                    "id": "otp",
                    "name": "otp",
                    "type": "text",
                    "label": "OTP",
                    "placeholder": "Enter 6-digit OTP",
                    "required": True,
                    "validationRules": [
                        _rule("required", True, "OTP is required"),
                        _rule("pattern", r"^\d{6}$", "OTP must be exactly 6 digits"),
                        _rule("length", 6, "OTP must be exactly 6 digits"),
                    ],
                    "attributes": {"maxLength": 6, "inputMode": "numeric", "autoComplete": "one-time-code"},
                },
            ],
        },
        {
            "stepNumber": 2,
            "title": "PAN & Personal Details",
            "description": "Provide PAN details and personal information",
            "fields": [
                {
                    "id": "panNumber",
                    "name": "panNumber",
                    "type": "text",
                    "label": "PAN Number",
                    "placeholder": "Enter PAN number (e.g., ABCDE1234F)",
                    "required": True,
                    "validationRules": [
                        _rule("required", True, "PAN number is required"),
                        _rule(
                            "pattern",
                            r"^[A-Z]{5}[0-9]{4}[A-Z]$",
                            "PAN number must follow format: 5 letters, 4 digits, 1 letter",
                        ),
                    ],
                    "attributes": {"maxLength": 10, "textTransform": "uppercase", "autoComplete": "off"},
                },
                {
                    "id": "firstName",
                    "name": "personalDetails.firstName",
                    "type": "text",
                    "label": "First Name",
                    "placeholder": "Enter first name",
                    "required": True,
                    "validationRules": _text_rules("First name", 2, 50),
                    "attributes": {"maxLength": 50, "autoComplete": "given-name"},
                },
                {
                    "id": "lastName",
                    "name": "personalDetails.lastName",
                    "type": "text",
                    "label": "Last Name",
                    "placeholder": "Enter last name",
                    "required": True,
                    "validationRules": _text_rules("Last name", 2, 50),
                    "attributes": {"maxLength": 50, "autoComplete": "family-name"},
                },
                {
                    "id": "dateOfBirth",
                    "name": "personalDetails.dateOfBirth",
                    "type": "date",
                    "label": "Date of Birth",
                    "required": True,
                    "validationRules": [
                        _rule("required", True, "Date of birth is required"),
                        _rule("max", TODAY, "Date of birth cannot be in the future"),
                    ],
                    "attributes": {"max": TODAY, "autoComplete": "bday"},
                },
                {
                    "id": "gender",
                    "name": "personalDetails.gender",
                    "type": "select",
                    "label": "Gender",
                    "required": True,
                    "validationRules": [
                        _rule("required", True, "Gender is required"),
                    ],
                    "options": [
                        {"value": "", "label": "Select Gender", "disabled": True},
                        {"value": "male", "label": "Male"},
                        {"value": "female", "label": "Female"},
                        {"value": "other", "label": "Other"},
                    ],
                },
                {
                    "id": "mobileNumber",
                    "name": "personalDetails.mobileNumber",
                    "type": "tel",
                    "label": "Mobile Number",
                    "placeholder": "Enter 10-digit mobile number",
                    "required": True,
                    "validationRules": [
                        _rule("required", True, "Mobile number is required"),
                        _rule(
                            "pattern",
                            r"^[6-9]\d{9}$",
                            "Mobile number must be 10 digits starting with 6, 7, 8, or 9",
                        ),
                    ],
                    "attributes": {"maxLength": 10, "inputMode": "tel", "autoComplete": "tel"},
                },
                {
                    "id": "email",
                    "name": "personalDetails.email",
                    "type": "email",
                    "label": "Email Address",
                    "placeholder": "Enter email address",
                    "required": True,
                    "validationRules": [
                        _rule("required", True, "Email is required"),
                        _rule("pattern", r"^[^\s@]+@[^\s@]+\.[^\s@]+$", "Please provide a valid email address"),
                    ],
                    "attributes": {"autoComplete": "email"},
                },
                {
                    "id": "street",
                    "name": "personalDetails.address.street",
                    "type": "text",
                    "label": "Street Address",
                    "placeholder": "Enter street address",
                    "required": True,
                    "validationRules": _text_rules("Street address", 5, 100, letters_only=False),
                    "attributes": {"maxLength": 100, "autoComplete": "street-address"},
                },
                {
                    "id": "pincode",
                    "name": "personalDetails.address.pincode",
                    "type": "text",
                    "label": "PIN Code",
                    "placeholder": "Enter 6-digit PIN code",
                    "required": True,
                    "validationRules": [
                        _rule("required", True, "PIN code is required"),
                        _rule("pattern", r"^\d{6}$", "PIN code must be exactly 6 digits"),
                    ],
                    "attributes": {"maxLength": 6, "inputMode": "numeric", "autoComplete": "postal-code"},
                },
                {
                    "id": "city",
                    "name": "personalDetails.address.city",
                    "type": "text",
                    "label": "City",
                    "placeholder": "City (auto-filled from PIN code)",
                    "required": True,
                    "validationRules": _text_rules("City", 2, 50),
                    "attributes": {"maxLength": 50, "autoComplete": "address-level2"},
                },
                {
                    "id": "state",
                    "name": "personalDetails.address.state",
                    "type": "text",
                    "label": "State",
                    "placeholder": "State (auto-filled from PIN code)",
                    "required": True,
                    "validationRules": _text_rules("State", 2, 50),
                    "attributes": {"maxLength": 50, "autoComplete": "address-level1"},
                },
            ],
        },
    ],
    "metadata": {
        "source": "default",
        "version": "1.0.0",
    },
}


async def get_form_schema(db: AsyncSession) -> Dict[str, Any]:
    """
    Returns the latest active form schema.

    Falls back to DEFAULT_SCHEMA when nothing is stored or the read fails.
    """
    try:
        result = await db.execute(
            select(FormSchema)
            .where(FormSchema.is_active.is_(True))
            .order_by(FormSchema.created_at.desc())
            .limit(1)
        )
        latest = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error(f"Failed to retrieve form schema from database: {e}")
        latest = None

    if latest and latest.schema_data:
        logger.info(f"Retrieved form schema {latest.version} from database")
        schema = copy.deepcopy(latest.schema_data)
        schema["metadata"] = {
            **schema.get("metadata", {}),
            "source": "database",
            "schemaId": latest.id,
            "version": latest.version,
        }
        return schema

    logger.debug("Using default form schema (no database schema found)")
    return copy.deepcopy(DEFAULT_SCHEMA)


async def save_form_schema(db: AsyncSession, schema: Dict[str, Any], version: str) -> Dict[str, Any]:
    """
    Stores a new schema version and makes it the only active one.

    Args:
        db: Database session
        schema: Schema document (version/title/steps/metadata)
        version: Version label, unique across stored schemas

    Returns:
        Dict with schema_id and version

    Raises:
        ValidationError: If the document has no steps
        SQLAlchemyError: Propagated after rollback
    """
    if not schema.get("steps"):
        raise ValidationError("Form schema must define at least one step")

    try:
        await db.execute(
            update(FormSchema).where(FormSchema.is_active.is_(True)).values(is_active=False)
        )
        new_schema = FormSchema(version=version, schema_data=schema, is_active=True)
        db.add(new_schema)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.error(f"Failed to save form schema {version}", exc_info=True)
        raise

    logger.info(f"Saved form schema {version} ({new_schema.id})")
    return {
        "success": True,
        "schema_id": new_schema.id,
        "version": new_schema.version,
        "message": "Form schema saved successfully",
    }


async def get_step_schema(db: AsyncSession, step_number: int) -> Dict[str, Any]:
    """
    Returns the schema of one step.

    Raises:
        ValidationError: If step_number is not a registration step
        ResourceNotFoundError: If the active schema lacks the step
    """
    if not is_valid_step(step_number):
        raise ValidationError("Step number must be 1 or 2")

    schema = await get_form_schema(db)
    for step in schema.get("steps", []):
        if step.get("stepNumber") == step_number:
            return step

    raise ResourceNotFoundError(f"Step {step_number} not found in form schema")


async def get_field_validation_rules(db: AsyncSession, field_name: str) -> List[Dict[str, Any]]:
    """
    Returns the rules of a field looked up by name or id.

    Raises:
        ValidationError: If the schema has no such field
    """
    schema = await get_form_schema(db)
    for step in schema.get("steps", []):
        for field in step.get("fields", []):
            if field_name in (field.get("name"), field.get("id")):
                return field.get("validationRules", [])

    raise ValidationError(f"Field '{field_name}' not found in form schema")


def get_nested_value(data: Dict[str, Any], path: str) -> Any:
    """Reads a dot-notation path; None when any segment is missing."""
    current: Any = data
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def set_nested_value(data: Dict[str, Any], path: str, value: Any):
    """Writes a dot-notation path, creating intermediate dicts."""
    *parents, last = path.split(".")
    target = data
    for key in parents:
        if not isinstance(target.get(key), dict):
            target[key] = {}
        target = target[key]
    target[last] = value


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _as_date(value: Any) -> Optional[date]:
    if value == TODAY:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def apply_validation_rule(value: Any, rule: Dict[str, Any], field: Dict[str, Any]) -> bool:
    """
    Applies one rule to a value.

    Every rule except "required" passes on a blank value, so a missing
    optional field reports nothing and a missing required field reports
    only its required message. Unknown rule types pass.
    """
    rule_type = rule.get("type")
    rule_value = rule.get("value")

    if rule_type == "required":
        return not rule_value or not _is_blank(value)

    if _is_blank(value):
        return True

    if field.get("type") == "date" and rule_type in ("min", "max"):
        value_date, limit = _as_date(value), _as_date(rule_value)
        if value_date is None or limit is None:
            return False
        return value_date >= limit if rule_type == "min" else value_date <= limit

    text = str(value)
    if rule_type == "pattern":
        return re.search(rule_value, text) is not None
    if rule_type == "min":
        return len(text) >= rule_value
    if rule_type == "max":
        return len(text) <= rule_value
    if rule_type == "length":
        return len(text) == rule_value

    return True


def field_errors(value: Any, field: Dict[str, Any], only_required: bool = False) -> List[str]:
    """
    Collects the failed-rule messages of one field, each message once.

    Args:
        value: Submitted value (None if absent)
        field: Field definition
        only_required: Apply just the "required" rule
    """
    messages: List[str] = []
    for rule in field.get("validationRules", []):
        if only_required and rule.get("type") != "required":
            continue
        if not apply_validation_rule(value, rule, field) and rule["message"] not in messages:
            messages.append(rule["message"])

    options = field.get("options")
    if options and not only_required and not _is_blank(value):
        allowed = {o["value"] for o in options if not o.get("disabled")}
        # lists and objects are unhashable and never a valid option
        if not isinstance(value, str) or value not in allowed:
            messages.append(f"{field.get('label', field['name'])} must be one of: {', '.join(sorted(allowed))}")

    return messages


async def validate_form_data(db: AsyncSession, form_data: Dict[str, Any], step_number: int) -> Dict[str, Any]:
    """
    Validates form data against a step's schema.

    Returns:
        Dict with is_valid, errors ([{field, errors}]) and validated_data
        (nested dict of the valid fields, None when anything failed)
    """
    step = await get_step_schema(db, step_number)
    errors = []
    validated_data: Dict[str, Any] = {}

    for field in step.get("fields", []):
        value = get_nested_value(form_data, field["name"])
        messages = field_errors(value, field)

        if messages:
            errors.append({"field": field["name"], "errors": messages})
        elif value is not None:
            set_nested_value(validated_data, field["name"], value)

    return {
        "is_valid": not errors,
        "errors": errors,
        "validated_data": validated_data if not errors else None,
    }


async def get_schema_metadata(db: AsyncSession) -> Dict[str, Any]:
    schema = await get_form_schema(db)
    steps = schema.get("steps", [])
    return {
        "version": schema.get("version"),
        "title": schema.get("title"),
        "description": schema.get("description"),
        "total_steps": len(steps),
        "total_fields": sum(len(step.get("fields", [])) for step in steps),
        "metadata": schema.get("metadata", {}),
    }
