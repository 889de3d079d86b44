import copy

import pytest

from app.core.exceptions import ValidationError
from app.services import form_schema_service
from app.services.form_schema_service import (
    DEFAULT_SCHEMA,
    apply_validation_rule,
    field_errors,
    get_field_validation_rules,
    get_form_schema,
    get_nested_value,
    get_schema_metadata,
    get_step_schema,
    save_form_schema,
    set_nested_value,
    validate_form_data,
)


def test_default_schema_served_when_nothing_stored(run_db):
    async def scenario(db):
        return await get_form_schema(db)

    schema = run_db(scenario)
    assert schema["version"] == "1.0.0"
    assert schema["metadata"]["source"] == "default"
    assert [s["stepNumber"] for s in schema["steps"]] == [1, 2]


def test_saved_schema_becomes_the_only_active_one(run_db):
    first = copy.deepcopy(DEFAULT_SCHEMA)
    second = copy.deepcopy(DEFAULT_SCHEMA)
    second["title"] = "Udyam Registration Form (revised)"

    async def scenario(db):
        await save_form_schema(db, first, "1.1.0")
        saved = await save_form_schema(db, second, "1.2.0")
        schema = await get_form_schema(db)
        return saved, schema

    saved, schema = run_db(scenario)
    assert saved["version"] == "1.2.0"
    assert schema["title"] == "Udyam Registration Form (revised)"
    assert schema["metadata"]["source"] == "database"
    assert schema["metadata"]["version"] == "1.2.0"
    assert schema["metadata"]["schemaId"] == saved["schema_id"]


def test_schema_without_steps_is_rejected(run_db):
    async def scenario(db):
        await save_form_schema(db, {"version": "2.0.0", "steps": []}, "2.0.0")

    with pytest.raises(ValidationError):
        run_db(scenario)


@pytest.mark.parametrize("step_number", [0, 3])
def test_step_outside_registration_is_rejected(run_db, step_number):
    async def scenario(db):
        await get_step_schema(db, step_number)

    with pytest.raises(ValidationError):
        run_db(scenario)


def test_field_rules_found_by_id_or_name(run_db):
    async def scenario(db):
        by_id = await get_field_validation_rules(db, "firstName")
        by_name = await get_field_validation_rules(db, "personalDetails.firstName")
        return by_id, by_name

    by_id, by_name = run_db(scenario)
    assert by_id == by_name
    assert by_id[0] == {"type": "required", "value": True, "message": "First name is required"}


def test_unknown_field_rules(run_db):
    async def scenario(db):
        await get_field_validation_rules(db, "gstin")

    with pytest.raises(ValidationError):
        run_db(scenario)


def test_validate_form_data_step1(run_db):
    async def scenario(db):
        ok = await validate_form_data(db, {"aadhaarNumber": "123456789012", "otp": "123456"}, 1)
        bad = await validate_form_data(db, {"aadhaarNumber": "1234"}, 1)
        return ok, bad

    ok, bad = run_db(scenario)
    assert ok == {
        "is_valid": True,
        "errors": [],
        "validated_data": {"aadhaarNumber": "123456789012", "otp": "123456"},
    }
    assert bad["is_valid"] is False
    assert bad["validated_data"] is None
    assert bad["errors"] == [
        {"field": "aadhaarNumber", "errors": ["Aadhaar number must be exactly 12 digits"]},
        {"field": "otp", "errors": ["OTP is required"]},
    ]


def test_schema_metadata(run_db):
    async def scenario(db):
        return await get_schema_metadata(db)

    metadata = run_db(scenario)
    assert metadata["total_steps"] == 2
    assert metadata["total_fields"] == 13


def test_nested_value_helpers():
    data = {}
    set_nested_value(data, "personalDetails.address.city", "Pune")
    assert data == {"personalDetails": {"address": {"city": "Pune"}}}
    assert get_nested_value(data, "personalDetails.address.city") == "Pune"
    assert get_nested_value(data, "personalDetails.email") is None
    assert get_nested_value({"a": "x"}, "a.b") is None


def test_rules_other_than_required_pass_on_blank_values():
    field = {"name": "city", "type": "text"}
    assert apply_validation_rule("", {"type": "min", "value": 2}, field) is True
    assert apply_validation_rule(None, {"type": "required", "value": True}, field) is False
    assert apply_validation_rule("  ", {"type": "required", "value": True}, field) is False


def test_options_reject_unhashable_values():
    gender = next(
        f for step in DEFAULT_SCHEMA["steps"] for f in step["fields"] if f["name"] == "personalDetails.gender"
    )
    assert field_errors(["male"], gender) == ["Gender must be one of: female, male, other"]
    assert field_errors({"value": "male"}, gender) == ["Gender must be one of: female, male, other"]
    assert field_errors("male", gender) == []


def test_date_rules_compare_dates():
    field = {"name": "dob", "type": "date"}
    rule = {"type": "max", "value": form_schema_service.TODAY}
    assert apply_validation_rule("1990-01-01", rule, field) is True
    assert apply_validation_rule("2999-01-01", rule, field) is False
    assert apply_validation_rule("not-a-date", rule, field) is False
