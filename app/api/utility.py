"""
app/api/utility.py

Purpose: Supporting endpoints for the registration frontend

- PIN code to location lookup and cache administration
- Form schema (full, per step, metadata)
- Field validation with correction hints, form-level validation
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.db.database import get_db
from app.schemas.registration import FieldValidationRequest, FieldValidationResponse, FormValidationRequest
from app.schemas.response import DataResponse
from app.services import form_schema_service, registration_service
from app.services.location_service import LocationService, get_location_service
from utils.validation_utils import field_suggestions

logger = get_logger(__name__)
router = APIRouter()


@router.get("/pincode/{code}/location", response_model=DataResponse)
async def pincode_location(
    code: str = Path(..., description="6-digit PIN code"),
    locations: LocationService = Depends(get_location_service),
):
    was_cached = locations.get_cached_location(code) is not None
    location = await locations.get_location_by_pincode(code)
    return DataResponse.wrap(location, source="location_service", cached=was_cached)


@router.get("/form-schema", response_model=DataResponse)
async def form_schema(db: AsyncSession = Depends(get_db)):
    schema = await form_schema_service.get_form_schema(db)
    steps = schema.get("steps", [])
    return DataResponse.wrap(
        schema,
        total_steps=len(steps),
        total_fields=sum(len(step.get("fields", [])) for step in steps),
    )


@router.get("/form-schema/metadata", response_model=DataResponse)
async def form_schema_metadata(db: AsyncSession = Depends(get_db)):
    return DataResponse.wrap(await form_schema_service.get_schema_metadata(db))


@router.get("/form-schema/step/{step_number}", response_model=DataResponse)
async def form_schema_step(step_number: int, db: AsyncSession = Depends(get_db)):
    step = await form_schema_service.get_step_schema(db, step_number)
    return DataResponse.wrap(step, field_count=len(step.get("fields", [])))


@router.post("/validate-field", response_model=DataResponse)
async def validate_field_with_hints(payload: FieldValidationRequest):
    result = await registration_service.validate_field(payload.field, payload.value)
    suggestions = [] if result.is_valid else field_suggestions(payload.field, payload.value)

    data = FieldValidationResponse(**result.to_dict(), suggestions=suggestions or None)
    return DataResponse.wrap(data.model_dump(exclude_none=True), validation_type="real-time")


@router.post("/validate-form", response_model=DataResponse)
async def validate_form(payload: FormValidationRequest, db: AsyncSession = Depends(get_db)):
    result = await form_schema_service.validate_form_data(db, payload.form_data, payload.step_number)
    return DataResponse.wrap(result, step_number=payload.step_number, validation_type="form-level")


@router.get("/cache/stats", response_model=DataResponse)
async def cache_stats(locations: LocationService = Depends(get_location_service)):
    return DataResponse.wrap({"location_cache": locations.get_cache_stats()})


@router.post("/cache/clear", response_model=DataResponse)
async def cache_clear(locations: LocationService = Depends(get_location_service)):
    cleared = locations.clear_expired_cache()
    return DataResponse.wrap(
        {"entries_cleared": cleared, "remaining_entries": locations.cache_size},
        action="cache_clear",
    )
