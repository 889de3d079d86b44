"""
app/schemas/registration.py

Purpose: Registration request/response schemas

- Shapes of the step 1 / step 2 payloads
- Field and form validation payloads
- Registration status response

Request models only check shape (types, presence). Field formats are
checked by the registration service so every failure carries the same
fixed message.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    """Accepts both the camelCase wire names and the snake_case attribute names."""
    model_config = ConfigDict(populate_by_name=True)


class Step1Request(CamelModel):
    aadhaar_number: str = Field(..., alias="aadhaarNumber", description="12-digit Aadhaar number")
    otp: str = Field(..., description="6-digit OTP")
    session_id: Optional[str] = Field(default=None, alias="sessionId")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {"aadhaarNumber": "123456789012", "otp": "789012"}
        },
    )


class Address(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None


class PersonalDetails(CamelModel):
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    date_of_birth: Optional[str] = Field(default=None, alias="dateOfBirth", description="ISO date")
    gender: Optional[str] = None
    mobile_number: Optional[str] = Field(default=None, alias="mobileNumber")
    email: Optional[str] = None
    address: Optional[Address] = None

    def to_form_data(self) -> Dict[str, Any]:
        """Wire-shaped dict without the fields the client left out."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Step2Request(CamelModel):
    session_id: str = Field(..., alias="sessionId", min_length=1)
    pan_number: str = Field(..., alias="panNumber")
    personal_details: PersonalDetails = Field(default_factory=PersonalDetails, alias="personalDetails")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "sessionId": "udyam_1734567890123_k3j9x0a2b",
                "panNumber": "ABCDE1234F",
                "personalDetails": {
                    "firstName": "Asha",
                    "lastName": "Verma",
                    "dateOfBirth": "1990-04-12",
                    "gender": "female",
                    "mobileNumber": "9876543210",
                    "email": "asha@example.com",
                    "address": {
                        "street": "12 MG Road",
                        "city": "Pune",
                        "state": "Maharashtra",
                        "pincode": "411001",
                    },
                },
            }
        },
    )


class StepResponse(BaseModel):
    success: bool = True
    session_id: str
    step_number: int
    status: str
    next_step: Optional[int] = None
    submission_id: Optional[str] = None
    message: str


class FieldValidationRequest(BaseModel):
    field: str = Field(..., description="Field name, e.g. aadhaarNumber")
    value: str = Field(..., description="Raw field value")


class FieldValidationResponse(BaseModel):
    field: str
    value: str
    is_valid: bool
    message: str
    suggestions: Optional[List[str]] = None


class FormValidationRequest(CamelModel):
    step_number: int = Field(..., alias="stepNumber", ge=1, le=2)
    form_data: Dict[str, Any] = Field(..., alias="formData")


class StepCompletion(BaseModel):
    completed: bool
    completed_at: Optional[datetime] = None


class RegistrationStatusResponse(BaseModel):
    session_id: str
    status: str
    current_step: int
    steps: Dict[str, StepCompletion]
    created_at: datetime
    updated_at: datetime
