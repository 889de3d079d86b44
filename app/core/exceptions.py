from typing import Optional, Any

class UdyamError(Exception):
    """
    Base exception for the Udyam registration backend.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class ResourceNotFoundError(UdyamError):
    """
    Raised when a requested resource is not found.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)

class SessionNotFoundError(ResourceNotFoundError):
    """
    Raised when no user exists for a session ID.
    """
    def __init__(self, message: str = "Session not found", details: Optional[Any] = None):
        super().__init__(message, details=details)
        self.code = "SESSION_NOT_FOUND"

class ValidationError(UdyamError):
    """
    Raised when input validation fails.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=422, details=details)

class InvalidFieldNameError(ValidationError):
    """
    Raised when a field name has no validator.
    """
    def __init__(self, field: Optional[str] = None):
        super().__init__("Invalid field name", details={"field": field})
        self.code = "INVALID_FIELD_NAME"
        self.field = field

class StepOrderError(ValidationError):
    """
    Raised when a step is submitted before its predecessor completed.
    """
    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, details=details)
        self.code = "STEP_ORDER_ERROR"

class DatabaseError(UdyamError):
    """
    Raised when a database operation fails.
    """
    def __init__(self, message: str = "Database error", details: Optional[Any] = None):
        super().__init__(message, code="DATABASE_ERROR", status_code=500, details=details)

class ExternalServiceError(UdyamError):
    """
    Raised when an external service (e.g., PIN code providers) fails.
    """
    def __init__(self, message: str = "External service error", details: Optional[Any] = None):
        super().__init__(message, code="EXTERNAL_SERVICE_ERROR", status_code=502, details=details)

class LocationServiceUnavailableError(ExternalServiceError):
    """
    Raised when every PIN code lookup source failed.
    """
    def __init__(
        self,
        message: str = "Unable to fetch location data for the provided PIN code. Please enter city and state manually.",
        details: Optional[Any] = None
    ):
        super().__init__(message, details=details)
        self.code = "LOCATION_SERVICE_UNAVAILABLE"
        self.status_code = 503
