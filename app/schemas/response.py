"""
app/schemas/response.py

Purpose: Response envelopes shared by every route
"""

from pydantic import BaseModel, Field
from typing import Optional, Any, Dict

from utils.time_utils import utc_isoformat


class ErrorResponse(BaseModel):
    """
    Error body rendered by the exception handlers.
    """
    success: bool = False
    error: str
    code: str
    details: Optional[Any] = None
    timestamp: str = Field(default_factory=utc_isoformat)


class DataResponse(BaseModel):
    """
    Success envelope for utility routes: payload plus request metadata.
    """
    success: bool = True
    data: Any
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def wrap(cls, data: Any, **metadata: Any) -> "DataResponse":
        metadata.setdefault("timestamp", utc_isoformat())
        return cls(data=data, metadata=metadata)
