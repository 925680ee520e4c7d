"""
Shared Pydantic schemas for API responses.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base model accepting both snake_case and the camelCase keys the web
    client sends, and emitting camelCase.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    """
    Error body produced by the service error handler.

    Attributes:
        detail: Human-readable error message
        error_code: Machine-readable error code
        timestamp: When the error occurred (ISO-8601)
        request_id: Request ID for tracing, when available
    """

    detail: str = Field(..., description="Error message")
    error_code: str = Field(..., description="Machine-readable error code")
    timestamp: str = Field(..., description="Error timestamp")
    request_id: Optional[str] = Field(None, description="Request ID for tracing")
