# ================================
# BASE SCHEMAS (schemas/base.py)
# ================================

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

class BaseSchema(BaseModel):
    """Base Schema mit gemeinsamer Konfiguration"""
    model_config = ConfigDict(
        from_attributes=True,  # Pydantic v2: ermöglicht ORM integration
        str_strip_whitespace=True,
        validate_assignment=True,
    )

class BaseResponseSchema(BaseSchema):
    """Base Schema for API responses with ID field"""
    id: int

class TimestampMixin(BaseModel):
    """Mixin für Timestamp-Felder"""
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

# ================================
# PAGINATION SCHEMAS
# ================================

class PaginatedResponse(BaseSchema):
    """Envelope shared by all list endpoints"""
    total: int
    page: int
    page_size: int

# ================================
# ERROR RESPONSE SCHEMAS
# ================================

class ErrorResponse(BaseSchema):
    """Standard Error Response Schema"""
    detail: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Application-specific error code")
    request_id: Optional[str] = Field(None, description="Request correlation id")
    errors: Optional[List[Dict[str, Any]]] = Field(None, description="Field errors of a rejected request body")
