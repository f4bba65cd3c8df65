"""
API Key Schemas
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from lscs_core.schemas.base import BaseSchema, validate_email


class RequestKeyRequest(BaseSchema):
    """Request body for issuing an API key"""
    email: str = Field(..., description="Member the key is issued to")
    project: Optional[str] = Field(None, max_length=255, description="Project using the key")
    allowed_origin: Optional[str] = Field(None, max_length=255, description="Origin the key is bound to")
    is_dev: bool = Field(False, description="Development key (localhost origin, short expiry)")
    is_admin: bool = Field(False, description="Admin key (no expiry, requester must be ADMIN)")

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        return validate_email(v)


class RequestKeyResponse(BaseSchema):
    email: str
    api_key: str
    expires_at: Optional[datetime] = None


class APIKeyResponse(BaseSchema):
    """Key metadata; the token itself is never returned again"""
    api_key_id: int
    member_email: str
    project: Optional[str] = None
    allowed_origin: Optional[str] = None
    is_dev: bool
    is_admin: bool
    created_at: datetime
    expires_at: Optional[datetime] = None
