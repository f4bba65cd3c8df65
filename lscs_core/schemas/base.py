"""
Base Pydantic Schemas
Common configuration and shared field validators
"""

import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


class BaseSchema(BaseModel):
    """Base schema with common configuration"""
    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        str_strip_whitespace=True,
        use_enum_values=True,
    )


class ErrorResponse(BaseModel):
    """Error body returned for every failed request"""
    error: str = Field(..., description="Error message")
    code: str = Field(..., description="Machine readable error code")


def validate_email(v: Any) -> str:
    """Validate email format"""
    if not isinstance(v, str):
        raise ValueError("Email must be a string")
    v = v.strip()
    if not _EMAIL_PATTERN.match(v):
        raise ValueError("Invalid email format")
    return v.lower()


def validate_optional_email(v: Optional[str]) -> Optional[str]:
    return None if v is None else validate_email(v)
