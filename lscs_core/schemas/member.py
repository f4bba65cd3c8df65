"""
Member Schemas
Profile views, profile updates and directory lookups
"""

from typing import List, Optional

from pydantic import Field, field_validator

from lscs_core.schemas.base import BaseSchema, validate_email, validate_optional_email


class MemberResponse(BaseSchema):
    """Full member profile"""
    id: int
    email: str
    full_name: str
    nickname: Optional[str] = None
    position_id: Optional[str] = None
    committee_id: Optional[str] = None
    house_id: Optional[int] = None
    college: Optional[str] = None
    program: Optional[str] = None
    discord: Optional[str] = None
    interests: Optional[str] = None
    contact_number: Optional[str] = None
    fb_link: Optional[str] = None
    telegram: Optional[str] = None
    image_url: Optional[str] = None


class MemberUpdateRequest(BaseSchema):
    """
    Partial profile update. Only fields present in the request body are
    applied; each must be editable by the caller.
    """
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = None
    nickname: Optional[str] = Field(None, max_length=100)
    position_id: Optional[str] = Field(None, max_length=10)
    committee_id: Optional[str] = Field(None, max_length=10)
    house_id: Optional[int] = None
    college: Optional[str] = Field(None, max_length=100)
    program: Optional[str] = Field(None, max_length=100)
    discord: Optional[str] = Field(None, max_length=100)
    interests: Optional[str] = None
    contact_number: Optional[str] = Field(None, max_length=30)
    fb_link: Optional[str] = Field(None, max_length=255)
    telegram: Optional[str] = Field(None, max_length=100)

    @field_validator("full_name", "email")
    @classmethod
    def reject_null(cls, v):
        # NOT NULL columns; omit the field to leave it unchanged
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        return validate_optional_email(v)


class EditableFieldsResponse(BaseSchema):
    member_id: int
    fields: List[str]


class EmailLookupRequest(BaseSchema):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        return validate_email(v)


class IdLookupRequest(BaseSchema):
    id: int


class PresenceResponse(BaseSchema):
    success: str
    state: str = "present"
    email: Optional[str] = None
    id: Optional[int] = None


class MemberRoleResponse(BaseSchema):
    member_id: int
    role_id: str
    granted_by: Optional[int] = None


class RoleGrantRequest(BaseSchema):
    role_id: str = Field(..., min_length=1, max_length=32)

    @field_validator("role_id")
    @classmethod
    def normalize_role(cls, v):
        return v.upper()
