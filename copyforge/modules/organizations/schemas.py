from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional, Literal
from datetime import datetime

OrganizationRole = Literal["admin", "brand_manager", "member"]


class OrganizationCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Organization name must be at least 2 characters")
        if len(v) > 100:
            raise ValueError("Organization name must be less than 100 characters")
        return v


class OrganizationUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None


class OrganizationResponse(BaseModel):
    id: str
    name: str
    slug: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MyOrganizationResponse(BaseModel):
    organization: Optional[OrganizationResponse] = None
    role: Optional[OrganizationRole] = None


class MemberResponse(BaseModel):
    id: str
    organization_id: str
    user_id: str
    role: OrganizationRole
    email: Optional[str] = None
    full_name: Optional[str] = None
    invited_by: Optional[str] = None
    joined_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MemberRoleUpdate(BaseModel):
    role: OrganizationRole


class InviteCreate(BaseModel):
    email: EmailStr
    role: OrganizationRole = "member"


class InviteResponse(BaseModel):
    id: str
    organization_id: str
    email: str
    role: OrganizationRole
    invite_token: Optional[str] = None
    invited_by: Optional[str] = None
    expires_at: datetime
    used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    email_sent: Optional[bool] = None

    class Config:
        from_attributes = True


class InviteAccept(BaseModel):
    token: str


class InviteAcceptResponse(BaseModel):
    success: bool = True
    organization_id: str
