from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from portfolio.models.user import UserRole
from portfolio.schemas.base import ApiModel


class UserPublic(ApiModel):
    id: uuid.UUID
    email: str
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    role: UserRole
    educational_level: str | None = None
    school_name: str | None = None
    education_department: str | None = None
    subject: str | None = None
    principal_name: str | None = None
    years_of_service: int | None = None
    contact_email: str | None = None
    must_change_password: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProfileUpdateRequest(ApiModel):
    first_name: str | None = Field(default=None, max_length=200)
    last_name: str | None = Field(default=None, max_length=200)
    profile_image_url: str | None = Field(default=None, max_length=1000)
    educational_level: str | None = Field(default=None, max_length=50)
    school_name: str | None = Field(default=None, max_length=300)
    education_department: str | None = Field(default=None, max_length=300)
    subject: str | None = Field(default=None, max_length=200)
    principal_name: str | None = Field(default=None, max_length=200)
    years_of_service: int | None = Field(default=None, ge=0, le=60)
    contact_email: EmailStr | None = None


class RegisterRequest(ApiModel):
    email: EmailStr
    password: str
    first_name: str | None = Field(default=None, max_length=200)
    last_name: str | None = Field(default=None, max_length=200)


class TokenResponse(BaseModel):
    # OAuth2 token endpoint shape: snake_case keys, unlike the rest of the API.
    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None
    user: UserPublic | None = None


class ChangePasswordRequest(ApiModel):
    current_password: str
    new_password: str


class TeacherCreateRequest(ApiModel):
    email: EmailStr
    first_name: str | None = Field(default=None, max_length=200)
    last_name: str | None = Field(default=None, max_length=200)
    school_name: str | None = Field(default=None, max_length=300)
    subject: str | None = Field(default=None, max_length=200)
    password: str | None = None
    must_change_password: bool = True


class TeacherCreateResponse(ApiModel):
    user: UserPublic
    temp_password: str


class RoleUpdateRequest(ApiModel):
    role: UserRole
