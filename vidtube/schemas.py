"""Pydantic schemas for JSON request bodies."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, validator


class RequestBody(BaseModel):
    """Accepts camelCase keys from clients and snake_case from Python callers."""

    model_config = ConfigDict(populate_by_name=True)

    @validator("*", pre=True)
    def strip_strings(cls, v):
        """Blank strings count as missing."""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


# ============================================
# User Schemas
# ============================================

class UserLogin(RequestBody):
    """Login with a handle or an email."""
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshRequest(RequestBody):
    refresh_token: Optional[str] = Field(None, alias="refreshToken")


class PasswordChange(RequestBody):
    """Schema for password change."""
    old_password: Optional[str] = Field(None, alias="oldPassword")
    new_password: Optional[str] = Field(None, alias="newPassword", min_length=8)


class AccountUpdate(RequestBody):
    """Schema for updating account details."""
    full_name: Optional[str] = Field(None, alias="fullName", max_length=100)
    email: Optional[str] = Field(None, max_length=255)


# ============================================
# Content Schemas
# ============================================

class ContentBody(RequestBody):
    """Comment or tweet text."""
    content: Optional[str] = Field(None, max_length=5000)


class PlaylistBody(RequestBody):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
