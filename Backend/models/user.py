"""
User models for authentication and profile management.
"""
from pydantic import BaseModel, EmailStr, Field, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel
from typing import Annotated, Optional, List
from datetime import date, datetime
from enum import Enum

USERNAME_PATTERN = r"^[A-Za-z0-9_]+$"

# Passwords are taken verbatim, surrounding whitespace included
Password = Annotated[str, StringConstraints(strip_whitespace=False)]


class ApiModel(BaseModel):
    """Snake_case in Python, camelCase on the wire; either is accepted on input."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ProfileTheme(str, Enum):
    default = "default"
    dark = "dark"
    colorful = "colorful"
    minimal = "minimal"
    professional = "professional"


class ProfileVisibility(str, Enum):
    public = "public"
    private = "private"
    friends = "friends"


class ProfileFields(ApiModel):
    """Optional profile fields shared by registration and profile updates"""
    bio: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=30)
    location: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = Field(None, max_length=200)
    birth_date: Optional[date] = None
    profile_picture: Optional[str] = None
    profile_theme: Optional[ProfileTheme] = None
    profile_visibility: Optional[ProfileVisibility] = None
    email_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None


class UserCreate(ProfileFields):
    """Model for user registration"""
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    username: Optional[str] = Field(None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    # Length is checked by the user service so that it reports WeakPassword
    password: Password


class UserLogin(ApiModel):
    """Model for user login"""
    email: EmailStr
    password: Password


class UserUpdate(ProfileFields):
    """Partial profile update; only fields present in the request are applied"""
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    username: Optional[str] = Field(None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)


class PasswordChange(ApiModel):
    current_password: Password
    new_password: Password


class UserResponse(ApiModel):
    """User model for API responses (no password)"""
    id: str
    email: str
    username: Optional[str] = None
    first_name: str
    last_name: str
    bio: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    birth_date: Optional[date] = None
    profile_picture: Optional[str] = None
    profile_theme: ProfileTheme = ProfileTheme.default
    profile_visibility: ProfileVisibility = ProfileVisibility.public
    email_notifications: bool = True
    sms_notifications: bool = False
    is_verified: bool = False
    created_at: datetime
    updated_at: datetime


class UserSummary(ApiModel):
    """Public subset of a user returned by search"""
    id: str
    first_name: str
    last_name: str
    username: Optional[str] = None
    profile_picture: Optional[str] = None


class UserStats(ApiModel):
    member_since: datetime
    last_updated: datetime
    is_verified: bool
    profile_complete: bool


class TokenData(ApiModel):
    """Data stored in JWT token"""
    owner_id: str
    email: str


class TokenVerifyRequest(ApiModel):
    token: Optional[str] = None


# --- Response envelopes ---

class AuthResponse(ApiModel):
    success: bool = True
    user: UserResponse
    token: str


class UserEnvelope(ApiModel):
    success: bool = True
    user: UserResponse


class UserSearchResponse(ApiModel):
    success: bool = True
    users: List[UserSummary]


class UserStatsResponse(ApiModel):
    success: bool = True
    stats: UserStats


class TokenVerifyResponse(ApiModel):
    success: bool = True
    owner_id: str
    email: str


class MessageResponse(ApiModel):
    success: bool = True
    message: str
