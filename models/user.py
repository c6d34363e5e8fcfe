from typing import Optional

from pydantic import EmailStr, validator

from .base import ApiModel

MIN_PASSWORD_LENGTH = 6


class ProfileFields(ApiModel):
    major: Optional[str] = None
    year: Optional[str] = None
    bio: Optional[str] = None
    graduation_year: Optional[str] = None
    location: Optional[str] = None


class UserCreate(ProfileFields):
    email: EmailStr
    password: str
    first_name: str
    last_name: str

    @validator("email")
    def lower_email(cls, v):
        return v.lower()

    @validator("password")
    def validate_password(cls, v):
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v

    @validator("first_name", "last_name")
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class LoginCredentials(ApiModel):
    email: EmailStr
    password: str

    @validator("email")
    def lower_email(cls, v):
        return v.lower()


class ProfileUpdate(ProfileFields):
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @validator("first_name", "last_name")
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip() if v else v
