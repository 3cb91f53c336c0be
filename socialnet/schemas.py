import re
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$")
MOBILE_PATTERN = re.compile(r"^\+\d{1,3}-\d{10}$")


class Gender(str, Enum):
    male = "male"
    female = "female"
    other = "other"


def _check_mobile(value: Optional[str]) -> Optional[str]:
    if value is not None and not MOBILE_PATTERN.match(value):
        raise ValueError("Invalid mobile number format. Use +CountryCode-MobileNumber")
    return value


# Accounts
class AccountCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str
    username: str = Field(min_length=1, max_length=50)
    gender: Gender
    mobile: Optional[str] = None

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        if not PASSWORD_PATTERN.match(value):
            raise ValueError(
                "Password must be at least 8 characters long and contain at least one uppercase letter, "
                "one lowercase letter, one digit, and one special character (@$!%*?&)"
            )
        return value

    @field_validator("mobile")
    @classmethod
    def mobile_format(cls, value: Optional[str]) -> Optional[str]:
        return _check_mobile(value)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    username: Optional[str] = Field(default=None, min_length=1, max_length=50)
    gender: Optional[Gender] = None
    mobile: Optional[str] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    cover_image: Optional[str] = None

    @field_validator("mobile")
    @classmethod
    def mobile_format(cls, value: Optional[str]) -> Optional[str]:
        return _check_mobile(value)


class AccountSummary(BaseModel):
    user_id: int
    name: str
    username: str

    class Config:
        from_attributes = True


class AccountResponse(BaseModel):
    user_id: int
    name: str
    username: str
    email: str
    gender: Gender
    mobile: Optional[str] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    cover_image: Optional[str] = None
    following: List[int]
    followers: List[int]

    class Config:
        from_attributes = True


class RegisterResponse(BaseModel):
    user: AccountResponse
    token: str


class LoginResponse(AccountResponse):
    token: str


# Posts
class PostCreate(BaseModel):
    text: str = Field(min_length=1)
    images: List[str] = []
    videos: List[str] = []
    is_public: bool = True


class PostResponse(BaseModel):
    id: int
    author_id: int
    text: str
    images: List[str]
    videos: List[str]
    is_public: bool
    likes: List[int]
    deleted: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class Message(BaseModel):
    message: str
