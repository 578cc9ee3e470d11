from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum


# Enums
class RegistrableUserTypeEnum(str, Enum):
    FARMER = "farmer"
    BUYER = "buyer"


class UserTypeEnum(str, Enum):
    FARMER = "farmer"
    BUYER = "buyer"
    ADMIN = "admin"


# Registration
class UserRegistrationRequest(BaseModel):
    """User registration request"""
    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    password: str = Field(..., min_length=8)
    user_type: RegistrableUserTypeEnum
    phone: Optional[str] = Field(None, min_length=7, max_length=20)
    farm_name: Optional[str] = Field(None, max_length=150)
    crops_grown: Optional[str] = Field(None, max_length=255)
    farm_location: Optional[str] = Field(None, max_length=255)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Reject names that are only whitespace"""
        v = v.strip()
        if not v:
            raise ValueError('Name is required')
        return v

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v):
        if v is None:
            return v
        digits = v.replace('+', '', 1).replace(' ', '').replace('-', '')
        if not digits.isdigit():
            raise ValueError('Valid phone number required')
        return v


# Login
class UserLoginRequest(BaseModel):
    """User login request"""
    email: EmailStr
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


class UserSummary(BaseModel):
    id: int
    name: str
    email: EmailStr
    user_type: UserTypeEnum

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    """Token issued on registration or login"""
    message: str
    token: str
    token_type: str = "bearer"
    user: UserSummary


class TokenVerifyResponse(BaseModel):
    valid: bool
    user: UserSummary


# Profile
class UserProfileResponse(BaseModel):
    id: int
    name: str
    email: EmailStr
    phone: Optional[str]
    user_type: UserTypeEnum
    farm_name: Optional[str]
    farm_location: Optional[str]
    crops_grown: Optional[str]
    bio: Optional[str]
    profile_image: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class UserProfileUpdate(BaseModel):
    """Partial profile update; omitted fields keep their value"""
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    phone: Optional[str] = Field(None, min_length=7, max_length=20)
    farm_name: Optional[str] = Field(None, max_length=150)
    farm_location: Optional[str] = Field(None, max_length=255)
    crops_grown: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = None

    @field_validator('name', 'farm_name', 'farm_location', 'crops_grown', 'bio')
    @classmethod
    def strip_text(cls, v):
        return v.strip() if v is not None else v


class PublicUserResponse(BaseModel):
    id: int
    name: str
    user_type: UserTypeEnum
    farm_location: Optional[str]
    crops_grown: Optional[str]
    bio: Optional[str]

    class Config:
        from_attributes = True


class UserSearchResponse(BaseModel):
    users: List[PublicUserResponse]
    count: int


class LoanStatusCount(BaseModel):
    status: str
    count: int


class UserStatsResponse(BaseModel):
    loans: List[LoanStatusCount]
    products_listed: int
    orders_made: int
