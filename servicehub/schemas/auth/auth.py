# servicehub/schemas/auth/auth.py
from pydantic import BaseModel, Field, validator
from typing import Optional, Dict, Any
import re

PHONE_PATTERN = re.compile(r'^\+?[1-9]\d{1,14}$')
EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
NAME_PATTERN = re.compile(r"^[a-zA-Z\s'\-]+$")

def _check_phone(v: str) -> str:
    v = v.strip()
    if not PHONE_PATTERN.match(v):
        raise ValueError('Phone number must be in valid international format')
    return v

def _check_email(v: str) -> str:
    v = v.strip()
    if not EMAIL_PATTERN.match(v):
        raise ValueError('Email must be a valid email address')
    return v

class SendOTPRequest(BaseModel):
    phoneNumber: str = Field(..., description="Phone number in international format (e.g., +1234567890)")

    @validator('phoneNumber')
    def validate_phone(cls, v):
        return _check_phone(v)

class SendOTPResponse(BaseModel):
    message: str
    otp: Optional[str] = None

class GetOTPRequest(BaseModel):
    phoneNumber: str

    @validator('phoneNumber')
    def validate_phone(cls, v):
        return _check_phone(v)

class GetOTPResponse(BaseModel):
    otp: Optional[str] = None
    message: str

class VerifyOTPRequest(BaseModel):
    phoneNumber: str
    code: str = Field(..., description="6-digit OTP")

    @validator('phoneNumber')
    def validate_phone(cls, v):
        return _check_phone(v)

    @validator('code')
    def validate_code(cls, v):
        if not v.isdigit() or len(v) != 6:
            raise ValueError('OTP code must be 6 digits')
        return v

class EmailRegisterRequest(BaseModel):
    fullName: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=50)
    confirmPassword: str = Field(..., min_length=1)

    @validator('fullName')
    def validate_full_name(cls, v):
        if not NAME_PATTERN.match(v):
            raise ValueError('Full name can only contain letters, spaces, hyphens, and apostrophes')
        return v.strip()

    @validator('email')
    def validate_email(cls, v):
        return _check_email(v)

class EmailLoginRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=50)

    @validator('email')
    def validate_email(cls, v):
        return _check_email(v)

class AuthResponse(BaseModel):
    access_token: str
    user: Dict[str, Any]
