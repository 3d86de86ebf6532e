# servicehub/schemas/users/user.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class UserProfileResponse(BaseModel):
    id: str
    phoneNumber: Optional[str] = None
    email: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    role: str
    authMethod: str
    isPhoneVerified: bool
    isEmailVerified: bool
    createdAt: datetime
    updatedAt: datetime
