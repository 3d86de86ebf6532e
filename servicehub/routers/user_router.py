# servicehub/routers/user_router.py
from fastapi import APIRouter, Depends

from ..schemas import UserProfileResponse, ErrorResponse
from ..application.ports.user_repo import UserDto
from .deps import get_current_user

router = APIRouter(prefix="/user", tags=["User"])

@router.get("/profile", response_model=UserProfileResponse, responses={401: {"model": ErrorResponse}})
def get_profile(current_user: UserDto = Depends(get_current_user)):
    """
    Current user's profile; the password hash is never returned
    """
    return UserProfileResponse(
        id=current_user.id,
        phoneNumber=current_user.phone_number,
        email=current_user.email,
        firstName=current_user.first_name,
        lastName=current_user.last_name,
        role=current_user.role.value,
        authMethod=current_user.auth_method.value,
        isPhoneVerified=current_user.is_phone_verified,
        isEmailVerified=current_user.is_email_verified,
        createdAt=current_user.created_at,
        updatedAt=current_user.updated_at,
    )
