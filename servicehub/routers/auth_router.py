# servicehub/routers/auth_router.py
import logging
from fastapi import APIRouter, Depends

from ..schemas import (
    SendOTPRequest, SendOTPResponse, GetOTPRequest, GetOTPResponse, VerifyOTPRequest,
    EmailRegisterRequest, EmailLoginRequest, AuthResponse, ErrorResponse
)
from ..application.services.auth_service import AuthService
from .deps import get_auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

# Only mounted by create_app outside production
testing_router = APIRouter(prefix="/auth", tags=["Authentication (development)"])

@router.post("/phone/send-otp", response_model=SendOTPResponse, response_model_exclude_none=True,
             responses={400: {"model": ErrorResponse}})
def send_otp(payload: SendOTPRequest, auth_service: AuthService = Depends(get_auth_service)):
    """
    Issue an OTP for a phone number and try to deliver it by SMS
    """
    result = auth_service.send_otp(payload.phoneNumber)
    return SendOTPResponse(message=result.message, otp=result.otp)

@testing_router.post("/phone/get-otp", response_model=GetOTPResponse,
                     responses={403: {"model": ErrorResponse}})
def get_otp(payload: GetOTPRequest, auth_service: AuthService = Depends(get_auth_service)):
    """
    Latest active OTP for a phone number, without sending an SMS (development only)
    """
    result = auth_service.get_otp_for_testing(payload.phoneNumber)
    return GetOTPResponse(otp=result.otp, message=result.message)

@router.post("/phone/verify-otp", response_model=AuthResponse,
             responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}})
def verify_otp(payload: VerifyOTPRequest, auth_service: AuthService = Depends(get_auth_service)):
    """
    Verify an OTP and return a session token; creates the user on first login
    """
    result = auth_service.verify_otp_and_authenticate(payload.phoneNumber, payload.code)
    return AuthResponse(access_token=result.access_token, user=result.user)

@router.post("/email/register", response_model=AuthResponse, status_code=201,
             responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}})
def email_register(payload: EmailRegisterRequest, auth_service: AuthService = Depends(get_auth_service)):
    result = auth_service.email_register(
        payload.fullName, payload.email, payload.password, payload.confirmPassword
    )
    return AuthResponse(access_token=result.access_token, user=result.user)

@router.post("/email/login", response_model=AuthResponse,
             responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}})
def email_login(payload: EmailLoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    result = auth_service.email_login(payload.email, payload.password)
    return AuthResponse(access_token=result.access_token, user=result.user)
