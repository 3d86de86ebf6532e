from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AuthError(Exception):
    """Base class for failures the auth flow reports to callers."""
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidOrExpiredOtpError(AuthError):
    status_code = 401

    def __init__(self, detail: str = "Invalid or expired OTP"):
        super().__init__(detail)


class InvalidCredentialsError(AuthError):
    status_code = 401

    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(detail)


class InvalidTokenError(AuthError):
    status_code = 401

    def __init__(self, detail: str = "Invalid or expired token"):
        super().__init__(detail)


class ConflictError(AuthError):
    status_code = 409


class DevOnlyEndpointError(AuthError):
    status_code = 403

    def __init__(self, detail: str = "This endpoint is only available in development mode"):
        super().__init__(detail)


def create_error_response(error_message: str, status_code: int = 400) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code),
        headers=getattr(exc, "headers", None),
    )

async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed input is a 400, distinct from a well-formed but wrong credential (401)"""
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return JSONResponse(
        status_code=400,
        content=create_error_response("; ".join(messages) or "Invalid request", 400)
    )
