"""
API router and Pydantic models for the authentication service.

This module provides the FastAPI router with the signup, login, 2FA
verification, logout and token verification endpoints. Handlers parse the
request, call the ``AuthenticationManager`` and map its errors to HTTP
status codes; no protocol logic lives here.
"""
import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, ConfigDict, Field, StrictBool

from auth_service.auth import (AuthError, AuthenticationManager, InvalidCredentialsError,
                               InvalidTokenError, MalformedInputError, UnexpectedAuthError,
                               UserExistsError)
from auth_service.config.settings import Settings
from auth_service.dependencies import (get_auth_manager, get_current_user_email,
                                       get_settings_dependency)
from auth_service.domain import Email

logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(tags=["authentication"])


# Pydantic models for request/response
class SignupRequest(BaseModel):
    """Request model for user signup."""
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password")
    requires_2fa: StrictBool = Field(..., alias="requires2FA", description="Whether logins need a second factor")


class LoginRequest(BaseModel):
    """Request model for user login."""
    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class Verify2FARequest(BaseModel):
    """Request model for second-factor verification."""
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., description="Email address")
    login_attempt_id: str = Field(..., alias="loginAttemptId", description="Id returned by login")
    two_fa_code: Union[str, int] = Field(..., alias="2FACode", description="Six digit code sent by email")


class VerifyTokenRequest(BaseModel):
    """Request model for token verification."""
    token: str = Field(..., description="Session token to verify")


class MessageResponse(BaseModel):
    """Response model for successful operations."""
    message: str = Field(..., description="Success message")


class LoginResponse(BaseModel):
    """Response model for login."""
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., description="Outcome of the login")
    login_attempt_id: Optional[str] = Field(None, alias="loginAttemptId", description="Set when 2FA is required")


class TokenValidationResponse(BaseModel):
    """Response model for token validation."""
    valid: bool = Field(..., description="Whether the token is valid")
    email: Optional[str] = Field(None, description="Owner of the token")


class CurrentUserResponse(BaseModel):
    """Response model for the current user."""
    email: str = Field(..., description="Email of the authenticated user")


class ErrorResponse(BaseModel):
    """Response model for errors."""
    detail: str = Field(..., description="Error detail")


# PUBLIC_INTERFACE
def to_http_exception(exc: AuthError) -> HTTPException:
    """
    Map an authentication error to an HTTP exception.

    Unexpected errors are reported without any internal detail.
    """
    if isinstance(exc, MalformedInputError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid input")
    if isinstance(exc, UserExistsError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists")
    if isinstance(exc, InvalidCredentialsError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect credentials")
    if isinstance(exc, InvalidTokenError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not isinstance(exc, UnexpectedAuthError):
        logger.error("Unmapped authentication error: %s", type(exc).__name__)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unexpected error")


def _set_auth_cookie(response: Response, settings: Settings, token: str) -> None:
    response.set_cookie(
        key=settings.JWT_COOKIE_NAME,
        value=token,
        max_age=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
    )


# API endpoints
@router.post(
    "/signup",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        409: {"model": ErrorResponse, "description": "User already exists"},
    },
    summary="Register a new user",
)
async def signup(
    signup_data: SignupRequest,
    auth_manager: AuthenticationManager = Depends(get_auth_manager),
):
    """Register a new user."""
    try:
        await auth_manager.signup(signup_data.email, signup_data.password, signup_data.requires_2fa)
    except AuthError as e:
        raise to_http_exception(e)
    return MessageResponse(message="User created successfully!")


@router.post(
    "/login",
    response_model=LoginResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    responses={
        206: {"model": LoginResponse, "description": "Second factor required"},
        400: {"model": ErrorResponse, "description": "Invalid input"},
        401: {"model": ErrorResponse, "description": "Incorrect credentials"},
    },
    summary="Authenticate user",
    description="Check email and password. Sets the session cookie, or returns a login attempt id when 2FA is required.",
)
async def login(
    login_data: LoginRequest,
    response: Response,
    auth_manager: AuthenticationManager = Depends(get_auth_manager),
    settings: Settings = Depends(get_settings_dependency),
):
    """Authenticate a user with email and password."""
    try:
        result = await auth_manager.login(login_data.email, login_data.password)
    except AuthError as e:
        raise to_http_exception(e)

    if result.requires_2fa:
        response.status_code = status.HTTP_206_PARTIAL_CONTENT
        return LoginResponse(
            message="2FA required",
            login_attempt_id=result.login_attempt_id.expose_secret(),
        )

    _set_auth_cookie(response, settings, result.token.get_secret_value())
    return LoginResponse(message="Login successful")


@router.post(
    "/verify-2fa",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        401: {"model": ErrorResponse, "description": "Incorrect credentials"},
    },
    summary="Complete a 2FA challenge",
)
async def verify_2fa(
    verify_data: Verify2FARequest,
    response: Response,
    auth_manager: AuthenticationManager = Depends(get_auth_manager),
    settings: Settings = Depends(get_settings_dependency),
):
    """Check the second-factor code and set the session cookie."""
    try:
        token = await auth_manager.verify_2fa(
            verify_data.email,
            verify_data.login_attempt_id,
            verify_data.two_fa_code,
        )
    except AuthError as e:
        raise to_http_exception(e)

    _set_auth_cookie(response, settings, token.get_secret_value())
    return MessageResponse(message="Login successful")


@router.post(
    "/logout",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing token"},
        401: {"model": ErrorResponse, "description": "Invalid token"},
    },
    summary="Revoke the session token",
)
async def logout(
    request: Request,
    response: Response,
    auth_manager: AuthenticationManager = Depends(get_auth_manager),
    settings: Settings = Depends(get_settings_dependency),
):
    """Revoke the session token held in the cookie and clear the cookie."""
    token = request.cookies.get(settings.JWT_COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing token")

    try:
        await auth_manager.logout(token)
    except AuthError as e:
        raise to_http_exception(e)

    response.delete_cookie(settings.JWT_COOKIE_NAME)
    return MessageResponse(message="Logged out")


@router.post(
    "/verify-token",
    response_model=TokenValidationResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid token"},
    },
    summary="Verify a session token",
)
async def verify_token(
    token_data: VerifyTokenRequest,
    auth_manager: AuthenticationManager = Depends(get_auth_manager),
):
    """Check that a token is correctly signed, unexpired and not revoked."""
    try:
        email = await auth_manager.validate_token(token_data.token)
    except AuthError as e:
        raise to_http_exception(e)
    return TokenValidationResponse(valid=True, email=str(email))


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
    summary="Get the authenticated user",
)
async def read_current_user(email: Email = Depends(get_current_user_email)):
    """Return the owner of the presented session token."""
    return CurrentUserResponse(email=str(email))
