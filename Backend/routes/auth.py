"""
Authentication routes for user signup, login and token verification.
"""
from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from models.user import (
    UserCreate,
    UserLogin,
    AuthResponse,
    TokenData,
    TokenVerifyRequest,
    TokenVerifyResponse,
)
from services.auth_service import TokenService
from services.errors import MissingToken, ValidationError
from services.event_service import EventService
from services.user_service import UserService

auth_router = APIRouter(tags=["Authentication"])
security = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_event_service(request: Request) -> EventService:
    return request.app.state.event_service


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token_service: TokenService = Depends(get_token_service),
) -> TokenData:
    """
    Dependency to get the current authenticated user from the bearer token.

    Args:
        credentials: HTTP Bearer token from request header

    Returns:
        TokenData with the owner id and email

    Raises:
        MissingToken: No bearer token on the request (401)
        InvalidToken: Signature or payload rejected, or token expired (403)
    """
    if credentials is None or not credentials.credentials:
        raise MissingToken("Access token required")
    return token_service.verify(credentials.credentials)


@auth_router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(user_data: UserCreate, user_service: UserService = Depends(get_user_service)):
    """
    Register a new user.

    Returns:
        The created user (without password) and a bearer token
    """
    user, token = user_service.register(user_data)
    return AuthResponse(user=user, token=token)


@auth_router.post("/login", response_model=AuthResponse)
def login(user_data: UserLogin, user_service: UserService = Depends(get_user_service)):
    """
    Authenticate user and return a bearer token.
    """
    user, token = user_service.login(user_data.email, user_data.password)
    return AuthResponse(user=user, token=token)


@auth_router.post("/verify-token", response_model=TokenVerifyResponse)
def verify_token(payload: TokenVerifyRequest,
                 token_service: TokenService = Depends(get_token_service)):
    if not payload.token:
        raise ValidationError("Token is required")
    token_data = token_service.verify(payload.token)
    return TokenVerifyResponse(owner_id=token_data.owner_id, email=token_data.email)
