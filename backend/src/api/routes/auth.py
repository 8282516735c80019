"""Authentication routes.

- POST /auth/login: Verify admin credentials and get a JWT token
- GET /auth/me: Who the current token belongs to
"""
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_admin
from src.lib.db import get_db
from src.models.admins import Admin
from src.services.auth_service import AuthService


router = APIRouter(prefix="/auth", tags=["Authentication"])


# Request/Response Models
class LoginRequest(BaseModel):
    """Login payload."""
    username: str = Field(..., min_length=1, max_length=50, examples=["frontdesk"])
    password: str = Field(..., min_length=1, max_length=128)


class LoginResponse(BaseModel):
    """Login response with JWT token."""
    token: str = Field(..., description="JWT access token")
    admin_id: str = Field(..., description="Admin UUID")
    username: str = Field(..., description="Admin username")


class AdminResponse(BaseModel):
    admin_id: str
    username: str


# Dependency to get AuthService
def get_auth_service(
    db: Session = Depends(get_db)
) -> AuthService:
    """Get AuthService instance with database session."""
    return AuthService(db)


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Log in",
    description="Verify admin credentials and receive a JWT access token"
)
def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Log in with username and password.

    Raises:
        401: Invalid credentials
        429: Too many attempts for this username
    """
    result = auth_service.login(request.username, request.password)
    return LoginResponse(**result)


@router.get("/me", response_model=AdminResponse, summary="Current admin")
def me(admin: Admin = Depends(get_current_admin)):
    return AdminResponse(admin_id=str(admin.id), username=admin.username)
