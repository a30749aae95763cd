"""Registration, login and first-run superadmin setup."""

from typing import Annotated

from fastapi import APIRouter, Depends

from hospital_meal_service.handlers.service_dependencies import get_auth_service
from hospital_meal_service.models.base import ApiModel
from hospital_meal_service.models.user_models import (
    LoginRequest,
    RegisterRequest,
    SuperadminSetupRequest,
    User,
)
from hospital_meal_service.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])

Auth = Annotated[AuthService, Depends(get_auth_service)]


class CreatedResponse(ApiModel):
    """Acknowledgement for account creation. No token is issued."""

    message: str
    success: bool = True


class LoginResponse(ApiModel):
    message: str
    token: str
    user: User


class SuperadminExistsResponse(ApiModel):
    exists: bool


@router.post("/register", response_model=CreatedResponse, status_code=201)
async def register(body: RegisterRequest, auth: Auth) -> CreatedResponse:
    """Self-service patient registration."""
    await auth.register(body)
    return CreatedResponse(message="Registration successful! Please login with your credentials.")


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, auth: Auth) -> LoginResponse:
    """Exchange email and password for a bearer token."""
    result = await auth.login(body)
    return LoginResponse(message="Login successful", token=result.token, user=result.user)


@router.get("/check-superadmin", response_model=SuperadminExistsResponse)
async def check_superadmin(auth: Auth) -> SuperadminExistsResponse:
    return SuperadminExistsResponse(exists=await auth.superadmin_exists())


@router.post("/setup-superadmin", response_model=CreatedResponse, status_code=201)
async def setup_superadmin(body: SuperadminSetupRequest, auth: Auth) -> CreatedResponse:
    """Create the first superadmin account."""
    await auth.setup_superadmin(body)
    return CreatedResponse(message="Superadmin created successfully")
