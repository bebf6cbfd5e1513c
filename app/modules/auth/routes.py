from fastapi import APIRouter, Depends
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
)
from app.modules.auth.service import AuthService
from app.modules.profiles.service import ProfileDirectory
from app.core.dependencies import (
    get_auth_service, get_current_token, get_current_user, get_profile_directory
)
from app.core.policy import Caller
from app.config.policies_config import get_policy_matrix
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
    directory: ProfileDirectory = Depends(get_profile_directory)
):
    """Register a new user and create its profile"""
    identity = service.register(register_data)
    profile = directory.ensure_profile(identity)
    return RegisterResponse(
        user_id=profile.id,
        email=profile.email,
        role=profile.role,
        message="User registered successfully"
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    directory: ProfileDirectory = Depends(get_profile_directory)
):
    """Login and get access token"""
    access_token, identity = service.login(login_data)
    profile = directory.ensure_profile(identity)
    return TokenResponse(
        access_token=access_token,
        user_id=profile.id,
        email=profile.email,
        role=profile.role
    )


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me")
async def get_me(
    caller: Caller = Depends(get_current_user),
    directory: ProfileDirectory = Depends(get_profile_directory)
) -> Dict:
    """Current user, its profile and the policy table (for frontend UI gating)."""
    profile = directory.get_profile(caller, caller.id)
    return {
        "id": caller.id,
        "email": caller.email,
        "role": caller.role,
        "profile": profile.model_dump(mode="json"),
        **get_policy_matrix()
    }
