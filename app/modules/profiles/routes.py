from fastapi import APIRouter, Depends
from app.modules.profiles.schemas import ProfileUpdate, ProfileResponse, Role
from app.modules.profiles.service import ProfileDirectory
from app.core.dependencies import get_current_user, get_profile_directory
from app.core.policy import Caller
from typing import List, Optional

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("", response_model=List[ProfileResponse])
async def list_profiles(
    role: Optional[Role] = None,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    caller: Caller = Depends(get_current_user),
    directory: ProfileDirectory = Depends(get_profile_directory)
):
    """List profiles, optionally filtered by role or a name/email search"""
    return directory.list_profiles(caller, role=role, search=search, limit=limit, offset=offset)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    caller: Caller = Depends(get_current_user),
    directory: ProfileDirectory = Depends(get_profile_directory)
):
    """Profile of the current user"""
    return directory.get_profile(caller, caller.id)


@router.get("/{profile_id}", response_model=ProfileResponse)
async def get_profile(
    profile_id: str,
    caller: Caller = Depends(get_current_user),
    directory: ProfileDirectory = Depends(get_profile_directory)
):
    """Get profile by ID"""
    return directory.get_profile(caller, profile_id)


@router.put("/{profile_id}", response_model=ProfileResponse)
async def update_profile(
    profile_id: str,
    profile_data: ProfileUpdate,
    caller: Caller = Depends(get_current_user),
    directory: ProfileDirectory = Depends(get_profile_directory)
):
    """Update a profile: full_name by its owner, role by an admin"""
    return directory.update_profile(caller, profile_id, profile_data)
