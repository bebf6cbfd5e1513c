from fastapi import APIRouter, Depends, Query
from app.config import settings
from app.database.supabase_client import get_service_supabase
from app.modules.activity.schemas import ActivityResponse
from app.modules.activity.service import ActivityService, MAX_WINDOW_DAYS
from app.core.dependencies import get_current_user
from app.core.policy import Caller
from supabase import Client
from typing import Optional

router = APIRouter(prefix="/activity", tags=["activity"])


def get_activity_service(supabase: Client = Depends(get_service_supabase)) -> ActivityService:
    return ActivityService(supabase, settings.activity_window_days)


@router.get("/me", response_model=ActivityResponse)
async def my_activity(
    days: Optional[int] = Query(None, ge=1, le=MAX_WINDOW_DAYS),
    caller: Caller = Depends(get_current_user),
    service: ActivityService = Depends(get_activity_service)
):
    """Daily activity of the current user"""
    return service.get_activity(caller, caller.id, days)


@router.get("/users/{user_id}", response_model=ActivityResponse)
async def user_activity(
    user_id: str,
    days: Optional[int] = Query(None, ge=1, le=MAX_WINDOW_DAYS),
    caller: Caller = Depends(get_current_user),
    service: ActivityService = Depends(get_activity_service)
):
    """Daily activity of any user"""
    return service.get_activity(caller, user_id, days)
