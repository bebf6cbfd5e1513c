from fastapi import APIRouter, Depends
from app.database.supabase_client import get_service_supabase
from app.modules.jobs.schemas import JobCreate, JobUpdate, JobResponse, Priority, Status
from app.modules.jobs.service import JobService
from app.core.dependencies import get_current_user
from app.core.policy import Caller
from app.storage.object_store import ObjectStore, get_object_store
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/jobs", tags=["jobs"])


def get_job_service(
    supabase: Client = Depends(get_service_supabase),
    object_store: ObjectStore = Depends(get_object_store)
) -> JobService:
    return JobService(supabase, object_store)


@router.get("", response_model=List[JobResponse])
async def list_jobs(
    status: Optional[Status] = None,
    priority: Optional[Priority] = None,
    created_by: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    caller: Caller = Depends(get_current_user),
    service: JobService = Depends(get_job_service)
):
    """List jobs, optionally filtered by status, priority or creator"""
    return service.list_jobs(caller, status=status, priority=priority, created_by=created_by, limit=limit, offset=offset)


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(
    job_data: JobCreate,
    caller: Caller = Depends(get_current_user),
    service: JobService = Depends(get_job_service)
):
    """Create a new job"""
    return service.create_job(caller, job_data)


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: str,
    caller: Caller = Depends(get_current_user),
    service: JobService = Depends(get_job_service)
):
    """Get job by ID"""
    return service.get_job(caller, job_id)


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: str,
    job_data: JobUpdate,
    caller: Caller = Depends(get_current_user),
    service: JobService = Depends(get_job_service)
):
    """Update job (creator only)"""
    return service.update_job(caller, job_id, job_data)


@router.delete("/{job_id}", status_code=204)
async def delete_job(
    job_id: str,
    caller: Caller = Depends(get_current_user),
    service: JobService = Depends(get_job_service)
):
    """Delete job with all its files (creator only)"""
    service.delete_job(caller, job_id)
    return None
