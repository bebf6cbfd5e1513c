from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response
from app.config import settings
from app.database.supabase_client import get_service_supabase
from app.modules.job_files.schemas import JobFileResponse, JobFileUploadResponse, PresentationUpdate
from app.modules.job_files.service import JobFileService
from app.core.dependencies import get_current_user
from app.core.policy import Caller
from app.storage.object_store import ObjectStore, get_object_store
from supabase import Client
from typing import List
from urllib.parse import quote

router = APIRouter(tags=["job_files"])


def get_job_file_service(
    supabase: Client = Depends(get_service_supabase),
    object_store: ObjectStore = Depends(get_object_store)
) -> JobFileService:
    return JobFileService(supabase, object_store, settings.max_upload_size_bytes)


def attachment_response(content: bytes, media_type: str, file_name: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(file_name)}"}
    )


@router.get("/jobs/{job_id}/files", response_model=List[JobFileResponse])
async def list_job_files(
    job_id: str,
    caller: Caller = Depends(get_current_user),
    service: JobFileService = Depends(get_job_file_service)
):
    """List files of a job, newest first"""
    return service.list_files(caller, job_id)


@router.post("/jobs/{job_id}/files", response_model=JobFileUploadResponse, status_code=201)
async def upload_job_files(
    job_id: str,
    files: List[UploadFile] = File(...),
    caller: Caller = Depends(get_current_user),
    service: JobFileService = Depends(get_job_file_service)
):
    """
    Upload one or more files to a job.
    Each file is stored and recorded independently; failures are listed
    in the response without undoing the files that succeeded.
    """
    return await service.upload_files(caller, job_id, files)


@router.get("/files/{file_id}", response_model=JobFileResponse)
async def get_job_file(
    file_id: str,
    caller: Caller = Depends(get_current_user),
    service: JobFileService = Depends(get_job_file_service)
):
    """Get file metadata by ID"""
    return service.get_file(caller, file_id)


@router.get("/files/{file_id}/download")
async def download_job_file(
    file_id: str,
    caller: Caller = Depends(get_current_user),
    service: JobFileService = Depends(get_job_file_service)
):
    """Download file content"""
    record, content = service.download_file(caller, file_id)
    return attachment_response(content, record.file_type, record.file_name)


@router.put("/files/{file_id}/presentation", response_model=JobFileResponse)
async def set_presentation(
    file_id: str,
    body: PresentationUpdate,
    caller: Caller = Depends(get_current_user),
    service: JobFileService = Depends(get_job_file_service)
):
    """Mark/unmark a file as presentation (uploader only)"""
    return service.set_presentation(caller, file_id, body.is_presentation)


@router.delete("/files/{file_id}", status_code=204)
async def delete_job_file(
    file_id: str,
    caller: Caller = Depends(get_current_user),
    service: JobFileService = Depends(get_job_file_service)
):
    """Delete file (uploader only)"""
    service.delete_file(caller, file_id)
    return None
