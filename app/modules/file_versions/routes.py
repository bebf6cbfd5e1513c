from fastapi import APIRouter, Depends, File, Form, UploadFile
from app.config import settings
from app.database.supabase_client import get_service_supabase
from app.modules.file_versions.schemas import FileVersionResponse
from app.modules.file_versions.service import FileVersionService
from app.modules.job_files.routes import attachment_response
from app.core.dependencies import get_current_user
from app.core.policy import Caller
from app.storage.object_store import ObjectStore, get_object_store
from supabase import Client
from typing import List, Optional
import mimetypes
import posixpath

router = APIRouter(tags=["file_versions"])


def get_file_version_service(
    supabase: Client = Depends(get_service_supabase),
    object_store: ObjectStore = Depends(get_object_store)
) -> FileVersionService:
    return FileVersionService(supabase, object_store, settings.max_upload_size_bytes)


@router.get("/files/{file_id}/versions", response_model=List[FileVersionResponse])
async def list_versions(
    file_id: str,
    caller: Caller = Depends(get_current_user),
    service: FileVersionService = Depends(get_file_version_service)
):
    """Version history of a file, newest first"""
    return service.list_versions(caller, file_id)


@router.post("/files/{file_id}/versions", response_model=FileVersionResponse, status_code=201)
async def create_version(
    file_id: str,
    file: UploadFile = File(...),
    changelog: Optional[str] = Form(None),
    caller: Caller = Depends(get_current_user),
    service: FileVersionService = Depends(get_file_version_service)
):
    """Upload a new version of a file with an optional changelog"""
    return await service.upload_version(caller, file_id, file, changelog)


@router.get("/versions/{version_id}/download")
async def download_version(
    version_id: str,
    caller: Caller = Depends(get_current_user),
    service: FileVersionService = Depends(get_file_version_service)
):
    """Download the content of a specific version"""
    record, content = service.download_version(caller, version_id)
    file_name = posixpath.basename(record.file_path)
    media_type = mimetypes.guess_type(file_name)[0] or "application/octet-stream"
    return attachment_response(content, media_type, file_name)
