from supabase import Client
from fastapi import HTTPException, UploadFile
from app.core.errors import ValidationFailedError
from app.core.policy import Caller, PolicyEngine, get_policy_engine
from app.database.resource_store import ResourceStore
from app.modules.job_files.schemas import (
    JobFileResponse, JobFileUploadResponse, FileUploadFailure
)
from app.storage.object_store import ObjectStore
from typing import Any, Dict, List, Optional, Tuple
import os
import time
import uuid
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
PRESENTATION_EXTENSIONS = {"ppt", "pptx"}


def file_extension(file_name: str) -> str:
    ext = os.path.splitext(file_name or "")[1].lstrip(".").lower()
    return ext or "bin"


def build_file_path(owner_id: str, job_id: str, file_name: str) -> str:
    """{owner_id}/{job_id}/{timestamp}-{random}.{ext}"""
    stamp = int(time.time() * 1000)
    return f"{owner_id}/{job_id}/{stamp}-{uuid.uuid4().hex[:12]}.{file_extension(file_name)}"


def is_presentation_file(file_name: str, content_type: str) -> bool:
    return (
        "presentation" in (file_name or "").lower()
        or "presentation" in (content_type or "").lower()
        or file_extension(file_name) in PRESENTATION_EXTENSIONS
    )


class JobFileService:
    def __init__(self, supabase: Client, object_store: ObjectStore, max_upload_size: int,
                 policy: Optional[PolicyEngine] = None):
        self.policy = policy or get_policy_engine()
        self.jobs = ResourceStore(supabase, "jobs", self.policy)
        self.files = ResourceStore(supabase, "job_files", self.policy)
        self.versions = ResourceStore(supabase, "file_versions", self.policy)
        self.object_store = object_store
        self.max_upload_size = max_upload_size

    def store_file(self, caller: Caller, job_id: str, file_name: str,
                   content_type: Optional[str], content: bytes) -> JobFileResponse:
        """Upload one blob and record its metadata; the blob is removed again if the record fails"""
        if not file_name:
            raise ValidationFailedError("File name is required")
        if not content:
            raise ValidationFailedError("File is empty")
        if len(content) > self.max_upload_size:
            raise ValidationFailedError(f"File exceeds {self.max_upload_size} bytes")

        content_type = content_type or DEFAULT_CONTENT_TYPE
        file_path = build_file_path(caller.id, job_id, file_name)
        self.object_store.put(caller, file_path, content, content_type)
        try:
            row = self.files.insert(caller, {
                "job_id": job_id,
                "file_name": file_name,
                "file_type": content_type,
                "file_size": len(content),
                "file_path": file_path,
                "is_presentation": is_presentation_file(file_name, content_type),
            })
        except Exception:
            if not self.object_store.remove_system([file_path]):
                logger.warning(f"Could not remove blob {file_path} after failed insert; left for orphan reconciliation")
            raise
        logger.info(f"File {row['id']} uploaded to job {job_id} by {caller.id}")
        return JobFileResponse(**row)

    async def upload_files(self, caller: Caller, job_id: str, files: List[UploadFile]) -> JobFileUploadResponse:
        """Upload a batch; each file succeeds or fails on its own"""
        self.jobs.get(caller, job_id)
        if not files:
            raise ValidationFailedError("No files provided")

        uploaded: List[JobFileResponse] = []
        failed: List[FileUploadFailure] = []
        for file in files:
            name = file.filename or ""
            try:
                content = await file.read()
                uploaded.append(self.store_file(caller, job_id, name, file.content_type, content))
            except HTTPException as e:
                logger.warning(f"Upload of '{name}' to job {job_id} failed: {e.detail}")
                failed.append(FileUploadFailure(file_name=name, detail=str(e.detail)))
            finally:
                await file.close()

        return JobFileUploadResponse(
            job_id=job_id,
            uploaded=uploaded,
            failed=failed,
            message=f"{len(uploaded)} file(s) uploaded, {len(failed)} failed"
        )

    def list_files(self, caller: Caller, job_id: str) -> List[JobFileResponse]:
        """Files of a job, newest first"""
        self.jobs.get(caller, job_id)
        rows = self.files.select(caller, eq={"job_id": job_id})
        return [JobFileResponse(**row) for row in rows]

    def get_file(self, caller: Caller, file_id: str) -> JobFileResponse:
        return JobFileResponse(**self.files.get(caller, file_id))

    def download_file(self, caller: Caller, file_id: str) -> Tuple[JobFileResponse, bytes]:
        record = self.get_file(caller, file_id)
        return record, self.object_store.get(caller, record.file_path)

    def set_presentation(self, caller: Caller, file_id: str, value: Optional[bool] = None) -> JobFileResponse:
        """Mark or unmark a file as presentation; no value toggles it"""
        if value is None:
            value = not self.files.get(caller, file_id).get("is_presentation", False)
        row = self.files.update(caller, file_id, {"is_presentation": value})
        return JobFileResponse(**row)

    def delete_file(self, caller: Caller, file_id: str) -> None:
        """Delete metadata first, then blobs; blob failures are left to the orphan sweep"""
        row = self.files.get(caller, file_id)
        self.policy.authorize("job_files", "delete", caller, row)
        versions: List[Dict[str, Any]] = self.versions.select(caller, eq={"file_id": file_id}, order_by=None)

        self.files.delete(caller, file_id)
        logger.info(f"File {file_id} deleted by {caller.id}")

        try:
            self.object_store.remove(caller, [row["file_path"]])
        except HTTPException as e:
            logger.warning(f"Blob {row['file_path']} left for orphan reconciliation: {e.detail}")
        version_paths = [v["file_path"] for v in versions]
        if version_paths and not self.object_store.remove_system(version_paths):
            logger.warning(f"Version blobs of file {file_id} left for orphan reconciliation")
