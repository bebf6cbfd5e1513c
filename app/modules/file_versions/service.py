from supabase import Client
from fastapi import UploadFile
from app.core.errors import ValidationFailedError, translate_api_error
from app.core.policy import Caller, PolicyEngine, get_policy_engine
from app.database.resource_store import ResourceStore
from app.modules.file_versions.schemas import FileVersionResponse
from app.modules.job_files.service import DEFAULT_CONTENT_TYPE, file_extension
from app.storage.object_store import ObjectStore
from typing import List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


def build_version_path(owner_id: str, file_id: str, version_number: int, file_name: str) -> str:
    """{owner_id}/{file_id}/versions/{file_id}_v{n}.{ext}"""
    return f"{owner_id}/{file_id}/versions/{file_id}_v{version_number}.{file_extension(file_name)}"


class FileVersionService:
    def __init__(self, supabase: Client, object_store: ObjectStore, max_upload_size: int,
                 policy: Optional[PolicyEngine] = None):
        self.supabase = supabase
        self.policy = policy or get_policy_engine()
        self.files = ResourceStore(supabase, "job_files", self.policy)
        self.versions = ResourceStore(supabase, "file_versions", self.policy)
        self.object_store = object_store
        self.max_upload_size = max_upload_size

    def next_version_number(self, file_id: str) -> int:
        """Reserve the next number from the per-file counter kept by the database"""
        try:
            result = self.supabase.rpc("next_file_version", {"p_file_id": file_id}).execute()
        except Exception as e:
            raise translate_api_error(e, "next_file_version")
        return int(result.data)

    def create_version(self, caller: Caller, file_id: str, file_name: str,
                       content_type: Optional[str], content: bytes,
                       changelog: Optional[str] = None) -> FileVersionResponse:
        """Store a new version blob and its record.

        A reserved number whose upload fails is never reused, so numbers stay
        unique and increasing but may have gaps.
        """
        self.policy.authorize("file_versions", "insert", caller)
        self.files.get(caller, file_id)
        if not content:
            raise ValidationFailedError("File is empty")
        if len(content) > self.max_upload_size:
            raise ValidationFailedError(f"File exceeds {self.max_upload_size} bytes")

        version_number = self.next_version_number(file_id)
        file_path = build_version_path(caller.id, file_id, version_number, file_name)
        self.object_store.put(caller, file_path, content, content_type or DEFAULT_CONTENT_TYPE)
        try:
            row = self.versions.insert(caller, {
                "file_id": file_id,
                "version_number": version_number,
                "file_path": file_path,
                "file_size": len(content),
                "changelog": (changelog or "").strip() or None,
            })
        except Exception:
            if not self.object_store.remove_system([file_path]):
                logger.warning(f"Could not remove blob {file_path} after failed insert; left for orphan reconciliation")
            raise
        logger.info(f"Version {version_number} of file {file_id} created by {caller.id}")
        return FileVersionResponse(**row)

    async def upload_version(self, caller: Caller, file_id: str, file: UploadFile,
                             changelog: Optional[str] = None) -> FileVersionResponse:
        try:
            content = await file.read()
        finally:
            await file.close()
        return self.create_version(caller, file_id, file.filename or "", file.content_type, content, changelog)

    def list_versions(self, caller: Caller, file_id: str) -> List[FileVersionResponse]:
        """Versions of a file, newest first"""
        self.files.get(caller, file_id)
        rows = self.versions.select(caller, eq={"file_id": file_id}, order_by="version_number", desc=True)
        return [FileVersionResponse(**row) for row in rows]

    def download_version(self, caller: Caller, version_id: str) -> Tuple[FileVersionResponse, bytes]:
        record = FileVersionResponse(**self.versions.get(caller, version_id))
        return record, self.object_store.get(caller, record.file_path)
