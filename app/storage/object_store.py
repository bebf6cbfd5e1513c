"""
Path-keyed blob storage gated by the "objects" policy.

Paths always start with the uploader's identity id:
    {owner_id}/{job_id}/{timestamp}-{random}.{ext}
    {owner_id}/{file_id}/versions/{file_id}_v{n}.{ext}
so the policy can compare the first segment to the caller without a metadata
lookup.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Union
import logging

from fastapi import HTTPException
from supabase import Client

from app.core.errors import ConflictError, NotFoundError, TransientIOError
from app.core.policy import Caller, OBJECTS, PolicyEngine, get_policy_engine

logger = logging.getLogger(__name__)


@dataclass
class BlobInfo:
    path: str
    created_at: Optional[Union[datetime, str]] = None

    def created_datetime(self) -> Optional[datetime]:
        value = self.created_at
        if value is None:
            return None
        if isinstance(value, str):
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class SupabaseStorage:
    """Blob backend on a Supabase Storage bucket."""

    _PAGE_SIZE = 1000

    def __init__(self, supabase: Client, bucket: str):
        self.supabase = supabase
        self.bucket_name = bucket

    def _bucket(self):
        return self.supabase.storage.from_(self.bucket_name)

    def upload_file(self, file_content: bytes, key: str, content_type: str = "application/octet-stream") -> str:
        try:
            self._bucket().upload(key, file_content, file_options={"content-type": content_type})
            return key
        except Exception as e:
            if _looks_like(e, "already exists", "duplicate"):
                raise ConflictError("A file already exists at this path")
            logger.error(f"Supabase Storage upload failed: {str(e)}")
            raise TransientIOError("Failed to upload file")

    def download_file(self, key: str) -> bytes:
        try:
            return self._bucket().download(key)
        except Exception as e:
            if _looks_like(e, "not found", "404"):
                raise NotFoundError("File not found")
            logger.error(f"Supabase Storage download failed: {str(e)}")
            raise TransientIOError("Failed to download file")

    def delete_files(self, keys: List[str]) -> bool:
        if not keys:
            return True
        try:
            self._bucket().remove(keys)
            return True
        except Exception as e:
            logger.error(f"Supabase Storage remove failed: {str(e)}")
            return False

    def list_files(self, prefix: str = "") -> List[BlobInfo]:
        """Walk the bucket; entries without an id are folders."""
        blobs = []
        offset = 0
        while True:
            try:
                entries = self._bucket().list(prefix, {"limit": self._PAGE_SIZE, "offset": offset})
            except Exception as e:
                logger.error(f"Supabase Storage list failed ({prefix or '/'}): {str(e)}")
                raise TransientIOError("Failed to list stored files")
            for entry in entries or []:
                path = f"{prefix}/{entry['name']}" if prefix else entry["name"]
                if entry.get("id") is None:
                    blobs.extend(self.list_files(path))
                else:
                    blobs.append(BlobInfo(path=path, created_at=entry.get("created_at")))
            if not entries or len(entries) < self._PAGE_SIZE:
                break
            offset += self._PAGE_SIZE
        return blobs


def _looks_like(error: Exception, *needles: str) -> bool:
    text = str(error).lower()
    return any(n in text for n in needles)


class ObjectStore:
    def __init__(self, backend, policy: Optional[PolicyEngine] = None):
        self.backend = backend
        self.policy = policy or get_policy_engine()

    def put(self, caller: Optional[Caller], path: str, data: bytes,
            content_type: str = "application/octet-stream") -> str:
        self.policy.authorize(OBJECTS, "insert", caller, {"path": path})
        stored = self.backend.upload_file(data, path, content_type)
        logger.info(f"Stored blob {path} ({len(data)} bytes)")
        return stored

    def get(self, caller: Optional[Caller], path: str) -> bytes:
        self.policy.authorize(OBJECTS, "select", caller, {"path": path})
        return self.backend.download_file(path)

    def remove(self, caller: Optional[Caller], paths: List[str]) -> None:
        for path in paths:
            self.policy.authorize(OBJECTS, "delete", caller, {"path": path})
        if not self.backend.delete_files(list(paths)):
            raise TransientIOError("Failed to remove stored files")
        logger.info(f"Removed {len(paths)} blob(s)")

    def remove_system(self, paths: List[str]) -> bool:
        """Remove blobs on behalf of the backend (cascades, compensation, sweeps)."""
        paths = [p for p in paths if p]
        if not paths:
            return True
        try:
            removed = self.backend.delete_files(paths)
        except HTTPException as e:
            logger.warning(f"System blob removal failed for {paths}: {e.detail}")
            return False
        if not removed:
            logger.warning(f"System blob removal failed for {paths}")
        return removed

    def list_all(self) -> List[BlobInfo]:
        return self.backend.list_files()


_object_store: Optional[ObjectStore] = None


def get_object_store() -> ObjectStore:
    global _object_store
    if _object_store is None:
        from app.config import settings
        from app.database.supabase_client import get_service_supabase
        backend = None
        if settings.s3_configured:
            try:
                from app.storage.s3_storage import S3Storage
                backend = S3Storage()
                logger.info("S3 storage initialized successfully")
            except Exception as e:
                logger.warning(f"S3 storage initialization failed ({str(e)}), will use Supabase Storage")
        if backend is None:
            backend = SupabaseStorage(get_service_supabase(), settings.storage_bucket)
        _object_store = ObjectStore(backend)
    return _object_store
