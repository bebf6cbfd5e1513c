from supabase import Client
from app.core.policy import Caller, PolicyEngine, get_policy_engine
from app.database.resource_store import ResourceStore, utcnow_iso
from app.modules.jobs.schemas import JobCreate, JobUpdate, JobResponse
from app.storage.object_store import ObjectStore
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)


class JobService:
    def __init__(self, supabase: Client, object_store: ObjectStore, policy: Optional[PolicyEngine] = None):
        self.policy = policy or get_policy_engine()
        self.jobs = ResourceStore(supabase, "jobs", self.policy)
        self.files = ResourceStore(supabase, "job_files", self.policy)
        self.versions = ResourceStore(supabase, "file_versions", self.policy)
        self.object_store = object_store

    def create_job(self, caller: Caller, job_data: JobCreate) -> JobResponse:
        """Create a job owned by the caller"""
        row = self.jobs.insert(caller, job_data.model_dump())
        logger.info(f"Job {row['id']} created by {caller.id}")
        return JobResponse(**row)

    def get_job(self, caller: Caller, job_id: str) -> JobResponse:
        return JobResponse(**self.jobs.get(caller, job_id))

    def list_jobs(
        self,
        caller: Caller,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        created_by: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[JobResponse]:
        """List jobs, newest first"""
        eq = {}
        if status:
            eq["status"] = status
        if priority:
            eq["priority"] = priority
        if created_by:
            eq["created_by"] = created_by
        rows = self.jobs.select(caller, eq=eq, limit=limit, offset=offset)
        return [JobResponse(**row) for row in rows]

    def update_job(self, caller: Caller, job_id: str, job_data: JobUpdate) -> JobResponse:
        """Update job; any status may follow any other"""
        patch = job_data.model_dump(exclude_none=True)
        row = self.jobs.update(caller, job_id, patch, extra={"updated_at": utcnow_iso()})
        return JobResponse(**row)

    def delete_job(self, caller: Caller, job_id: str) -> None:
        """Delete job, its files, comments and versions, then their blobs.

        Rows go in one statement through the foreign-key cascade; blobs are
        removed afterwards and any that fail are left to the orphan sweep.
        """
        job = self.jobs.get(caller, job_id)
        self.policy.authorize("jobs", "delete", caller, job)

        files = self.files.select(caller, eq={"job_id": job_id}, order_by=None)
        file_ids = [f["id"] for f in files]
        versions = self.versions.select(caller, in_={"file_id": file_ids}, order_by=None) if file_ids else []
        paths = [f["file_path"] for f in files] + [v["file_path"] for v in versions]

        self.jobs.delete(caller, job_id)
        logger.info(f"Job {job_id} deleted by {caller.id} ({len(files)} file(s), {len(versions)} version(s))")

        if paths and not self.object_store.remove_system(paths):
            logger.warning(f"Blobs of deleted job {job_id} left for orphan reconciliation: {len(paths)}")
