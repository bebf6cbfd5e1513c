import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Set

from supabase import Client

from app.core.errors import translate_api_error
from app.modules.maintenance.schemas import ReconcileReport
from app.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

# Tables whose file_path column references a blob
REFERENCING_TABLES = ("job_files", "file_versions")


class OrphanReconciler:
    """Removes blobs that no metadata row points at.

    Blobs younger than the grace period are skipped: an upload writes the blob
    before its row, so a fresh blob without a row may still be in flight.
    """

    _PAGE_SIZE = 1000

    def __init__(self, supabase: Client, object_store: ObjectStore, grace_period_seconds: int = 3600):
        self.supabase = supabase
        self.object_store = object_store
        self.grace_period = timedelta(seconds=grace_period_seconds)

    def referenced_paths(self) -> Set[str]:
        paths: Set[str] = set()
        for table in REFERENCING_TABLES:
            # keyset pages: rows deleted between pages cannot shift later rows out of view
            last_id = None
            while True:
                query = self.supabase.table(table).select("id,file_path").order("id").limit(self._PAGE_SIZE)
                if last_id is not None:
                    query = query.gt("id", last_id)
                try:
                    result = query.execute()
                except Exception as e:
                    raise translate_api_error(e, f"select {table}.file_path")
                rows = result.data or []
                paths.update(row["file_path"] for row in rows if row.get("file_path"))
                if len(rows) < self._PAGE_SIZE:
                    break
                last_id = rows[-1]["id"]
        return paths

    def reconcile(self, dry_run: bool = False, now: Optional[datetime] = None) -> ReconcileReport:
        now = now or datetime.now(timezone.utc)
        cutoff = now - self.grace_period
        # blobs first: a row written after this listing cannot make a listed blob an orphan
        blobs = self.object_store.list_all()
        referenced = self.referenced_paths()

        orphans: List[str] = []
        for blob in blobs:
            if blob.path in referenced:
                continue
            created = blob.created_datetime()
            if created is None or created > cutoff:
                continue
            orphans.append(blob.path)

        removed: List[str] = []
        failed: List[str] = []
        if orphans and not dry_run:
            for path in orphans:
                if self.object_store.remove_system([path]):
                    removed.append(path)
                else:
                    failed.append(path)

        report = ReconcileReport(
            scanned=len(blobs),
            orphaned=orphans,
            removed=removed,
            failed=failed,
            dry_run=dry_run,
        )
        logger.info(
            f"Orphan reconciliation: scanned={report.scanned} orphaned={len(orphans)} "
            f"removed={len(removed)} failed={len(failed)} dry_run={dry_run}"
        )
        return report


def run_reconciliation() -> ReconcileReport:
    from app.config import settings
    from app.database.supabase_client import get_service_supabase
    from app.storage.object_store import get_object_store
    reconciler = OrphanReconciler(
        get_service_supabase(), get_object_store(), settings.orphan_grace_period_seconds
    )
    return reconciler.reconcile()


async def reconcile_loop(interval_seconds: int):
    """Background task that periodically removes orphaned blobs"""
    while True:
        try:
            await asyncio.to_thread(run_reconciliation)
        except Exception as e:
            logger.error(f"Error in orphan reconciliation loop: {str(e)}")

        await asyncio.sleep(interval_seconds)
