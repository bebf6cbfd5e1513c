from fastapi import APIRouter, Depends
from app.config import settings
from app.database.supabase_client import get_service_supabase
from app.modules.maintenance.reconciliation import OrphanReconciler
from app.modules.maintenance.schemas import ReconcileReport
from app.core.dependencies import require_admin
from app.core.policy import Caller
from app.storage.object_store import ObjectStore, get_object_store
from supabase import Client
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


def get_orphan_reconciler(
    supabase: Client = Depends(get_service_supabase),
    object_store: ObjectStore = Depends(get_object_store)
) -> OrphanReconciler:
    return OrphanReconciler(supabase, object_store, settings.orphan_grace_period_seconds)


@router.post("/reconcile-orphans", response_model=ReconcileReport)
async def reconcile_orphans(
    dry_run: bool = False,
    caller: Caller = Depends(require_admin),
    reconciler: OrphanReconciler = Depends(get_orphan_reconciler)
):
    """Remove stored blobs no file or version row references (admin only)"""
    logger.info(f"Orphan reconciliation requested by {caller.id} (dry_run={dry_run})")
    return reconciler.reconcile(dry_run=dry_run)
