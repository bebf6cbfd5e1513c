from pydantic import BaseModel
from typing import List


class ReconcileReport(BaseModel):
    scanned: int
    orphaned: List[str]
    removed: List[str]
    failed: List[str]
    dry_run: bool = False
