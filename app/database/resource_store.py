"""
Policy-guarded table access.

ResourceStore is the storage boundary for resource tables: each call loads the
candidate row, asks the PolicyEngine, and only then runs the PostgREST query.
Writes are additionally filtered on the owner column so the check still holds
at the moment the statement executes.
"""

from supabase import Client
from fastapi import HTTPException
from postgrest.exceptions import APIError
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from app.core.errors import NotFoundError, ValidationFailedError, translate_api_error
from app.core.policy import Caller, PolicyEngine, get_policy_engine

logger = logging.getLogger(__name__)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ResourceStore:
    def __init__(self, supabase: Client, table: str, policy: Optional[PolicyEngine] = None):
        self.supabase = supabase
        self.table = table
        self.policy = policy or get_policy_engine()
        self.owner_field = self.policy.owner_field(table)

    def _run(self, action: str, fn):
        try:
            return fn()
        except HTTPException:
            raise
        except Exception as e:
            raise translate_api_error(e, f"{action} {self.table}")

    def _fetch_row(self, row_id: str) -> Optional[Dict[str, Any]]:
        try:
            result = self.supabase.table(self.table).select("*").eq("id", row_id).limit(1).execute()
        except APIError as e:
            # 22P02: malformed id; no row can have it
            if e.code == "22P02":
                logger.debug(f"Malformed {self.table} id {row_id!r}: {e.message}")
                return None
            raise translate_api_error(e, f"select {self.table}")
        except HTTPException:
            raise
        except Exception as e:
            raise translate_api_error(e, f"select {self.table}")
        return result.data[0] if result.data else None

    def select(
        self,
        caller: Optional[Caller],
        eq: Optional[Dict[str, Any]] = None,
        in_: Optional[Dict[str, List[Any]]] = None,
        gte: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = "created_at",
        desc: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Rows of this table the caller may see."""
        self.policy.require_caller(caller)

        def query():
            q = self.supabase.table(self.table).select("*")
            if self.policy.rule_for(self.table, "select") == "public_or_owner":
                q = q.or_(f"is_public.eq.true,{self.owner_field}.eq.{caller.id}")
            for column, value in (eq or {}).items():
                q = q.eq(column, value)
            for column, values in (in_ or {}).items():
                if not values:
                    return None
                q = q.in_(column, values)
            for column, value in (gte or {}).items():
                q = q.gte(column, value)
            if order_by:
                q = q.order(order_by, desc=desc)
            if limit is not None:
                q = q.limit(limit).offset(offset)
            return q.execute()

        result = self._run("select", query)
        if result is None or not result.data:
            return []
        return self.policy.filter_visible(self.table, caller, result.data)

    def fetch_system(self, row_id: str) -> Optional[Dict[str, Any]]:
        """Read a row on behalf of the backend itself, without a caller."""
        return self._fetch_row(row_id)

    def find(self, caller: Optional[Caller], row_id: str) -> Optional[Dict[str, Any]]:
        self.policy.require_caller(caller)
        row = self._fetch_row(row_id)
        if row is None or not self.policy.can_select(self.table, caller, row):
            return None
        return row

    def get(self, caller: Optional[Caller], row_id: str) -> Dict[str, Any]:
        row = self.find(caller, row_id)
        if row is None:
            raise NotFoundError(f"{self._label()} not found")
        return row

    def insert(self, caller: Optional[Caller], row: Dict[str, Any]) -> Dict[str, Any]:
        self.policy.authorize(self.table, "insert", caller)
        stamped = self.policy.stamp_owner(self.table, caller, row)
        return self._insert(stamped)

    def insert_system(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert on behalf of the backend itself (e.g. profile bootstrap)."""
        return self._insert(dict(row))

    def _insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        result = self._run("insert", lambda: self.supabase.table(self.table).insert(row).execute())
        if not result.data:
            raise translate_api_error(RuntimeError("insert returned no rows"), f"insert {self.table}")
        return result.data[0]

    def update(
        self,
        caller: Optional[Caller],
        row_id: str,
        patch: Dict[str, Any],
        extra: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Apply patch after authorizing it; extra columns (timestamps) are not policy-checked."""
        self.policy.require_caller(caller)
        if not patch:
            raise ValidationFailedError("Nothing to update")
        row = self._fetch_row(row_id)
        if row is None:
            raise NotFoundError(f"{self._label()} not found")
        self.policy.authorize(self.table, "update", caller, row, patch)
        values = {**patch, **(extra or {})}

        def query():
            q = self.supabase.table(self.table).update(values).eq("id", row_id)
            if self.policy.rule_for(self.table, "update") == "owner":
                q = q.eq(self.owner_field, caller.id)
            return q.execute()

        result = self._run("update", query)
        if not result.data:
            raise NotFoundError(f"{self._label()} not found")
        return result.data[0]

    def delete(self, caller: Optional[Caller], row_id: str) -> Dict[str, Any]:
        self.policy.require_caller(caller)
        row = self._fetch_row(row_id)
        if row is None:
            raise NotFoundError(f"{self._label()} not found")
        self.policy.authorize(self.table, "delete", caller, row)

        def query():
            q = self.supabase.table(self.table).delete().eq("id", row_id)
            if self.policy.rule_for(self.table, "delete") == "owner":
                q = q.eq(self.owner_field, caller.id)
            return q.execute()

        result = self._run("delete", query)
        if not result.data:
            raise NotFoundError(f"{self._label()} not found")
        return result.data[0]

    def _label(self) -> str:
        return self.table.rstrip("s").replace("_", " ").capitalize()
