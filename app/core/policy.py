"""
Policy engine evaluated on every resource and blob operation.

The rules live in app.config.policies_config; this module turns each rule name
into a predicate over (caller, row, patch) and raises the matching error when a
predicate fails.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional
import logging

from app.config.policies_config import (
    ADMIN_ROLE, DEFAULT_ROLE, OPERATIONS, PROFILE_FIELD_RULES, RESOURCES
)
from app.core.errors import ForbiddenError, NotFoundError, UnauthenticatedError

logger = logging.getLogger(__name__)

OBJECTS = "objects"


@dataclass(frozen=True)
class Caller:
    """An authenticated identity plus the role recorded on its profile."""
    id: str
    email: str
    role: str = DEFAULT_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def path_owner(path: str) -> Optional[str]:
    """First segment of a blob path, which is the uploader identity."""
    segments = [s for s in (path or "").split("/") if s]
    return segments[0] if segments else None


class PolicyEngine:
    def __init__(self, resources: Optional[Dict[str, Dict[str, Any]]] = None,
                 profile_field_rules: Optional[Dict[str, str]] = None):
        self.resources = resources or RESOURCES
        self.profile_field_rules = profile_field_rules or PROFILE_FIELD_RULES
        self._predicates: Dict[str, Callable[..., bool]] = {
            "authenticated": self._authenticated,
            "owner": self._owner,
            "public_or_owner": self._public_or_owner,
            "path_owner": self._path_owner,
            "profile_fields": self._profile_fields,
            "system": self._never,
            "deny": self._never,
        }

    def rule_for(self, table: str, operation: str) -> str:
        if table not in self.resources:
            raise ValueError(f"No policy declared for table '{table}'")
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown operation '{operation}'")
        return self.resources[table][operation]

    def owner_field(self, table: str) -> Optional[str]:
        return self.resources[table]["owner_field"]

    def is_allowed(
        self,
        table: str,
        operation: str,
        caller: Optional[Caller],
        row: Optional[Dict[str, Any]] = None,
        patch: Optional[Dict[str, Any]] = None,
    ) -> bool:
        if caller is None:
            return False
        rule = self.rule_for(table, operation)
        return self._predicates[rule](table, caller, row or {}, patch or {})

    def can_select(self, table: str, caller: Optional[Caller], row: Dict[str, Any]) -> bool:
        return self.is_allowed(table, "select", caller, row)

    def filter_visible(self, table: str, caller: Optional[Caller],
                       rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [row for row in rows if self.can_select(table, caller, row)]

    def require_caller(self, caller: Optional[Caller]) -> Caller:
        if caller is None or not caller.id:
            raise UnauthenticatedError()
        return caller

    def authorize(
        self,
        table: str,
        operation: str,
        caller: Optional[Caller],
        row: Optional[Dict[str, Any]] = None,
        patch: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Raise unless caller may run operation on row.

        A row the caller cannot see is reported as NotFound so a denial never
        tells the caller that a hidden row exists.
        """
        self.require_caller(caller)
        if row is not None and operation != "select" and table != OBJECTS:
            if not self.can_select(table, caller, row):
                raise NotFoundError()
        if not self.is_allowed(table, operation, caller, row, patch):
            if operation == "select" and table != OBJECTS:
                raise NotFoundError()
            logger.info(f"Denied {operation} on {table} for caller {caller.id}")
            raise ForbiddenError()

    def stamp_owner(self, table: str, caller: Caller, row: Dict[str, Any]) -> Dict[str, Any]:
        """Force the owner column of a new row to the caller."""
        field = self.owner_field(table)
        stamped = dict(row)
        if field and field != "id":
            stamped[field] = caller.id
        return stamped

    # predicates

    def _authenticated(self, table, caller, row, patch) -> bool:
        return bool(caller.id)

    def _owner(self, table, caller, row, patch) -> bool:
        field = self.owner_field(table)
        owner = row.get(field) if field else None
        return owner is not None and str(owner) == str(caller.id)

    def _public_or_owner(self, table, caller, row, patch) -> bool:
        return bool(row.get("is_public")) or self._owner(table, caller, row, patch)

    def _path_owner(self, table, caller, row, patch) -> bool:
        return path_owner(row.get("path", "")) == str(caller.id)

    def _profile_fields(self, table, caller, row, patch) -> bool:
        if not patch:
            return False
        for field in patch:
            rule = self.profile_field_rules.get(field)
            if rule == "self":
                if str(row.get("id")) != str(caller.id):
                    return False
            elif rule == "admin":
                if not caller.is_admin:
                    return False
            else:
                return False
        return True

    def _never(self, table, caller, row, patch) -> bool:
        return False


policy_engine = PolicyEngine()


def get_policy_engine() -> PolicyEngine:
    return policy_engine
