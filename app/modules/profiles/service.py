from supabase import Client
from app.config.policies_config import ADMIN_ROLE, DEFAULT_ROLE
from app.core.errors import ConflictError
from app.core.policy import Caller, PolicyEngine
from app.database.resource_store import ResourceStore, utcnow_iso
from app.modules.profiles.schemas import ProfileUpdate, ProfileResponse
from typing import Any, Dict, Iterable, List, Optional
import logging

logger = logging.getLogger(__name__)


def role_for_email(email: Optional[str], admin_emails: Iterable[str]) -> str:
    """Role assigned once, when the profile is created."""
    allowlist = {e.strip().lower() for e in admin_emails if e and e.strip()}
    if email and email.strip().lower() in allowlist:
        return ADMIN_ROLE
    return DEFAULT_ROLE


class ProfileDirectory:
    def __init__(self, supabase: Client, admin_emails: Optional[List[str]] = None,
                 policy: Optional[PolicyEngine] = None):
        self.store = ResourceStore(supabase, "profiles", policy)
        self.admin_emails = list(admin_emails or [])

    def bootstrap(self, identity: Dict[str, Any], admin_emails: Iterable[str]) -> ProfileResponse:
        """Create the profile for a newly seen identity.

        The insert is keyed on the identity id, so when two first logins race
        the loser hits the primary key and gets the winner's row back.
        """
        email = identity.get("email") or ""
        metadata = identity.get("user_metadata") or {}
        row = {
            "id": identity["id"],
            "email": email,
            "full_name": metadata.get("full_name") or email,
            "role": role_for_email(email, admin_emails),
        }
        try:
            created = self.store.insert_system(row)
            logger.info(f"Created profile {created['id']} with role {created['role']}")
            return ProfileResponse(**created)
        except ConflictError:
            existing = self.store.fetch_system(identity["id"])
            if existing is None:
                raise
            logger.info(f"Profile {identity['id']} already bootstrapped")
            return ProfileResponse(**existing)

    def ensure_profile(self, identity: Dict[str, Any]) -> ProfileResponse:
        existing = self.store.fetch_system(identity["id"])
        if existing is not None:
            return ProfileResponse(**existing)
        return self.bootstrap(identity, self.admin_emails)

    def get_profile(self, caller: Caller, profile_id: str) -> ProfileResponse:
        return ProfileResponse(**self.store.get(caller, profile_id))

    def list_profiles(
        self,
        caller: Caller,
        role: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[ProfileResponse]:
        """List profiles, newest first, optionally filtered by role and a name/email search"""
        eq = {"role": role} if role else None
        if not search:
            rows = self.store.select(caller, eq=eq, limit=limit, offset=offset)
            return [ProfileResponse(**row) for row in rows]
        needle = search.strip().lower()
        rows = [
            row for row in self.store.select(caller, eq=eq)
            if needle in (row.get("full_name") or "").lower() or needle in (row.get("email") or "").lower()
        ]
        return [ProfileResponse(**row) for row in rows[offset:offset + limit]]

    def update_profile(self, caller: Caller, profile_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Name changes by the owner, role changes by an admin"""
        patch = {}
        if profile_data.full_name is not None:
            patch["full_name"] = profile_data.full_name.strip()
        if profile_data.role is not None:
            patch["role"] = profile_data.role
        row = self.store.update(caller, profile_id, patch, extra={"updated_at": utcnow_iso()})
        if "role" in patch:
            logger.info(f"Profile {profile_id} role set to {patch['role']} by {caller.id}")
        return ProfileResponse(**row)
