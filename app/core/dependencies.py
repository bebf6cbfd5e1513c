"""
Core dependencies for route protection
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config import settings
from app.core.errors import ForbiddenError, UnauthenticatedError
from app.core.policy import Caller
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.auth.service import AuthService
from app.modules.profiles.service import ProfileDirectory
from supabase import Client
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is a 401, not FastAPI's default 403
security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_profile_directory(supabase: Client = Depends(get_service_supabase)) -> ProfileDirectory:
    return ProfileDirectory(supabase, settings.get_admin_emails_list())


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError()
    return credentials.credentials


def get_current_identity(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Identity (id, email, metadata) behind the bearer token"""
    return auth_service.get_current_user(token)


def get_current_user(
    identity: Dict[str, Any] = Depends(get_current_identity),
    directory: ProfileDirectory = Depends(get_profile_directory)
) -> Caller:
    """Authenticated caller with the role from its profile; first sight of an identity creates the profile"""
    profile = directory.ensure_profile(identity)
    return Caller(id=profile.id, email=profile.email, role=profile.role)


def require_admin(caller: Caller = Depends(get_current_user)) -> Caller:
    if not caller.is_admin:
        raise ForbiddenError()
    return caller
