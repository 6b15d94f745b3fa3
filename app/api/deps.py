"""
API Dependencies
Provides authentication and authorization dependencies using ATAMS factory pattern
"""
from fastapi import Depends, Request

from atams.sso import create_atlas_client, create_auth_dependencies

from app.core.actor import Actor, Capability, resolve_actor
from app.core.config import settings

# Initialize Atlas SSO client using factory
atlas_client = create_atlas_client(settings)

# Create auth dependencies using factory
get_current_user, require_auth, require_min_role_level, require_role_level = create_auth_dependencies(atlas_client)

require_admin = require_min_role_level(settings.ADMIN_MIN_ROLE_LEVEL)
require_staff = require_min_role_level(settings.STAFF_MIN_ROLE_LEVEL)


def get_current_actor(current_user: dict = Depends(require_auth)) -> Actor:
    """Resolve the Atlas user into an admin or staff actor once per request"""
    return resolve_actor(current_user, settings.ADMIN_MIN_ROLE_LEVEL, settings.STAFF_MIN_ROLE_LEVEL)


def require_capability(capability: Capability):
    """
    Dependency factory that only lets actors holding the capability through

    Usage:
        @router.post("/qr/generate")
        async def generate(actor: Actor = Depends(require_capability(Capability.ISSUE_QR))):
            ...
    """
    def _require(actor: Actor = Depends(get_current_actor)) -> Actor:
        return actor.require(capability)

    return _require


def get_client_ip(request: Request) -> str:
    """Peer address, or the first X-Forwarded-For hop when TRUST_PROXY_HEADERS is on"""
    forwarded = request.headers.get("X-Forwarded-For") if settings.TRUST_PROXY_HEADERS else None
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


# Export for use in endpoints
__all__ = [
    "atlas_client",
    "get_current_user",
    "require_auth",
    "require_min_role_level",
    "require_role_level",
    "require_admin",
    "require_staff",
    "get_current_actor",
    "require_capability",
    "get_client_ip",
]
