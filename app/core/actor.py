"""
Authenticated actor, resolved once per request from the Atlas SSO user
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet

from app.core.exceptions import PermissionDeniedException


class ActorKind(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"


class Capability(str, Enum):
    MANAGE_EVENTS = "manage_events"
    REVIEW_PARTICIPANTS = "review_participants"
    ISSUE_QR = "issue_qr"
    OVERRIDE_ATTENDANCE = "override_attendance"
    VIEW_AUDIT = "view_audit"
    RUN_MAINTENANCE = "run_maintenance"
    APPLY_TO_EVENTS = "apply_to_events"
    SCAN_QR = "scan_qr"
    VIEW_EVENTS = "view_events"


ADMIN_CAPABILITIES = frozenset({
    Capability.MANAGE_EVENTS,
    Capability.REVIEW_PARTICIPANTS,
    Capability.ISSUE_QR,
    Capability.OVERRIDE_ATTENDANCE,
    Capability.VIEW_AUDIT,
    Capability.RUN_MAINTENANCE,
    Capability.VIEW_EVENTS,
})

STAFF_CAPABILITIES = frozenset({
    Capability.APPLY_TO_EVENTS,
    Capability.SCAN_QR,
    Capability.VIEW_EVENTS,
})


@dataclass(frozen=True)
class Actor:
    user_id: int
    kind: ActorKind
    capabilities: FrozenSet[Capability] = field(default_factory=frozenset)
    username: str = ""

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def require(self, capability: Capability) -> "Actor":
        if not self.can(capability):
            raise PermissionDeniedException(
                f"{self.kind.value} is not allowed to {capability.value.replace('_', ' ')}",
                {"capability": capability.value}
            )
        return self


def resolve_actor(current_user: Dict[str, Any], admin_min_level: int, staff_min_level: int) -> Actor:
    """
    Build the actor from the user dict returned by atams require_auth

    Users at or above admin_min_level act as admins, users at or above
    staff_min_level act as staff; anyone below gets no capabilities.
    """
    role_level = current_user.get("role_level") or 0
    user_id = int(current_user["user_id"])
    username = current_user.get("username") or ""

    if role_level >= admin_min_level:
        return Actor(user_id, ActorKind.ADMIN, ADMIN_CAPABILITIES, username)
    if role_level >= staff_min_level:
        return Actor(user_id, ActorKind.STAFF, STAFF_CAPABILITIES, username)
    return Actor(user_id, ActorKind.STAFF, frozenset(), username)
