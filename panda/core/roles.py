"""Per-role limits.

Single source of truth for how many tunnels each grade may register.
``None`` means unlimited.
"""

from dataclasses import dataclass

from panda.models.user import UserRole


@dataclass(frozen=True)
class RoleLimits:
    max_tunnels: int | None


ROLES_CONFIG: dict[UserRole, RoleLimits] = {
    UserRole.FREE:         RoleLimits(max_tunnels=3),
    UserRole.PREMIUM:      RoleLimits(max_tunnels=10),
    UserRole.PREMIUM_PLUS: RoleLimits(max_tunnels=25),
    UserRole.ENDIUM:       RoleLimits(max_tunnels=50),
    UserRole.ADMIN:        RoleLimits(max_tunnels=None),
}


def get_limits(role: str) -> RoleLimits:
    """Return the limits for a role, falling back to FREE for unknown values."""
    try:
        return ROLES_CONFIG[UserRole(role)]
    except ValueError:
        return ROLES_CONFIG[UserRole.FREE]


def has_tunnel_capacity(role: str, current_count: int) -> bool:
    limit = get_limits(role).max_tunnels
    return limit is None or current_count < limit
