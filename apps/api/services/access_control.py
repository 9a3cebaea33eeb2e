"""
Role-gated access control.

Decisions are pure functions of the caller's role set, so they can be
evaluated for any identity passed in explicitly. A user with no roles is
pending approval and is refused before any route requirement is looked at.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Sequence, Tuple

from models import AppRole


class AccessDecision(str, Enum):
    GRANTED = "granted"
    PENDING_APPROVAL = "pending_approval"
    DENIED = "denied"


@dataclass(frozen=True)
class RouteRule:
    required_roles: Tuple[AppRole, ...] = ()
    require_any: bool = True


INVENTORY_ROLES = (AppRole.ADMIN, AppRole.PHARMACIST, AppRole.STORE_MANAGER)

ROUTE_RULES: Dict[str, RouteRule] = {
    "dashboard": RouteRule(),
    "alerts": RouteRule(),
    "reports": RouteRule(),
    "analytics": RouteRule(),
    "medicines": RouteRule(INVENTORY_ROLES),
    "stock-in": RouteRule(INVENTORY_ROLES),
    "stock-out": RouteRule(INVENTORY_ROLES),
    "suppliers": RouteRule((AppRole.ADMIN, AppRole.STORE_MANAGER)),
    "settings": RouteRule((AppRole.ADMIN,)),
    "users": RouteRule((AppRole.ADMIN,)),
}


def is_staff(user_roles: Iterable[AppRole]) -> bool:
    return len(set(user_roles)) > 0


def has_role(user_roles: Iterable[AppRole], role: AppRole) -> bool:
    return role in set(user_roles)


def access_decision(
    user_roles: Iterable[AppRole],
    required_roles: Sequence[AppRole] = (),
    require_any: bool = True
) -> AccessDecision:
    roles = set(user_roles)
    if not roles:
        return AccessDecision.PENDING_APPROVAL
    if not required_roles:
        return AccessDecision.GRANTED

    if require_any:
        allowed = bool(roles.intersection(required_roles))
    else:
        allowed = roles.issuperset(required_roles)
    return AccessDecision.GRANTED if allowed else AccessDecision.DENIED


def can_access(
    user_roles: Iterable[AppRole],
    required_roles: Sequence[AppRole] = (),
    require_any: bool = True
) -> bool:
    return access_decision(user_roles, required_roles, require_any) == AccessDecision.GRANTED


def route_decision(user_roles: Iterable[AppRole], route: str) -> AccessDecision:
    rule = ROUTE_RULES.get(route)
    if rule is None:
        raise KeyError(route)
    return access_decision(user_roles, rule.required_roles, rule.require_any)


def permitted_routes(user_roles: Iterable[AppRole]) -> List[str]:
    roles = set(user_roles)
    return [route for route in ROUTE_RULES if route_decision(roles, route) == AccessDecision.GRANTED]
