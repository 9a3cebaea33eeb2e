import pytest

from models import AppRole
from services.access_control import (
    AccessDecision, ROUTE_RULES, access_decision, can_access, has_role, is_staff, permitted_routes, route_decision
)

ADMIN, PHARMACIST, DOCTOR, STORE_MANAGER = AppRole.ADMIN, AppRole.PHARMACIST, AppRole.DOCTOR, AppRole.STORE_MANAGER


def test_any_mode_needs_one_shared_role():
    assert can_access({PHARMACIST}, [ADMIN, STORE_MANAGER], True) is False
    assert can_access({PHARMACIST}, [PHARMACIST], True) is True


def test_all_mode_needs_every_role():
    assert can_access({ADMIN, PHARMACIST}, [ADMIN, PHARMACIST], False) is True
    assert can_access({ADMIN}, [ADMIN, PHARMACIST], False) is False


def test_no_requirements_admits_any_staff_member():
    assert can_access({DOCTOR}, [], True) is True


@pytest.mark.parametrize("required, require_any", [
    ([], True),
    ([ADMIN], True),
    ([ADMIN, PHARMACIST], False),
])
def test_user_without_roles_is_pending_approval(required, require_any):
    assert can_access(set(), required, require_any) is False
    assert access_decision(set(), required, require_any) == AccessDecision.PENDING_APPROVAL


def test_denied_is_distinct_from_pending():
    assert access_decision({DOCTOR}, [ADMIN]) == AccessDecision.DENIED


def test_staff_and_role_lookup():
    assert is_staff([]) is False
    assert is_staff([DOCTOR]) is True
    assert has_role([ADMIN, DOCTOR], DOCTOR) is True
    assert has_role([ADMIN], PHARMACIST) is False


def test_route_table():
    assert route_decision({DOCTOR}, "dashboard") == AccessDecision.GRANTED
    assert route_decision({DOCTOR}, "medicines") == AccessDecision.DENIED
    assert route_decision({STORE_MANAGER}, "suppliers") == AccessDecision.GRANTED
    assert route_decision({PHARMACIST}, "suppliers") == AccessDecision.DENIED
    assert route_decision({PHARMACIST}, "stock-out") == AccessDecision.GRANTED
    assert route_decision({STORE_MANAGER}, "settings") == AccessDecision.DENIED
    assert route_decision({ADMIN}, "users") == AccessDecision.GRANTED


def test_unknown_route_raises():
    with pytest.raises(KeyError):
        route_decision({ADMIN}, "billing")


def test_permitted_routes():
    assert permitted_routes({ADMIN}) == list(ROUTE_RULES)
    assert permitted_routes(set()) == []
    assert permitted_routes({DOCTOR}) == ["dashboard", "alerts", "reports", "analytics"]
