import time

import pytest

from middleware.activity_logger import determine_activity_type, determine_device_type
from services.token_blacklist import TokenBlacklist, blacklist_token, is_token_blacklisted


@pytest.mark.parametrize("method, path, expected", [
    ("POST", "/api/stock/in", "stock_in"),
    ("POST", "/api/stock/out/", "stock_out"),
    ("POST", "/api/medicines", "medicine_create"),
    ("PUT", "/api/medicines/12", "medicine_update"),
    ("DELETE", "/api/medicines/12", "medicine_delete"),
    ("POST", "/api/medicines/refresh-status", "medicine_status_refresh"),
    ("POST", "/api/suppliers/purchase-orders", "purchase_order_create"),
    ("DELETE", "/api/users/3/roles/store_manager", "role_revoke"),
    ("GET", "/api/medicines", None),
    ("POST", "/api/auth/refresh", None),
])
def test_activity_types(method, path, expected):
    assert determine_activity_type(method, path) == expected


def test_device_types():
    assert determine_device_type("Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) Mobile") == "tablet"
    assert determine_device_type("Mozilla/5.0 (Linux; Android 14) Mobile") == "mobile"
    assert determine_device_type("Mozilla/5.0 (X11; Linux x86_64)") == "desktop"


def test_in_memory_blacklist_expires_entries():
    blacklist = TokenBlacklist()
    blacklist.add("short", 1)
    blacklist.add("long", 3600)

    assert blacklist.contains("short") is True
    blacklist._memory["short"] = time.time() - 1
    assert blacklist.contains("short") is False
    assert blacklist.contains("long") is True


def test_blacklist_helpers():
    assert is_token_blacklisted(None) is False
    blacklist_token("abc", time.time() + 60)
    assert is_token_blacklisted("abc") is True
