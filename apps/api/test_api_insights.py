from datetime import date, timedelta

from models import AppRole


def test_alerts_follow_medicine_state(client, make_user, auth_headers, make_medicine):
    doctor = make_user([AppRole.DOCTOR])
    expired = make_medicine(name="Old", expiry_date=date.today() - timedelta(days=2))
    empty = make_medicine(name="Empty", quantity=0)
    low = make_medicine(name="Low", quantity=3, min_stock_level=10)
    make_medicine(name="Fine")

    alerts = client.get("/api/alerts", headers=auth_headers(doctor)).json()

    assert [(a["type"], a["severity"], a["medicine_id"]) for a in alerts] == [
        ("expiry", "critical", expired.id),
        ("out-of-stock", "critical", empty.id),
        ("low-stock", "warning", low.id),
    ]
    critical = client.get("/api/alerts?severity=critical", headers=auth_headers(doctor)).json()
    assert len(critical) == 2


def test_alert_preferences(client, admin, auth_headers, make_medicine):
    make_medicine(name="Empty", quantity=0)
    make_medicine(name="Soon", expiry_date=date.today() + timedelta(days=40))
    headers = auth_headers(admin)

    assert client.get("/api/alerts", headers=headers).json()[0]["type"] == "out-of-stock"

    response = client.put("/api/settings/notifications", json={
        "low_stock_alerts": False, "expiry_warning_days": 60,
    }, headers=headers)
    assert response.status_code == 200
    assert response.json()["expiry_warning_days"] == 60

    alerts = client.get("/api/alerts", headers=headers).json()
    assert [(a["type"], a["severity"]) for a in alerts] == [("expiry", "warning")]


def test_settings_are_admin_only(client, pharmacist, auth_headers):
    assert client.get("/api/settings/profile", headers=auth_headers(pharmacist)).status_code == 403


def test_profile_update(client, admin, auth_headers):
    response = client.put("/api/settings/profile", json={"first_name": "Asha"}, headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["first_name"] == "Asha"


def test_dashboard_stats(client, pharmacist, auth_headers, make_medicine):
    medicine = make_medicine(quantity=10, min_stock_level=5, unit_price=2.0)
    make_medicine(quantity=4, min_stock_level=10, unit_price=1.0)
    client.post("/api/sales", json={"medicine_id": medicine.id, "quantity": 2}, headers=auth_headers(pharmacist))

    stats = client.get("/api/analytics/dashboard", headers=auth_headers(pharmacist)).json()

    assert stats["total_medicines"] == 2
    assert stats["total_stock"] == 12
    assert stats["low_stock_items"] == 1
    assert stats["total_value"] == 20.0
    assert stats["todays_sales"] == 4.0


def test_analytics_window(client, make_user, auth_headers, make_medicine):
    headers = auth_headers(make_user([AppRole.DOCTOR]))
    make_medicine()

    trends = client.get("/api/analytics/stock-trends", headers=headers).json()
    assert len(trends) == 31
    assert trends[-1]["date"] == date.today().isoformat()

    revenue = client.get(
        "/api/analytics/revenue?date_from=2024-01-01&date_to=2024-01-10", headers=headers
    ).json()
    assert len(revenue) == 10
    assert revenue[0]["date"] == "2024-01-01"

    backwards = client.get("/api/analytics/moving-items?date_from=2024-02-01&date_to=2024-01-01", headers=headers)
    assert backwards.status_code == 400


def test_every_aggregate_is_served(client, make_user, auth_headers, make_medicine):
    headers = auth_headers(make_user([AppRole.DOCTOR]))
    make_medicine(category="Vitamins", quantity=2, unit_price=3.0)

    for path in ("category-distribution", "moving-items", "expiry-loss", "supplier-performance"):
        assert client.get(f"/api/analytics/{path}", headers=headers).status_code == 200

    categories = client.get("/api/analytics/category-distribution", headers=headers).json()
    assert categories == [{"category": "Vitamins", "count": 1, "value": 6.0}]


def test_pending_user_cannot_see_analytics(client, make_user, auth_headers):
    response = client.get("/api/analytics/stock-trends", headers=auth_headers(make_user()))
    assert response.status_code == 403
    assert response.json()["detail"] == "Account pending approval"
