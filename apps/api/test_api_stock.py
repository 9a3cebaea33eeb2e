from sqlmodel import select

from models import ActivityLog, AppRole, Sale, StockMovement


def test_stock_in(client, pharmacist, auth_headers, make_medicine):
    medicine = make_medicine(quantity=10, batch_number="B1")

    response = client.post("/api/stock/in", json={
        "medicine_id": medicine.id, "quantity": 30, "reason": "Delivery", "batch_number": "B2",
    }, headers=auth_headers(pharmacist))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["medicine"]["quantity"] == 40
    assert body["medicine"]["batch_number"] == "B2"
    assert body["movement"]["type"] == "stock-in"
    assert body["movement"]["performed_by"] == pharmacist.id


def test_stock_out_insufficient(client, pharmacist, auth_headers, make_medicine, session):
    medicine = make_medicine(quantity=15)

    response = client.post("/api/stock/out", json={
        "medicine_id": medicine.id, "quantity": 20, "reason": "Dispensed",
    }, headers=auth_headers(pharmacist))

    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot remove 20 units. Only 15 available."
    assert session.exec(select(StockMovement)).all() == []


def test_invalid_quantity_and_missing_medicine(client, pharmacist, auth_headers, make_medicine):
    medicine = make_medicine()
    headers = auth_headers(pharmacist)

    zero = client.post("/api/stock/in", json={"medicine_id": medicine.id, "quantity": 0}, headers=headers)
    missing = client.post("/api/stock/in", json={"medicine_id": 404404, "quantity": 1}, headers=headers)

    assert zero.status_code == 400
    assert missing.status_code == 404


def test_doctor_cannot_move_stock(client, make_user, auth_headers, make_medicine):
    doctor = make_user([AppRole.DOCTOR])
    medicine = make_medicine()

    response = client.post("/api/stock/out", json={"medicine_id": medicine.id, "quantity": 1},
                           headers=auth_headers(doctor))

    assert response.status_code == 403


def test_scan_by_barcode(client, pharmacist, auth_headers, make_medicine):
    medicine = make_medicine(quantity=5, barcode="4006381333931")

    response = client.post("/api/stock/scan", json={
        "barcode": "4006381333931", "type": "stock-out", "quantity": 2,
    }, headers=auth_headers(pharmacist))

    assert response.status_code == 200
    assert response.json()["medicine"]["id"] == medicine.id
    assert response.json()["medicine"]["quantity"] == 3
    assert response.json()["movement"]["reason"] == "Barcode scan"


def test_movements_newest_first(client, pharmacist, make_user, auth_headers, make_medicine):
    medicine = make_medicine(quantity=50)
    headers = auth_headers(pharmacist)
    client.post("/api/stock/in", json={"medicine_id": medicine.id, "quantity": 5, "reason": "first"}, headers=headers)
    client.post("/api/stock/out", json={"medicine_id": medicine.id, "quantity": 3, "reason": "second"}, headers=headers)

    # reports are open to every staff member
    doctor = make_user([AppRole.DOCTOR])
    response = client.get(f"/api/stock/movements?medicine_id={medicine.id}", headers=auth_headers(doctor))

    assert [m["reason"] for m in response.json()] == ["second", "first"]
    out_only = client.get("/api/stock/movements?type=stock-out", headers=headers).json()
    assert [m["quantity"] for m in out_only] == [3]


def test_sale(client, pharmacist, auth_headers, make_medicine, session):
    medicine = make_medicine(quantity=10, unit_price=4.5)
    headers = auth_headers(pharmacist)

    response = client.post("/api/sales", json={
        "medicine_id": medicine.id, "quantity": 2, "customer_name": "Walk-in",
    }, headers=headers)

    assert response.status_code == 201
    body = response.json()
    assert body["sale"]["total_amount"] == 9.0
    assert body["medicine"]["quantity"] == 8

    listed = client.get("/api/sales", headers=headers).json()
    assert [s["id"] for s in listed] == [body["sale"]["id"]]

    rejected = client.post("/api/sales", json={"medicine_id": medicine.id, "quantity": 50}, headers=headers)
    assert rejected.status_code == 409
    assert len(session.exec(select(Sale)).all()) == 1


def test_stock_operations_are_activity_logged(client, pharmacist, admin, auth_headers, make_medicine, session):
    medicine = make_medicine(quantity=10)
    client.post("/api/stock/in", json={"medicine_id": medicine.id, "quantity": 1}, headers=auth_headers(pharmacist))
    # rejected operations are not logged
    client.post("/api/stock/out", json={"medicine_id": medicine.id, "quantity": 99}, headers=auth_headers(pharmacist))

    logs = session.exec(select(ActivityLog)).all()
    assert [(log.user_id, log.activity_type) for log in logs] == [(pharmacist.id, "stock_in")]
    assert logs[0].user_roles == "pharmacist"

    page = client.get("/api/admin/activity-logs?activity_type=stock_in", headers=auth_headers(admin)).json()
    assert page["total"] == 1
    assert page["logs"][0]["user_name"] == pharmacist.full_name


def test_zero_movement_limit_is_rejected(client, pharmacist, auth_headers):
    response = client.get("/api/stock/movements?limit=0", headers=auth_headers(pharmacist))
    assert response.status_code == 400


def test_activity_log_filters_match_whole_values(client, make_user, admin, auth_headers, make_medicine):
    medicine = make_medicine(quantity=10)
    manager = make_user([AppRole.STORE_MANAGER, AppRole.PHARMACIST])
    client.post("/api/stock/in", json={"medicine_id": medicine.id, "quantity": 1}, headers=auth_headers(manager))
    headers = auth_headers(admin)

    def total(query):
        return client.get(f"/api/admin/activity-logs?{query}", headers=headers).json()["total"]

    assert total("role=store_manager") == 1
    assert total("role=pharmacist") == 1
    assert total("role=store") == 0
    assert total("role=%25") == 0
    assert total("keyword=stock") == 1
    assert total("keyword=%25") == 0
    assert total("keyword=stock_in") == 1
    assert total("keyword=st_ck") == 0
