from datetime import datetime, timedelta, timezone

from lims.models.users import UserRole

from conftest import auth_headers


def test_low_stock_report(client, make_component, make_user):
    make_component(quantity=0, threshold=5, name="ESP32 DevKit")
    make_component(quantity=4, threshold=5, name="10K Resistor")
    make_component(quantity=1, threshold=2, name="Breadboard")
    make_component(quantity=90, threshold=20, name="Red LED")

    response = client.get("/reports/low-stock", headers=auth_headers(make_user(UserRole.RESEARCHER)))

    assert response.status_code == 200
    body = response.json()
    assert [c["name"] for c in body["low_stock"]] == ["Breadboard", "10K Resistor"]
    assert [c["name"] for c in body["out_of_stock"]] == ["ESP32 DevKit"]
    assert all(c["stock_status"] == "LOW_STOCK" for c in body["low_stock"])
    assert body["summary"] == {"low_stock_count": 2, "out_of_stock_count": 1, "total_critical": 3}


def test_old_stock_report(client, make_component, admin):
    now = datetime.now(timezone.utc)
    make_component(quantity=8, unit_price="12.00", name="555 Timer")
    make_component(quantity=3, unit_price="450.00", name="Arduino Uno", last_outward_date=now - timedelta(days=150))
    make_component(quantity=20, name="Jumper Wires", last_outward_date=now - timedelta(days=10))
    make_component(quantity=0, name="ESP32 DevKit")

    response = client.get("/reports/old-stock", headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert [c["name"] for c in body["old_stock"]] == ["555 Timer", "Arduino Uno"]
    assert body["summary"]["count"] == 2
    assert float(body["summary"]["total_value"]) == 1446.0


def test_old_stock_window_is_configurable(client, make_component, admin):
    now = datetime.now(timezone.utc)
    make_component(quantity=5, name="Used 45 days ago", last_outward_date=now - timedelta(days=45))

    one_month = client.get("/reports/old-stock", params={"months": 1}, headers=auth_headers(admin)).json()
    assert [c["name"] for c in one_month["old_stock"]] == ["Used 45 days ago"]

    three_months = client.get("/reports/old-stock", headers=auth_headers(admin)).json()
    assert three_months["old_stock"] == []


def test_old_stock_months_must_be_positive(client, admin):
    response = client.get("/reports/old-stock", params={"months": 0}, headers=auth_headers(admin))

    assert response.status_code == 422


def test_recent_outward_removes_component_from_old_stock(client, make_component, admin):
    component = make_component(quantity=5, name="Idle Sensor")
    headers = auth_headers(admin)

    before = client.get("/reports/old-stock", headers=headers).json()
    assert [c["name"] for c in before["old_stock"]] == ["Idle Sensor"]

    client.post(
        "/transactions",
        json={"component_id": component.id, "type": "OUTWARD", "quantity": 1},
        headers=headers,
    )

    after = client.get("/reports/old-stock", headers=headers).json()
    assert after["old_stock"] == []


def test_overview(client, make_component, make_user, admin):
    first = make_component(quantity=10, threshold=5, unit_price="2.50")
    make_component(quantity=0, threshold=5, unit_price="100.00")
    make_component(quantity=3, threshold=5, unit_price="1.00")
    make_user(is_active=False)
    headers = auth_headers(admin)

    client.post("/transactions", json={"component_id": first.id, "type": "INWARD", "quantity": 6}, headers=headers)
    client.post("/transactions", json={"component_id": first.id, "type": "OUTWARD", "quantity": 4}, headers=headers)

    response = client.get("/reports/overview", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["total_components"] == 3
    assert body["total_categories"] == 1
    assert body["total_users"] == 2
    assert body["active_users"] == 1
    assert body["total_transactions"] == 2
    assert body["inward_quantity_last_30_days"] == 6
    assert body["outward_quantity_last_30_days"] == 4
    assert float(body["total_inventory_value"]) == 33.0
    assert body["low_stock_count"] == 1
    assert body["out_of_stock_count"] == 1
