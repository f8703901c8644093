import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from lims.routers import components as components_router
from lims.models.components import Component
from lims.models.users import UserRole

from conftest import auth_headers


def component_payload(category_id, **overrides):
    payload = {
        "name": "100uF 25V Capacitor",
        "part_number": "CAP-100UF-25V",
        "category_id": category_id,
        "manufacturer": "Generic",
        "supplier": "Electronics Hub",
        "quantity": 50,
        "location_bin": "Shelf A1, Bin 2",
        "unit_price": "5.00",
        "critical_low_threshold": 10,
    }
    payload.update(overrides)
    return payload


def test_create_component(client, category, make_user):
    tech = make_user(UserRole.LAB_TECHNICIAN)

    response = client.post("/components", json=component_payload(category.id), headers=auth_headers(tech))

    assert response.status_code == 201
    body = response.json()
    assert body["part_number"] == "CAP-100UF-25V"
    assert body["quantity"] == 50
    assert body["stock_status"] == "IN_STOCK"
    assert body["created_by"] == tech.id
    assert body["category"]["name"] == "Resistors"
    assert body["creator"]["email"] == tech.email


def test_create_component_uses_default_threshold(client, category, admin):
    payload = component_payload(category.id, quantity=10)
    payload.pop("critical_low_threshold")

    response = client.post("/components", json=payload, headers=auth_headers(admin))

    assert response.status_code == 201
    assert response.json()["critical_low_threshold"] == 10
    assert response.json()["stock_status"] == "LOW_STOCK"


def test_duplicate_part_number_conflicts(client, category, admin, make_component):
    make_component(part_number="CAP-100UF-25V")

    response = client.post("/components", json=component_payload(category.id), headers=auth_headers(admin))

    assert response.status_code == 409
    assert response.json()["detail"] == "Part number already exists"


def test_unknown_category_is_404(client, admin):
    response = client.post("/components", json=component_payload(999), headers=auth_headers(admin))

    assert response.status_code == 404
    assert response.json()["detail"] == "Selected category does not exist (ID: 999)"


def test_negative_quantity_is_rejected(client, category, admin):
    response = client.post(
        "/components",
        json=component_payload(category.id, quantity=-1),
        headers=auth_headers(admin),
    )

    assert response.status_code == 422


def test_researcher_cannot_create_components(client, category, make_user):
    researcher = make_user(UserRole.RESEARCHER)

    response = client.post("/components", json=component_payload(category.id), headers=auth_headers(researcher))

    assert response.status_code == 403


def test_list_components_filters(client, make_component, make_category, make_user, db_session):
    sensors = make_category("Sensors")
    make_component(name="10K Resistor", quantity=100, location_bin="Shelf A1")
    make_component(name="1K Resistor", quantity=3, location_bin="Shelf A2")
    make_component(name="DHT22 Sensor", quantity=15, location_bin="Shelf D1")
    sensor = db_session.query(Component).filter(Component.name == "DHT22 Sensor").one()
    sensor.category_id = sensors.id
    db_session.commit()

    headers = auth_headers(make_user())

    body = client.get("/components", headers=headers).json()
    assert body["pagination"]["total"] == 3
    assert body["components"][0]["name"] == "DHT22 Sensor"

    body = client.get("/components", params={"search": "resistor"}, headers=headers).json()
    assert {c["name"] for c in body["components"]} == {"10K Resistor", "1K Resistor"}

    body = client.get("/components", params={"category": sensors.id}, headers=headers).json()
    assert [c["name"] for c in body["components"]] == ["DHT22 Sensor"]

    body = client.get("/components", params={"min_quantity": 10, "max_quantity": 50}, headers=headers).json()
    assert [c["name"] for c in body["components"]] == ["DHT22 Sensor"]

    body = client.get("/components", params={"location": "shelf a"}, headers=headers).json()
    assert body["pagination"]["total"] == 2

    body = client.get("/components", params={"limit": 2, "page": 2}, headers=headers).json()
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}
    assert len(body["components"]) == 1


def test_list_components_rejects_bad_category_filter(client, make_user):
    response = client.get("/components", params={"category": "sensors"}, headers=auth_headers(make_user()))

    assert response.status_code == 400


def test_get_component(client, make_component, make_user):
    component = make_component(quantity=0)

    response = client.get(f"/components/{component.id}", headers=auth_headers(make_user()))

    assert response.status_code == 200
    assert response.json()["stock_status"] == "OUT_OF_STOCK"

    missing = client.get("/components/9999", headers=auth_headers(make_user()))
    assert missing.status_code == 404


def test_update_component(client, make_component, admin, db_session):
    component = make_component(quantity=10, threshold=5)

    response = client.put(
        f"/components/{component.id}",
        json={"location_bin": "Shelf Z9", "critical_low_threshold": 20, "quantity": 12},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["location_bin"] == "Shelf Z9"
    assert body["critical_low_threshold"] == 20
    assert body["quantity"] == 12
    assert body["stock_status"] == "LOW_STOCK"


def test_update_to_taken_part_number_conflicts(client, make_component, admin):
    make_component(part_number="TAKEN-1")
    component = make_component(part_number="FREE-1")

    response = client.put(
        f"/components/{component.id}",
        json={"part_number": "TAKEN-1"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 409


def test_delete_unused_component(client, make_component, make_user, db_session):
    component_id = make_component().id
    tech = make_user(UserRole.LAB_TECHNICIAN)

    response = client.delete(f"/components/{component_id}", headers=auth_headers(tech))

    assert response.status_code == 200
    assert response.json() == {"message": "Component deleted successfully"}

    assert db_session.query(Component).filter(Component.id == component_id).count() == 0


def test_component_with_history_cannot_be_deleted(client, make_component, admin):
    component = make_component(quantity=5)
    client.post(
        "/transactions",
        json={"component_id": component.id, "type": "OUTWARD", "quantity": 1},
        headers=auth_headers(admin),
    )

    response = client.delete(f"/components/{component.id}", headers=auth_headers(admin))

    assert response.status_code == 409


@pytest.mark.parametrize("quantity", [2**31, 2**63])
def test_oversized_quantity_on_create_is_rejected(client, category, admin, quantity):
    response = client.post(
        "/components",
        json=component_payload(category.id, quantity=quantity),
        headers=auth_headers(admin),
    )

    assert response.status_code == 422


def test_oversized_quantity_on_update_is_rejected(client, make_component, admin):
    component = make_component()

    response = client.put(
        f"/components/{component.id}",
        json={"quantity": 2**63},
        headers=auth_headers(admin),
    )

    assert response.status_code == 422


def test_oversized_ids_are_rejected(client, make_user):
    headers = auth_headers(make_user())

    assert client.get(f"/components/{2**63}", headers=headers).status_code == 422
    assert client.get("/components", params={"category": str(2**63)}, headers=headers).status_code == 400
    assert client.get("/components", params={"min_quantity": 2**63}, headers=headers).status_code == 422


def test_part_number_race_on_update_conflicts(client, make_component, admin, monkeypatch):
    make_component(part_number="TAKEN-2")
    component = make_component(part_number="FREE-2")
    monkeypatch.setattr(components_router, "_ensure_part_number_free", lambda db, part_number: None)

    response = client.put(
        f"/components/{component.id}",
        json={"part_number": "TAKEN-2"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 409
    assert response.json()["detail"] == "Part number already exists"


def test_commit_failure_on_delete_is_503(client, make_component, admin, monkeypatch):
    component_id = make_component().id
    headers = auth_headers(admin)

    def failing_commit(self):
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(Session, "commit", failing_commit)

    response = client.delete(f"/components/{component_id}", headers=headers)

    assert response.status_code == 503
    assert response.json()["detail"] == "Failed to save component"
