from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from restaurant_ops.core.database import Base, get_db
from restaurant_ops.core.errors import register_exception_handlers
from restaurant_ops.routers import delivery as delivery_router
from tests.fixtures_data import BUSINESS_SUB_DOMAIN, HAPPY_PATH_DRIVER_PAYLOAD

SCOPE = f"{BUSINESS_SUB_DOMAIN}/loja-1"


def _build_client():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()

    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(delivery_router.router)
    app.dependency_overrides[get_db] = lambda: db
    return TestClient(app), db


def _create_driver(client, **overrides):
    response = client.post(f"/api/v1/delivery/drivers/{SCOPE}", json={**HAPPY_PATH_DRIVER_PAYLOAD, **overrides})
    assert response.status_code == 201
    return response.json()["data"]


def test_create_driver_defaults():
    client, _ = _build_client()

    driver = _create_driver(client)

    assert driver["name"] == "Ana Souza"
    assert driver["email"] == "ana@example.com"
    assert driver["status"] == "active"
    assert driver["available"] is True
    assert driver["currentOrders"] == 0


def test_create_driver_requires_fields():
    client, _ = _build_client()

    response = client.post(f"/api/v1/delivery/drivers/{SCOPE}", json={"firstName": "Ana"})

    assert response.status_code == 400
    assert response.json()["message"] == "Missing required field: last_name"


def test_duplicate_email_in_same_business_is_rejected():
    client, _ = _build_client()
    _create_driver(client)

    response = client.post(
        f"/api/v1/delivery/drivers/{SCOPE}",
        json={**HAPPY_PATH_DRIVER_PAYLOAD, "email": "ana@example.com "},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "A driver with this email already exists"


def test_location_update_validates_range():
    client, _ = _build_client()
    driver_id = _create_driver(client)["id"]
    url = f"/api/v1/delivery/drivers/{driver_id}/location/{SCOPE}"

    missing = client.patch(url, json={"latitude": 10})
    bad_number = client.patch(url, json={"latitude": "abc", "longitude": 1})
    out_of_range = client.patch(url, json={"latitude": 10, "longitude": 181})
    ok = client.patch(url, json={"latitude": "-12.05", "longitude": -77.04})

    assert missing.json()["message"] == "Latitude and longitude are required"
    assert bad_number.json()["message"] == "Latitude and longitude must be valid numbers"
    assert out_of_range.json()["message"] == "Longitude must be between -180 and 180 degrees"
    assert ok.status_code == 200
    location = ok.json()["data"]["currentLocation"]
    assert location["latitude"] == -12.05
    assert location["lastUpdate"] is not None


def test_status_change_controls_availability():
    client, _ = _build_client()
    driver_id = _create_driver(client)["id"]
    url = f"/api/v1/delivery/drivers/{driver_id}/status/{SCOPE}"

    offline = client.patch(url, json={"status": "offline"})
    missing = client.patch(url, json={})

    assert offline.json()["data"]["available"] is False
    assert missing.status_code == 400
    assert missing.json()["message"] == "Status is required"
    assert client.get(f"/api/v1/delivery/drivers/available/{SCOPE}").json()["data"] == []


def test_assign_and_complete_delivery_update_counters():
    client, _ = _build_client()
    driver_id = _create_driver(client)["id"]

    assigned = client.post(f"/api/v1/delivery/drivers/{driver_id}/assign/{SCOPE}", json={"orderId": "42"})
    completed = client.post(f"/api/v1/delivery/drivers/{driver_id}/complete/{SCOPE}", json={"orderId": "42"})
    completed_again = client.post(f"/api/v1/delivery/drivers/{driver_id}/complete/{SCOPE}")

    assert assigned.json()["data"]["status"] == "on_delivery"
    assert assigned.json()["data"]["currentOrders"] == 1
    assert completed.json()["data"]["currentOrders"] == 0
    assert completed.json()["data"]["available"] is True
    assert completed_again.json()["data"]["currentOrders"] == 0
    assert completed_again.json()["data"]["totalDeliveries"] == 2


def test_update_and_delete_driver():
    client, _ = _build_client()
    driver_id = _create_driver(client)["id"]
    url = f"/api/v1/delivery/drivers/{driver_id}/{SCOPE}"

    updated = client.patch(url, json={"lastName": "Lima", "vehicleType": "bicycle"})
    deleted = client.delete(url)

    assert updated.json()["data"]["name"] == "Ana Lima"
    assert updated.json()["data"]["vehicleType"] == "bicycle"
    assert deleted.status_code == 200
    assert client.get(url).status_code == 404
    assert client.get(f"/api/v1/delivery/drivers/{SCOPE}").json()["data"] == []


def test_invalid_vehicle_type_is_rejected():
    client, _ = _build_client()

    response = client.post(
        f"/api/v1/delivery/drivers/{SCOPE}",
        json={**HAPPY_PATH_DRIVER_PAYLOAD, "vehicleType": "rocket"},
    )

    assert response.status_code == 400
