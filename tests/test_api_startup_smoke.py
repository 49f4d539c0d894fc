from fastapi.testclient import TestClient


def test_app_starts_and_reports_health(monkeypatch):
    from restaurant_ops import main

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)

    with TestClient(main.app) as client:
        root = client.get("/")
        health = client.get("/health")

    assert root.status_code == 200
    assert root.json() == {"status": "ok"}
    assert health.json()["status"] == "ok"
    assert "x-request-id" in {key.lower() for key in health.headers.keys()}


def test_request_id_is_echoed(monkeypatch):
    from restaurant_ops import main

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)

    with TestClient(main.app) as client:
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"
