from datetime import datetime, timedelta, timezone

import httpx
from cryptography.fernet import Fernet
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from restaurant_ops.core import config
from restaurant_ops.core.database import Base, get_db
from restaurant_ops.core.errors import register_exception_handlers
from restaurant_ops.models.business import Business
from restaurant_ops.models.chat_message import ChatMessage
from restaurant_ops.models.whatsapp_chat import WhatsAppChat
from restaurant_ops.routers import whatsapp as whatsapp_router
from restaurant_ops.services.token_crypto import decrypt_token
from restaurant_ops.whatsapp.cloud_client import MetaCloudClient
from restaurant_ops.whatsapp.service import WhatsAppService
from tests.fixtures_data import BUSINESS_PHONE_NUMBER_ID, BUSINESS_SUB_DOMAIN, BUSINESS_WABA_ID, CUSTOMER_PHONE

ACCOUNT = {"wabaId": BUSINESS_WABA_ID, "phoneNumberId": BUSINESS_PHONE_NUMBER_ID, "accessToken": "EAAG-secret"}


def _build_client(monkeypatch, handler=None):
    monkeypatch.setattr(config, "ENCRYPTION_KEY", Fernet.generate_key().decode())

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    db.add(Business(sub_domain=BUSINESS_SUB_DOMAIN, name="Burger House"))
    db.commit()

    def default_handler(request):
        return httpx.Response(200, json={"messages": [{"id": "wamid.OUT1"}]})

    client = MetaCloudClient(max_retries=2, transport=httpx.MockTransport(handler or default_handler), sleep=lambda s: None)

    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(whatsapp_router.router)
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[whatsapp_router.get_whatsapp_service] = lambda: WhatsAppService(client=client)
    return TestClient(app), db


def _link(client, **overrides):
    return client.put(f"/api/v1/whatsapp/{BUSINESS_SUB_DOMAIN}/account", json={**ACCOUNT, **overrides})


def test_link_account_stores_encrypted_token(monkeypatch):
    client, db = _build_client(monkeypatch)

    response = _link(client, expiresIn=3600)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["enabled"] is True
    assert data["phoneNumberIds"] == [BUSINESS_PHONE_NUMBER_ID]
    assert data["hasAccessToken"] is True
    assert "EAAG-secret" not in response.text
    business = db.query(Business).one()
    assert business.whatsapp_access_token != "EAAG-secret"
    assert decrypt_token(business.whatsapp_access_token) == "EAAG-secret"


def test_relinking_does_not_duplicate_phone_number(monkeypatch):
    client, db = _build_client(monkeypatch)

    _link(client)
    _link(client)

    db.expire_all()
    assert db.query(Business).one().whatsapp_phone_number_ids == [BUSINESS_PHONE_NUMBER_ID]


def test_link_account_requires_fields(monkeypatch):
    client, _ = _build_client(monkeypatch)

    response = _link(client, wabaId="")

    assert response.status_code == 400
    assert response.json()["message"] == "WABA ID is required"


def test_link_unknown_business_is_not_found(monkeypatch):
    client, _ = _build_client(monkeypatch)

    response = client.put("/api/v1/whatsapp/nao-existe/account", json=ACCOUNT)

    assert response.status_code == 404


def test_send_message_records_outbound_and_updates_chat(monkeypatch):
    client, db = _build_client(monkeypatch)
    _link(client)

    response = client.post(
        f"/api/v1/whatsapp/{BUSINESS_SUB_DOMAIN}/messages",
        json={"to": f"+{CUSTOMER_PHONE}", "text": "Seu pedido saiu para entrega"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["direction"] == "outbound"
    assert data["status"] == "sent"
    assert data["waMessageId"] == "wamid.OUT1"

    chats = client.get(f"/api/v1/whatsapp/{BUSINESS_SUB_DOMAIN}/chats").json()["data"]
    assert chats[0]["customerPhone"] == CUSTOMER_PHONE
    assert chats[0]["messageCount"] == 1
    assert chats[0]["lastMessage"] == "Seu pedido saiu para entrega"

    messages = client.get(f"/api/v1/whatsapp/{BUSINESS_SUB_DOMAIN}/chats/{chats[0]['id']}/messages").json()["data"]
    assert [m["waMessageId"] for m in messages] == ["wamid.OUT1"]


def test_rejected_send_marks_message_failed(monkeypatch):
    def handler(request):
        return httpx.Response(400, json={"error": {"code": 100, "message": "Invalid parameter"}})

    client, db = _build_client(monkeypatch, handler)
    _link(client)

    response = client.post(f"/api/v1/whatsapp/{BUSINESS_SUB_DOMAIN}/messages", json={"to": CUSTOMER_PHONE, "text": "oi"})

    assert response.status_code == 502
    assert response.json()["type"] == "3"
    db.expire_all()
    message = db.query(ChatMessage).one()
    assert message.status == "failed"
    assert "Invalid parameter" in message.error


def test_send_without_linked_account_fails(monkeypatch):
    client, _ = _build_client(monkeypatch)

    response = client.post(f"/api/v1/whatsapp/{BUSINESS_SUB_DOMAIN}/messages", json={"to": CUSTOMER_PHONE, "text": "oi"})

    assert response.status_code == 400
    assert response.json()["message"] == "WhatsApp is not configured for this business"


def test_expired_token_is_rejected(monkeypatch):
    client, db = _build_client(monkeypatch)
    _link(client)
    business = db.query(Business).one()
    business.whatsapp_token_expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.commit()

    response = client.post(f"/api/v1/whatsapp/{BUSINESS_SUB_DOMAIN}/messages", json={"to": CUSTOMER_PHONE, "text": "oi"})

    assert response.status_code == 401
    assert db.query(ChatMessage).count() == 0


def test_messages_of_unknown_chat_is_not_found(monkeypatch):
    client, db = _build_client(monkeypatch)

    response = client.get(f"/api/v1/whatsapp/{BUSINESS_SUB_DOMAIN}/chats/999/messages")

    assert response.status_code == 404
    assert db.query(WhatsAppChat).count() == 0


def test_send_that_keeps_timing_out_is_recorded_as_failed(monkeypatch):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client, db = _build_client(monkeypatch, handler)
    _link(client)

    response = client.post(f"/api/v1/whatsapp/{BUSINESS_SUB_DOMAIN}/messages", json={"to": CUSTOMER_PHONE, "text": "oi"})

    assert response.status_code == 502
    db.expire_all()
    assert db.query(ChatMessage).one().status == "failed"


def test_dropped_connection_marks_message_failed_with_envelope(monkeypatch):
    def handler(request):
        raise httpx.RemoteProtocolError("Server disconnected without sending a response.", request=request)

    client, db = _build_client(monkeypatch, handler)
    _link(client)

    response = client.post(f"/api/v1/whatsapp/{BUSINESS_SUB_DOMAIN}/messages", json={"to": CUSTOMER_PHONE, "text": "oi"})

    assert response.status_code == 502
    assert response.json()["type"] == "3"
    db.expire_all()
    message = db.query(ChatMessage).one()
    assert message.status == "failed"
    assert "RemoteProtocolError" in message.error


class _UndecodableClient:
    def send_text(self, credentials, to, text):
        raise httpx.DecodingError("Malformed gzip response")


def test_unexpected_http_failure_is_recorded_and_reported_as_transient(monkeypatch):
    client, db = _build_client(monkeypatch)
    _link(client)
    client.app.dependency_overrides[whatsapp_router.get_whatsapp_service] = lambda: WhatsAppService(
        client=_UndecodableClient()
    )

    response = client.post(f"/api/v1/whatsapp/{BUSINESS_SUB_DOMAIN}/messages", json={"to": CUSTOMER_PHONE, "text": "oi"})

    assert response.status_code == 502
    assert response.json()["message"] == "WhatsApp API unavailable"
    db.expire_all()
    assert db.query(ChatMessage).one().status == "failed"


def test_chat_messages_return_the_latest_page_in_order(monkeypatch):
    client, db = _build_client(monkeypatch)
    chat = WhatsAppChat(customer_phone=CUSTOMER_PHONE, sub_domain=BUSINESS_SUB_DOMAIN, is_active=True, message_count=3)
    db.add(chat)
    db.commit()
    base = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    for minute, wa_id in enumerate(["wamid.1", "wamid.2", "wamid.3"]):
        db.add(
            ChatMessage(
                chat_id=chat.id,
                sub_domain=BUSINESS_SUB_DOMAIN,
                message_type="text",
                direction="inbound",
                content={"text": wa_id},
                status="delivered",
                timestamp=base + timedelta(minutes=minute),
                wa_message_id=wa_id,
            )
        )
    db.commit()

    response = client.get(f"/api/v1/whatsapp/{BUSINESS_SUB_DOMAIN}/chats/{chat.id}/messages", params={"limit": 2})

    assert response.status_code == 200
    assert [m["waMessageId"] for m in response.json()["data"]] == ["wamid.2", "wamid.3"]
