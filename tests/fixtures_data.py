"""Conjunto de dados reutilizável para cenários de teste backend."""

import hashlib
import hmac
import json

APP_SECRET = "test-app-secret"
VERIFY_TOKEN = "verify-me"

BUSINESS_SUB_DOMAIN = "burger-house"
BUSINESS_WABA_ID = "102290129340398"
BUSINESS_PHONE_NUMBER_ID = "106540352242922"
CUSTOMER_PHONE = "15551234567"

POLYGON_PUBLIC = [
    {"latitude": -12.0464, "longitude": -77.0428},
    {"latitude": -12.0500, "longitude": -77.0300},
    {"latitude": -12.0600, "longitude": -77.0400},
]

HAPPY_PATH_ZONE_PAYLOAD = {
    "zoneName": "Centro",
    "deliveryCost": 5.5,
    "minimumOrder": 20,
    "estimatedTime": 35,
    "allowsFreeDelivery": True,
    "minimumForFreeDelivery": 80,
    "type": "polygon",
    "coordinates": POLYGON_PUBLIC,
}

HAPPY_PATH_DRIVER_PAYLOAD = {
    "firstName": "Ana",
    "lastName": "Souza",
    "phone": "11999990000",
    "email": "Ana@Example.com",
    "vehicleType": "motorcycle",
    "licensePlate": "ABC1D23",
}

HAPPY_PATH_COMPANY_PAYLOAD = {
    "name": "Rápido Express",
    "taxId": " 20512345678-ab ",
    "address": "Av. Paulista 1000",
    "phone": "+55 11 3333-4444",
    "email": "Contato@RapidoExpress.com.br",
    "contactPerson": "Carlos Lima",
}


def sign(raw_body: bytes, secret: str = APP_SECRET) -> str:
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def text_message(message_id: str = "wamid.IN1", body: str = "Olá, quero pedir", sender: str = CUSTOMER_PHONE) -> dict:
    return {
        "from": sender,
        "id": message_id,
        "timestamp": "1717171717",
        "type": "text",
        "text": {"body": body},
    }


def messages_entry(
    messages=None,
    statuses=None,
    *,
    entry_id: str = BUSINESS_WABA_ID,
    phone_number_id: str | None = BUSINESS_PHONE_NUMBER_ID,
    contact_name: str = "Maria",
) -> dict:
    value = {
        "messaging_product": "whatsapp",
        "contacts": [{"profile": {"name": contact_name}, "wa_id": CUSTOMER_PHONE}],
    }
    if phone_number_id is not None:
        value["metadata"] = {"display_phone_number": "15550001111", "phone_number_id": phone_number_id}
    if messages is not None:
        value["messages"] = messages
    if statuses is not None:
        value["statuses"] = statuses
    return {"id": entry_id, "changes": [{"field": "messages", "value": value}]}


def webhook_body(*entries: dict) -> dict:
    return {"object": "whatsapp_business_account", "entry": list(entries)}


def encode(body: dict) -> bytes:
    return json.dumps(body, separators=(",", ":")).encode("utf-8")
