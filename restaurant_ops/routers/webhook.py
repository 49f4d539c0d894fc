import json
import logging
import time

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.orm import Session

from restaurant_ops.core import config
from restaurant_ops.core.database import get_db
from restaurant_ops.core.errors import TYPE_ERROR, envelope
from restaurant_ops.whatsapp.dispatcher import process_webhook_payload
from restaurant_ops.whatsapp.redaction import redact_webhook_payload, safe_json
from restaurant_ops.whatsapp.signature import SIGNATURE_HEADER, signature_log_prefix, verify_signature

router = APIRouter(tags=["whatsapp-webhook"])
logger = logging.getLogger(__name__)


@router.get("/webhook")
@router.get("/api/v1/whatsapp/webhook")
async def verify_webhook(request: Request):
    qp = request.query_params
    mode = qp.get("hub.mode")
    token = qp.get("hub.verify_token")
    challenge = qp.get("hub.challenge")

    if mode == "subscribe" and config.WHATSAPP_WEBHOOK_VERIFY_TOKEN and token == config.WHATSAPP_WEBHOOK_VERIFY_TOKEN:
        logger.info("webhook verified")
        return PlainTextResponse(challenge or "")

    logger.warning("webhook verification failed")
    return JSONResponse(status_code=403, content=envelope("Invalid verify token", None, TYPE_ERROR))


@router.post("/webhook")
@router.post("/api/v1/whatsapp/webhook")
async def receive_webhook(request: Request, db: Session = Depends(get_db)):
    start = time.perf_counter()
    raw_body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)

    if not config.FACEBOOK_APP_SECRET:
        logger.error("FACEBOOK_APP_SECRET not configured; rejecting webhook")
    if not verify_signature(raw_body, signature, config.FACEBOOK_APP_SECRET):
        logger.warning(
            "invalid webhook signature, possible spoofing attempt",
            extra={"signature_prefix": signature_log_prefix(signature), "raw_body_length": len(raw_body)},
        )
        return JSONResponse(status_code=403, content=envelope("Invalid webhook signature", None, TYPE_ERROR))

    try:
        payload = json.loads(raw_body)
        entries = payload.get("entry") if isinstance(payload, dict) else None
        logger.info(
            "webhook received",
            extra={
                "entry_count": len(entries) if isinstance(entries, list) else 0,
                "redacted_payload": safe_json(redact_webhook_payload(payload)),
            },
        )

        # Sessão síncrona fora do event loop; entradas em ordem, uma a uma
        result = await run_in_threadpool(process_webhook_payload, db, payload)
        logger.info(
            "webhook processed entries=%s unresolved=%s failed=%s",
            len(result.entries),
            result.unresolved,
            result.failed,
            extra={"duration_ms": round((time.perf_counter() - start) * 1000, 2)},
        )
    except Exception:
        # Meta reenvia tudo que não receber 200; a falha fica só no log
        logger.exception("error processing webhook")
        return JSONResponse(status_code=200, content=envelope("Error processing webhook", None, TYPE_ERROR))

    return JSONResponse(status_code=200, content=envelope("Webhook received"))

