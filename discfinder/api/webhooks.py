"""Payment processor webhooks. The raw body is verified before anything is parsed."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session

from discfinder.core.config import settings
from discfinder.core.database import get_db
from discfinder.services.payment_events import handle_event
from discfinder.services.payments import WebhookSignatureError, construct_event

router = APIRouter(tags=["webhooks"])
log = logging.getLogger("discfinder.webhooks")


@router.post("/stripe-webhook")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    signature = request.headers.get("stripe-signature")
    if not signature:
        raise HTTPException(status_code=400, detail="Missing stripe-signature header")
    if not settings.stripe_webhook_secret:
        log.error("Webhook received but STRIPE_WEBHOOK_SECRET is not set")
        raise HTTPException(status_code=500, detail="Webhook not configured")

    payload = await request.body()
    try:
        event = construct_event(payload, signature, settings.stripe_webhook_secret)
    except WebhookSignatureError as e:
        log.warning("Webhook signature verification failed: %s", e)
        raise HTTPException(status_code=400, detail="Invalid signature")

    log.info("Webhook event received: id=%s type=%s", event.get("id"), event.get("type"))
    handle_event(db, event)
    return {"received": True}
