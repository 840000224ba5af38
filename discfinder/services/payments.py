"""
Stripe: hosted checkout sessions and webhook signature verification.

Talks to the REST API directly (form-encoded POST, Bearer secret key).
Webhook signatures follow Stripe's scheme:
Stripe-Signature: t=<unix>,v1=<hex HMAC-SHA256(secret, "<t>.<raw body>")>
"""
import json
import logging
import time
from dataclasses import dataclass
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request as UrlRequest
from urllib.request import urlopen

from discfinder.core.config import is_stripe_configured, settings
from discfinder.core.errors import ServiceUnavailableError, UpstreamError
from discfinder.core.security import constant_time_equals, hmac_sha256_hex

log = logging.getLogger("discfinder.payments")


class WebhookSignatureError(Exception):
    pass


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str


def create_checkout_session(
    *,
    order_id: int,
    order_number: str,
    quantity: int,
    unit_price_cents: int,
    customer_email: str | None = None,
) -> CheckoutSession:
    """Opens a hosted checkout for the order; order_id travels in the session metadata."""
    if not is_stripe_configured():
        raise ServiceUnavailableError("Payments are not configured")
    post_vals = {
        "mode": "payment",
        "success_url": settings.stripe_success_url,
        "cancel_url": settings.stripe_cancel_url,
        "client_reference_id": str(order_id),
        "metadata[order_id]": str(order_id),
        "metadata[order_number]": order_number,
        "line_items[0][quantity]": str(quantity),
        "line_items[0][price_data][currency]": settings.stripe_currency,
        "line_items[0][price_data][unit_amount]": str(unit_price_cents),
        "line_items[0][price_data][product_data][name]": "QR code sticker",
    }
    if customer_email:
        post_vals["customer_email"] = customer_email
    req = UrlRequest(
        f"{settings.stripe_api_base.rstrip('/')}/checkout/sessions",
        data=urlencode(post_vals).encode(),
        method="POST",
        headers={
            "Authorization": f"Bearer {settings.stripe_secret_key}",
            "Content-Type": "application/x-www-form-urlencoded",
            "Idempotency-Key": f"checkout-{order_number}",
        },
    )
    try:
        with urlopen(req, timeout=20) as resp:
            result = json.loads(resp.read().decode())
    except HTTPError as e:
        log.error("Stripe checkout session failed: order=%s status=%s", order_number, e.code)
        raise UpstreamError("Failed to create checkout session") from e
    except (URLError, TimeoutError, ValueError) as e:
        log.error("Stripe connection error: order=%s error=%s", order_number, str(e)[:200])
        raise UpstreamError("Failed to create checkout session") from e
    if not result.get("id") or not result.get("url"):
        raise UpstreamError("Failed to create checkout session")
    return CheckoutSession(id=result["id"], url=result["url"])


def _parse_signature_header(header: str) -> tuple[int, list[str]]:
    timestamp = None
    signatures: list[str] = []
    for part in header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                raise WebhookSignatureError("Malformed timestamp") from None
        elif key == "v1" and value:
            signatures.append(value)
    if timestamp is None or not signatures:
        raise WebhookSignatureError("Missing timestamp or v1 signature")
    return timestamp, signatures


def sign_payload(payload: str, secret: str, timestamp: int) -> str:
    return hmac_sha256_hex(secret, f"{timestamp}.{payload}")


def construct_event(
    payload: bytes | str,
    signature_header: str,
    secret: str,
    tolerance: int | None = None,
    now: float | None = None,
) -> dict:
    """Verifies the signature and returns the decoded event. Raises WebhookSignatureError."""
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    tolerance = settings.webhook_tolerance_seconds if tolerance is None else tolerance
    timestamp, signatures = _parse_signature_header(signature_header)
    expected = sign_payload(payload, secret, timestamp)
    if not any(constant_time_equals(sig, expected) for sig in signatures):
        raise WebhookSignatureError("No signature matches the payload")
    current = time.time() if now is None else now
    if tolerance and abs(current - timestamp) > tolerance:
        raise WebhookSignatureError("Timestamp outside the tolerance zone")
    try:
        event = json.loads(payload)
    except ValueError:
        raise WebhookSignatureError("Payload is not valid JSON") from None
    if not isinstance(event, dict):
        raise WebhookSignatureError("Payload is not an event object")
    return event
