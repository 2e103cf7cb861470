"""Push subscription API: devices opt in to, or out of, transaction alerts.

Callers are authenticated upstream; this service trusts the forwarded
`x-user-id` once the shared API key matches.
"""

from fastapi import FastAPI, Request
from pydantic import ValidationError as PydanticValidationError

from payhook.common.config import settings
from payhook.common.db import SessionLocal
from payhook.common.errors import AuthenticationError, ValidationError
from payhook.common.http import error_response, install_http_plumbing, read_json_object
from payhook.common.logging import configure_logging, logger
from payhook.common.metrics import metrics_response
from payhook.common.startup import log_startup_config
from payhook.common.tracing import instrument_app, setup_tracing
from payhook.services.notification.schemas import SubscriptionRequest
from payhook.services.notification.store import PushSubscriptionStore

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings.service_name,
    ["SERVICE_NAME", "POSTGRES_DSN", "API_KEY", "VAPID_PUBLIC_KEY"],
)
store = PushSubscriptionStore(SessionLocal)


app = FastAPI(title="Payhook Push Subscriptions")
install_http_plumbing(app)
instrument_app(app)


def enforce_caller(x_api_key: str | None, x_user_id: str | None) -> str:
    """Reject requests without the configured API key or a forwarded user id."""

    if not settings.api_key or x_api_key != settings.api_key:
        raise AuthenticationError("Unauthorized")
    if not x_user_id:
        raise AuthenticationError("Missing user id")
    return x_user_id


@app.post("/push/subscriptions")
async def manage_subscription(request: Request):
    """Handle `subscribe`, `unsubscribe` and `get-vapid-key` actions."""

    user_id = enforce_caller(request.headers.get("x-api-key"), request.headers.get("x-user-id"))
    raw = await read_json_object(request)
    try:
        req = SubscriptionRequest.model_validate(raw)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "payload"
        raise ValidationError(f"Invalid field {field}: {first['msg']}") from exc
    subscription = req.subscription

    if req.action == "subscribe":
        keys = subscription.keys if subscription else None
        if not subscription or not subscription.endpoint or not keys or not keys.p256dh or not keys.auth:
            raise ValidationError("Invalid subscription data")
        store.upsert(user_id, subscription.endpoint, keys.p256dh, keys.auth)
        logger.info("push_subscription_saved user_id=%s", user_id)
        return {"success": True, "message": "Subscription saved"}

    if req.action == "unsubscribe":
        endpoint = subscription.endpoint if subscription and subscription.endpoint else ""
        store.remove(user_id, endpoint)
        logger.info("push_subscription_removed user_id=%s", user_id)
        return {"success": True, "message": "Subscription removed"}

    if req.action == "get-vapid-key":
        if not settings.vapid_public_key:
            return error_response(500, "VAPID key not configured")
        return {"vapidPublicKey": settings.vapid_public_key}

    raise ValidationError("Invalid action")


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()
