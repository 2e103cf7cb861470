"""HTTP surface for transaction webhooks.

Reconciliation happens inside the request; the push fan-out is queued as a
background task so its outcome can never change the webhook response.
"""

from uuid import uuid4

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from payhook.common.config import settings
from payhook.common.db import SessionLocal
from payhook.common.errors import AuthenticationError, PayhookError
from payhook.common.http import CORS_HEADERS, install_http_plumbing, read_json_object
from payhook.common.logging import configure_logging, logger, trace_id_ctx
from payhook.common.metrics import metrics_response, webhook_latency_seconds, webhook_requests_total
from payhook.common.startup import log_startup_config
from payhook.common.tracing import instrument_app, setup_tracing
from payhook.services.notification.service import PushDispatcher
from payhook.services.notification.store import PushSubscriptionStore
from payhook.services.notification.transport import build_transport
from payhook.services.webhook_receiver.schemas import TransactionResponse, WebhookResponse
from payhook.services.webhook_receiver.service import TransactionReconciler
from payhook.services.webhook_receiver.store import TransactionStore

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings.service_name,
    ["SERVICE_NAME", "POSTGRES_DSN", "WEBHOOK_SECRET", "VAPID_PUBLIC_KEY", "VAPID_SUBJECT"],
)
transactions = TransactionStore(SessionLocal)
reconciler = TransactionReconciler(transactions)
dispatcher = PushDispatcher(
    PushSubscriptionStore(SessionLocal),
    build_transport(settings),
    icon=settings.push_icon,
    currency=settings.currency,
    locale=settings.currency_locale,
    service_name=settings.service_name,
)
if dispatcher.transport is None:
    logger.info("push notifications disabled: VAPID key pair not configured")


app = FastAPI(title="Payhook Webhook Receiver")
install_http_plumbing(app)
instrument_app(app)


def enforce_webhook_secret(provided: str | None) -> None:
    """When a shared secret is configured, deliveries must present it."""

    if settings.webhook_secret and provided != settings.webhook_secret:
        raise AuthenticationError("Invalid webhook secret")


@app.post("/webhooks/transactions")
async def receive_transaction(request: Request, background_tasks: BackgroundTasks):
    """Create or update one transaction from an upstream payment webhook."""

    trace_id_ctx.set(request.headers.get("x-trace-id") or str(uuid4()))
    try:
        enforce_webhook_secret(request.headers.get("x-webhook-secret"))
        raw = await read_json_object(request)
        logger.info("webhook_received keys=%s event=%s", sorted(raw), raw.get("event"))
        with webhook_latency_seconds.labels(service=settings.service_name).time():
            result = reconciler.reconcile(raw, source=request.headers.get("user-agent"))
    except PayhookError as exc:
        outcome = "rejected" if exc.status_code < 500 else "error"
        webhook_requests_total.labels(service=settings.service_name, outcome=outcome).inc()
        raise

    webhook_requests_total.labels(service=settings.service_name, outcome=result.action).inc()
    background_tasks.add_task(dispatcher.notify, result.summary)
    body = WebhookResponse(action=result.action, transaction_id=result.transaction_id)
    return JSONResponse(
        status_code=201 if result.action == "created" else 200,
        content=body.model_dump(),
        headers=CORS_HEADERS,
    )


@app.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: str):
    """Fetch the current state of one transaction."""

    transaction = transactions.get(transaction_id)
    if transaction is None:
        raise HTTPException(status_code=404, detail="transaction not found")
    return TransactionResponse(
        id=transaction.id,
        external_id=transaction.external_id,
        type=transaction.type,
        status=transaction.status,
        amount=transaction.amount,
        description=transaction.description,
        customer_name=transaction.customer_name,
        customer_email=transaction.customer_email,
        customer_phone=transaction.customer_phone,
        customer_document=transaction.customer_document,
        metadata=transaction.metadata_,
        webhook_source=transaction.webhook_source,
        paid_at=transaction.paid_at,
        created_at=transaction.created_at,
        updated_at=transaction.updated_at,
    )


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}
