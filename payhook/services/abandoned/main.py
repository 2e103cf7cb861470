"""HTTP surface for abandoned checkout webhooks."""

from fastapi import FastAPI, Request

from payhook.common.config import settings
from payhook.common.db import SessionLocal
from payhook.common.http import install_http_plumbing, read_json_object
from payhook.common.logging import configure_logging
from payhook.common.metrics import metrics_response
from payhook.common.startup import log_startup_config
from payhook.common.tracing import instrument_app, setup_tracing
from payhook.services.abandoned.service import AbandonedEventService

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(settings.service_name, ["SERVICE_NAME", "POSTGRES_DSN"])
service = AbandonedEventService(SessionLocal)

app = FastAPI(title="Payhook Abandoned Checkout Webhook")
install_http_plumbing(app)
instrument_app(app)


@app.post("/webhooks/abandoned")
async def receive_abandoned(request: Request):
    """Store one abandoned cart or failed boleto event."""

    raw = await read_json_object(request)
    event = service.record(raw)
    return {"success": True, "id": event.id}


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()
