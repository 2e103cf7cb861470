"""HTTP plumbing shared by every service app: CORS, metrics, error bodies."""

from time import perf_counter

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from payhook.common.config import settings
from payhook.common.errors import PayhookError, ValidationError
from payhook.common.logging import logger
from payhook.common.metrics import http_request_duration_seconds, http_requests_total


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": (
        "authorization, x-client-info, apikey, content-type, x-webhook-secret, x-api-key, x-user-id"
    ),
}


def error_response(status_code: int, message: str) -> JSONResponse:
    """JSON `{"error": ...}` body returned for rejected or failed requests."""

    return JSONResponse(status_code=status_code, content={"error": message}, headers=CORS_HEADERS)


async def _handle_payhook_error(_: Request, exc: PayhookError) -> JSONResponse:
    return error_response(exc.status_code, str(exc))


async def _handle_unexpected_error(_: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_error error=%s", exc, exc_info=exc)
    return error_response(500, str(exc) or "Unknown error")


def install_http_plumbing(app: FastAPI) -> None:
    """Attach CORS preflight, per-request metrics and error handlers."""

    @app.middleware("http")
    async def cors_and_metrics_middleware(request: Request, call_next):
        """Answer preflights and record request count and latency."""

        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)

        start = perf_counter()
        route = request.url.path
        method = request.method
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            route_obj = request.scope.get("route")
            if route_obj is not None and getattr(route_obj, "path", None):
                route = route_obj.path
            for name, value in CORS_HEADERS.items():
                response.headers.setdefault(name, value)
            return response
        finally:
            elapsed = max(0.0, perf_counter() - start)
            http_request_duration_seconds.labels(
                service=settings.service_name,
                route=route,
                method=method,
            ).observe(elapsed)
            http_requests_total.labels(
                service=settings.service_name,
                route=route,
                method=method,
                status_code=str(status_code),
            ).inc()

    app.add_exception_handler(PayhookError, _handle_payhook_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)


async def read_json_object(request: Request) -> dict:
    """Decode the request body, raising a 400-class error unless it is an object."""

    try:
        body = await request.json()
    except ValueError as exc:
        raise ValidationError("Invalid JSON body") from exc
    if not isinstance(body, dict):
        raise ValidationError("JSON body must be an object")
    return body
