"""Transaction status inference from heterogeneous upstream webhooks."""

from datetime import datetime, timezone


TRANSACTION_TYPES: tuple[str, ...] = ("boleto", "pix", "cartao")
TRANSACTION_STATUSES: tuple[str, ...] = ("gerado", "pago", "pendente", "cancelado", "expirado")
DEFAULT_STATUS = "gerado"

# Checked in order; the first keyword found in the event label wins.
EVENT_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("paid", "pago"), "pago"),
    (("cancel",), "cancelado"),
    (("expir",), "expirado"),
)


def infer_status(event: str | None, status: str | None) -> str:
    """Map an event label plus optional explicit status to a known status.

    Event keywords take precedence over the explicit field; unknown values
    fall back to `gerado`.
    """

    if event:
        for keywords, inferred in EVENT_KEYWORDS:
            if any(keyword in event for keyword in keywords):
                return inferred
    if status in TRANSACTION_STATUSES:
        return status
    return DEFAULT_STATUS


def resolve_paid_at(status: str, explicit: datetime | None, now: datetime | None = None) -> datetime | None:
    """Explicit `paid_at` wins; otherwise stamp `now` only for paid transactions."""

    if explicit is not None:
        if explicit.tzinfo is None:
            return explicit.replace(tzinfo=timezone.utc)
        return explicit.astimezone(timezone.utc)
    if status == "pago":
        return now or datetime.now(timezone.utc)
    return None
