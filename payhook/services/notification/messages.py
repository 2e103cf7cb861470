"""Human-readable push message rendering for transaction events."""

import json

from babel.numbers import format_currency
from pydantic import BaseModel

from payhook.services.webhook_receiver.schemas import TransactionSummary


TYPE_LABELS = {
    "boleto": "Boleto",
    "pix": "PIX",
    "cartao": "Cartão",
}

STATUS_LABELS = {
    "gerado": "gerado",
    "pago": "pago",
    "pendente": "pendente",
    "cancelado": "cancelado",
    "expirado": "expirado",
}


class PushMessage(BaseModel):
    """Payload read by the browser service worker."""

    title: str
    body: str
    icon: str
    tag: str = "transaction-notification"
    url: str = "/"

    def to_json(self) -> str:
        return json.dumps(self.model_dump(), ensure_ascii=False)


def render_notification(
    summary: TransactionSummary,
    icon: str,
    currency: str = "BRL",
    locale: str = "pt_BR",
) -> PushMessage:
    money = format_currency(summary.amount, currency, locale=locale)
    title = f"{TYPE_LABELS.get(summary.type, summary.type)} {STATUS_LABELS.get(summary.status, summary.status)}"
    if summary.customer_name:
        body = f"{summary.customer_name} - {money}"
    else:
        body = f"Valor: {money}"
    return PushMessage(title=title, body=body, icon=icon)
