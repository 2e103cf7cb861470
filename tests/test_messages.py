"""Notification text rendering."""

import json

from payhook.services.notification.messages import render_notification
from payhook.services.webhook_receiver.schemas import TransactionSummary


def test_title_uses_type_and_status_labels():
    message = render_notification(
        TransactionSummary(type="cartao", status="cancelado", amount=10), icon="/icon.png"
    )

    assert message.title == "Cartão cancelado"


def test_body_with_customer_name_uses_brazilian_currency_format():
    message = render_notification(
        TransactionSummary(type="boleto", status="gerado", amount=1234.56, customer_name="Maria"),
        icon="/icon.png",
    )

    assert message.body.startswith("Maria - R$")
    assert message.body.endswith("1.234,56")


def test_body_without_customer_name():
    message = render_notification(TransactionSummary(type="pix", status="pago", amount=50), icon="/icon.png")

    assert message.body.startswith("Valor: R$")
    assert message.body.endswith("50,00")


def test_payload_json_keeps_accents():
    message = render_notification(TransactionSummary(type="cartao", status="pago", amount=1), icon="/i.png")

    decoded = json.loads(message.to_json())
    assert decoded == {
        "title": "Cartão pago",
        "body": message.body,
        "icon": "/i.png",
        "tag": "transaction-notification",
        "url": "/",
    }
    assert "Cartão" in message.to_json()
