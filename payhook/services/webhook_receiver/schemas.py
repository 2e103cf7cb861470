"""Webhook payload contract and response schemas."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from payhook.common.parsing import parse_amount


class WebhookPayload(BaseModel):
    """Transaction webhook body after shape validation and amount parsing."""

    model_config = ConfigDict(extra="ignore")

    type: Literal["boleto", "pix", "cartao"]
    amount: float
    event: str | None = None
    external_id: str | None = None
    status: str | None = None
    description: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    customer_document: str | None = None
    boleto_url: str | None = None
    metadata: dict[str, Any] | None = None
    paid_at: datetime | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, value):
        amount = parse_amount(value)
        if amount is None:
            raise ValueError(f"Invalid amount: {value!r}")
        return amount

    @field_validator("external_id", mode="before")
    @classmethod
    def _blank_external_id(cls, value):
        # Empty ids would otherwise all collide on the unique constraint.
        if isinstance(value, str) and not value.strip():
            return None
        return value


@dataclass(frozen=True)
class Valid:
    payload: WebhookPayload


@dataclass(frozen=True)
class Invalid:
    reason: str


def validate_payload(raw: dict) -> Valid | Invalid:
    """Check the raw JSON object against the webhook contract."""

    if raw.get("type") in (None, "") or raw.get("amount") in (None, ""):
        return Invalid("Missing required fields: type, amount")
    try:
        return Valid(WebhookPayload.model_validate(raw))
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "payload"
        return Invalid(f"Invalid field {field}: {first['msg']}")


class TransactionSummary(BaseModel):
    """What the notification fan-out needs to know about a reconciled row."""

    type: str
    status: str
    amount: float
    customer_name: str | None = None


class WebhookResponse(BaseModel):
    success: bool = True
    action: Literal["created", "updated"]
    transaction_id: str


class TransactionResponse(BaseModel):
    """Read model for one stored transaction."""

    id: str
    external_id: str | None
    type: str
    status: str
    amount: float
    description: str | None
    customer_name: str | None
    customer_email: str | None
    customer_phone: str | None
    customer_document: str | None
    metadata: dict[str, Any] | None
    webhook_source: str
    paid_at: datetime | None
    created_at: datetime | None
    updated_at: datetime | None
