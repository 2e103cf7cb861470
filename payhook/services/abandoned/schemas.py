"""Abandoned checkout webhook payload."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

from payhook.common.parsing import parse_amount


class AbandonedEventPayload(BaseModel):
    """Every field is optional; an unparseable amount is stored as null."""

    model_config = ConfigDict(extra="ignore")

    event_type: Literal["cart_abandoned", "boleto_failed"] = "cart_abandoned"
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_email: str | None = None
    customer_document: str | None = None
    amount: float | None = None
    product_name: str | None = None
    funnel_stage: str | None = None
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    utm_term: str | None = None
    utm_content: str | None = None
    error_message: str | None = None
    metadata: dict[str, Any] | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, value):
        return parse_amount(value)

    @field_validator("event_type", mode="before")
    @classmethod
    def _default_event_type(cls, value):
        return value or "cart_abandoned"
