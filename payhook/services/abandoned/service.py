"""Storage of abandoned checkout events."""

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from payhook.common.errors import PersistenceError, ValidationError
from payhook.common.logging import logger
from payhook.common.metrics import abandoned_events_total
from payhook.common.parsing import normalize_phone
from payhook.services.abandoned.models import AbandonedEvent
from payhook.services.abandoned.schemas import AbandonedEventPayload


class AbandonedEventService:
    """Turns one webhook body into one `abandoned_events` row."""

    def __init__(self, session_factory, service_name: str = "abandoned") -> None:
        self.session_factory = session_factory
        self.service_name = service_name

    def record(self, raw: dict) -> AbandonedEvent:
        try:
            payload = AbandonedEventPayload.model_validate(raw)
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or "payload"
            raise ValidationError(f"Invalid field {field}: {first['msg']}") from exc

        event = AbandonedEvent(
            event_type=payload.event_type,
            customer_name=payload.customer_name or None,
            customer_phone=normalize_phone(payload.customer_phone, digits_only=True),
            customer_email=payload.customer_email or None,
            customer_document=payload.customer_document or None,
            amount=payload.amount,
            product_name=payload.product_name or None,
            funnel_stage=payload.funnel_stage or None,
            utm_source=payload.utm_source or None,
            utm_medium=payload.utm_medium or None,
            utm_campaign=payload.utm_campaign or None,
            utm_term=payload.utm_term or None,
            utm_content=payload.utm_content or None,
            error_message=payload.error_message or None,
            metadata_=payload.metadata or {},
        )
        try:
            with self.session_factory() as db:
                db.add(event)
                db.commit()
                db.refresh(event)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to insert abandoned event: {exc}") from exc

        abandoned_events_total.labels(service=self.service_name, event_type=event.event_type).inc()
        logger.info("abandoned_event_created id=%s event_type=%s", event.id, event.event_type)
        return event
