"""Transaction reconciliation for inbound payment webhooks.

The first delivery for an `external_id` creates the row and is authoritative
for descriptive fields (type, amount, customer). Later deliveries only move
the lifecycle forward: status, paid_at and metadata.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from payhook.common.errors import DuplicateExternalIdError, PersistenceError, ValidationError
from payhook.common.logging import external_id_ctx, logger, transaction_id_ctx
from payhook.common.parsing import normalize_phone
from payhook.common.status import infer_status, resolve_paid_at
from payhook.services.webhook_receiver.models import Transaction
from payhook.services.webhook_receiver.schemas import (
    Invalid,
    TransactionSummary,
    WebhookPayload,
    validate_payload,
)


@dataclass(frozen=True)
class ReconcileResult:
    transaction_id: str
    action: str
    summary: TransactionSummary


class TransactionReconciler:
    """Decides create vs update for each webhook and applies the mutation."""

    def __init__(self, store, clock=None) -> None:
        self.store = store
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def reconcile(self, raw: dict, source: str | None = None) -> ReconcileResult:
        """Validate, then create or update the transaction for one delivery."""

        checked = validate_payload(raw)
        if isinstance(checked, Invalid):
            logger.warning("webhook_rejected reason=%s", checked.reason)
            raise ValidationError(checked.reason)
        payload = checked.payload
        if payload.external_id:
            external_id_ctx.set(payload.external_id)

        now = self.clock()
        status = infer_status(payload.event, payload.status)
        paid_at = resolve_paid_at(status, payload.paid_at, now)

        if payload.external_id:
            existing = self.store.find_by_external_id(payload.external_id)
            if existing is not None:
                return self._update(payload, status, paid_at, now)

        values = {
            "external_id": payload.external_id,
            "type": payload.type,
            "status": status,
            "amount": payload.amount,
            "description": payload.description,
            "customer_name": payload.customer_name,
            "customer_email": payload.customer_email,
            "customer_phone": normalize_phone(payload.customer_phone),
            "customer_document": payload.customer_document,
            "metadata_": self._metadata(payload),
            "webhook_source": source or "unknown",
            "paid_at": paid_at,
        }
        try:
            transaction = self.store.insert(values)
        except DuplicateExternalIdError:
            # A concurrent delivery created the row between lookup and insert.
            logger.info("insert_lost_race external_id=%s applying_as_update", payload.external_id)
            return self._update(payload, status, paid_at, now)

        transaction_id_ctx.set(transaction.id)
        logger.info("transaction_created id=%s type=%s status=%s", transaction.id, transaction.type, status)
        return ReconcileResult(transaction.id, "created", self._summary(transaction))

    def _update(
        self, payload: WebhookPayload, status: str, paid_at: datetime | None, now: datetime
    ) -> ReconcileResult:
        values = {"status": status, "updated_at": now}
        if paid_at is not None:
            values["paid_at"] = paid_at
        if payload.metadata is not None or payload.boleto_url is not None:
            values["metadata_"] = self._metadata(payload)

        transaction = self.store.update_by_external_id(payload.external_id, values)
        if transaction is None:
            raise PersistenceError(f"transaction external_id={payload.external_id} disappeared during update")

        transaction_id_ctx.set(transaction.id)
        logger.info("transaction_updated id=%s status=%s", transaction.id, status)
        return ReconcileResult(transaction.id, "updated", self._summary(transaction))

    @staticmethod
    def _metadata(payload: WebhookPayload) -> dict:
        metadata = dict(payload.metadata or {})
        if payload.boleto_url is not None:
            metadata["boleto_url"] = payload.boleto_url
        return metadata

    @staticmethod
    def _summary(transaction: Transaction) -> TransactionSummary:
        return TransactionSummary(
            type=transaction.type,
            status=transaction.status,
            amount=transaction.amount,
            customer_name=transaction.customer_name,
        )
