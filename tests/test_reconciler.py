"""Reconciliation against a real (SQLite) row store."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select

from payhook.common.errors import PersistenceError, ValidationError
from payhook.services.webhook_receiver.models import Transaction
from payhook.services.webhook_receiver.service import TransactionReconciler
from payhook.services.webhook_receiver.store import TransactionStore


NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(session_factory):
    return TransactionStore(session_factory)


@pytest.fixture
def reconciler(store):
    return TransactionReconciler(store, clock=lambda: NOW)


def _count(session_factory, external_id=None) -> int:
    with session_factory() as db:
        query = select(func.count()).select_from(Transaction)
        if external_id is not None:
            query = query.where(Transaction.external_id == external_id)
        return db.execute(query).scalar_one()


def test_create_stores_parsed_fields(reconciler, store):
    result = reconciler.reconcile(
        {
            "type": "boleto",
            "amount": "R$ 50.00",
            "external_id": "bol-1",
            "customer_name": "Maria",
            "customer_phone": "+5511999999999",
            "boleto_url": "https://bank.example/boleto/1",
            "metadata": {"order": 42},
        },
        source="gateway/1.0",
    )

    assert result.action == "created"
    transaction = store.get(result.transaction_id)
    assert transaction.amount == 50.0
    assert transaction.status == "gerado"
    assert transaction.customer_phone == "5511999999999"
    assert transaction.metadata_ == {"order": 42, "boleto_url": "https://bank.example/boleto/1"}
    assert transaction.webhook_source == "gateway/1.0"
    assert transaction.paid_at is None


def test_missing_source_is_recorded_as_unknown(reconciler, store):
    result = reconciler.reconcile({"type": "pix", "amount": 1})

    assert store.get(result.transaction_id).webhook_source == "unknown"


def test_second_delivery_updates_same_row(reconciler, store, session_factory):
    first = reconciler.reconcile({"type": "pix", "amount": "150,00", "external_id": "abc123", "event": "payment.created"})
    second = reconciler.reconcile(
        {"type": "pix", "amount": "150,00", "external_id": "abc123", "event": "payment.paid", "metadata": {"k": "v"}}
    )

    assert first.action == "created"
    assert second.action == "updated"
    assert second.transaction_id == first.transaction_id
    assert _count(session_factory, "abc123") == 1
    transaction = store.get(first.transaction_id)
    assert transaction.status == "pago"
    assert transaction.paid_at.replace(tzinfo=None) == NOW.replace(tzinfo=None)
    assert transaction.metadata_ == {"k": "v"}


def test_update_does_not_rewrite_descriptive_fields(reconciler, store):
    first = reconciler.reconcile(
        {"type": "boleto", "amount": 100, "external_id": "x-1", "customer_name": "Ana", "description": "Plano"}
    )
    reconciler.reconcile(
        {"type": "pix", "amount": 999, "external_id": "x-1", "customer_name": "Other", "status": "pendente"}
    )

    transaction = store.get(first.transaction_id)
    assert transaction.type == "boleto"
    assert transaction.amount == 100.0
    assert transaction.customer_name == "Ana"
    assert transaction.description == "Plano"
    assert transaction.status == "pendente"


def test_update_keeps_paid_at_when_new_status_is_not_pago(reconciler, store):
    first = reconciler.reconcile({"type": "pix", "amount": 10, "external_id": "p-1", "event": "pix.paid"})
    reconciler.reconcile({"type": "pix", "amount": 10, "external_id": "p-1", "status": "pendente"})

    transaction = store.get(first.transaction_id)
    assert transaction.status == "pendente"
    assert transaction.paid_at is not None


def test_update_without_metadata_keeps_existing_metadata(reconciler, store):
    first = reconciler.reconcile(
        {"type": "boleto", "amount": 10, "external_id": "m-1", "boleto_url": "https://bank.example/b"}
    )
    reconciler.reconcile({"type": "boleto", "amount": 10, "external_id": "m-1", "event": "boleto.expired"})

    transaction = store.get(first.transaction_id)
    assert transaction.status == "expirado"
    assert transaction.metadata_ == {"boleto_url": "https://bank.example/b"}


def test_deliveries_without_external_id_always_create(reconciler, session_factory):
    payload = {"type": "cartao", "amount": 25, "customer_name": "Same"}

    ids = {reconciler.reconcile(dict(payload)).transaction_id for _ in range(3)}

    assert len(ids) == 3
    assert _count(session_factory) == 3


def test_explicit_paid_at_is_used(reconciler, store):
    result = reconciler.reconcile(
        {"type": "pix", "amount": 5, "event": "pix.paid", "paid_at": "2026-10-01T08:00:00+00:00"}
    )

    assert store.get(result.transaction_id).paid_at.replace(tzinfo=None) == datetime(2026, 10, 1, 8, 0)


def test_summary_reflects_stored_row(reconciler):
    result = reconciler.reconcile({"type": "cartao", "amount": "89,90", "status": "pago", "customer_name": "Rui"})

    assert result.summary.type == "cartao"
    assert result.summary.status == "pago"
    assert result.summary.amount == pytest.approx(89.9)
    assert result.summary.customer_name == "Rui"


@pytest.mark.parametrize(
    "payload",
    [
        {"amount": 10},
        {"type": "pix"},
        {"type": "ted", "amount": 10},
        {"type": "pix", "amount": "abc"},
    ],
)
def test_invalid_payload_is_rejected_and_not_persisted(reconciler, session_factory, payload):
    with pytest.raises(ValidationError):
        reconciler.reconcile(payload)

    assert _count(session_factory) == 0


class RacingStore(TransactionStore):
    """Lookup never sees the row, as when a concurrent insert commits in between."""

    def find_by_external_id(self, external_id):
        return None


def test_insert_race_falls_back_to_update(session_factory):
    reconciler = TransactionReconciler(RacingStore(session_factory), clock=lambda: NOW)

    first = reconciler.reconcile({"type": "pix", "amount": 10, "external_id": "race-1"})
    second = reconciler.reconcile({"type": "pix", "amount": 10, "external_id": "race-1", "event": "pix.paid"})

    assert first.action == "created"
    assert second.action == "updated"
    assert second.transaction_id == first.transaction_id
    assert _count(session_factory, "race-1") == 1


class BrokenStore:
    def find_by_external_id(self, external_id):
        raise PersistenceError("database unavailable")


def test_persistence_errors_propagate():
    reconciler = TransactionReconciler(BrokenStore())

    with pytest.raises(PersistenceError):
        reconciler.reconcile({"type": "pix", "amount": 10, "external_id": "e-1"})
