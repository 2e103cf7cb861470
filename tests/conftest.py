"""Shared fixtures: in-memory SQLite row store and a scriptable push transport."""

import os

os.environ.setdefault("POSTGRES_DSN", "sqlite+pysqlite://")
os.environ.setdefault("SERVICE_NAME", "payhook-tests")
os.environ["TRACING_ENABLED"] = "false"
os.environ.pop("VAPID_PUBLIC_KEY", None)
os.environ.pop("VAPID_PRIVATE_KEY", None)
os.environ.pop("WEBHOOK_SECRET", None)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from payhook.common.db import Base
from payhook.services.abandoned import models as abandoned_models  # noqa: F401
from payhook.services.notification.models import PushSubscription
from payhook.services.notification.transport import DeliveryOutcome
from payhook.services.webhook_receiver import models as transaction_models  # noqa: F401


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    engine.dispose()


class FakeTransport:
    """Records every send; per-endpoint outcome or exception to raise."""

    def __init__(self, outcomes: dict | None = None) -> None:
        self.outcomes = outcomes or {}
        self.sent: list[tuple[str, str]] = []

    def send(self, subscription, data: str) -> DeliveryOutcome:
        self.sent.append((subscription.endpoint, data))
        outcome = self.outcomes.get(subscription.endpoint, DeliveryOutcome.DELIVERED)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def sent_to(self, endpoint: str) -> int:
        return sum(1 for sent_endpoint, _ in self.sent if sent_endpoint == endpoint)


@pytest.fixture
def add_subscription(session_factory):
    def _add(endpoint: str, user_id: str = "user-1") -> None:
        with session_factory() as db:
            db.add(PushSubscription(user_id=user_id, endpoint=endpoint, p256dh="p256dh-key", auth="auth-key"))
            db.commit()

    return _add


@pytest.fixture
def make_transport():
    return FakeTransport
