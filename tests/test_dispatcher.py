"""Push fan-out: isolation, pruning and the disabled/no-endpoint modes."""

import asyncio
import json

from sqlalchemy import select

from payhook.common.errors import PersistenceError
from payhook.services.notification.models import PushSubscription
from payhook.services.notification.service import PushDispatcher
from payhook.services.notification.store import PushSubscriptionStore
from payhook.services.notification.transport import DeliveryOutcome
from payhook.services.webhook_receiver.schemas import TransactionSummary


SUMMARY = TransactionSummary(type="pix", status="pago", amount=150.0, customer_name="Maria")


def _endpoints(session_factory) -> set[str]:
    with session_factory() as db:
        return set(db.execute(select(PushSubscription.endpoint)).scalars().all())


def test_permanent_failure_prunes_only_that_endpoint(session_factory, add_subscription, make_transport):
    for endpoint in ("https://push.example/1", "https://push.example/2", "https://push.example/3"):
        add_subscription(endpoint)
    transport = make_transport({"https://push.example/2": DeliveryOutcome.PERMANENT})
    dispatcher = PushDispatcher(PushSubscriptionStore(session_factory), transport)

    asyncio.run(dispatcher.notify(SUMMARY))

    assert {endpoint for endpoint, _ in transport.sent} == {
        "https://push.example/1",
        "https://push.example/2",
        "https://push.example/3",
    }
    assert _endpoints(session_factory) == {"https://push.example/1", "https://push.example/3"}


def test_prune_removes_endpoint_for_every_user(session_factory, add_subscription, make_transport):
    add_subscription("https://push.example/shared", user_id="a")
    add_subscription("https://push.example/shared", user_id="b")
    transport = make_transport({"https://push.example/shared": DeliveryOutcome.PERMANENT})

    asyncio.run(PushDispatcher(PushSubscriptionStore(session_factory), transport).notify(SUMMARY))

    assert _endpoints(session_factory) == set()
    assert transport.sent_to("https://push.example/shared") == 1


def test_transient_failures_and_exceptions_keep_endpoints(session_factory, add_subscription, make_transport):
    add_subscription("https://push.example/slow")
    add_subscription("https://push.example/broken")
    add_subscription("https://push.example/ok")
    transport = make_transport(
        {
            "https://push.example/slow": DeliveryOutcome.TRANSIENT,
            "https://push.example/broken": ConnectionError("reset by peer"),
        }
    )

    asyncio.run(PushDispatcher(PushSubscriptionStore(session_factory), transport).notify(SUMMARY))

    assert len(transport.sent) == 3
    assert _endpoints(session_factory) == {
        "https://push.example/slow",
        "https://push.example/broken",
        "https://push.example/ok",
    }


def test_message_payload_is_rendered_once_for_all_endpoints(session_factory, add_subscription, make_transport):
    add_subscription("https://push.example/1")
    add_subscription("https://push.example/2")
    transport = make_transport()

    asyncio.run(PushDispatcher(PushSubscriptionStore(session_factory), transport).notify(SUMMARY))

    payloads = {data for _, data in transport.sent}
    assert len(payloads) == 1
    message = json.loads(payloads.pop())
    assert message["title"] == "PIX pago"
    assert message["body"].startswith("Maria - R$")
    assert message["icon"] == "/logo-ov.png"


def test_unconfigured_transport_is_a_no_op(session_factory, add_subscription):
    add_subscription("https://push.example/1")

    asyncio.run(PushDispatcher(PushSubscriptionStore(session_factory), None).notify(SUMMARY))

    assert _endpoints(session_factory) == {"https://push.example/1"}


def test_no_endpoints_sends_nothing(session_factory, make_transport):
    transport = make_transport()

    asyncio.run(PushDispatcher(PushSubscriptionStore(session_factory), transport).notify(SUMMARY))

    assert transport.sent == []


class UnreachableStore:
    def list_endpoints(self):
        raise PersistenceError("database unavailable")


def test_store_failure_is_contained(make_transport):
    transport = make_transport()

    asyncio.run(PushDispatcher(UnreachableStore(), transport).notify(SUMMARY))

    assert transport.sent == []


class PruneFailsStore(PushSubscriptionStore):
    def delete_endpoint(self, endpoint):
        raise PersistenceError("delete failed")


def test_prune_failure_does_not_stop_other_deliveries(session_factory, add_subscription, make_transport):
    add_subscription("https://push.example/gone")
    add_subscription("https://push.example/ok")
    transport = make_transport({"https://push.example/gone": DeliveryOutcome.PERMANENT})

    asyncio.run(PushDispatcher(PruneFailsStore(session_factory), transport).notify(SUMMARY))

    assert len(transport.sent) == 2


def test_endpoint_shared_by_users_is_notified_once(session_factory, add_subscription, make_transport):
    add_subscription("https://push.example/shared", user_id="a")
    add_subscription("https://push.example/shared", user_id="b")
    add_subscription("https://push.example/own", user_id="a")
    transport = make_transport()

    asyncio.run(PushDispatcher(PushSubscriptionStore(session_factory), transport).notify(SUMMARY))

    assert sorted(endpoint for endpoint, _ in transport.sent) == [
        "https://push.example/own",
        "https://push.example/shared",
    ]
    assert len(_endpoints(session_factory)) == 2
