"""Push fan-out for reconciled transactions.

Every registered endpoint receives every transaction notification. Delivery
attempts run concurrently and are isolated from each other; endpoints the push
service reports as gone are pruned. Nothing raised here reaches the webhook
caller.
"""

import asyncio
from time import perf_counter

from payhook.common.logging import logger
from payhook.common.metrics import push_deliveries_total, push_endpoints_pruned_total, push_fanout_seconds
from payhook.services.notification.messages import render_notification
from payhook.services.notification.transport import DeliveryOutcome
from payhook.services.webhook_receiver.schemas import TransactionSummary


class PushDispatcher:
    """Broadcasts one rendered message to all push subscriptions."""

    def __init__(
        self,
        store,
        transport,
        icon: str = "/logo-ov.png",
        currency: str = "BRL",
        locale: str = "pt_BR",
        service_name: str = "notification",
    ) -> None:
        self.store = store
        self.transport = transport
        self.icon = icon
        self.currency = currency
        self.locale = locale
        self.service_name = service_name

    async def notify(self, summary: TransactionSummary) -> None:
        """Fan out one notification; logs and swallows every failure."""

        try:
            await self._fan_out(summary)
        except Exception as exc:
            logger.exception("push_fanout_failed error=%s", exc)

    async def _fan_out(self, summary: TransactionSummary) -> None:
        if self.transport is None:
            logger.info("push_fanout_skipped reason=transport_not_configured")
            return

        message = render_notification(summary, self.icon, currency=self.currency, locale=self.locale)
        # One device may be registered by several users; send to it once.
        endpoints = list({row.endpoint: row for row in self.store.list_endpoints()}.values())
        if not endpoints:
            logger.info("push_fanout_skipped reason=no_endpoints")
            return

        started = perf_counter()
        data = message.to_json()
        results = await asyncio.gather(
            *(self._deliver(endpoint, data) for endpoint in endpoints),
            return_exceptions=True,
        )
        push_fanout_seconds.labels(service=self.service_name).observe(max(0.0, perf_counter() - started))

        delivered = sum(1 for result in results if result is DeliveryOutcome.DELIVERED)
        logger.info(
            "push_fanout_complete title=%s delivered=%s total=%s",
            message.title,
            delivered,
            len(endpoints),
        )

    async def _deliver(self, subscription, data: str) -> DeliveryOutcome:
        """One isolated attempt: never raises, at most one try."""

        try:
            outcome = await asyncio.to_thread(self.transport.send, subscription, data)
        except Exception as exc:
            logger.warning("push_delivery_error endpoint=%s error=%s", _short(subscription.endpoint), exc)
            outcome = DeliveryOutcome.TRANSIENT

        push_deliveries_total.labels(service=self.service_name, outcome=outcome.value).inc()
        if outcome is DeliveryOutcome.PERMANENT:
            self._prune(subscription.endpoint)
        return outcome

    def _prune(self, endpoint: str) -> None:
        try:
            removed = self.store.delete_endpoint(endpoint)
        except Exception as exc:
            logger.error("push_endpoint_prune_failed endpoint=%s error=%s", _short(endpoint), exc)
            return
        push_endpoints_pruned_total.labels(service=self.service_name).inc()
        logger.info("push_endpoint_pruned endpoint=%s rows=%s", _short(endpoint), removed)


def _short(endpoint: str) -> str:
    # Endpoint URLs embed a bearer-like token; log only the head.
    return endpoint[:48] + "..." if len(endpoint) > 48 else endpoint
