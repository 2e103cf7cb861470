"""Web Push delivery (RFC 8030, VAPID-signed, aes128gcm-encrypted)."""

from enum import Enum

from pywebpush import WebPushException, webpush

from payhook.common.logging import logger


# Push services answer these when the subscription is gone for good.
GONE_STATUS_CODES = frozenset({404, 410})


class DeliveryOutcome(str, Enum):
    DELIVERED = "delivered"
    PERMANENT = "permanent"
    TRANSIENT = "transient"


class WebPushTransport:
    """Sends one encrypted payload to one subscription endpoint."""

    def __init__(self, vapid_private_key: str, vapid_subject: str, ttl: int = 86400, timeout: float = 10.0) -> None:
        self.vapid_private_key = vapid_private_key
        self.vapid_subject = vapid_subject
        self.ttl = ttl
        self.timeout = timeout

    def send(self, subscription, data: str) -> DeliveryOutcome:
        """Blocking delivery; network errors propagate to the caller."""

        try:
            webpush(
                subscription_info={
                    "endpoint": subscription.endpoint,
                    "keys": {"p256dh": subscription.p256dh, "auth": subscription.auth},
                },
                data=data,
                vapid_private_key=self.vapid_private_key,
                # pywebpush mutates the claims dict (adds aud/exp), so build it per call.
                vapid_claims={"sub": self.vapid_subject},
                ttl=self.ttl,
                timeout=self.timeout,
            )
        except WebPushException as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            if status_code in GONE_STATUS_CODES:
                return DeliveryOutcome.PERMANENT
            logger.warning("push_rejected status=%s error=%s", status_code, exc)
            return DeliveryOutcome.TRANSIENT
        return DeliveryOutcome.DELIVERED


def build_transport(settings) -> WebPushTransport | None:
    """Transport from settings, or None while the VAPID key pair is unset."""

    if not settings.push_enabled:
        return None
    return WebPushTransport(
        vapid_private_key=settings.vapid_private_key,
        vapid_subject=settings.vapid_subject,
        ttl=settings.push_ttl_seconds,
        timeout=settings.push_timeout_seconds,
    )
