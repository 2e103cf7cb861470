"""Request schemas for the push subscription endpoint."""

from pydantic import BaseModel


class SubscriptionKeys(BaseModel):
    p256dh: str | None = None
    auth: str | None = None


class SubscriptionInfo(BaseModel):
    """Browser `PushSubscription.toJSON()` shape."""

    endpoint: str | None = None
    keys: SubscriptionKeys | None = None


class SubscriptionRequest(BaseModel):
    action: str | None = None
    subscription: SubscriptionInfo | None = None
