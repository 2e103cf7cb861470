"""Row store for push subscriptions."""

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from payhook.common.errors import PersistenceError
from payhook.services.notification.models import PushSubscription


class PushSubscriptionStore:
    """Persistence gateway for the `push_subscriptions` table."""

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory

    def list_endpoints(self) -> list[PushSubscription]:
        """Every registered subscription, across all users."""

        try:
            with self.session_factory() as db:
                return list(db.execute(select(PushSubscription)).scalars().all())
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to list push subscriptions: {exc}") from exc

    def delete_endpoint(self, endpoint: str) -> int:
        """Drop every subscription row pointing at `endpoint`; returns rows removed."""

        try:
            with self.session_factory() as db:
                result = db.execute(delete(PushSubscription).where(PushSubscription.endpoint == endpoint))
                db.commit()
                return result.rowcount
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to delete push endpoint: {exc}") from exc

    def upsert(self, user_id: str, endpoint: str, p256dh: str, auth: str) -> PushSubscription:
        """Create or refresh the keys of one user's subscription."""

        try:
            with self.session_factory() as db:
                subscription = db.execute(
                    select(PushSubscription).where(
                        PushSubscription.user_id == user_id,
                        PushSubscription.endpoint == endpoint,
                    )
                ).scalar_one_or_none()
                if subscription is None:
                    subscription = PushSubscription(user_id=user_id, endpoint=endpoint, p256dh=p256dh, auth=auth)
                    db.add(subscription)
                else:
                    subscription.p256dh = p256dh
                    subscription.auth = auth
                db.commit()
                return subscription
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to save push subscription: {exc}") from exc

    def remove(self, user_id: str, endpoint: str) -> int:
        """Explicit opt-out of one user's subscription."""

        try:
            with self.session_factory() as db:
                result = db.execute(
                    delete(PushSubscription).where(
                        PushSubscription.user_id == user_id,
                        PushSubscription.endpoint == endpoint,
                    )
                )
                db.commit()
                return result.rowcount
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to remove push subscription: {exc}") from exc
