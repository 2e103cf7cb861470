"""Row store for transactions.

Every call opens its own short session and commits a single-row change; any
SQLAlchemy failure is re-raised as `PersistenceError`.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from payhook.common.errors import DuplicateExternalIdError, PersistenceError
from payhook.services.webhook_receiver.models import Transaction


class TransactionStore:
    """Persistence gateway for the `transactions` table."""

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory

    def get(self, transaction_id: str) -> Transaction | None:
        try:
            with self.session_factory() as db:
                return db.get(Transaction, transaction_id)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to load transaction {transaction_id}: {exc}") from exc

    def find_by_external_id(self, external_id: str) -> Transaction | None:
        try:
            with self.session_factory() as db:
                return db.execute(
                    select(Transaction).where(Transaction.external_id == external_id)
                ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to look up external_id={external_id}: {exc}") from exc

    def insert(self, values: dict) -> Transaction:
        """Insert one row; a unique-key clash on `external_id` is reported distinctly."""

        try:
            with self.session_factory() as db:
                transaction = Transaction(**values)
                db.add(transaction)
                try:
                    db.commit()
                except IntegrityError as exc:
                    db.rollback()
                    external_id = values.get("external_id")
                    if external_id is not None:
                        raise DuplicateExternalIdError(external_id) from exc
                    raise
                db.refresh(transaction)
                return transaction
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to insert transaction: {exc}") from exc

    def update_by_external_id(self, external_id: str, values: dict) -> Transaction | None:
        """Apply a partial update to the row owning `external_id`; None if it vanished."""

        try:
            with self.session_factory() as db:
                transaction = db.execute(
                    select(Transaction).where(Transaction.external_id == external_id).with_for_update()
                ).scalar_one_or_none()
                if transaction is None:
                    return None
                for field, value in values.items():
                    setattr(transaction, field, value)
                db.commit()
                db.refresh(transaction)
                return transaction
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to update external_id={external_id}: {exc}") from exc
