"""Transaction persistence model.

`external_id` is UNIQUE: the database, not the application, guarantees at most
one row per upstream payment id.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, Float, String, func
from sqlalchemy.orm import Mapped, mapped_column

from payhook.common.db import Base, JSONDocument


class Transaction(Base):
    """Current state of one boleto/PIX/card payment lifecycle."""

    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid4()))
    external_id: Mapped[str | None] = mapped_column(String, unique=True, nullable=True)
    type: Mapped[str] = mapped_column(String)
    status: Mapped[str] = mapped_column(String, index=True)
    amount: Mapped[float] = mapped_column(Float)
    description: Mapped[str | None] = mapped_column(String, nullable=True)
    customer_name: Mapped[str | None] = mapped_column(String, nullable=True)
    customer_email: Mapped[str | None] = mapped_column(String, nullable=True)
    customer_phone: Mapped[str | None] = mapped_column(String, nullable=True)
    customer_document: Mapped[str | None] = mapped_column(String, nullable=True)
    # `metadata` is reserved on declarative classes.
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONDocument, nullable=True)
    webhook_source: Mapped[str] = mapped_column(String, default="unknown")
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
