"""CollectionReminder model — one scheduled contact attempt for an unpaid invoice."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Text, func, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockflow.database.base import Base, TenantScopedMixin, UUIDPrimaryKeyMixin
from stockflow.models.enums import CollectionReminderType, ReminderChannel, ReminderStatus

if TYPE_CHECKING:
    from stockflow.models.customer import Customer
    from stockflow.models.invoice import Invoice


class CollectionReminder(UUIDPrimaryKeyMixin, TenantScopedMixin, Base):
    """Append-only once it leaves PENDING. No updated_at column."""

    __tablename__ = "collection_reminders"

    invoice_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
    )
    customer_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customers.id", ondelete="SET NULL"),
    )

    type: Mapped[CollectionReminderType] = mapped_column(nullable=False)
    channel: Mapped[ReminderChannel] = mapped_column(
        nullable=False, server_default="EMAIL"
    )
    status: Mapped[ReminderStatus] = mapped_column(
        nullable=False, server_default="PENDING"
    )

    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    message: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    invoice: Mapped[Invoice] = relationship(
        "Invoice", back_populates="collection_reminders", lazy="noload"
    )
    customer: Mapped[Customer | None] = relationship("Customer", lazy="noload")

    __table_args__ = (
        Index("ix_collection_reminders_invoice_id", "invoice_id"),
        Index("ix_collection_reminders_status", "tenant_id", "status"),
        Index("ix_collection_reminders_scheduled_at", "scheduled_at"),
        # One automatic reminder per (invoice, type, UTC calendar day)
        Index(
            "uq_collection_reminders_auto_day",
            "invoice_id",
            "type",
            text("((scheduled_at AT TIME ZONE 'UTC')::date)"),
            unique=True,
            postgresql_where=text("type <> 'MANUAL'"),
        ),
    )
