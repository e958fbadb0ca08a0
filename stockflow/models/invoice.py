"""Invoice model — sales invoice issued by a tenant to a customer."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockflow.database.base import Base, TenantScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin
from stockflow.models.enums import InvoiceSource, InvoiceStatus, PaymentStatus

if TYPE_CHECKING:
    from stockflow.models.collection_reminder import CollectionReminder
    from stockflow.models.customer import Customer
    from stockflow.models.invoice_item import InvoiceItem


class Invoice(UUIDPrimaryKeyMixin, TenantScopedMixin, TimestampMixin, Base):
    __tablename__ = "invoices"

    invoice_number: Mapped[str] = mapped_column(String(20), nullable=False)
    customer_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customers.id", ondelete="SET NULL"),
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))

    # Status
    status: Mapped[InvoiceStatus] = mapped_column(
        nullable=False, server_default="DRAFT"
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        nullable=False, server_default="UNPAID"
    )
    source: Mapped[InvoiceSource] = mapped_column(
        nullable=False, server_default="MANUAL"
    )

    # Amounts
    subtotal: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    tax: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, server_default="0"
    )
    discount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, server_default="0"
    )
    total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    # Dates
    issue_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    notes: Mapped[str | None] = mapped_column(Text)

    # Relationships
    customer: Mapped[Customer | None] = relationship("Customer", lazy="noload")
    items: Mapped[list[InvoiceItem]] = relationship(
        "InvoiceItem",
        back_populates="invoice",
        lazy="noload",
        cascade="all, delete-orphan",
    )
    collection_reminders: Mapped[list[CollectionReminder]] = relationship(
        "CollectionReminder", back_populates="invoice", lazy="noload"
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "invoice_number", name="uq_invoices_tenant_number"),
        Index("ix_invoices_status", "status"),
        Index(
            "ix_invoices_collectible",
            "tenant_id",
            "due_date",
            postgresql_where=text("due_date IS NOT NULL AND payment_status <> 'PAID'"),
        ),
    )
