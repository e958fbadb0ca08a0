"""Quotation model — priced offer that can be converted into an invoice."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockflow.database.base import Base, TenantScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin
from stockflow.models.enums import QuotationStatus

if TYPE_CHECKING:
    from stockflow.models.customer import Customer
    from stockflow.models.invoice import Invoice
    from stockflow.models.quotation_item import QuotationItem


class Quotation(UUIDPrimaryKeyMixin, TenantScopedMixin, TimestampMixin, Base):
    __tablename__ = "quotations"

    quotation_number: Mapped[str] = mapped_column(String(20), nullable=False)
    customer_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customers.id", ondelete="SET NULL"),
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))

    status: Mapped[QuotationStatus] = mapped_column(
        nullable=False, server_default="DRAFT"
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
    valid_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    notes: Mapped[str | None] = mapped_column(Text)

    # Conversion
    converted_to_invoice_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("invoices.id", ondelete="SET NULL"),
        unique=True,
    )
    converted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Relationships
    customer: Mapped[Customer | None] = relationship("Customer", lazy="noload")
    items: Mapped[list[QuotationItem]] = relationship(
        "QuotationItem",
        back_populates="quotation",
        lazy="noload",
        cascade="all, delete-orphan",
    )
    converted_to_invoice: Mapped[Invoice | None] = relationship("Invoice", lazy="noload")

    __table_args__ = (
        UniqueConstraint("tenant_id", "quotation_number", name="uq_quotations_tenant_number"),
        Index("ix_quotations_status", "status"),
    )
