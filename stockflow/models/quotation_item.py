from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockflow.database.base import Base, UUIDPrimaryKeyMixin
from stockflow.models.enums import TaxCategory

if TYPE_CHECKING:
    from stockflow.models.product import Product
    from stockflow.models.quotation import Quotation


class QuotationItem(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "quotation_items"

    quotation_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("quotations.id", ondelete="CASCADE"),
        nullable=False,
    )
    product_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("products.id", ondelete="SET NULL"),
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, server_default="19"
    )
    tax_category: Mapped[TaxCategory] = mapped_column(
        nullable=False, server_default="GRAVADO_19"
    )
    discount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, server_default="0"
    )
    subtotal: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    tax: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    quotation: Mapped[Quotation] = relationship(
        "Quotation", back_populates="items", lazy="noload"
    )
    product: Mapped[Product | None] = relationship("Product", lazy="noload")

    __table_args__ = (Index("ix_quotation_items_quotation_id", "quotation_id"),)
