"""Pydantic v2 schemas for Invoice API endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stockflow.models.enums import InvoiceSource, InvoiceStatus, PaymentStatus, TaxCategory

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class LineItemCreate(BaseModel):
    """One priced line; shared by invoices and quotations."""

    product_id: uuid.UUID | None = None
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    tax_rate: Decimal | None = Field(None, ge=0, le=100)
    tax_category: TaxCategory | None = None
    discount: Decimal = Field(Decimal("0"), ge=0)


class LineItemUpdate(BaseModel):
    quantity: int | None = Field(None, gt=0)
    unit_price: Decimal | None = Field(None, ge=0)
    tax_rate: Decimal | None = Field(None, ge=0, le=100)
    tax_category: TaxCategory | None = None
    discount: Decimal | None = Field(None, ge=0)


class InvoiceCreate(BaseModel):
    customer_id: uuid.UUID | None = None
    issue_date: datetime | None = None
    due_date: datetime | None = None
    notes: str | None = Field(None, max_length=2000)
    items: list[LineItemCreate] = Field(..., min_length=1)


class InvoiceUpdate(BaseModel):
    customer_id: uuid.UUID | None = None
    issue_date: datetime | None = None
    due_date: datetime | None = None
    notes: str | None = Field(None, max_length=2000)

    @field_validator("issue_date")
    @classmethod
    def issue_date_not_null(cls, v: datetime | None) -> datetime:
        if v is None:
            raise ValueError("issue_date cannot be null")
        return v


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LineItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID | None = None
    quantity: int
    unit_price: Decimal
    tax_rate: Decimal
    tax_category: TaxCategory
    discount: Decimal
    subtotal: Decimal
    tax: Decimal
    total: Decimal


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    invoice_number: str
    customer_id: uuid.UUID | None = None
    user_id: uuid.UUID | None = None
    status: InvoiceStatus
    payment_status: PaymentStatus
    source: InvoiceSource
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    issue_date: datetime
    due_date: datetime | None = None
    paid_at: datetime | None = None
    notes: str | None = None
    items: list[LineItemResponse] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class InvoiceListResponse(BaseModel):
    items: list[InvoiceResponse]
    total: int
    limit: int
    offset: int
