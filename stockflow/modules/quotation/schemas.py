"""Pydantic v2 schemas for Quotation API endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from stockflow.models.enums import QuotationStatus
from stockflow.modules.invoice.schemas import InvoiceResponse, LineItemCreate, LineItemResponse

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class QuotationCreate(BaseModel):
    customer_id: uuid.UUID
    issue_date: datetime | None = None
    valid_until: datetime | None = None
    notes: str | None = Field(None, max_length=2000)
    items: list[LineItemCreate] = Field(..., min_length=1)


class QuotationUpdate(BaseModel):
    """Partial update; ``items``, when given, replaces every line."""

    customer_id: uuid.UUID | None = None
    issue_date: datetime | None = None
    valid_until: datetime | None = None
    notes: str | None = Field(None, max_length=2000)
    items: list[LineItemCreate] | None = Field(None, min_length=1)

    @field_validator("issue_date", "items")
    @classmethod
    def reject_explicit_null(cls, v: Any, info: ValidationInfo) -> Any:
        # Omit the field to leave it unchanged.
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class QuotationCustomerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str | None = None


class QuotationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    quotation_number: str
    customer_id: uuid.UUID | None = None
    user_id: uuid.UUID | None = None
    status: QuotationStatus
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    issue_date: datetime
    valid_until: datetime | None = None
    notes: str | None = None
    converted_to_invoice_id: uuid.UUID | None = None
    converted_at: datetime | None = None
    customer: QuotationCustomerSummary | None = None
    items: list[LineItemResponse] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class QuotationListResponse(BaseModel):
    items: list[QuotationResponse]
    total: int
    limit: int
    offset: int


class QuotationConversionResponse(BaseModel):
    quotation: QuotationResponse
    invoice: InvoiceResponse


class QuotationStatsResponse(BaseModel):
    total_quotations: int
    total_value: Decimal
    by_status: dict[QuotationStatus, int]
