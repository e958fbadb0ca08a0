"""Pydantic v2 schemas for collection reminder API endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from stockflow.models.enums import (
    CollectionReminderType,
    InvoiceStatus,
    PaymentStatus,
    ReminderChannel,
    ReminderStatus,
)

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CollectionReminderCreate(BaseModel):
    """Manual reminder; customer defaults to the invoice's customer."""

    invoice_id: uuid.UUID
    customer_id: uuid.UUID | None = None
    channel: ReminderChannel = ReminderChannel.EMAIL
    scheduled_at: datetime
    message: str | None = Field(None, max_length=2000)
    notes: str | None = Field(None, max_length=1000)


class ReminderMarkFailedRequest(BaseModel):
    notes: str | None = Field(None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ReminderInvoiceSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    invoice_number: str
    total: Decimal
    due_date: datetime | None = None
    status: InvoiceStatus
    payment_status: PaymentStatus


class ReminderCustomerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str | None = None
    phone: str | None = None


class CollectionReminderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    invoice_id: uuid.UUID
    customer_id: uuid.UUID | None = None
    type: CollectionReminderType
    channel: ReminderChannel
    status: ReminderStatus
    scheduled_at: datetime
    sent_at: datetime | None = None
    message: str | None = None
    notes: str | None = None
    created_at: datetime
    invoice: ReminderInvoiceSummary | None = None
    customer: ReminderCustomerSummary | None = None


class CollectionReminderListResponse(BaseModel):
    items: list[CollectionReminderResponse]
    total: int
    limit: int
    offset: int


class GenerateRemindersResponse(BaseModel):
    generated: int


class ReminderStatsResponse(BaseModel):
    by_status: dict[ReminderStatus, int]
    by_type: dict[CollectionReminderType, int]
    total: int


class CollectionDashboardResponse(BaseModel):
    total_overdue_amount: Decimal
    overdue_invoices_count: int
    pending_reminders: int
    sent_reminders: int
    failed_reminders: int


class OverdueInvoiceResponse(BaseModel):
    id: uuid.UUID
    invoice_number: str
    customer: ReminderCustomerSummary | None = None
    total: Decimal
    due_date: datetime
    status: InvoiceStatus
    payment_status: PaymentStatus
    days_overdue: int
    last_reminder_at: datetime | None = None
