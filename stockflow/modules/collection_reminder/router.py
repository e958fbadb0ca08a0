"""Collection reminder API router — 10 endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stockflow.models.enums import CollectionReminderType, ReminderChannel, ReminderStatus
from stockflow.modules.collection_reminder.schemas import (
    CollectionDashboardResponse,
    CollectionReminderCreate,
    CollectionReminderListResponse,
    CollectionReminderResponse,
    GenerateRemindersResponse,
    OverdueInvoiceResponse,
    ReminderMarkFailedRequest,
    ReminderStatsResponse,
)
from stockflow.modules.collection_reminder.service import CollectionReminderService
from stockflow.modules.tenancy.dependencies import get_tenant_context, get_tenant_db
from stockflow.modules.tenancy.schemas import TenantContext

router = APIRouter(prefix="/collection-reminders", tags=["collection-reminders"])


def get_reminder_service(
    tenant: TenantContext | None = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_tenant_db),
) -> CollectionReminderService:
    return CollectionReminderService(db, tenant)


# ---------------------------------------------------------------------------
# Collection endpoints
# ---------------------------------------------------------------------------


@router.post("/", response_model=CollectionReminderResponse, status_code=201)
async def create_reminder(
    body: CollectionReminderCreate,
    svc: CollectionReminderService = Depends(get_reminder_service),
):
    """Schedule a manual reminder for an invoice."""
    reminder = await svc.create(body)
    return CollectionReminderResponse.model_validate(reminder)


@router.get("/", response_model=CollectionReminderListResponse)
async def list_reminders(
    status: ReminderStatus | None = Query(None),
    reminder_type: CollectionReminderType | None = Query(None, alias="type"),
    channel: ReminderChannel | None = Query(None),
    invoice_id: uuid.UUID | None = Query(None),
    customer_id: uuid.UUID | None = Query(None),
    from_date: datetime | None = Query(None),
    to_date: datetime | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    svc: CollectionReminderService = Depends(get_reminder_service),
):
    items, total = await svc.list_reminders(
        status=status,
        reminder_type=reminder_type,
        channel=channel,
        invoice_id=invoice_id,
        customer_id=customer_id,
        from_date=from_date,
        to_date=to_date,
        limit=limit,
        offset=offset,
    )
    return CollectionReminderListResponse(
        items=[CollectionReminderResponse.model_validate(r) for r in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/stats", response_model=ReminderStatsResponse)
async def reminder_stats(
    svc: CollectionReminderService = Depends(get_reminder_service),
):
    return ReminderStatsResponse(**await svc.get_stats())


@router.get("/dashboard", response_model=CollectionDashboardResponse)
async def collection_dashboard(
    svc: CollectionReminderService = Depends(get_reminder_service),
):
    """Overdue exposure and reminder counts for the tenant."""
    return CollectionDashboardResponse(**await svc.get_dashboard())


@router.get("/overdue-invoices", response_model=list[OverdueInvoiceResponse])
async def overdue_invoices(
    svc: CollectionReminderService = Depends(get_reminder_service),
):
    rows = await svc.get_overdue_invoices()
    return [OverdueInvoiceResponse.model_validate(row) for row in rows]


@router.post("/generate", response_model=GenerateRemindersResponse)
async def generate_reminders(
    svc: CollectionReminderService = Depends(get_reminder_service),
):
    """Run automatic reminder generation now for the calling tenant."""
    return GenerateRemindersResponse(**await svc.generate_auto_reminders())


# ---------------------------------------------------------------------------
# Single reminder endpoints
# ---------------------------------------------------------------------------


@router.get("/{reminder_id}", response_model=CollectionReminderResponse)
async def get_reminder(
    reminder_id: uuid.UUID,
    svc: CollectionReminderService = Depends(get_reminder_service),
):
    reminder = await svc.get_reminder(reminder_id)
    return CollectionReminderResponse.model_validate(reminder)


@router.patch("/{reminder_id}/cancel", response_model=CollectionReminderResponse)
async def cancel_reminder(
    reminder_id: uuid.UUID,
    svc: CollectionReminderService = Depends(get_reminder_service),
):
    reminder = await svc.cancel(reminder_id)
    return CollectionReminderResponse.model_validate(reminder)


@router.patch("/{reminder_id}/sent", response_model=CollectionReminderResponse)
async def mark_reminder_sent(
    reminder_id: uuid.UUID,
    svc: CollectionReminderService = Depends(get_reminder_service),
):
    reminder = await svc.mark_sent(reminder_id)
    return CollectionReminderResponse.model_validate(reminder)


@router.patch("/{reminder_id}/failed", response_model=CollectionReminderResponse)
async def mark_reminder_failed(
    reminder_id: uuid.UUID,
    body: ReminderMarkFailedRequest | None = None,
    svc: CollectionReminderService = Depends(get_reminder_service),
):
    reminder = await svc.mark_failed(reminder_id, notes=body.notes if body else None)
    return CollectionReminderResponse.model_validate(reminder)
