"""Invoice API router — CRUD, line editing and status actions."""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from stockflow.models.enums import InvoiceStatus
from stockflow.modules.invoice.schemas import (
    InvoiceCreate,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceUpdate,
    LineItemCreate,
    LineItemUpdate,
)
from stockflow.modules.invoice.service import InvoiceService
from stockflow.modules.tenancy.dependencies import get_tenant_context, get_tenant_db
from stockflow.modules.tenancy.schemas import TenantContext

router = APIRouter(prefix="/invoices", tags=["invoices"])


def get_invoice_service(
    tenant: TenantContext | None = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_tenant_db),
) -> InvoiceService:
    return InvoiceService(db, tenant)


# ---------------------------------------------------------------------------
# Invoice endpoints
# ---------------------------------------------------------------------------


@router.post("/", response_model=InvoiceResponse, status_code=201)
async def create_invoice(
    body: InvoiceCreate,
    svc: InvoiceService = Depends(get_invoice_service),
):
    invoice = await svc.create_invoice(body)
    return InvoiceResponse.model_validate(invoice)


@router.get("/", response_model=InvoiceListResponse)
async def list_invoices(
    status: InvoiceStatus | None = Query(None),
    customer_id: uuid.UUID | None = Query(None),
    from_date: datetime | None = Query(None),
    to_date: datetime | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    svc: InvoiceService = Depends(get_invoice_service),
):
    items, total = await svc.list_invoices(
        status=status,
        customer_id=customer_id,
        from_date=from_date,
        to_date=to_date,
        limit=limit,
        offset=offset,
    )
    return InvoiceListResponse(
        items=[InvoiceResponse.model_validate(i) for i in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: uuid.UUID,
    svc: InvoiceService = Depends(get_invoice_service),
):
    invoice = await svc.get_invoice(invoice_id)
    return InvoiceResponse.model_validate(invoice)


@router.patch("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: uuid.UUID,
    body: InvoiceUpdate,
    svc: InvoiceService = Depends(get_invoice_service),
):
    invoice = await svc.update_invoice(invoice_id, body)
    return InvoiceResponse.model_validate(invoice)


@router.delete("/{invoice_id}", status_code=204)
async def delete_invoice(
    invoice_id: uuid.UUID,
    svc: InvoiceService = Depends(get_invoice_service),
):
    await svc.delete_invoice(invoice_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------


@router.post("/{invoice_id}/items", response_model=InvoiceResponse, status_code=201)
async def add_invoice_item(
    invoice_id: uuid.UUID,
    body: LineItemCreate,
    svc: InvoiceService = Depends(get_invoice_service),
):
    invoice = await svc.add_item(invoice_id, body)
    return InvoiceResponse.model_validate(invoice)


@router.patch("/{invoice_id}/items/{item_id}", response_model=InvoiceResponse)
async def update_invoice_item(
    invoice_id: uuid.UUID,
    item_id: uuid.UUID,
    body: LineItemUpdate,
    svc: InvoiceService = Depends(get_invoice_service),
):
    invoice = await svc.update_item(invoice_id, item_id, body)
    return InvoiceResponse.model_validate(invoice)


@router.delete("/{invoice_id}/items/{item_id}", response_model=InvoiceResponse)
async def remove_invoice_item(
    invoice_id: uuid.UUID,
    item_id: uuid.UUID,
    svc: InvoiceService = Depends(get_invoice_service),
):
    invoice = await svc.remove_item(invoice_id, item_id)
    return InvoiceResponse.model_validate(invoice)


# ---------------------------------------------------------------------------
# Status actions
# ---------------------------------------------------------------------------


@router.patch("/{invoice_id}/issue", response_model=InvoiceResponse)
async def issue_invoice(
    invoice_id: uuid.UUID,
    svc: InvoiceService = Depends(get_invoice_service),
):
    return InvoiceResponse.model_validate(await svc.issue(invoice_id))


@router.patch("/{invoice_id}/send", response_model=InvoiceResponse)
async def send_invoice(
    invoice_id: uuid.UUID,
    svc: InvoiceService = Depends(get_invoice_service),
):
    return InvoiceResponse.model_validate(await svc.send(invoice_id))


@router.patch("/{invoice_id}/mark-paid", response_model=InvoiceResponse)
async def mark_invoice_paid(
    invoice_id: uuid.UUID,
    svc: InvoiceService = Depends(get_invoice_service),
):
    return InvoiceResponse.model_validate(await svc.mark_paid(invoice_id))


@router.patch("/{invoice_id}/mark-overdue", response_model=InvoiceResponse)
async def mark_invoice_overdue(
    invoice_id: uuid.UUID,
    svc: InvoiceService = Depends(get_invoice_service),
):
    return InvoiceResponse.model_validate(await svc.mark_overdue(invoice_id))


@router.patch("/{invoice_id}/cancel", response_model=InvoiceResponse)
async def cancel_invoice(
    invoice_id: uuid.UUID,
    svc: InvoiceService = Depends(get_invoice_service),
):
    return InvoiceResponse.model_validate(await svc.cancel(invoice_id))
