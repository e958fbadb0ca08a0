"""Quotation API router."""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from stockflow.models.enums import QuotationStatus
from stockflow.modules.invoice.schemas import InvoiceResponse
from stockflow.modules.quotation.schemas import (
    QuotationConversionResponse,
    QuotationCreate,
    QuotationListResponse,
    QuotationResponse,
    QuotationStatsResponse,
    QuotationUpdate,
)
from stockflow.modules.quotation.service import QuotationService
from stockflow.modules.tenancy.dependencies import get_tenant_context, get_tenant_db
from stockflow.modules.tenancy.schemas import TenantContext

router = APIRouter(prefix="/quotations", tags=["quotations"])


def get_quotation_service(
    tenant: TenantContext | None = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_tenant_db),
) -> QuotationService:
    return QuotationService(db, tenant)


@router.post("/", response_model=QuotationResponse, status_code=201)
async def create_quotation(
    body: QuotationCreate,
    svc: QuotationService = Depends(get_quotation_service),
):
    quotation = await svc.create_quotation(body)
    return QuotationResponse.model_validate(quotation)


@router.get("/", response_model=QuotationListResponse)
async def list_quotations(
    status: QuotationStatus | None = Query(None),
    customer_id: uuid.UUID | None = Query(None),
    from_date: datetime | None = Query(None),
    to_date: datetime | None = Query(None),
    search: str | None = Query(None, max_length=100),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    svc: QuotationService = Depends(get_quotation_service),
):
    items, total = await svc.list_quotations(
        status=status,
        customer_id=customer_id,
        from_date=from_date,
        to_date=to_date,
        search=search,
        limit=limit,
        offset=offset,
    )
    return QuotationListResponse(
        items=[QuotationResponse.model_validate(q) for q in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/stats", response_model=QuotationStatsResponse)
async def quotation_stats(
    svc: QuotationService = Depends(get_quotation_service),
):
    return QuotationStatsResponse(**await svc.get_stats())


@router.get("/{quotation_id}", response_model=QuotationResponse)
async def get_quotation(
    quotation_id: uuid.UUID,
    svc: QuotationService = Depends(get_quotation_service),
):
    return QuotationResponse.model_validate(await svc.get_quotation(quotation_id))


@router.patch("/{quotation_id}", response_model=QuotationResponse)
async def update_quotation(
    quotation_id: uuid.UUID,
    body: QuotationUpdate,
    svc: QuotationService = Depends(get_quotation_service),
):
    quotation = await svc.update_quotation(quotation_id, body)
    return QuotationResponse.model_validate(quotation)


@router.delete("/{quotation_id}", status_code=204)
async def delete_quotation(
    quotation_id: uuid.UUID,
    svc: QuotationService = Depends(get_quotation_service),
):
    await svc.delete_quotation(quotation_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Status actions
# ---------------------------------------------------------------------------


@router.patch("/{quotation_id}/send", response_model=QuotationResponse)
async def send_quotation(
    quotation_id: uuid.UUID,
    svc: QuotationService = Depends(get_quotation_service),
):
    return QuotationResponse.model_validate(await svc.send(quotation_id))


@router.patch("/{quotation_id}/accept", response_model=QuotationResponse)
async def accept_quotation(
    quotation_id: uuid.UUID,
    svc: QuotationService = Depends(get_quotation_service),
):
    return QuotationResponse.model_validate(await svc.accept(quotation_id))


@router.patch("/{quotation_id}/reject", response_model=QuotationResponse)
async def reject_quotation(
    quotation_id: uuid.UUID,
    svc: QuotationService = Depends(get_quotation_service),
):
    return QuotationResponse.model_validate(await svc.reject(quotation_id))


@router.post("/{quotation_id}/convert", response_model=QuotationConversionResponse)
async def convert_quotation(
    quotation_id: uuid.UUID,
    svc: QuotationService = Depends(get_quotation_service),
):
    """Convert an ACCEPTED quotation into a DRAFT invoice."""
    quotation, invoice = await svc.convert_to_invoice(quotation_id)
    return QuotationConversionResponse(
        quotation=QuotationResponse.model_validate(quotation),
        invoice=InvoiceResponse.model_validate(invoice),
    )
