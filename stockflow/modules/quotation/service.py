"""Quotation service — drafting, status transitions and conversion to invoice."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import joinedload

from stockflow.config import settings
from stockflow.exceptions import NotFoundException
from stockflow.models.customer import Customer
from stockflow.models.enums import InvoiceSource, QuotationAction, QuotationStatus
from stockflow.models.invoice import Invoice
from stockflow.models.quotation import Quotation
from stockflow.models.quotation_item import QuotationItem
from stockflow.modules.invoice.pricing import (
    apply_document_totals,
    build_line,
    ensure_customer,
    load_products,
    next_document_number,
)
from stockflow.modules.invoice.schemas import InvoiceCreate, LineItemCreate
from stockflow.modules.invoice.service import InvoiceService
from stockflow.modules.quotation.constants import QUOTATION_NUMBER_PREFIX, QUOTATION_WORKFLOW
from stockflow.modules.quotation.schemas import QuotationCreate, QuotationUpdate
from stockflow.modules.tenancy.service import TenantScopedService

logger = logging.getLogger(__name__)


class QuotationService(TenantScopedService):
    # ------------------------------------------------------------------
    # Reference number generation
    # ------------------------------------------------------------------

    async def _generate_quotation_number(self, tenant_id: uuid.UUID) -> str:
        result = await self.db.execute(
            select(Quotation.quotation_number)
            .where(Quotation.tenant_id == tenant_id)
            .order_by(Quotation.quotation_number.desc())
            .limit(1)
        )
        return next_document_number(QUOTATION_NUMBER_PREFIX, result.scalar_one_or_none())

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_quotation(self, data: QuotationCreate) -> Quotation:
        """Validate customer and products, price the lines, number the quotation."""
        tenant_id = self._tenant_id()

        await ensure_customer(self.db, tenant_id, data.customer_id)
        items = await self._build_items(tenant_id, data.items)

        quotation = Quotation(
            tenant_id=tenant_id,
            quotation_number=await self._generate_quotation_number(tenant_id),
            customer_id=data.customer_id,
            user_id=self._user_id,
            status=QuotationStatus.DRAFT,
            issue_date=data.issue_date or datetime.now(UTC),
            valid_until=data.valid_until,
            notes=data.notes,
        )
        apply_document_totals(quotation, items)
        quotation.items = items
        self.db.add(quotation)
        await self.db.flush()

        logger.info(
            "Created quotation %s (%d lines, total: %s)",
            quotation.quotation_number,
            len(items),
            quotation.total,
        )
        return quotation

    # ------------------------------------------------------------------
    # Get / List
    # ------------------------------------------------------------------

    async def get_quotation(self, quotation_id: uuid.UUID, lock: bool = False) -> Quotation:
        tenant_id = self._tenant_id()
        query = (
            select(Quotation)
            .options(joinedload(Quotation.items), joinedload(Quotation.customer))
            .where(Quotation.id == quotation_id, Quotation.tenant_id == tenant_id)
        )
        if lock:
            query = query.with_for_update(of=Quotation)

        result = await self.db.execute(query)
        quotation = result.unique().scalar_one_or_none()
        if quotation is None:
            logger.warning("Quotation %s not found for tenant %s", quotation_id, tenant_id)
            raise NotFoundException("Cotizacion no encontrada")
        return quotation

    async def list_quotations(
        self,
        status: QuotationStatus | None = None,
        customer_id: uuid.UUID | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
        search: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Quotation], int]:
        """List quotations, newest first. ``search`` matches number or customer name."""
        tenant_id = self._tenant_id()

        filters = [Quotation.tenant_id == tenant_id]
        if status is not None:
            filters.append(Quotation.status == status)
        if customer_id is not None:
            filters.append(Quotation.customer_id == customer_id)
        if from_date is not None:
            filters.append(Quotation.issue_date >= from_date)
        if to_date is not None:
            filters.append(Quotation.issue_date <= to_date)
        if search:
            pattern = f"%{search}%"
            filters.append(
                or_(
                    Quotation.quotation_number.ilike(pattern),
                    Customer.name.ilike(pattern),
                )
            )

        total_result = await self.db.execute(
            select(func.count())
            .select_from(Quotation)
            .outerjoin(Customer, Quotation.customer_id == Customer.id)
            .where(*filters)
        )
        total = total_result.scalar() or 0

        result = await self.db.execute(
            select(Quotation)
            .outerjoin(Customer, Quotation.customer_id == Customer.id)
            .options(joinedload(Quotation.customer))
            .where(*filters)
            .order_by(Quotation.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    # ------------------------------------------------------------------
    # Edit (DRAFT only)
    # ------------------------------------------------------------------

    async def update_quotation(
        self, quotation_id: uuid.UUID, data: QuotationUpdate
    ) -> Quotation:
        quotation = await self.get_quotation(quotation_id, lock=True)
        QUOTATION_WORKFLOW.ensure(quotation, QuotationAction.EDIT)

        changes = data.model_dump(exclude_unset=True, exclude={"items"})
        if "customer_id" in changes:
            customer_id = changes.pop("customer_id")
            customer = None
            if customer_id is not None:
                customer = await ensure_customer(self.db, quotation.tenant_id, customer_id)
            # Keep the loaded relationship in step with the foreign key.
            quotation.customer_id = customer_id
            quotation.customer = customer
        for field, value in changes.items():
            setattr(quotation, field, value)

        if data.items is not None:
            items = await self._build_items(quotation.tenant_id, data.items)
            quotation.items = items
            apply_document_totals(quotation, items)

        await self.db.flush()
        logger.info("Quotation %s updated", quotation_id)
        return quotation

    async def delete_quotation(self, quotation_id: uuid.UUID) -> None:
        quotation = await self.get_quotation(quotation_id, lock=True)
        QUOTATION_WORKFLOW.ensure(quotation, QuotationAction.DELETE)

        await self.db.delete(quotation)
        await self.db.flush()
        logger.info("Quotation %s deleted", quotation_id)

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    async def send(self, quotation_id: uuid.UUID) -> Quotation:
        return await self._transition(quotation_id, QuotationAction.SEND)

    async def accept(self, quotation_id: uuid.UUID) -> Quotation:
        return await self._transition(quotation_id, QuotationAction.ACCEPT)

    async def reject(self, quotation_id: uuid.UUID) -> Quotation:
        return await self._transition(quotation_id, QuotationAction.REJECT)

    async def convert_to_invoice(
        self, quotation_id: uuid.UUID
    ) -> tuple[Quotation, Invoice]:
        """Turn an ACCEPTED quotation into a DRAFT invoice with mirrored lines.

        The invoice is created first; if that fails the quotation is left
        ACCEPTED and the whole transaction rolls back.
        """
        quotation = await self.get_quotation(quotation_id, lock=True)
        QUOTATION_WORKFLOW.ensure(quotation, QuotationAction.CONVERT)

        now = datetime.now(UTC)
        invoice = await InvoiceService(self.db, self.tenant).create_invoice(
            InvoiceCreate(
                customer_id=quotation.customer_id,
                due_date=now + timedelta(days=settings.invoice_due_days_on_conversion),
                notes=quotation.notes,
                items=[
                    LineItemCreate(
                        product_id=item.product_id,
                        quantity=item.quantity,
                        unit_price=item.unit_price,
                        tax_rate=item.tax_rate,
                        tax_category=item.tax_category,
                        discount=item.discount,
                    )
                    for item in quotation.items
                ],
            ),
            source=InvoiceSource.QUOTATION,
        )

        QUOTATION_WORKFLOW.apply(quotation, QuotationAction.CONVERT, invoice=invoice, now=now)
        await self.db.flush()

        logger.info(
            "Quotation %s converted to invoice %s",
            quotation.quotation_number,
            invoice.invoice_number,
        )
        return quotation, invoice

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def get_stats(self) -> dict[str, Any]:
        tenant_id = self._tenant_id()
        result = await self.db.execute(
            select(
                Quotation.status,
                func.count(),
                func.coalesce(func.sum(Quotation.total), 0),
            )
            .where(Quotation.tenant_id == tenant_id)
            .group_by(Quotation.status)
        )

        by_status = {s: 0 for s in QuotationStatus}
        total_quotations = 0
        total_value = Decimal("0")
        for status, count, value in result.all():
            by_status[status] = count
            total_quotations += count
            total_value += Decimal(value)

        return {
            "total_quotations": total_quotations,
            "total_value": total_value,
            "by_status": by_status,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _build_items(
        self, tenant_id: uuid.UUID, lines: list[LineItemCreate]
    ) -> list[QuotationItem]:
        products = await load_products(self.db, tenant_id, (line.product_id for line in lines))
        return [
            QuotationItem(**build_line(line, products.get(line.product_id)))
            for line in lines
        ]

    async def _transition(
        self, quotation_id: uuid.UUID, action: QuotationAction
    ) -> Quotation:
        quotation = await self.get_quotation(quotation_id, lock=True)
        old_status = quotation.status

        QUOTATION_WORKFLOW.apply(quotation, action)
        await self.db.flush()

        logger.info(
            "Quotation %s transitioned %s -> %s",
            quotation_id,
            old_status.value,
            quotation.status.value,
        )
        return quotation
