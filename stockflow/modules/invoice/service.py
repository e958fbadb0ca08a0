"""Invoice service — creation, line editing, status transitions."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import joinedload

from stockflow.exceptions import NotFoundException
from stockflow.models.enums import InvoiceAction, InvoiceSource, InvoiceStatus, PaymentStatus
from stockflow.models.invoice import Invoice
from stockflow.models.invoice_item import InvoiceItem
from stockflow.modules.invoice.constants import INVOICE_NUMBER_PREFIX, INVOICE_WORKFLOW
from stockflow.modules.invoice.pricing import (
    apply_document_totals,
    build_line,
    ensure_customer,
    load_products,
    next_document_number,
    reprice,
)
from stockflow.modules.invoice.schemas import (
    InvoiceCreate,
    InvoiceUpdate,
    LineItemCreate,
    LineItemUpdate,
)
from stockflow.modules.tenancy.service import TenantScopedService

logger = logging.getLogger(__name__)


class InvoiceService(TenantScopedService):
    # ------------------------------------------------------------------
    # Reference number generation
    # ------------------------------------------------------------------

    async def _generate_invoice_number(self, tenant_id: uuid.UUID) -> str:
        """Next INV-NNNNN for the tenant; the unique constraint rejects a racing duplicate."""
        result = await self.db.execute(
            select(Invoice.invoice_number)
            .where(Invoice.tenant_id == tenant_id)
            .order_by(Invoice.invoice_number.desc())
            .limit(1)
        )
        return next_document_number(INVOICE_NUMBER_PREFIX, result.scalar_one_or_none())

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_invoice(
        self,
        data: InvoiceCreate,
        source: InvoiceSource = InvoiceSource.MANUAL,
    ) -> Invoice:
        """Create a DRAFT invoice with its lines and computed totals.

        Runs inside the caller's transaction: quotation conversion relies on
        this to create the invoice and freeze the quotation atomically.
        """
        tenant_id = self._tenant_id()

        if data.customer_id is not None:
            await ensure_customer(self.db, tenant_id, data.customer_id)
        products = await load_products(
            self.db, tenant_id, (line.product_id for line in data.items)
        )

        items = [
            InvoiceItem(**build_line(line, products.get(line.product_id)))
            for line in data.items
        ]

        invoice = Invoice(
            tenant_id=tenant_id,
            invoice_number=await self._generate_invoice_number(tenant_id),
            customer_id=data.customer_id,
            user_id=self._user_id,
            status=InvoiceStatus.DRAFT,
            payment_status=PaymentStatus.UNPAID,
            source=source,
            issue_date=data.issue_date or datetime.now(UTC),
            due_date=data.due_date,
            notes=data.notes,
        )
        apply_document_totals(invoice, items)
        invoice.items = items
        self.db.add(invoice)
        await self.db.flush()

        logger.info(
            "Created invoice %s (%s, %d lines, total: %s)",
            invoice.invoice_number,
            source.value,
            len(items),
            invoice.total,
        )
        return invoice

    # ------------------------------------------------------------------
    # Get / List
    # ------------------------------------------------------------------

    async def get_invoice(self, invoice_id: uuid.UUID, lock: bool = False) -> Invoice:
        """Get an invoice with its lines."""
        tenant_id = self._tenant_id()
        query = (
            select(Invoice)
            .options(joinedload(Invoice.items))
            .where(Invoice.id == invoice_id, Invoice.tenant_id == tenant_id)
        )
        if lock:
            query = query.with_for_update(of=Invoice)

        result = await self.db.execute(query)
        invoice = result.unique().scalar_one_or_none()
        if invoice is None:
            logger.warning("Invoice %s not found for tenant %s", invoice_id, tenant_id)
            raise NotFoundException("Factura no encontrada")
        return invoice

    async def list_invoices(
        self,
        status: InvoiceStatus | None = None,
        customer_id: uuid.UUID | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Invoice], int]:
        """List invoices, newest first. Date filters apply to issue_date."""
        tenant_id = self._tenant_id()

        filters = [Invoice.tenant_id == tenant_id]
        if status is not None:
            filters.append(Invoice.status == status)
        if customer_id is not None:
            filters.append(Invoice.customer_id == customer_id)
        if from_date is not None:
            filters.append(Invoice.issue_date >= from_date)
        if to_date is not None:
            filters.append(Invoice.issue_date <= to_date)

        total_result = await self.db.execute(
            select(func.count()).select_from(Invoice).where(*filters)
        )
        total = total_result.scalar() or 0

        result = await self.db.execute(
            select(Invoice)
            .where(*filters)
            .order_by(Invoice.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    # ------------------------------------------------------------------
    # Edit (DRAFT / PENDING only)
    # ------------------------------------------------------------------

    async def update_invoice(self, invoice_id: uuid.UUID, data: InvoiceUpdate) -> Invoice:
        invoice = await self.get_invoice(invoice_id, lock=True)
        INVOICE_WORKFLOW.ensure(invoice, InvoiceAction.EDIT)

        changes = data.model_dump(exclude_unset=True)
        if changes.get("customer_id") is not None:
            await ensure_customer(self.db, invoice.tenant_id, changes["customer_id"])
        for field, value in changes.items():
            setattr(invoice, field, value)
        await self.db.flush()

        logger.info("Invoice %s updated: %s", invoice_id, sorted(changes))
        return invoice

    async def delete_invoice(self, invoice_id: uuid.UUID) -> None:
        invoice = await self.get_invoice(invoice_id, lock=True)
        INVOICE_WORKFLOW.ensure(invoice, InvoiceAction.DELETE)

        await self.db.delete(invoice)
        await self.db.flush()
        logger.info("Invoice %s deleted", invoice_id)

    async def add_item(self, invoice_id: uuid.UUID, data: LineItemCreate) -> Invoice:
        invoice = await self.get_invoice(invoice_id, lock=True)
        INVOICE_WORKFLOW.ensure(invoice, InvoiceAction.ADD_ITEM)

        products = await load_products(self.db, invoice.tenant_id, [data.product_id])
        invoice.items.append(InvoiceItem(**build_line(data, products.get(data.product_id))))
        apply_document_totals(invoice, invoice.items)
        await self.db.flush()

        logger.info("Item added to invoice %s (total: %s)", invoice_id, invoice.total)
        return invoice

    async def update_item(
        self, invoice_id: uuid.UUID, item_id: uuid.UUID, data: LineItemUpdate
    ) -> Invoice:
        invoice = await self.get_invoice(invoice_id, lock=True)
        INVOICE_WORKFLOW.ensure(invoice, InvoiceAction.UPDATE_ITEM)

        item = self._find_item(invoice, item_id)
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(item, field, value)
        reprice(item)
        apply_document_totals(invoice, invoice.items)
        await self.db.flush()

        logger.info("Item %s of invoice %s updated", item_id, invoice_id)
        return invoice

    async def remove_item(self, invoice_id: uuid.UUID, item_id: uuid.UUID) -> Invoice:
        invoice = await self.get_invoice(invoice_id, lock=True)
        INVOICE_WORKFLOW.ensure(invoice, InvoiceAction.REMOVE_ITEM)

        invoice.items.remove(self._find_item(invoice, item_id))
        apply_document_totals(invoice, invoice.items)
        await self.db.flush()

        logger.info("Item %s removed from invoice %s", item_id, invoice_id)
        return invoice

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    async def issue(self, invoice_id: uuid.UUID) -> Invoice:
        """DRAFT -> PENDING."""
        return await self._transition(invoice_id, InvoiceAction.ISSUE)

    async def send(self, invoice_id: uuid.UUID) -> Invoice:
        return await self._transition(invoice_id, InvoiceAction.SEND)

    async def mark_paid(self, invoice_id: uuid.UUID) -> Invoice:
        """Settle the invoice: status PAID, payment status PAID, paid_at stamped."""
        return await self._transition(
            invoice_id, InvoiceAction.MARK_PAID, now=datetime.now(UTC)
        )

    async def mark_overdue(self, invoice_id: uuid.UUID) -> Invoice:
        return await self._transition(invoice_id, InvoiceAction.MARK_OVERDUE)

    async def cancel(self, invoice_id: uuid.UUID) -> Invoice:
        return await self._transition(invoice_id, InvoiceAction.CANCEL)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _find_item(invoice: Invoice, item_id: uuid.UUID) -> InvoiceItem:
        for item in invoice.items:
            if item.id == item_id:
                return item
        raise NotFoundException("Item de factura no encontrado")

    async def _transition(
        self, invoice_id: uuid.UUID, action: InvoiceAction, **context: Any
    ) -> Invoice:
        invoice = await self.get_invoice(invoice_id, lock=True)
        old_status = invoice.status

        INVOICE_WORKFLOW.apply(invoice, action, **context)
        await self.db.flush()

        logger.info(
            "Invoice %s transitioned %s -> %s",
            invoice_id,
            old_status.value,
            invoice.status.value,
        )
        return invoice
