"""Unit tests for InvoiceService — creation, line editing, status guards."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from stockflow.exceptions import InvalidStateException, NotFoundException
from stockflow.models.enums import InvoiceSource, InvoiceStatus, PaymentStatus, TaxCategory
from stockflow.models.invoice import Invoice
from stockflow.models.invoice_item import InvoiceItem
from stockflow.modules.invoice.pricing import line_amounts, next_document_number
from stockflow.modules.invoice.schemas import (
    InvoiceCreate,
    InvoiceUpdate,
    LineItemCreate,
    LineItemUpdate,
)
from stockflow.modules.invoice.service import InvoiceService

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def invoice_service(mock_db, tenant):
    return InvoiceService(mock_db, tenant)


def _make_item(quantity=2, unit_price="50.00") -> InvoiceItem:
    item = InvoiceItem(
        id=uuid.uuid4(),
        quantity=quantity,
        unit_price=Decimal(unit_price),
        tax_rate=Decimal("19"),
        tax_category=TaxCategory.GRAVADO_19,
        discount=Decimal("0"),
    )
    for key, value in line_amounts(
        item.quantity, item.unit_price, item.tax_rate, item.discount
    ).items():
        setattr(item, key, value)
    return item


def _make_invoice(status=InvoiceStatus.DRAFT, items=None) -> Invoice:
    invoice = Invoice(
        id=uuid.uuid4(),
        tenant_id=uuid.uuid4(),
        invoice_number="INV-00010",
        status=status,
        payment_status=PaymentStatus.UNPAID,
        source=InvoiceSource.MANUAL,
        subtotal=Decimal("100.00"),
        tax=Decimal("19.00"),
        discount=Decimal("0"),
        total=Decimal("119.00"),
        issue_date=datetime.now(UTC),
        notes="Original",
    )
    invoice.items = items if items is not None else [_make_item()]
    return invoice


def _scalar_result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    unique_mock = MagicMock()
    unique_mock.scalar_one_or_none.return_value = value
    result.unique.return_value = unique_mock
    return result


# ---------------------------------------------------------------------------
# Pricing helpers
# ---------------------------------------------------------------------------


class TestPricing:
    def test_line_amounts(self):
        amounts = line_amounts(3, Decimal("33.33"), Decimal("19"), Decimal("5"))

        assert amounts == {
            "subtotal": Decimal("99.99"),
            "tax": Decimal("19.00"),
            "total": Decimal("113.99"),
        }

    @pytest.mark.parametrize(
        ("last", "expected"),
        [(None, "INV-00001"), ("INV-00009", "INV-00010"), ("INV-99999", "INV-100000")],
    )
    def test_next_document_number(self, last, expected):
        assert next_document_number("INV", last) == expected


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


class TestCreateInvoice:
    @pytest.mark.asyncio
    async def test_manual_invoice_starts_as_unpaid_draft(self, invoice_service, mock_db, tenant):
        mock_db.execute.return_value = _scalar_result("INV-00002")

        invoice = await invoice_service.create_invoice(
            InvoiceCreate(items=[LineItemCreate(quantity=1, unit_price=Decimal("80"))])
        )

        assert invoice.invoice_number == "INV-00003"
        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.payment_status == PaymentStatus.UNPAID
        assert invoice.source == InvoiceSource.MANUAL
        assert invoice.tenant_id == tenant.tenant_id
        assert invoice.total == Decimal("95.20")
        assert invoice.issue_date is not None
        mock_db.add.assert_called_once_with(invoice)


# ---------------------------------------------------------------------------
# Status transitions
# ---------------------------------------------------------------------------


class TestTransitions:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("operation", "start", "end"),
        [
            ("issue", InvoiceStatus.DRAFT, InvoiceStatus.PENDING),
            ("send", InvoiceStatus.DRAFT, InvoiceStatus.SENT),
            ("send", InvoiceStatus.PENDING, InvoiceStatus.SENT),
            ("mark_overdue", InvoiceStatus.SENT, InvoiceStatus.OVERDUE),
            ("mark_overdue", InvoiceStatus.PENDING, InvoiceStatus.OVERDUE),
            ("cancel", InvoiceStatus.OVERDUE, InvoiceStatus.CANCELLED),
        ],
    )
    async def test_valid_transitions(self, invoice_service, mock_db, operation, start, end):
        invoice = _make_invoice(status=start)
        mock_db.execute.return_value = _scalar_result(invoice)

        result = await getattr(invoice_service, operation)(invoice.id)

        assert result.status == end

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "start", [InvoiceStatus.PENDING, InvoiceStatus.SENT, InvoiceStatus.OVERDUE]
    )
    async def test_mark_paid_settles_invoice(self, invoice_service, mock_db, start):
        invoice = _make_invoice(status=start)
        mock_db.execute.return_value = _scalar_result(invoice)

        result = await invoice_service.mark_paid(invoice.id)

        assert result.status == InvoiceStatus.PAID
        assert result.payment_status == PaymentStatus.PAID
        assert result.paid_at is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("operation", "start", "message"),
        [
            ("issue", InvoiceStatus.PENDING, "Solo se pueden emitir facturas en borrador"),
            ("send", InvoiceStatus.SENT, "Solo se pueden enviar facturas en borrador o pendientes"),
            ("mark_paid", InvoiceStatus.DRAFT, "No se puede marcar como pagada una factura en estado DRAFT"),
            ("mark_paid", InvoiceStatus.PAID, "No se puede marcar como pagada una factura en estado PAID"),
            ("mark_overdue", InvoiceStatus.DRAFT, "Solo se pueden marcar como vencidas facturas enviadas o pendientes"),
            ("cancel", InvoiceStatus.PAID, "La factura ya esta pagada o cancelada"),
            ("cancel", InvoiceStatus.CANCELLED, "La factura ya esta pagada o cancelada"),
        ],
    )
    async def test_invalid_transitions(self, invoice_service, mock_db, operation, start, message):
        invoice = _make_invoice(status=start)
        mock_db.execute.return_value = _scalar_result(invoice)

        with pytest.raises(InvalidStateException, match=message):
            await getattr(invoice_service, operation)(invoice.id)

        assert invoice.status == start
        assert invoice.paid_at is None

    @pytest.mark.asyncio
    async def test_missing_invoice(self, invoice_service, mock_db):
        mock_db.execute.return_value = _scalar_result(None)

        with pytest.raises(NotFoundException, match="Factura no encontrada"):
            await invoice_service.send(uuid.uuid4())


# ---------------------------------------------------------------------------
# Editing
# ---------------------------------------------------------------------------


class TestEditing:
    @pytest.mark.asyncio
    async def test_update_pending_invoice(self, invoice_service, mock_db):
        invoice = _make_invoice(status=InvoiceStatus.PENDING)
        mock_db.execute.return_value = _scalar_result(invoice)

        result = await invoice_service.update_invoice(invoice.id, InvoiceUpdate(notes="Nueva"))

        assert result.notes == "Nueva"

    @pytest.mark.asyncio
    async def test_add_item_recomputes_totals(self, invoice_service, mock_db):
        invoice = _make_invoice()
        mock_db.execute.return_value = _scalar_result(invoice)

        result = await invoice_service.add_item(
            invoice.id, LineItemCreate(quantity=1, unit_price=Decimal("100"))
        )

        assert len(result.items) == 2
        assert result.subtotal == Decimal("200.00")
        assert result.tax == Decimal("38.00")
        assert result.total == Decimal("238.00")

    @pytest.mark.asyncio
    async def test_update_item_reprices_line_and_document(self, invoice_service, mock_db):
        item = _make_item()
        invoice = _make_invoice(items=[item])
        mock_db.execute.return_value = _scalar_result(invoice)

        result = await invoice_service.update_item(
            invoice.id, item.id, LineItemUpdate(quantity=5, discount=Decimal("10"))
        )

        assert item.subtotal == Decimal("250.00")
        assert item.tax == Decimal("47.50")
        assert item.total == Decimal("287.50")
        assert result.total == Decimal("287.50")
        assert result.discount == Decimal("10")

    @pytest.mark.asyncio
    async def test_remove_item_recomputes_totals(self, invoice_service, mock_db):
        keep, drop = _make_item(), _make_item(quantity=1, unit_price="10.00")
        invoice = _make_invoice(items=[keep, drop])
        mock_db.execute.return_value = _scalar_result(invoice)

        result = await invoice_service.remove_item(invoice.id, drop.id)

        assert result.items == [keep]
        assert result.total == keep.total

    @pytest.mark.asyncio
    async def test_unknown_item(self, invoice_service, mock_db):
        invoice = _make_invoice()
        mock_db.execute.return_value = _scalar_result(invoice)

        with pytest.raises(NotFoundException, match="Item de factura no encontrado"):
            await invoice_service.remove_item(invoice.id, uuid.uuid4())

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status", [InvoiceStatus.SENT, InvoiceStatus.OVERDUE, InvoiceStatus.PAID, InvoiceStatus.CANCELLED]
    )
    async def test_settled_or_sent_invoices_are_read_only(self, invoice_service, mock_db, status):
        invoice = _make_invoice(status=status)
        item_id = invoice.items[0].id
        mock_db.execute.return_value = _scalar_result(invoice)

        with pytest.raises(
            InvalidStateException, match="Solo se pueden modificar facturas en borrador o pendientes"
        ):
            await invoice_service.update_invoice(invoice.id, InvoiceUpdate(notes="x"))
        with pytest.raises(
            InvalidStateException,
            match="Solo se pueden modificar items de facturas en borrador o pendientes",
        ):
            await invoice_service.add_item(
                invoice.id, LineItemCreate(quantity=1, unit_price=Decimal("1"))
            )
        with pytest.raises(InvalidStateException):
            await invoice_service.remove_item(invoice.id, item_id)

        assert invoice.notes == "Original"
        assert len(invoice.items) == 1
        assert invoice.total == Decimal("119.00")

    @pytest.mark.asyncio
    async def test_delete_only_drafts(self, invoice_service, mock_db):
        invoice = _make_invoice(status=InvoiceStatus.PENDING)
        mock_db.execute.return_value = _scalar_result(invoice)

        with pytest.raises(
            InvalidStateException, match="Solo se pueden eliminar facturas en borrador"
        ):
            await invoice_service.delete_invoice(invoice.id)
        mock_db.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_draft(self, invoice_service, mock_db):
        invoice = _make_invoice()
        mock_db.execute.return_value = _scalar_result(invoice)

        await invoice_service.delete_invoice(invoice.id)

        mock_db.delete.assert_awaited_once_with(invoice)
