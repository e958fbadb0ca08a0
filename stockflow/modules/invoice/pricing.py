"""Line and document totals shared by invoices and quotations."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stockflow.config import settings
from stockflow.exceptions import NotFoundException
from stockflow.models.customer import Customer
from stockflow.models.enums import TaxCategory
from stockflow.models.product import Product

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0")


class LineInput(Protocol):
    product_id: uuid.UUID | None
    quantity: int
    unit_price: Decimal
    tax_rate: Decimal | None
    tax_category: TaxCategory | None
    discount: Decimal


class PricedLine(Protocol):
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def line_amounts(
    quantity: int, unit_price: Decimal, tax_rate: Decimal, discount: Decimal
) -> dict[str, Decimal]:
    """subtotal = qty x price; tax = subtotal x rate / 100; total = subtotal + tax - discount."""
    subtotal = _money(Decimal(quantity) * unit_price)
    tax = _money(subtotal * tax_rate / 100)
    return {
        "subtotal": subtotal,
        "tax": tax,
        "total": subtotal + tax - discount,
    }


def build_line(line: LineInput, product: Product | None) -> dict[str, Any]:
    """Column values for an invoice or quotation item built from request input."""
    tax_rate = line.tax_rate if line.tax_rate is not None else settings.default_tax_rate
    if line.tax_category is not None:
        tax_category = line.tax_category
    elif product is not None:
        tax_category = product.tax_category
    else:
        tax_category = TaxCategory.GRAVADO_19

    return {
        "product_id": line.product_id,
        "quantity": line.quantity,
        "unit_price": line.unit_price,
        "tax_rate": tax_rate,
        "tax_category": tax_category,
        "discount": line.discount,
        **line_amounts(line.quantity, line.unit_price, tax_rate, line.discount),
    }


def reprice(item: Any) -> None:
    """Recompute a persisted item's derived amounts after a field change."""
    for key, value in line_amounts(
        item.quantity, item.unit_price, item.tax_rate, item.discount
    ).items():
        setattr(item, key, value)


def apply_document_totals(document: Any, items: Iterable[PricedLine]) -> None:
    """Document amounts are the sums over its lines."""
    subtotal = tax = discount = total = ZERO
    for item in items:
        subtotal += item.subtotal
        tax += item.tax
        discount += item.discount
        total += item.total

    document.subtotal = subtotal
    document.tax = tax
    document.discount = discount
    document.total = total


def next_document_number(prefix: str, last_number: str | None) -> str:
    """``COT-00041`` -> ``COT-00042``; the first document is ``<prefix>-00001``."""
    last = 0
    if last_number:
        try:
            last = int(last_number.rsplit("-", 1)[-1])
        except ValueError:
            logger.warning("Unparseable document number %r, restarting sequence", last_number)
    return f"{prefix}-{last + 1:05d}"


# ---------------------------------------------------------------------------
# Reference validation
# ---------------------------------------------------------------------------


async def ensure_customer(
    db: AsyncSession, tenant_id: uuid.UUID, customer_id: uuid.UUID
) -> Customer:
    result = await db.execute(
        select(Customer).where(
            Customer.id == customer_id,
            Customer.tenant_id == tenant_id,
        )
    )
    customer = result.scalar_one_or_none()
    if customer is None:
        logger.warning("Customer %s not found for tenant %s", customer_id, tenant_id)
        raise NotFoundException("Cliente no encontrado")
    return customer


async def load_products(
    db: AsyncSession, tenant_id: uuid.UUID, product_ids: Iterable[uuid.UUID | None]
) -> dict[uuid.UUID, Product]:
    """Fetch the referenced products; any id missing for the tenant is an error."""
    wanted = {pid for pid in product_ids if pid is not None}
    if not wanted:
        return {}

    result = await db.execute(
        select(Product).where(
            Product.id.in_(wanted),
            Product.tenant_id == tenant_id,
        )
    )
    products = {p.id: p for p in result.scalars().all()}

    for product_id in wanted:
        if product_id not in products:
            logger.warning("Product %s not found for tenant %s", product_id, tenant_id)
            raise NotFoundException(f"Producto no encontrado: {product_id}")
    return products
