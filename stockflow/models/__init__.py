# Import all models so SQLAlchemy metadata is populated for Alembic autogenerate
from stockflow.models.collection_reminder import CollectionReminder
from stockflow.models.customer import Customer
from stockflow.models.enums import (
    CollectionReminderType,
    InvoiceAction,
    InvoiceSource,
    InvoiceStatus,
    PaymentStatus,
    QuotationAction,
    QuotationStatus,
    ReminderAction,
    ReminderChannel,
    ReminderStatus,
    TaxCategory,
    TenantStatus,
)
from stockflow.models.invoice import Invoice
from stockflow.models.invoice_item import InvoiceItem
from stockflow.models.product import Product
from stockflow.models.quotation import Quotation
from stockflow.models.quotation_item import QuotationItem
from stockflow.models.tenant import Tenant

__all__ = [
    "CollectionReminder",
    "CollectionReminderType",
    "Customer",
    "Invoice",
    "InvoiceAction",
    "InvoiceItem",
    "InvoiceSource",
    "InvoiceStatus",
    "PaymentStatus",
    "Product",
    "Quotation",
    "QuotationAction",
    "QuotationItem",
    "QuotationStatus",
    "ReminderAction",
    "ReminderChannel",
    "ReminderStatus",
    "TaxCategory",
    "Tenant",
    "TenantStatus",
]
