import enum


class TenantStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


class TaxCategory(str, enum.Enum):
    GRAVADO_19 = "GRAVADO_19"
    GRAVADO_5 = "GRAVADO_5"
    EXENTO = "EXENTO"
    EXCLUIDO = "EXCLUIDO"


# ---------------------------------------------------------------------------
# Invoicing
# ---------------------------------------------------------------------------


class InvoiceStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    SENT = "SENT"
    OVERDUE = "OVERDUE"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, enum.Enum):
    UNPAID = "UNPAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"


class InvoiceSource(str, enum.Enum):
    MANUAL = "MANUAL"
    QUOTATION = "QUOTATION"


class InvoiceAction(str, enum.Enum):
    ISSUE = "ISSUE"
    SEND = "SEND"
    MARK_PAID = "MARK_PAID"
    MARK_OVERDUE = "MARK_OVERDUE"
    CANCEL = "CANCEL"
    EDIT = "EDIT"
    ADD_ITEM = "ADD_ITEM"
    UPDATE_ITEM = "UPDATE_ITEM"
    REMOVE_ITEM = "REMOVE_ITEM"
    DELETE = "DELETE"


# ---------------------------------------------------------------------------
# Quotations
# ---------------------------------------------------------------------------


class QuotationStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    CONVERTED = "CONVERTED"


class QuotationAction(str, enum.Enum):
    SEND = "SEND"
    ACCEPT = "ACCEPT"
    REJECT = "REJECT"
    CONVERT = "CONVERT"
    EDIT = "EDIT"
    DELETE = "DELETE"


# ---------------------------------------------------------------------------
# Collection reminders
# ---------------------------------------------------------------------------


class CollectionReminderType(str, enum.Enum):
    BEFORE_DUE = "BEFORE_DUE"
    ON_DUE = "ON_DUE"
    AFTER_DUE = "AFTER_DUE"
    MANUAL = "MANUAL"


class ReminderChannel(str, enum.Enum):
    EMAIL = "EMAIL"
    SMS = "SMS"
    WHATSAPP = "WHATSAPP"


class ReminderStatus(str, enum.Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class ReminderAction(str, enum.Enum):
    CANCEL = "CANCEL"
    MARK_SENT = "MARK_SENT"
    MARK_FAILED = "MARK_FAILED"
