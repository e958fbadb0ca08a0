"""Invoice status machine: transitions, in-place permissions and error messages."""

from __future__ import annotations

from datetime import datetime

from stockflow.models.enums import InvoiceAction, InvoiceStatus, PaymentStatus
from stockflow.modules.workflow.state_machine import StateMachine, Transition

INVOICE_NUMBER_PREFIX = "INV"


def _settle(invoice, *, now: datetime, **_) -> None:
    invoice.payment_status = PaymentStatus.PAID
    invoice.paid_at = now


# Actions without a target status are allowed in place (editing, deleting)
_EDITABLE: dict[InvoiceAction, Transition] = {
    InvoiceAction.EDIT: Transition(),
    InvoiceAction.ADD_ITEM: Transition(),
    InvoiceAction.UPDATE_ITEM: Transition(),
    InvoiceAction.REMOVE_ITEM: Transition(),
}

INVOICE_TRANSITIONS: dict[InvoiceStatus, dict[InvoiceAction, Transition]] = {
    InvoiceStatus.DRAFT: {
        InvoiceAction.ISSUE: Transition(InvoiceStatus.PENDING),
        InvoiceAction.SEND: Transition(InvoiceStatus.SENT),
        InvoiceAction.CANCEL: Transition(InvoiceStatus.CANCELLED),
        InvoiceAction.DELETE: Transition(),
        **_EDITABLE,
    },
    InvoiceStatus.PENDING: {
        InvoiceAction.SEND: Transition(InvoiceStatus.SENT),
        InvoiceAction.MARK_PAID: Transition(InvoiceStatus.PAID, _settle),
        InvoiceAction.MARK_OVERDUE: Transition(InvoiceStatus.OVERDUE),
        InvoiceAction.CANCEL: Transition(InvoiceStatus.CANCELLED),
        **_EDITABLE,
    },
    InvoiceStatus.SENT: {
        InvoiceAction.MARK_PAID: Transition(InvoiceStatus.PAID, _settle),
        InvoiceAction.MARK_OVERDUE: Transition(InvoiceStatus.OVERDUE),
        InvoiceAction.CANCEL: Transition(InvoiceStatus.CANCELLED),
    },
    InvoiceStatus.OVERDUE: {
        InvoiceAction.MARK_PAID: Transition(InvoiceStatus.PAID, _settle),
        InvoiceAction.CANCEL: Transition(InvoiceStatus.CANCELLED),
    },
    # PAID and CANCELLED are terminal
}

_ITEM_MESSAGE = "Solo se pueden modificar items de facturas en borrador o pendientes"

INVOICE_ERROR_MESSAGES: dict[InvoiceAction, str] = {
    InvoiceAction.EDIT: "Solo se pueden modificar facturas en borrador o pendientes",
    InvoiceAction.ADD_ITEM: _ITEM_MESSAGE,
    InvoiceAction.UPDATE_ITEM: _ITEM_MESSAGE,
    InvoiceAction.REMOVE_ITEM: _ITEM_MESSAGE,
    InvoiceAction.DELETE: "Solo se pueden eliminar facturas en borrador",
    InvoiceAction.ISSUE: "Solo se pueden emitir facturas en borrador",
    InvoiceAction.SEND: "Solo se pueden enviar facturas en borrador o pendientes",
    InvoiceAction.MARK_PAID: "No se puede marcar como pagada una factura en estado {status}",
    InvoiceAction.MARK_OVERDUE: "Solo se pueden marcar como vencidas facturas enviadas o pendientes",
    InvoiceAction.CANCEL: "La factura ya esta pagada o cancelada",
}

INVOICE_WORKFLOW: StateMachine[InvoiceStatus, InvoiceAction] = StateMachine(
    "invoice",
    INVOICE_TRANSITIONS,
    INVOICE_ERROR_MESSAGES,
)
