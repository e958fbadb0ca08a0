"""Quotation status machine."""

from __future__ import annotations

from datetime import datetime

from stockflow.models.enums import QuotationAction, QuotationStatus
from stockflow.modules.workflow.state_machine import StateMachine, Transition

QUOTATION_NUMBER_PREFIX = "COT"


def _link_invoice(quotation, *, invoice, now: datetime, **_) -> None:
    quotation.converted_to_invoice_id = invoice.id
    quotation.converted_at = now


QUOTATION_TRANSITIONS: dict[QuotationStatus, dict[QuotationAction, Transition]] = {
    QuotationStatus.DRAFT: {
        QuotationAction.SEND: Transition(QuotationStatus.SENT),
        QuotationAction.EDIT: Transition(),
        QuotationAction.DELETE: Transition(),
    },
    QuotationStatus.SENT: {
        QuotationAction.ACCEPT: Transition(QuotationStatus.ACCEPTED),
        QuotationAction.REJECT: Transition(QuotationStatus.REJECTED),
    },
    QuotationStatus.ACCEPTED: {
        QuotationAction.CONVERT: Transition(QuotationStatus.CONVERTED, _link_invoice),
    },
    # REJECTED, EXPIRED and CONVERTED are terminal
}

QUOTATION_ERROR_MESSAGES: dict[QuotationAction, str] = {
    QuotationAction.EDIT: "Solo se pueden editar cotizaciones en estado borrador",
    QuotationAction.DELETE: "Solo se pueden eliminar cotizaciones en estado borrador",
    QuotationAction.SEND: "Solo se pueden enviar cotizaciones en estado borrador",
    QuotationAction.ACCEPT: "Solo se pueden aceptar cotizaciones en estado enviada",
    QuotationAction.REJECT: "Solo se pueden rechazar cotizaciones en estado enviada",
    QuotationAction.CONVERT: "Solo se pueden convertir cotizaciones en estado aceptada",
}

QUOTATION_WORKFLOW: StateMachine[QuotationStatus, QuotationAction] = StateMachine(
    "quotation",
    QUOTATION_TRANSITIONS,
    QUOTATION_ERROR_MESSAGES,
)
