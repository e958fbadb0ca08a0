"""Collection reminder schedule, eligibility rules and lifecycle table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from stockflow.models.enums import (
    CollectionReminderType,
    InvoiceStatus,
    PaymentStatus,
    ReminderAction,
    ReminderStatus,
)
from stockflow.modules.workflow.state_machine import StateMachine, Transition

# ---------------------------------------------------------------------------
# Automatic schedule: day offsets relative to the invoice due date
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScheduleEntry:
    day_offset: int
    reminder_type: CollectionReminderType


AUTO_REMINDER_SCHEDULE: tuple[ScheduleEntry, ...] = (
    ScheduleEntry(-3, CollectionReminderType.BEFORE_DUE),
    ScheduleEntry(0, CollectionReminderType.ON_DUE),
    ScheduleEntry(7, CollectionReminderType.AFTER_DUE),
    ScheduleEntry(15, CollectionReminderType.AFTER_DUE),
    ScheduleEntry(30, CollectionReminderType.AFTER_DUE),
)

# Invoices that still need collecting
COLLECTIBLE_INVOICE_STATUSES: set[InvoiceStatus] = {
    InvoiceStatus.SENT,
    InvoiceStatus.OVERDUE,
}
COLLECTIBLE_PAYMENT_STATUSES: set[PaymentStatus] = {
    PaymentStatus.UNPAID,
    PaymentStatus.PARTIALLY_PAID,
}

# ---------------------------------------------------------------------------
# Lifecycle: PENDING -> SENT | FAILED | CANCELLED, all terminal
# ---------------------------------------------------------------------------


def _stamp_sent_at(reminder, *, now: datetime, **_) -> None:
    reminder.sent_at = now


def _record_failure_notes(reminder, *, notes: str | None = None, **_) -> None:
    if notes:
        reminder.notes = notes


REMINDER_TRANSITIONS: dict[ReminderStatus, dict[ReminderAction, Transition]] = {
    ReminderStatus.PENDING: {
        ReminderAction.CANCEL: Transition(ReminderStatus.CANCELLED),
        ReminderAction.MARK_SENT: Transition(ReminderStatus.SENT, _stamp_sent_at),
        ReminderAction.MARK_FAILED: Transition(ReminderStatus.FAILED, _record_failure_notes),
    },
}

REMINDER_ERROR_MESSAGES: dict[ReminderAction, str] = {
    ReminderAction.CANCEL: "Solo se pueden cancelar recordatorios pendientes",
    ReminderAction.MARK_SENT: "Solo se pueden marcar como enviados recordatorios pendientes",
    ReminderAction.MARK_FAILED: "Solo se pueden marcar como fallidos recordatorios pendientes",
}

REMINDER_WORKFLOW: StateMachine[ReminderStatus, ReminderAction] = StateMachine(
    "collection_reminder",
    REMINDER_TRANSITIONS,
    REMINDER_ERROR_MESSAGES,
)
