"""Automatic collection reminder generation.

Pure logic over invoices already loaded from the database: nothing here
touches a session, so the schedule rules can be exercised directly.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta

from stockflow.models.enums import CollectionReminderType, ReminderChannel, ReminderStatus
from stockflow.modules.collection_reminder.constants import AUTO_REMINDER_SCHEDULE, ScheduleEntry

DedupKey = tuple[CollectionReminderType, date]


@dataclass(frozen=True)
class ExistingReminder:
    type: CollectionReminderType
    scheduled_at: datetime


@dataclass
class InvoiceSnapshot:
    """The slice of an eligible invoice the scheduler needs."""

    invoice_id: uuid.UUID
    invoice_number: str
    due_date: datetime | None
    customer_id: uuid.UUID | None = None
    reminders: list[ExistingReminder] = field(default_factory=list)


@dataclass(frozen=True)
class ReminderDraft:
    invoice_id: uuid.UUID
    customer_id: uuid.UUID | None
    type: CollectionReminderType
    scheduled_at: datetime
    message: str
    channel: ReminderChannel = ReminderChannel.EMAIL
    status: ReminderStatus = ReminderStatus.PENDING

    def as_row(self, tenant_id: uuid.UUID) -> dict:
        return {
            "id": uuid.uuid4(),
            "tenant_id": tenant_id,
            "invoice_id": self.invoice_id,
            "customer_id": self.customer_id,
            "type": self.type,
            "channel": self.channel,
            "scheduled_at": self.scheduled_at,
            "status": self.status,
            "message": self.message,
        }


def as_utc(value: datetime) -> datetime:
    """Naive timestamps are stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def dedup_key(reminder_type: CollectionReminderType, scheduled_at: datetime) -> DedupKey:
    """Reminders of one type on the same UTC calendar day are duplicates."""
    return reminder_type, as_utc(scheduled_at).date()


def build_auto_message(
    reminder_type: CollectionReminderType, invoice_number: str, days: int
) -> str:
    if reminder_type == CollectionReminderType.BEFORE_DUE:
        return (
            f"Estimado cliente, le recordamos que su factura {invoice_number} "
            f"vence en {days} dias."
        )
    if reminder_type == CollectionReminderType.ON_DUE:
        return f"Estimado cliente, le informamos que su factura {invoice_number} vence hoy."
    if reminder_type == CollectionReminderType.AFTER_DUE:
        return (
            f"Estimado cliente, su factura {invoice_number} se encuentra vencida hace "
            f"{days} dias. Le solicitamos realizar el pago a la mayor brevedad."
        )
    return f"Recordatorio de pago para la factura {invoice_number}."


def generate(
    current_time: datetime,
    invoices: Iterable[InvoiceSnapshot],
    schedule: Sequence[ScheduleEntry] = AUTO_REMINDER_SCHEDULE,
) -> list[ReminderDraft]:
    """Compute the reminders whose moment has arrived and that do not exist yet.

    Callers pass only collectible invoices (SENT/OVERDUE, UNPAID/PARTIALLY_PAID);
    invoices without a due date are skipped. Schedule points later than
    ``current_time`` are left for a future run.
    """
    now = as_utc(current_time)
    drafts: list[ReminderDraft] = []

    for invoice in invoices:
        if invoice.due_date is None:
            continue

        due_date = as_utc(invoice.due_date)
        seen: set[DedupKey] = {
            dedup_key(r.type, r.scheduled_at) for r in invoice.reminders
        }

        for entry in schedule:
            scheduled_at = due_date + timedelta(days=entry.day_offset)
            if scheduled_at > now:
                continue

            key = dedup_key(entry.reminder_type, scheduled_at)
            if key in seen:
                continue
            seen.add(key)

            drafts.append(
                ReminderDraft(
                    invoice_id=invoice.invoice_id,
                    customer_id=invoice.customer_id,
                    type=entry.reminder_type,
                    scheduled_at=scheduled_at,
                    message=build_auto_message(
                        entry.reminder_type,
                        invoice.invoice_number,
                        abs(entry.day_offset),
                    ),
                )
            )

    return drafts
