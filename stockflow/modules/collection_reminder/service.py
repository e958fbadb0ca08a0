"""Collection reminder service — manual reminders, lifecycle, automatic generation."""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Sequence
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from stockflow.exceptions import NotFoundException
from stockflow.models.collection_reminder import CollectionReminder
from stockflow.models.enums import (
    CollectionReminderType,
    ReminderAction,
    ReminderChannel,
    ReminderStatus,
)
from stockflow.models.invoice import Invoice
from stockflow.modules.collection_reminder.constants import (
    AUTO_REMINDER_SCHEDULE,
    COLLECTIBLE_INVOICE_STATUSES,
    COLLECTIBLE_PAYMENT_STATUSES,
    REMINDER_WORKFLOW,
    ScheduleEntry,
)
from stockflow.modules.collection_reminder.scheduler import (
    ExistingReminder,
    InvoiceSnapshot,
    ReminderDraft,
    as_utc,
    generate,
)
from stockflow.modules.collection_reminder.schemas import CollectionReminderCreate
from stockflow.modules.tenancy.schemas import TenantContext
from stockflow.modules.tenancy.service import TenantScopedService

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


class CollectionReminderService(TenantScopedService):
    def __init__(
        self,
        db: AsyncSession,
        tenant: TenantContext | None,
        schedule: Sequence[ScheduleEntry] = AUTO_REMINDER_SCHEDULE,
    ):
        super().__init__(db, tenant)
        self.schedule = schedule

    # ------------------------------------------------------------------
    # Manual reminders
    # ------------------------------------------------------------------

    async def create(self, data: CollectionReminderCreate) -> CollectionReminder:
        """Create a MANUAL reminder for one of the tenant's invoices."""
        tenant_id = self._tenant_id()

        result = await self.db.execute(
            select(Invoice.id, Invoice.customer_id).where(
                Invoice.id == data.invoice_id,
                Invoice.tenant_id == tenant_id,
            )
        )
        invoice = result.one_or_none()
        if invoice is None:
            logger.warning("Reminder create: invoice %s not found", data.invoice_id)
            raise NotFoundException(f"Factura no encontrada: {data.invoice_id}")

        reminder = CollectionReminder(
            tenant_id=tenant_id,
            invoice_id=data.invoice_id,
            customer_id=data.customer_id or invoice.customer_id,
            type=CollectionReminderType.MANUAL,
            channel=data.channel,
            status=ReminderStatus.PENDING,
            scheduled_at=data.scheduled_at,
            message=data.message,
            notes=data.notes,
        )
        self.db.add(reminder)
        await self.db.flush()

        logger.info(
            "Manual reminder %s created for invoice %s", reminder.id, data.invoice_id
        )
        return reminder

    # ------------------------------------------------------------------
    # Get / List
    # ------------------------------------------------------------------

    async def get_reminder(self, reminder_id: uuid.UUID) -> CollectionReminder:
        tenant_id = self._tenant_id()
        result = await self.db.execute(
            select(CollectionReminder)
            .options(
                joinedload(CollectionReminder.invoice),
                joinedload(CollectionReminder.customer),
            )
            .where(
                CollectionReminder.id == reminder_id,
                CollectionReminder.tenant_id == tenant_id,
            )
        )
        reminder = result.scalar_one_or_none()
        if reminder is None:
            logger.warning("Reminder %s not found for tenant %s", reminder_id, tenant_id)
            raise NotFoundException(f"Recordatorio no encontrado: {reminder_id}")
        return reminder

    async def list_reminders(
        self,
        status: ReminderStatus | None = None,
        reminder_type: CollectionReminderType | None = None,
        channel: ReminderChannel | None = None,
        invoice_id: uuid.UUID | None = None,
        customer_id: uuid.UUID | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[CollectionReminder], int]:
        """List reminders, newest scheduled first. Date filters apply to scheduled_at."""
        tenant_id = self._tenant_id()

        filters = [CollectionReminder.tenant_id == tenant_id]
        if status is not None:
            filters.append(CollectionReminder.status == status)
        if reminder_type is not None:
            filters.append(CollectionReminder.type == reminder_type)
        if channel is not None:
            filters.append(CollectionReminder.channel == channel)
        if invoice_id is not None:
            filters.append(CollectionReminder.invoice_id == invoice_id)
        if customer_id is not None:
            filters.append(CollectionReminder.customer_id == customer_id)
        if from_date is not None:
            filters.append(CollectionReminder.scheduled_at >= from_date)
        if to_date is not None:
            filters.append(CollectionReminder.scheduled_at <= to_date)

        count_result = await self.db.execute(
            select(func.count()).select_from(CollectionReminder).where(*filters)
        )
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(CollectionReminder)
            .options(
                joinedload(CollectionReminder.invoice),
                joinedload(CollectionReminder.customer),
            )
            .where(*filters)
            .order_by(CollectionReminder.scheduled_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def cancel(self, reminder_id: uuid.UUID) -> CollectionReminder:
        return await self._transition(reminder_id, ReminderAction.CANCEL)

    async def mark_sent(self, reminder_id: uuid.UUID) -> CollectionReminder:
        return await self._transition(
            reminder_id, ReminderAction.MARK_SENT, now=datetime.now(UTC)
        )

    async def mark_failed(
        self, reminder_id: uuid.UUID, notes: str | None = None
    ) -> CollectionReminder:
        return await self._transition(reminder_id, ReminderAction.MARK_FAILED, notes=notes)

    # ------------------------------------------------------------------
    # Automatic generation
    # ------------------------------------------------------------------

    async def generate_auto_reminders(self) -> dict[str, int]:
        """Persist every scheduled reminder that is due and not yet recorded.

        Safe to run concurrently: rows that lose a race against another run
        hit the per-day unique index and are skipped, and only rows actually
        inserted are counted.
        """
        tenant_id = self._tenant_id()
        now = datetime.now(UTC)

        invoices = await self._load_collectible_invoices(tenant_id)
        drafts = generate(now, invoices, self.schedule)
        generated = await self._insert_drafts(tenant_id, drafts)

        logger.info(
            "Generated %d reminders for tenant %s (%d invoices scanned)",
            generated,
            tenant_id,
            len(invoices),
        )
        return {"generated": generated}

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def get_stats(self) -> dict[str, Any]:
        tenant_id = self._tenant_id()
        result = await self.db.execute(
            select(CollectionReminder.status, CollectionReminder.type, func.count())
            .where(CollectionReminder.tenant_id == tenant_id)
            .group_by(CollectionReminder.status, CollectionReminder.type)
        )

        by_status = {s: 0 for s in ReminderStatus}
        by_type = {t: 0 for t in CollectionReminderType}
        total = 0
        for status, reminder_type, count in result.all():
            by_status[status] += count
            by_type[reminder_type] += count
            total += count

        return {"by_status": by_status, "by_type": by_type, "total": total}

    async def get_dashboard(self) -> dict[str, Any]:
        tenant_id = self._tenant_id()
        now = datetime.now(UTC)

        overdue_result = await self.db.execute(
            select(func.coalesce(func.sum(Invoice.total), 0), func.count()).where(
                *self._overdue_filters(tenant_id, now)
            )
        )
        overdue_amount, overdue_count = overdue_result.one()

        status_result = await self.db.execute(
            select(CollectionReminder.status, func.count())
            .where(CollectionReminder.tenant_id == tenant_id)
            .group_by(CollectionReminder.status)
        )
        counts = {status: count for status, count in status_result.all()}

        return {
            "total_overdue_amount": Decimal(overdue_amount),
            "overdue_invoices_count": overdue_count,
            "pending_reminders": counts.get(ReminderStatus.PENDING, 0),
            "sent_reminders": counts.get(ReminderStatus.SENT, 0),
            "failed_reminders": counts.get(ReminderStatus.FAILED, 0),
        }

    async def get_overdue_invoices(self) -> list[dict[str, Any]]:
        """Collectible invoices past their due date, most overdue first."""
        tenant_id = self._tenant_id()
        now = datetime.now(UTC)

        result = await self.db.execute(
            select(Invoice)
            .options(joinedload(Invoice.customer))
            .where(*self._overdue_filters(tenant_id, now))
            .order_by(Invoice.due_date.asc())
        )
        invoices = list(result.scalars().all())
        if not invoices:
            return []

        last_result = await self.db.execute(
            select(CollectionReminder.invoice_id, func.max(CollectionReminder.created_at))
            .where(
                CollectionReminder.tenant_id == tenant_id,
                CollectionReminder.invoice_id.in_([inv.id for inv in invoices]),
            )
            .group_by(CollectionReminder.invoice_id)
        )
        last_reminder_at = {invoice_id: ts for invoice_id, ts in last_result.all()}

        return [
            {
                "id": inv.id,
                "invoice_number": inv.invoice_number,
                "customer": inv.customer,
                "total": inv.total,
                "due_date": inv.due_date,
                "status": inv.status,
                "payment_status": inv.payment_status,
                "days_overdue": math.floor(
                    (now - as_utc(inv.due_date)).total_seconds() / SECONDS_PER_DAY
                ),
                "last_reminder_at": last_reminder_at.get(inv.id),
            }
            for inv in invoices
        ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _transition(
        self, reminder_id: uuid.UUID, action: ReminderAction, **context: Any
    ) -> CollectionReminder:
        tenant_id = self._tenant_id()
        result = await self.db.execute(
            select(CollectionReminder)
            .where(
                CollectionReminder.id == reminder_id,
                CollectionReminder.tenant_id == tenant_id,
            )
            .with_for_update()
        )
        reminder = result.scalar_one_or_none()
        if reminder is None:
            logger.warning("Reminder %s not found for tenant %s", reminder_id, tenant_id)
            raise NotFoundException(f"Recordatorio no encontrado: {reminder_id}")

        old_status = reminder.status
        REMINDER_WORKFLOW.apply(reminder, action, **context)
        await self.db.flush()

        logger.info(
            "Reminder %s transitioned %s -> %s",
            reminder_id,
            old_status.value,
            reminder.status.value,
        )
        return reminder

    @staticmethod
    def _overdue_filters(tenant_id: uuid.UUID, now: datetime) -> list:
        return [
            Invoice.tenant_id == tenant_id,
            Invoice.due_date.isnot(None),
            Invoice.due_date < now,
            Invoice.status.in_(COLLECTIBLE_INVOICE_STATUSES),
            Invoice.payment_status.in_(COLLECTIBLE_PAYMENT_STATUSES),
        ]

    async def _load_collectible_invoices(
        self, tenant_id: uuid.UUID
    ) -> list[InvoiceSnapshot]:
        result = await self.db.execute(
            select(
                Invoice.id,
                Invoice.invoice_number,
                Invoice.customer_id,
                Invoice.due_date,
            ).where(
                Invoice.tenant_id == tenant_id,
                Invoice.due_date.isnot(None),
                Invoice.status.in_(COLLECTIBLE_INVOICE_STATUSES),
                Invoice.payment_status.in_(COLLECTIBLE_PAYMENT_STATUSES),
            )
        )
        snapshots = {
            row.id: InvoiceSnapshot(
                invoice_id=row.id,
                invoice_number=row.invoice_number,
                customer_id=row.customer_id,
                due_date=row.due_date,
            )
            for row in result.all()
        }
        if not snapshots:
            return []

        reminders_result = await self.db.execute(
            select(
                CollectionReminder.invoice_id,
                CollectionReminder.type,
                CollectionReminder.scheduled_at,
            ).where(
                CollectionReminder.tenant_id == tenant_id,
                CollectionReminder.invoice_id.in_(list(snapshots)),
            )
        )
        for row in reminders_result.all():
            snapshot = snapshots.get(row.invoice_id)
            if snapshot is not None:
                snapshot.reminders.append(ExistingReminder(row.type, row.scheduled_at))

        return list(snapshots.values())

    async def _insert_drafts(
        self, tenant_id: uuid.UUID, drafts: list[ReminderDraft]
    ) -> int:
        """Bulk insert; returns the number of rows the database accepted."""
        if not drafts:
            return 0

        stmt = (
            pg_insert(CollectionReminder)
            .values([draft.as_row(tenant_id) for draft in drafts])
            .on_conflict_do_nothing()
            .returning(CollectionReminder.id)
        )
        result = await self.db.execute(stmt)
        inserted = len(result.scalars().all())
        if inserted < len(drafts):
            logger.info(
                "Skipped %d reminders already recorded by a concurrent run",
                len(drafts) - inserted,
            )
        return inserted
