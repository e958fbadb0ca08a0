"""Celery tasks for collection reminder automation."""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy import select

from celery_app import celery
from stockflow.database.engine import async_session
from stockflow.models.enums import TenantStatus
from stockflow.models.tenant import Tenant
from stockflow.modules.tenancy.schemas import TenantContext
from stockflow.modules.tenancy.service import with_tenant_context

logger = logging.getLogger(__name__)


async def _generate_collection_reminders_async() -> dict:
    """Run automatic reminder generation for every active tenant.

    Each tenant runs in its own session and transaction, so one failing
    tenant does not roll back the others.
    """
    from stockflow.modules.collection_reminder.service import CollectionReminderService

    stats = {"tenants": 0, "generated": 0, "errors": 0}

    async with async_session() as session:
        result = await session.execute(
            select(Tenant.id).where(Tenant.status == TenantStatus.ACTIVE)
        )
        tenant_ids = list(result.scalars().all())
    stats["tenants"] = len(tenant_ids)

    for tenant_id in tenant_ids:
        tenant = TenantContext(tenant_id=tenant_id)
        try:
            async with async_session() as session:
                outcome = await with_tenant_context(
                    session,
                    tenant,
                    lambda s: CollectionReminderService(s, tenant).generate_auto_reminders(),
                )
            stats["generated"] += outcome["generated"]
        except Exception:
            logger.exception("Error generating collection reminders for tenant %s", tenant_id)
            stats["errors"] += 1

    return stats


# ---------------------------------------------------------------------------
# Celery task definitions
# ---------------------------------------------------------------------------


@celery.task(name="stockflow.modules.collection_reminder.tasks.generate_collection_reminders")
def generate_collection_reminders():
    """Create the automatic reminders that have come due for all tenants."""
    stats = asyncio.run(_generate_collection_reminders_async())
    logger.info("generate_collection_reminders complete: %s", stats)
    return stats
