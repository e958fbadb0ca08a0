"""Tests for the nightly collection reminder task fan-out across tenants."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from stockflow.modules.collection_reminder.tasks import _generate_collection_reminders_async


def _session_cm(session):
    cm = MagicMock()
    cm.__aenter__ = AsyncMock(return_value=session)
    cm.__aexit__ = AsyncMock(return_value=False)
    return cm


def _tenant_listing_session(tenant_ids):
    session = AsyncMock()
    result = MagicMock()
    result.scalars.return_value.all.return_value = tenant_ids
    session.execute.return_value = result
    return session


@pytest.mark.asyncio
async def test_each_tenant_runs_in_its_own_session():
    ok_tenant, failing_tenant = uuid.uuid4(), uuid.uuid4()
    listing = _tenant_listing_session([ok_tenant, failing_tenant])
    ok_session, failing_session = AsyncMock(), AsyncMock()
    sessions = iter([listing, ok_session, failing_session])

    outcomes = {
        ok_tenant: AsyncMock(return_value={"generated": 3}),
        failing_tenant: AsyncMock(side_effect=RuntimeError("db down")),
    }

    def _service(session, tenant):
        svc = MagicMock()
        svc.generate_auto_reminders = outcomes[tenant.tenant_id]
        return svc

    with (
        patch(
            "stockflow.modules.collection_reminder.tasks.async_session",
            side_effect=lambda: _session_cm(next(sessions)),
        ),
        patch(
            "stockflow.modules.collection_reminder.service.CollectionReminderService",
            side_effect=_service,
        ),
    ):
        stats = await _generate_collection_reminders_async()

    assert stats == {"tenants": 2, "generated": 3, "errors": 1}
    ok_session.commit.assert_awaited_once()
    failing_session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_no_active_tenants():
    listing = _tenant_listing_session([])

    with patch(
        "stockflow.modules.collection_reminder.tasks.async_session",
        side_effect=lambda: _session_cm(listing),
    ):
        stats = await _generate_collection_reminders_async()

    assert stats == {"tenants": 0, "generated": 0, "errors": 0}
