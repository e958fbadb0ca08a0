"""Tenant scoping helpers shared by every service."""

import uuid
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from stockflow.database.tenant import set_tenant_context
from stockflow.exceptions import TenantRequiredException
from stockflow.modules.tenancy.schemas import TenantContext

T = TypeVar("T")


def require_tenant_id(tenant: TenantContext | None) -> uuid.UUID:
    """Return the tenant id or raise TenantRequiredException (unscoped call)."""
    if tenant is None:
        raise TenantRequiredException()
    return tenant.tenant_id


class TenantScopedService:
    """Base for services whose every query is filtered by the caller's tenant.

    The context is checked per operation rather than at construction so that a
    service built for an anonymous request still fails each call as unscoped.
    """

    def __init__(self, db: AsyncSession, tenant: TenantContext | None) -> None:
        self.db = db
        self.tenant = tenant

    def _tenant_id(self) -> uuid.UUID:
        return require_tenant_id(self.tenant)

    @property
    def _user_id(self) -> uuid.UUID | None:
        return self.tenant.user_id if self.tenant else None


async def with_tenant_context(
    session: AsyncSession,
    tenant_context: TenantContext,
    callback: Callable[[AsyncSession], Awaitable[T]],
) -> T:
    """Execute a callback in a transaction with the RLS tenant variables set.

    Used by background jobs, which own their session; HTTP requests get the
    same variables from ``get_tenant_db``.
    """
    await set_tenant_context(
        session,
        tenant_id=str(tenant_context.tenant_id),
        user_id=str(tenant_context.user_id) if tenant_context.user_id else None,
    )

    result = await callback(session)
    await session.commit()
    return result
