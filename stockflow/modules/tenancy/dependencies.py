"""FastAPI dependency functions for tenant context injection."""

from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stockflow.database.session import get_db
from stockflow.database.tenant import set_tenant_context
from stockflow.modules.tenancy.auth import AuthenticatedUser, get_optional_user
from stockflow.modules.tenancy.schemas import TenantContext


def get_tenant_context(
    user: AuthenticatedUser | None = Depends(get_optional_user),
) -> TenantContext | None:
    """Build the TenantContext from the token, or None when there is no tenant.

    Services reject a None context themselves, so endpoints never have to.
    """
    if user is None or user.tenant_id is None:
        return None
    return TenantContext(tenant_id=user.tenant_id, user_id=user.id, role=user.role)


async def get_tenant_db(
    tenant: TenantContext | None = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> AsyncGenerator[AsyncSession, None]:
    """Database session with the RLS tenant variables set when a tenant is known."""
    if tenant is not None:
        await set_tenant_context(
            db,
            tenant_id=str(tenant.tenant_id),
            user_id=str(tenant.user_id) if tenant.user_id else None,
        )
    yield db
