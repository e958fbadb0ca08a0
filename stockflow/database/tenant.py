from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession


async def set_tenant_context(
    session: AsyncSession,
    tenant_id: str,
    user_id: str | None = None,
) -> None:
    """Set PostgreSQL session variables for RLS tenant isolation.

    ``set_config(..., true)`` scopes the variables to the current transaction.
    """
    await session.execute(
        text("SELECT set_config('app.current_tenant_id', :tenant_id, true)"),
        {"tenant_id": str(tenant_id)},
    )
    if user_id:
        await session.execute(
            text("SELECT set_config('app.current_user_id', :user_id, true)"),
            {"user_id": str(user_id)},
        )
