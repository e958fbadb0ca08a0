from stockflow.database.base import Base, TenantScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin
from stockflow.database.engine import async_session, engine, sync_engine
from stockflow.database.session import get_db
from stockflow.database.tenant import set_tenant_context

__all__ = [
    "Base",
    "TenantScopedMixin",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "async_session",
    "engine",
    "sync_engine",
    "get_db",
    "set_tenant_context",
]
