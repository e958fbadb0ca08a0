"""Tenancy module: explicit tenant scoping for services and requests."""

from stockflow.modules.tenancy.auth import AuthenticatedUser, get_optional_user
from stockflow.modules.tenancy.dependencies import get_tenant_context, get_tenant_db
from stockflow.modules.tenancy.schemas import TenantContext
from stockflow.modules.tenancy.service import (
    TenantScopedService,
    require_tenant_id,
    with_tenant_context,
)

__all__ = [
    "TenantContext",
    "AuthenticatedUser",
    "get_optional_user",
    "get_tenant_context",
    "get_tenant_db",
    "TenantScopedService",
    "require_tenant_id",
    "with_tenant_context",
]
