"""Pydantic schemas for tenant context."""

import uuid

from pydantic import BaseModel


class TenantContext(BaseModel):
    """The tenant an operation runs for, passed explicitly into every service."""

    model_config = {"frozen": True}

    tenant_id: uuid.UUID
    user_id: uuid.UUID | None = None
    role: str | None = None
