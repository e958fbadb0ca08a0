"""Tenant model — one isolated customer organization."""

from __future__ import annotations

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from stockflow.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from stockflow.models.enums import TenantStatus


class Tenant(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    nit: Mapped[str | None] = mapped_column(String(20))
    status: Mapped[TenantStatus] = mapped_column(
        nullable=False, server_default="ACTIVE"
    )

    __table_args__ = (Index("ix_tenants_status", "status"),)
