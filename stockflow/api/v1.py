"""Centralized v1 API router — all module routers are included here."""

from fastapi import APIRouter

from stockflow.modules.collection_reminder.router import router as collection_reminder_router
from stockflow.modules.invoice.router import router as invoice_router
from stockflow.modules.quotation.router import router as quotation_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(collection_reminder_router)
v1_router.include_router(quotation_router)
v1_router.include_router(invoice_router)
