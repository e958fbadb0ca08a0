"""Router integration tests for quotation endpoints.

Route wiring and error rendering run against a mocked service; the
``TestAgainstSession`` cases walk a quotation from draft to invoice over a
real SQLite session.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from stockflow.app import app
from stockflow.exceptions import InvalidStateException
from stockflow.models.enums import InvoiceSource, InvoiceStatus, PaymentStatus, QuotationStatus
from stockflow.modules.quotation.router import get_quotation_service, router
from stockflow.modules.quotation.schemas import QuotationUpdate
from stockflow.modules.tenancy.dependencies import get_tenant_context, get_tenant_db

BASE = "/api/v1/quotations"

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _mock_quotation(status=QuotationStatus.DRAFT):
    """A MagicMock mimicking a quotation row that Pydantic can validate."""
    return MagicMock(
        id=uuid.uuid4(),
        tenant_id=uuid.uuid4(),
        quotation_number="COT-00007",
        customer_id=None,
        user_id=None,
        status=status,
        subtotal=Decimal("300.00"),
        tax=Decimal("57.00"),
        discount=Decimal("0"),
        total=Decimal("357.00"),
        issue_date=datetime.now(UTC),
        valid_until=None,
        notes=None,
        converted_to_invoice_id=None,
        converted_at=None,
        customer=None,
        items=[],
        created_at=datetime.now(UTC),
        updated_at=datetime.now(UTC),
    )


def _mock_invoice():
    return MagicMock(
        id=uuid.uuid4(),
        tenant_id=uuid.uuid4(),
        invoice_number="INV-00031",
        customer_id=None,
        user_id=None,
        status=InvoiceStatus.DRAFT,
        payment_status=PaymentStatus.UNPAID,
        source=InvoiceSource.QUOTATION,
        subtotal=Decimal("300.00"),
        tax=Decimal("57.00"),
        discount=Decimal("0"),
        total=Decimal("357.00"),
        issue_date=datetime.now(UTC),
        due_date=None,
        paid_at=None,
        notes=None,
        items=[],
        created_at=datetime.now(UTC),
        updated_at=datetime.now(UTC),
    )


@pytest.fixture
def quotation_service():
    svc = MagicMock()
    for name in (
        "create_quotation",
        "list_quotations",
        "get_stats",
        "get_quotation",
        "update_quotation",
        "delete_quotation",
        "send",
        "accept",
        "reject",
        "convert_to_invoice",
    ):
        setattr(svc, name, AsyncMock())
    app.dependency_overrides[get_quotation_service] = lambda: svc
    return svc


@pytest.fixture
def session_overrides(async_test_session, tenant, stored_customer):
    """Route every request through the SQLite session as ``tenant``."""

    async def _db():
        yield async_test_session

    app.dependency_overrides[get_tenant_db] = _db
    app.dependency_overrides[get_tenant_context] = lambda: tenant
    return stored_customer


# ---------------------------------------------------------------------------
# Route table
# ---------------------------------------------------------------------------


class TestRouterEndpointCount:
    def test_route_count(self):
        """Router should have 10 endpoints."""
        assert len(router.routes) == 10, (
            f"Expected 10 routes, got {len(router.routes)}. "
            f"Routes: {[r.path for r in router.routes]}"
        )


class TestRouterPaths:
    def test_crud_paths(self):
        routes = {(r.path, m) for r in router.routes for m in r.methods}
        assert ("/quotations/", "POST") in routes
        assert ("/quotations/", "GET") in routes
        assert ("/quotations/stats", "GET") in routes
        assert ("/quotations/{quotation_id}", "GET") in routes
        assert ("/quotations/{quotation_id}", "PATCH") in routes
        assert ("/quotations/{quotation_id}", "DELETE") in routes

    def test_status_actions_are_patch(self):
        routes = {(r.path, m) for r in router.routes for m in r.methods}
        for suffix in ("send", "accept", "reject"):
            assert (f"/quotations/{{quotation_id}}/{suffix}", "PATCH") in routes

    def test_convert_is_post(self):
        routes = {(r.path, m) for r in router.routes for m in r.methods}
        assert ("/quotations/{quotation_id}/convert", "POST") in routes


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------


class TestQuotationUpdateSchema:
    @pytest.mark.parametrize("field", ["issue_date", "items"])
    def test_explicit_null_is_rejected(self, field):
        with pytest.raises(ValidationError, match=f"{field} cannot be null"):
            QuotationUpdate.model_validate({field: None})

    def test_nullable_fields_accept_null(self):
        update = QuotationUpdate.model_validate({"valid_until": None, "notes": None})

        assert update.model_dump(exclude_unset=True, exclude={"items"}) == {
            "valid_until": None,
            "notes": None,
        }


# ---------------------------------------------------------------------------
# HTTP behaviour (mocked service)
# ---------------------------------------------------------------------------


class TestEndpoints:
    @pytest.mark.asyncio
    async def test_stats(self, async_client, quotation_service):
        quotation_service.get_stats.return_value = {
            "total_quotations": 3,
            "total_value": Decimal("1071.00"),
            "by_status": {QuotationStatus.DRAFT: 1, QuotationStatus.ACCEPTED: 2},
        }

        response = await async_client.get(f"{BASE}/stats")

        assert response.status_code == 200
        body = response.json()
        assert body["total_quotations"] == 3
        assert body["by_status"] == {"DRAFT": 1, "ACCEPTED": 2}

    @pytest.mark.asyncio
    async def test_list_passes_search(self, async_client, quotation_service):
        quotation_service.list_quotations.return_value = ([_mock_quotation()], 1)

        response = await async_client.get(f"{BASE}/", params={"search": "COT-0000"})

        assert response.status_code == 200
        assert response.json()["items"][0]["quotation_number"] == "COT-00007"
        assert quotation_service.list_quotations.await_args.kwargs["search"] == "COT-0000"

    @pytest.mark.asyncio
    async def test_convert_returns_both_documents(self, async_client, quotation_service):
        quotation = _mock_quotation(QuotationStatus.CONVERTED)
        invoice = _mock_invoice()
        quotation.converted_to_invoice_id = invoice.id
        quotation.converted_at = datetime.now(UTC)
        quotation_service.convert_to_invoice.return_value = (quotation, invoice)

        response = await async_client.post(f"{BASE}/{quotation.id}/convert")

        assert response.status_code == 200
        body = response.json()
        assert body["quotation"]["status"] == "CONVERTED"
        assert body["quotation"]["converted_to_invoice_id"] == str(invoice.id)
        assert body["invoice"]["source"] == "QUOTATION"
        quotation_service.convert_to_invoice.assert_awaited_once_with(quotation.id)

    @pytest.mark.asyncio
    async def test_convert_rejected_renders_structured_error(
        self, async_client, quotation_service
    ):
        quotation_service.convert_to_invoice.side_effect = InvalidStateException(
            "Solo se pueden convertir cotizaciones en estado aceptada"
        )

        response = await async_client.post(f"{BASE}/{uuid.uuid4()}/convert")

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "INVALID_STATE"
        assert error["message"] == "Solo se pueden convertir cotizaciones en estado aceptada"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["issue_date", "items"])
    async def test_null_required_field_is_validation_error(
        self, async_client, quotation_service, field
    ):
        response = await async_client.patch(f"{BASE}/{uuid.uuid4()}", json={field: None})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["field"] == f"body.{field}"
        quotation_service.update_quotation.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_returns_204(self, async_client, quotation_service):
        quotation_id = uuid.uuid4()

        response = await async_client.delete(f"{BASE}/{quotation_id}")

        assert response.status_code == 204
        quotation_service.delete_quotation.assert_awaited_once_with(quotation_id)


# ---------------------------------------------------------------------------
# HTTP behaviour (real session)
# ---------------------------------------------------------------------------


class TestAgainstSession:
    @pytest.mark.asyncio
    async def test_draft_to_invoice(self, async_client, session_overrides):
        customer = session_overrides

        created = await async_client.post(
            f"{BASE}/",
            json={
                "customer_id": str(customer.id),
                "items": [{"quantity": 3, "unit_price": "100"}],
            },
        )
        assert created.status_code == 201
        quotation_id = created.json()["id"]
        assert created.json()["quotation_number"] == "COT-00001"

        for action, status in (("send", "SENT"), ("accept", "ACCEPTED")):
            moved = await async_client.patch(f"{BASE}/{quotation_id}/{action}")
            assert moved.status_code == 200
            assert moved.json()["status"] == status
            assert moved.json()["updated_at"] is not None

        converted = await async_client.post(f"{BASE}/{quotation_id}/convert")

        assert converted.status_code == 200
        body = converted.json()
        assert body["quotation"]["status"] == "CONVERTED"
        assert body["quotation"]["customer"]["name"] == "Distribuidora La Economia"
        assert body["quotation"]["converted_to_invoice_id"] == body["invoice"]["id"]
        assert body["invoice"]["status"] == "DRAFT"
        assert body["invoice"]["source"] == "QUOTATION"
        assert body["invoice"]["invoice_number"] == "INV-00001"

        invoice = await async_client.get(f"/api/v1/invoices/{body['invoice']['id']}")
        assert invoice.status_code == 200
        assert len(invoice.json()["items"]) == 1

    @pytest.mark.asyncio
    async def test_convert_draft_is_rejected(self, async_client, session_overrides):
        created = await async_client.post(
            f"{BASE}/",
            json={
                "customer_id": str(session_overrides.id),
                "items": [{"quantity": 1, "unit_price": "10"}],
            },
        )

        response = await async_client.post(f"{BASE}/{created.json()['id']}/convert")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_STATE"
