"""Unit tests for the transition-table state machine and the document tables."""

from __future__ import annotations

import enum
from types import SimpleNamespace

import pytest

from stockflow.exceptions import InvalidStateException
from stockflow.models.enums import (
    InvoiceAction,
    InvoiceStatus,
    QuotationAction,
    QuotationStatus,
    ReminderAction,
    ReminderStatus,
)
from stockflow.modules.collection_reminder.constants import REMINDER_WORKFLOW
from stockflow.modules.invoice.constants import INVOICE_WORKFLOW
from stockflow.modules.quotation.constants import QUOTATION_WORKFLOW
from stockflow.modules.workflow.state_machine import StateMachine, Transition


class Light(str, enum.Enum):
    RED = "RED"
    GREEN = "GREEN"


class Switch(str, enum.Enum):
    GO = "GO"
    PAINT = "PAINT"


def _permitted(machine: StateMachine, status, actions) -> set:
    """Actions ``machine.ensure`` accepts for an entity in ``status``."""
    entity = SimpleNamespace(status=status)
    permitted = set()
    for action in actions:
        try:
            machine.ensure(entity, action)
        except InvalidStateException:
            continue
        permitted.add(action)
    return permitted


def _machine(hook=None) -> StateMachine:
    return StateMachine(
        "light",
        {
            Light.RED: {Switch.GO: Transition(Light.GREEN, hook), Switch.PAINT: Transition()},
        },
        {Switch.GO: "Cannot go from {status}"},
    )


class TestStateMachine:
    def test_apply_moves_to_target_status(self):
        entity = SimpleNamespace(status=Light.RED)

        assert _machine().apply(entity, Switch.GO) == Light.GREEN
        assert entity.status == Light.GREEN

    def test_in_place_action_keeps_status(self):
        entity = SimpleNamespace(status=Light.RED)

        assert _machine().apply(entity, Switch.PAINT) == Light.RED
        assert entity.status == Light.RED

    def test_rejection_uses_formatted_message_and_details(self):
        entity = SimpleNamespace(status=Light.GREEN)

        with pytest.raises(InvalidStateException, match="Cannot go from GREEN") as exc_info:
            _machine().apply(entity, Switch.GO)

        assert exc_info.value.code == "INVALID_STATE"
        assert exc_info.value.status_code == 400
        assert exc_info.value.details[0]["field"] == "status"
        assert entity.status == Light.GREEN

    def test_default_message_names_action_and_status(self):
        entity = SimpleNamespace(status=Light.GREEN)

        with pytest.raises(InvalidStateException, match="Cannot perform 'PAINT' on light"):
            _machine().apply(entity, Switch.PAINT)

    def test_hook_receives_context_before_status_write(self):
        seen = {}

        def hook(entity, *, marker, **_):
            seen["status_during_hook"] = entity.status
            seen["marker"] = marker

        entity = SimpleNamespace(status=Light.RED)
        _machine(hook).apply(entity, Switch.GO, marker=42)

        assert seen == {"status_during_hook": Light.RED, "marker": 42}

    def test_failing_hook_leaves_status_unchanged(self):
        def hook(entity, **_):
            raise RuntimeError("boom")

        entity = SimpleNamespace(status=Light.RED)
        with pytest.raises(RuntimeError):
            _machine(hook).apply(entity, Switch.GO)

        assert entity.status == Light.RED

    def test_status_without_row_rejects_every_action(self):
        machine = _machine()

        assert _permitted(machine, Light.RED, Switch) == {Switch.GO, Switch.PAINT}
        assert _permitted(machine, Light.GREEN, Switch) == set()


# ---------------------------------------------------------------------------
# Document tables
# ---------------------------------------------------------------------------


class TestReminderTable:
    @pytest.mark.parametrize(
        "status", [ReminderStatus.SENT, ReminderStatus.FAILED, ReminderStatus.CANCELLED]
    )
    def test_non_pending_statuses_are_terminal(self, status):
        assert _permitted(REMINDER_WORKFLOW, status, ReminderAction) == set()

    def test_pending_allows_all_three_outcomes(self):
        permitted = _permitted(REMINDER_WORKFLOW, ReminderStatus.PENDING, ReminderAction)
        assert permitted == set(ReminderAction)


class TestQuotationTable:
    def test_only_drafts_are_editable(self):
        editable = {
            s for s in QuotationStatus if _permitted(QUOTATION_WORKFLOW, s, [QuotationAction.EDIT])
        }
        assert editable == {QuotationStatus.DRAFT}

    def test_only_accepted_converts(self):
        convertible = {
            s
            for s in QuotationStatus
            if _permitted(QUOTATION_WORKFLOW, s, [QuotationAction.CONVERT])
        }
        assert convertible == {QuotationStatus.ACCEPTED}

    @pytest.mark.parametrize(
        "status",
        [QuotationStatus.REJECTED, QuotationStatus.EXPIRED, QuotationStatus.CONVERTED],
    )
    def test_terminal_statuses(self, status):
        assert _permitted(QUOTATION_WORKFLOW, status, QuotationAction) == set()


class TestInvoiceTable:
    @pytest.mark.parametrize("status", [InvoiceStatus.PAID, InvoiceStatus.CANCELLED])
    def test_paid_and_cancelled_are_read_only(self, status):
        assert _permitted(INVOICE_WORKFLOW, status, InvoiceAction) == set()

    def test_edit_allowed_in_draft_and_pending_only(self):
        editable = {
            s for s in InvoiceStatus if _permitted(INVOICE_WORKFLOW, s, [InvoiceAction.EDIT])
        }
        assert editable == {InvoiceStatus.DRAFT, InvoiceStatus.PENDING}

    def test_delete_only_in_draft(self):
        deletable = {
            s for s in InvoiceStatus if _permitted(INVOICE_WORKFLOW, s, [InvoiceAction.DELETE])
        }
        assert deletable == {InvoiceStatus.DRAFT}

    def test_mark_paid_message_names_status(self):
        invoice = SimpleNamespace(status=InvoiceStatus.DRAFT)

        with pytest.raises(
            InvalidStateException,
            match="No se puede marcar como pagada una factura en estado DRAFT",
        ):
            INVOICE_WORKFLOW.ensure(invoice, InvoiceAction.MARK_PAID)
