"""
Tests para el flujo de Notas crédito

Cubren apertura, aplicación a facturas a través del motor de asignación,
reembolso truncado al crédito restante y anulación del remanente.
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from docflow.core.config import settings
from docflow.core.exceptions import (
    EmptyAllocationError, InsufficientCreditError, InvalidTransitionError, ValidationError
)
from docflow.modules.allocations.schemas import AllocationProposal
from docflow.modules.calculations.schemas import LineItem
from docflow.modules.credit_notes.schemas import CreditNote, CreditNoteEvent, CreditNoteStatus
from docflow.modules.lifecycle.effects import (
    AdjustInventory, PostJournalEntry, UpdateCounterpartyBalance
)
from docflow.modules.lifecycle.schemas import TransitionContext
from docflow.modules.lifecycle.service import apply_result, transition


@pytest.fixture
def customer_id():
    return uuid4()


@pytest.fixture
def open_note(customer_id):
    """Nota crédito abierta por 100 (devolución de 5 unidades × 20)"""
    note = CreditNote(
        document_number="CN-0001",
        counterparty_id=customer_id,
        line_items=[LineItem(quantity=Decimal("5"), unit_price=Decimal("20"), is_inventory=True)]
    )
    _, note = run(note, CreditNoteEvent.OPEN)
    return note


def run(document, event, **context):
    context.setdefault("expected_version", document.version)
    result = transition(document, event, TransitionContext(**context))
    return result, apply_result(document, result)


def proposal(requested, due="500"):
    return AllocationProposal(target_id=uuid4(), amount_due=Decimal(due), requested_amount=Decimal(requested))


class TestOpen:

    def test_open_effects(self, customer_id):
        note = CreditNote(
            counterparty_id=customer_id,
            line_items=[LineItem(quantity=Decimal("5"), unit_price=Decimal("20"), is_inventory=True)]
        )

        result, note = run(note, CreditNoteEvent.OPEN)

        assert note.status == CreditNoteStatus.OPEN
        assert [e.delta for e in result.effects if isinstance(e, AdjustInventory)] == [Decimal("5")]
        assert [e.delta for e in result.effects if isinstance(e, UpdateCounterpartyBalance)] == [Decimal("-100.00")]
        journal = [e for e in result.effects if isinstance(e, PostJournalEntry)][0]
        assert (journal.debit_account, journal.credit_account) == (
            settings.SALES_RETURNS_ACCOUNT, settings.ACCOUNTS_RECEIVABLE_ACCOUNT
        )

    def test_open_without_lines_rejected(self):
        with pytest.raises(ValidationError):
            run(CreditNote(), CreditNoteEvent.OPEN)


class TestApply:
    """Tests para apply"""

    def test_partial_then_full_application(self, open_note):
        first, second = proposal("60"), proposal("40")

        result, note = run(open_note, CreditNoteEvent.APPLY, proposals=[first])
        assert note.status == CreditNoteStatus.PARTIALLY_APPLIED
        assert note.remaining_credit == Decimal("40.00")
        assert result.applications[0].source_id == open_note.id
        assert result.applications[0].target_id == first.target_id
        assert result.effects == []

        _, note = run(note, CreditNoteEvent.APPLY, proposals=[second])
        assert note.status == CreditNoteStatus.APPLIED
        assert note.remaining_credit == Decimal("0.00")

    def test_application_clamped_to_invoice_due(self, open_note):
        result, note = run(open_note, CreditNoteEvent.APPLY, proposals=[proposal("80", due="30")])

        assert result.applications[0].amount == Decimal("30.00")
        assert result.warnings[0].field == "proposals[1].requested_amount"
        assert note.amount_applied == Decimal("30.00")

    def test_insufficient_credit(self, open_note):
        with pytest.raises(InsufficientCreditError):
            run(open_note, CreditNoteEvent.APPLY, proposals=[proposal("70"), proposal("50")])

    def test_empty_batch(self, open_note):
        with pytest.raises(EmptyAllocationError):
            run(open_note, CreditNoteEvent.APPLY, proposals=[])

    def test_applied_note_is_terminal(self, open_note):
        _, note = run(open_note, CreditNoteEvent.APPLY, proposals=[proposal("100")])
        with pytest.raises(InvalidTransitionError):
            run(note, CreditNoteEvent.REFUND, amount=Decimal("1"))


class TestRefund:
    """Tests para refund"""

    def test_refund_keeps_state(self, open_note, customer_id):
        result, note = run(open_note, CreditNoteEvent.REFUND, amount=Decimal("25"))

        assert note.status == CreditNoteStatus.OPEN
        assert note.remaining_credit == Decimal("75.00")
        journal = [e for e in result.effects if isinstance(e, PostJournalEntry)][0]
        assert (journal.debit_account, journal.credit_account) == (
            settings.ACCOUNTS_RECEIVABLE_ACCOUNT, settings.CASH_ACCOUNT
        )
        assert [e.delta for e in result.effects if isinstance(e, UpdateCounterpartyBalance)] == [Decimal("25.00")]

    def test_refund_clamped_to_remaining(self, open_note):
        result, note = run(open_note, CreditNoteEvent.REFUND, amount=Decimal("150"))

        assert note.amount_refunded == Decimal("100.00")
        assert note.status == CreditNoteStatus.OPEN
        assert result.warnings[0].field == "refund_amount"
        assert result.warnings[0].applied == Decimal("100.00")

    def test_refund_without_remaining_credit(self, open_note):
        _, note = run(open_note, CreditNoteEvent.REFUND, amount=Decimal("100"))
        with pytest.raises(ValidationError):
            run(note, CreditNoteEvent.REFUND, amount=Decimal("1"))


class TestVoid:

    def test_void_cancels_only_remainder(self, open_note):
        _, note = run(open_note, CreditNoteEvent.APPLY, proposals=[proposal("60")])

        result, note = run(note, CreditNoteEvent.VOID, reason="Error de digitación")

        assert note.status == CreditNoteStatus.VOID
        assert note.amount_voided == Decimal("40.00")
        assert [e.delta for e in result.effects if isinstance(e, AdjustInventory)] == [Decimal("-2")]
        journal = [e for e in result.effects if isinstance(e, PostJournalEntry)][0]
        assert journal.amount == Decimal("40.00")
        assert [e.delta for e in result.effects if isinstance(e, UpdateCounterpartyBalance)] == [Decimal("40.00")]
