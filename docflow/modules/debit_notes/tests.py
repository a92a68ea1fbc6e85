"""
Tests para el flujo de Notas débito (espejo de cuentas por pagar)
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from docflow.core.config import settings
from docflow.modules.allocations.schemas import AllocationProposal
from docflow.modules.calculations.schemas import LineItem
from docflow.modules.debit_notes.schemas import DebitNote, DebitNoteEvent, DebitNoteStatus
from docflow.modules.lifecycle.effects import (
    AdjustInventory, PostJournalEntry, UpdateCounterpartyBalance
)
from docflow.modules.lifecycle.schemas import TransitionContext
from docflow.modules.lifecycle.service import apply_result, transition


@pytest.fixture
def draft_note():
    return DebitNote(
        counterparty_id=uuid4(),
        line_items=[LineItem(quantity=Decimal("3"), unit_price=Decimal("10"), is_inventory=True)]
    )


def run(document, event, **context):
    context.setdefault("expected_version", document.version)
    result = transition(document, event, TransitionContext(**context))
    return result, apply_result(document, result)


class TestDebitNoteWorkflow:

    def test_open_reduces_payable_and_stock(self, draft_note):
        result, note = run(draft_note, DebitNoteEvent.OPEN)

        assert note.status == DebitNoteStatus.OPEN
        assert [e.delta for e in result.effects if isinstance(e, AdjustInventory)] == [Decimal("-3")]
        assert [e.delta for e in result.effects if isinstance(e, UpdateCounterpartyBalance)] == [Decimal("-30.00")]
        journal = [e for e in result.effects if isinstance(e, PostJournalEntry)][0]
        assert (journal.debit_account, journal.credit_account) == (
            settings.ACCOUNTS_PAYABLE_ACCOUNT, settings.PURCHASE_RETURNS_ACCOUNT
        )

    def test_apply_to_bill(self, draft_note):
        _, note = run(draft_note, DebitNoteEvent.OPEN)
        bill_id = uuid4()

        result, note = run(note, DebitNoteEvent.APPLY, proposals=[
            AllocationProposal.model_validate({"bill_id": str(bill_id), "amount_due": "100", "requested_amount": "30"})
        ])

        assert note.status == DebitNoteStatus.APPLIED
        assert result.applications[0].target_id == bill_id

    def test_refund_from_vendor(self, draft_note):
        _, note = run(draft_note, DebitNoteEvent.OPEN)

        result, note = run(note, DebitNoteEvent.REFUND, amount=Decimal("10"), payment_account="1100")

        assert note.status == DebitNoteStatus.OPEN
        journal = [e for e in result.effects if isinstance(e, PostJournalEntry)][0]
        assert (journal.debit_account, journal.credit_account) == ("1100", settings.ACCOUNTS_PAYABLE_ACCOUNT)

    def test_void_reverses_remainder(self, draft_note):
        _, note = run(draft_note, DebitNoteEvent.OPEN)
        _, note = run(note, DebitNoteEvent.REFUND, amount=Decimal("10"))

        result, note = run(note, DebitNoteEvent.VOID)

        assert note.amount_voided == Decimal("20.00")
        assert [e.delta for e in result.effects if isinstance(e, AdjustInventory)] == [Decimal("2")]
        journal = [e for e in result.effects if isinstance(e, PostJournalEntry)][0]
        assert (journal.debit_account, journal.credit_account, journal.amount) == (
            settings.PURCHASE_RETURNS_ACCOUNT, settings.ACCOUNTS_PAYABLE_ACCOUNT, Decimal("20.00")
        )
