"""
Tests para el flujo de Facturas de proveedor

Cubren recepción (inventario, saldo del proveedor, asiento), pagos parciales
y totales, vencimiento automático, notas débito aplicadas, edición y la
anulación proporcional a lo pendiente.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from docflow.core.config import settings
from docflow.core.exceptions import InvalidTransitionError, ValidationError
from docflow.modules.bills.schemas import Bill, BillEvent, BillStatus
from docflow.modules.calculations.schemas import LineItem, PaymentTerms
from docflow.modules.lifecycle.effects import (
    AdjustInventory, PostJournalEntry, UpdateCounterpartyBalance
)
from docflow.modules.lifecycle.schemas import TransitionContext
from docflow.modules.lifecycle.service import apply_result, reconcile, transition


# ===== FIXTURES =====

@pytest.fixture
def vendor_id():
    return uuid4()


@pytest.fixture
def draft_bill(vendor_id):
    """Factura de 10 unidades × 5 (inventario) + servicio de 20 sin inventario"""
    return Bill(
        document_number="BILL-0001",
        counterparty_id=vendor_id,
        issue_date=date(2024, 1, 1),
        due_date=date(2024, 1, 31),
        line_items=[
            LineItem(description="Tornillos", quantity=Decimal("10"), unit_price=Decimal("5"),
                     product_id=uuid4(), is_inventory=True),
            LineItem(description="Flete", quantity=Decimal("1"), unit_price=Decimal("20")),
        ]
    )


def run(document, event, **context):
    context.setdefault("expected_version", document.version)
    result = transition(document, event, TransitionContext(**context))
    return result, apply_result(document, result)


def effects_of(result, kind):
    return [effect for effect in result.effects if isinstance(effect, kind)]


@pytest.fixture
def received_bill(draft_bill):
    _, bill = run(draft_bill, BillEvent.RECEIVE)
    return bill


# ===== RECEPCIÓN =====

class TestReceive:
    """Tests para receive"""

    def test_receive_effects(self, draft_bill, vendor_id):
        result, bill = run(draft_bill, BillEvent.RECEIVE)

        assert bill.status == BillStatus.RECEIVED
        inventory = effects_of(result, AdjustInventory)
        assert len(inventory) == 1
        assert inventory[0].delta == Decimal("10")
        assert inventory[0].line_ref == draft_bill.line_items[0].id

        assert effects_of(result, UpdateCounterpartyBalance) == [
            UpdateCounterpartyBalance(counterparty_id=vendor_id, delta=Decimal("70.00"))
        ]
        journal = effects_of(result, PostJournalEntry)[0]
        assert journal.debit_account == settings.PURCHASES_ACCOUNT
        assert journal.credit_account == settings.ACCOUNTS_PAYABLE_ACCOUNT
        assert journal.amount == Decimal("70.00")

    def test_receive_without_lines_rejected(self):
        with pytest.raises(ValidationError):
            run(Bill(), BillEvent.RECEIVE)

    def test_receive_derives_due_date_from_terms(self, draft_bill):
        bill = draft_bill.model_copy(update={"due_date": None, "payment_terms": PaymentTerms.NET_15})
        result, _ = run(bill, BillEvent.RECEIVE)
        assert result.changes["due_date"] == date(2024, 1, 16)

    def test_receive_uses_bill_account(self, draft_bill):
        bill = draft_bill.model_copy(update={"account_id": "5150"})
        result, _ = run(bill, BillEvent.RECEIVE)
        assert effects_of(result, PostJournalEntry)[0].debit_account == "5150"


# ===== PAGOS =====

class TestRecordPayment:
    """Tests para record_payment"""

    def test_partial_payment(self, received_bill, vendor_id):
        result, bill = run(received_bill, BillEvent.RECORD_PAYMENT, amount=Decimal("30"))

        assert bill.status == BillStatus.PARTIALLY_PAID
        assert bill.amount_paid == Decimal("30.00")
        assert bill.amount_due == Decimal("40.00")
        journal = effects_of(result, PostJournalEntry)[0]
        assert (journal.debit_account, journal.credit_account) == (
            settings.ACCOUNTS_PAYABLE_ACCOUNT, settings.CASH_ACCOUNT
        )
        assert effects_of(result, UpdateCounterpartyBalance)[0].delta == Decimal("-30.00")

    def test_full_payment_in_two_steps(self, received_bill):
        _, bill = run(received_bill, BillEvent.RECORD_PAYMENT, amount=Decimal("30"))
        _, bill = run(bill, BillEvent.RECORD_PAYMENT, amount=Decimal("40"), payment_account="1100")

        assert bill.status == BillStatus.PAID
        assert bill.amount_due == Decimal("0.00")

    def test_payment_account(self, received_bill):
        result, _ = run(received_bill, BillEvent.RECORD_PAYMENT, amount=Decimal("70"), payment_account="1100")
        assert effects_of(result, PostJournalEntry)[0].credit_account == "1100"

    def test_overpayment_rejected(self, received_bill):
        with pytest.raises(ValidationError):
            run(received_bill, BillEvent.RECORD_PAYMENT, amount=Decimal("70.01"))

    @pytest.mark.parametrize("amount", [None, Decimal("0"), Decimal("-5")])
    def test_non_positive_payment_rejected(self, received_bill, amount):
        with pytest.raises(ValidationError):
            run(received_bill, BillEvent.RECORD_PAYMENT, amount=amount)

    def test_paid_bill_is_terminal(self, received_bill):
        _, bill = run(received_bill, BillEvent.RECORD_PAYMENT, amount=Decimal("70"))
        with pytest.raises(InvalidTransitionError):
            run(bill, BillEvent.VOID)

    def test_apply_debit_reduces_due_without_ledger(self, received_bill):
        debit_note_id = uuid4()
        result, bill = run(
            received_bill, BillEvent.APPLY_DEBIT, amount=Decimal("20"), linked_document_id=debit_note_id
        )

        assert bill.status == BillStatus.PARTIALLY_PAID
        assert bill.amount_credited == Decimal("20.00")
        assert bill.amount_due == Decimal("50.00")
        assert result.effects == []
        assert result.changes["linked_document_id"] == debit_note_id


# ===== VENCIMIENTO =====

class TestOverdue:
    """Tests para la marca automática de vencimiento"""

    def test_reconcile_marks_overdue(self, received_bill):
        result = reconcile(received_bill, date(2024, 2, 1))

        assert result.new_status == "overdue"
        assert result.effects == []

    def test_not_overdue_on_due_date(self, received_bill):
        assert reconcile(received_bill, date(2024, 1, 31)) is None

    def test_no_due_date_never_overdue(self, received_bill):
        bill = received_bill.model_copy(update={"due_date": None})
        assert reconcile(bill, date(2030, 1, 1)) is None

    def test_partial_payment_keeps_overdue(self, received_bill):
        bill = apply_result(received_bill, reconcile(received_bill, date(2024, 2, 1)))

        _, bill = run(bill, BillEvent.RECORD_PAYMENT, amount=Decimal("10"))
        assert bill.status == BillStatus.OVERDUE

        _, bill = run(bill, BillEvent.RECORD_PAYMENT, amount=Decimal("60"))
        assert bill.status == BillStatus.PAID


# ===== EDICIÓN =====

class TestEdit:

    def test_edit_recomputes_totals(self, draft_bill):
        new_lines = [LineItem(quantity=Decimal("4"), unit_price=Decimal("25"), tax_percent=Decimal("19"))]

        result, bill = run(draft_bill, BillEvent.EDIT, line_items=new_lines)

        assert bill.status == BillStatus.DRAFT
        assert result.changes["total_amount"] == Decimal("119.00")
        assert result.changes["tax_amount"] == Decimal("19.00")
        assert bill.total_amount == Decimal("119.00")

    def test_edit_invalid_line_rejected(self, draft_bill):
        with pytest.raises(ValidationError):
            run(draft_bill, BillEvent.EDIT, line_items=[LineItem(quantity=Decimal("0"), unit_price=Decimal("1"))])

    def test_edit_after_receive_rejected(self, received_bill):
        with pytest.raises(InvalidTransitionError):
            run(received_bill, BillEvent.EDIT, line_items=[])


# ===== ANULACIÓN =====

class TestVoid:
    """Tests para void"""

    def test_receive_then_void_reverses_inventory(self, draft_bill):
        """Test recibir y anular produce movimientos de inventario iguales y opuestos"""
        received_result, bill = run(draft_bill, BillEvent.RECEIVE)
        void_result, bill = run(bill, BillEvent.VOID, reason="Duplicada")

        received = effects_of(received_result, AdjustInventory)
        voided = effects_of(void_result, AdjustInventory)
        assert [(e.line_ref, e.delta) for e in voided] == [(e.line_ref, -e.delta) for e in received]
        assert effects_of(void_result, UpdateCounterpartyBalance)[0].delta == Decimal("-70.00")
        assert bill.status == BillStatus.VOID
        assert bill.amount_voided == Decimal("70.00")

    def test_void_after_partial_payment_reverses_outstanding(self, received_bill):
        _, bill = run(received_bill, BillEvent.RECORD_PAYMENT, amount=Decimal("28"))

        result, _ = run(bill, BillEvent.VOID)

        # Pendiente 42 de 70 → 60%
        assert effects_of(result, AdjustInventory)[0].delta == Decimal("-6")
        assert effects_of(result, PostJournalEntry)[0].amount == Decimal("42.00")
        assert effects_of(result, UpdateCounterpartyBalance)[0].delta == Decimal("-42.00")

    def test_void_draft_has_no_effects(self, draft_bill):
        result, bill = run(draft_bill, BillEvent.VOID)
        assert result.effects == []
        assert bill.status == BillStatus.VOID
