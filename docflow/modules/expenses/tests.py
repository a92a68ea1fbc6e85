"""
Tests para el flujo de Gastos

Cubren el flujo de aprobación, rechazo con motivo obligatorio, reenvío tras
corrección y el pago (pagado o reembolsado según quién pagó).
"""

import pytest
from decimal import Decimal

from docflow.core.config import settings
from docflow.core.exceptions import InvalidTransitionError, ValidationError
from docflow.modules.calculations.schemas import ExpenseLine
from docflow.modules.expenses.schemas import Expense, ExpenseEvent, ExpenseStatus
from docflow.modules.lifecycle.effects import PostJournalEntry
from docflow.modules.lifecycle.schemas import TransitionContext
from docflow.modules.lifecycle.service import apply_result, transition


@pytest.fixture
def draft_expense():
    return Expense(document_number="EXP-0001", amount=Decimal("200"), tax_percent=Decimal("8"))


def run(document, event, **context):
    context.setdefault("expected_version", document.version)
    result = transition(document, event, TransitionContext(**context))
    return result, apply_result(document, result)


def approved(expense):
    _, expense = run(expense, ExpenseEvent.SUBMIT)
    _, expense = run(expense, ExpenseEvent.APPROVE, actor_id="aprobador")
    return expense


class TestExpenseWorkflow:
    """Tests para el ciclo de vida de un gasto"""

    def test_submit_computes_totals(self, draft_expense):
        result, expense = run(draft_expense, ExpenseEvent.SUBMIT)

        assert expense.status == ExpenseStatus.PENDING_APPROVAL
        assert result.changes["total_amount"] == Decimal("216.00")
        assert result.changes["tax_amount"] == Decimal("16.00")

    def test_submit_without_amount_rejected(self):
        with pytest.raises(ValidationError):
            run(Expense(), ExpenseEvent.SUBMIT)

    def test_reject_requires_reason(self, draft_expense):
        _, expense = run(draft_expense, ExpenseEvent.SUBMIT)

        with pytest.raises(ValidationError):
            run(expense, ExpenseEvent.REJECT)
        with pytest.raises(ValidationError):
            run(expense, ExpenseEvent.REJECT, reason="   ")

    def test_rejected_can_be_edited_and_resubmitted(self, draft_expense):
        _, expense = run(draft_expense, ExpenseEvent.SUBMIT)
        _, expense = run(expense, ExpenseEvent.REJECT, reason="Falta soporte")
        assert expense.status == ExpenseStatus.REJECTED

        result, expense = run(expense, ExpenseEvent.EDIT, amount=Decimal("150"))
        assert expense.status == ExpenseStatus.REJECTED
        assert result.changes["total_amount"] == Decimal("162.00")

        _, expense = run(expense, ExpenseEvent.SUBMIT)
        assert expense.status == ExpenseStatus.PENDING_APPROVAL

    def test_edit_split_lines(self, draft_expense):
        result, expense = run(draft_expense, ExpenseEvent.EDIT, expense_lines=[
            ExpenseLine(account_id="6100", amount=Decimal("40"), tax_percent=Decimal("10")),
            ExpenseLine(account_id="6200", amount=Decimal("60")),
        ])

        assert result.changes["total_amount"] == Decimal("104.00")
        assert expense.total_amount == Decimal("104.00")

    def test_mark_paid(self, draft_expense):
        expense = approved(draft_expense)

        result, expense = run(expense, ExpenseEvent.MARK_PAID, payment_account="1100")

        assert expense.status == ExpenseStatus.PAID
        assert result.effects == [PostJournalEntry(
            debit_account=settings.EXPENSE_ACCOUNT, credit_account="1100",
            amount=Decimal("216.00"), memo="Gasto EXP-0001"
        )]

    def test_mark_paid_reimbursable(self, draft_expense):
        expense = approved(draft_expense.model_copy(update={"is_reimbursable": True, "account_id": "6300"}))

        result, expense = run(expense, ExpenseEvent.MARK_PAID)

        assert expense.status == ExpenseStatus.REIMBURSED
        assert result.effects[0].debit_account == "6300"
        assert result.effects[0].credit_account == settings.CASH_ACCOUNT

    def test_billable_markup_in_changes(self):
        expense = Expense(amount=Decimal("200"), tax_percent=Decimal("8"), is_billable=True, markup_percent=Decimal("10"))
        result, _ = run(expense, ExpenseEvent.SUBMIT)
        assert result.changes["marked_up_amount"] == Decimal("237.60")

    def test_mileage_expense(self):
        expense = Expense(is_mileage=True, mileage_distance=Decimal("100"))
        assert expense.total_amount == Decimal("65.50")

    def test_rejected_mileage_expense_corrected(self):
        """Test un gasto de kilometraje rechazado se corrige por distancia y tarifa"""
        expense = Expense(is_mileage=True, mileage_distance=Decimal("100"))
        _, expense = run(expense, ExpenseEvent.SUBMIT)
        _, expense = run(expense, ExpenseEvent.REJECT, reason="Distancia incorrecta")

        result, expense = run(
            expense, ExpenseEvent.EDIT,
            mileage_distance=Decimal("40"), mileage_rate=Decimal("0.5"), is_reimbursable=True
        )

        assert result.changes["mileage_distance"] == Decimal("40")
        assert result.changes["total_amount"] == Decimal("20.00")
        assert expense.total_amount == Decimal("20.00")
        assert expense.is_reimbursable is True

    def test_mileage_expense_rejects_amount(self):
        expense = Expense(is_mileage=True, mileage_distance=Decimal("100"))

        with pytest.raises(ValidationError):
            run(expense, ExpenseEvent.EDIT, amount=Decimal("20"))

    def test_edit_markup(self, draft_expense):
        result, expense = run(draft_expense, ExpenseEvent.EDIT, is_billable=True, markup_percent=Decimal("10"))

        assert result.changes["marked_up_amount"] == Decimal("237.60")
        assert expense.markup_percent == Decimal("10")

    def test_paid_is_terminal(self, draft_expense):
        _, expense = run(approved(draft_expense), ExpenseEvent.MARK_PAID)
        with pytest.raises(InvalidTransitionError):
            run(expense, ExpenseEvent.VOID)
