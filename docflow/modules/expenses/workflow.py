"""
Tabla de transiciones de Gastos

Flujo de aprobación: borrador → pendiente → aprobado → pagado. Un gasto
rechazado vuelve a ser editable y puede reenviarse. Al pagarse se registra el
asiento contra la cuenta de gasto; si lo pagó un empleado queda como
reembolsado.
"""

from docflow.common.validators import validate_required_text
from docflow.core.config import settings
from docflow.core.exceptions import ValidationError
from docflow.modules.expenses.schemas import Expense, ExpenseEvent, ExpenseStatus
from docflow.modules.lifecycle.actions import require_lines
from docflow.modules.lifecycle.effects import journal_entry
from docflow.modules.lifecycle.machine import Outcome, Rule, StateMachine, rules
from docflow.modules.lifecycle.schemas import DocumentFamily, TransitionContext

EDITABLE = (ExpenseStatus.DRAFT, ExpenseStatus.REJECTED)
VOIDABLE = (
    ExpenseStatus.DRAFT, ExpenseStatus.PENDING_APPROVAL,
    ExpenseStatus.APPROVED, ExpenseStatus.REJECTED,
)


def _label(expense: Expense) -> str:
    return f"Gasto {expense.document_number or expense.id}"


def _totals_changes(expense: Expense) -> dict:
    totals = expense.expense_totals
    changes = {
        "subtotal": totals.amount,
        "tax_amount": totals.tax_amount,
        "total_amount": totals.total_amount,
    }
    if totals.marked_up_amount is not None:
        changes["marked_up_amount"] = totals.marked_up_amount
    return changes


EDITABLE_FIELDS = (
    "amount", "tax_percent", "expense_lines", "is_reimbursable", "is_billable",
    "markup_percent", "is_mileage", "mileage_distance", "mileage_rate",
)


def edit(expense: Expense, context: TransitionContext) -> Outcome:
    """
    Reemplazar los datos del gasto y recalcular

    En un gasto de kilometraje el monto sale de distancia × tarifa, por lo que
    un `amount` explícito se rechaza en lugar de ignorarse.
    """
    update = {
        field: getattr(context, field)
        for field in EDITABLE_FIELDS
        if getattr(context, field) is not None
    }

    edited = expense.model_copy(update=update)
    if edited.is_mileage and "amount" in update:
        raise ValidationError("Un gasto de kilometraje no acepta monto; edite mileage_distance o mileage_rate")
    changes = dict(update)
    changes.update(_totals_changes(edited))
    return Outcome(changes=changes, warnings=list(edited.expense_totals.warnings))


def submit(expense: Expense, context: TransitionContext) -> Outcome:
    changes = {"submitted_on": context.occurred_on, "rejection_reason": None}
    changes.update(_totals_changes(expense))
    return Outcome(changes=changes)


def approve(expense: Expense, context: TransitionContext) -> Outcome:
    return Outcome(changes={"approved_on": context.occurred_on, "approved_by": context.actor_id})


def validate_rejection(expense: Expense, context: TransitionContext):
    validate_required_text(context.reason, "reason")


def reject(expense: Expense, context: TransitionContext) -> Outcome:
    return Outcome(changes={
        "rejected_on": context.occurred_on,
        "rejection_reason": validate_required_text(context.reason, "reason")
    })


def mark_paid(expense: Expense, context: TransitionContext) -> Outcome:
    total = expense.total_amount
    paid_through = context.payment_account or settings.CASH_ACCOUNT
    return Outcome(
        status=ExpenseStatus.REIMBURSED if expense.is_reimbursable else ExpenseStatus.PAID,
        effects=journal_entry(expense.account_id or settings.EXPENSE_ACCOUNT, paid_through, total, _label(expense)),
        changes={"amount_paid": total, "paid_on": context.occurred_on, "paid_through_account": paid_through}
    )


def void(expense: Expense, context: TransitionContext) -> Outcome:
    return Outcome(changes={"voided_on": context.occurred_on, "void_reason": context.reason})


TRANSITIONS = [
    *rules(EDITABLE, ExpenseEvent.SUBMIT, ExpenseStatus.PENDING_APPROVAL, action=submit, validate=require_lines),
    Rule(ExpenseStatus.DRAFT, ExpenseEvent.EDIT, ExpenseStatus.DRAFT, action=edit),
    Rule(ExpenseStatus.REJECTED, ExpenseEvent.EDIT, ExpenseStatus.REJECTED, action=edit),
    Rule(ExpenseStatus.DRAFT, ExpenseEvent.DELETE, None),
    Rule(ExpenseStatus.PENDING_APPROVAL, ExpenseEvent.APPROVE, ExpenseStatus.APPROVED, action=approve),
    Rule(
        ExpenseStatus.PENDING_APPROVAL, ExpenseEvent.REJECT, ExpenseStatus.REJECTED,
        action=reject, validate=validate_rejection
    ),
    Rule(
        ExpenseStatus.APPROVED, ExpenseEvent.MARK_PAID, (ExpenseStatus.PAID, ExpenseStatus.REIMBURSED),
        action=mark_paid
    ),
    *rules(VOIDABLE, ExpenseEvent.VOID, ExpenseStatus.VOID, action=void),
]

expense_machine = StateMachine(
    family=DocumentFamily.EXPENSE,
    states=ExpenseStatus,
    events=ExpenseEvent,
    rules=TRANSITIONS,
    initial=ExpenseStatus.DRAFT
)
