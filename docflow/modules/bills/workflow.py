"""
Tabla de transiciones de Facturas de proveedor

Al recibir la factura entra el inventario de las líneas de producto, aumenta
el saldo con el proveedor y se registra la compra contra cuentas por pagar.
Los pagos y las notas débito aplicadas reducen el saldo pendiente. La anulación
revierte solo la porción que sigue pendiente.
"""

from docflow.core.config import settings
from docflow.modules.bills.schemas import Bill, BillEvent, BillStatus
from docflow.modules.calculations.terms import due_date_for
from docflow.modules.lifecycle.actions import (
    edit_document, payment_amount, require_lines, status_after_payment, validate_payment
)
from docflow.modules.lifecycle.effects import (
    balance_update, inventory_adjustments, journal_entry, outstanding_fraction
)
from docflow.modules.lifecycle.machine import Outcome, Rule, StateMachine, rules
from docflow.modules.lifecycle.schemas import DocumentFamily, TransitionContext

OPEN_STATES = (BillStatus.RECEIVED, BillStatus.PARTIALLY_PAID, BillStatus.OVERDUE)


def _label(bill: Bill) -> str:
    return f"Factura de proveedor {bill.document_number or bill.id}"


def _purchases_account(bill: Bill) -> str:
    return bill.account_id or settings.PURCHASES_ACCOUNT


def receive(bill: Bill, context: TransitionContext) -> Outcome:
    totals = bill.totals
    total = totals.total_amount
    effects = (
        inventory_adjustments(bill.line_items, +1)
        + balance_update(bill.counterparty_id, total)
        + journal_entry(_purchases_account(bill), settings.ACCOUNTS_PAYABLE_ACCOUNT, total, _label(bill))
    )
    changes = {"received_on": context.occurred_on, "total_amount": total}
    if bill.due_date is None and bill.payment_terms is not None:
        changes["due_date"] = due_date_for(bill.issue_date, bill.payment_terms)
    return Outcome(effects=effects, changes=changes, warnings=list(totals.warnings))


def record_payment(bill: Bill, context: TransitionContext) -> Outcome:
    amount = payment_amount(bill, context)
    cash = context.payment_account or settings.CASH_ACCOUNT
    return Outcome(
        status=status_after_payment(bill, amount, BillStatus.PAID, BillStatus.PARTIALLY_PAID, BillStatus.OVERDUE),
        effects=(
            journal_entry(settings.ACCOUNTS_PAYABLE_ACCOUNT, cash, amount, f"Pago {_label(bill)}")
            + balance_update(bill.counterparty_id, -amount)
        ),
        changes={"amount_paid": bill.amount_paid + amount}
    )


def apply_debit(bill: Bill, context: TransitionContext) -> Outcome:
    """La nota débito ya registró su asiento al abrirse; aquí solo baja el saldo"""
    amount = payment_amount(bill, context)
    changes = {"amount_credited": bill.amount_credited + amount}
    if context.linked_document_id is not None:
        changes["linked_document_id"] = context.linked_document_id
    return Outcome(
        status=status_after_payment(bill, amount, BillStatus.PAID, BillStatus.PARTIALLY_PAID, BillStatus.OVERDUE),
        changes=changes
    )


def is_overdue(bill: Bill, as_of) -> bool:
    return bill.due_date is not None and bill.due_date < as_of and bill.amount_due > 0


def void(bill: Bill, context: TransitionContext) -> Outcome:
    changes = {"voided_on": context.occurred_on, "void_reason": context.reason}
    if bill.status == BillStatus.DRAFT:
        return Outcome(changes=changes)

    total = bill.total_amount
    outstanding = bill.amount_due
    fraction = outstanding_fraction(outstanding, total)
    effects = (
        inventory_adjustments(bill.line_items, -1, fraction)
        + balance_update(bill.counterparty_id, -outstanding)
        + journal_entry(settings.ACCOUNTS_PAYABLE_ACCOUNT, _purchases_account(bill), outstanding, f"Anulación {_label(bill)}")
    )
    changes["amount_voided"] = bill.amount_voided + outstanding
    return Outcome(effects=effects, changes=changes)


TRANSITIONS = [
    Rule(BillStatus.DRAFT, BillEvent.RECEIVE, BillStatus.RECEIVED, action=receive, validate=require_lines),
    Rule(BillStatus.DRAFT, BillEvent.EDIT, BillStatus.DRAFT, action=edit_document),
    Rule(BillStatus.DRAFT, BillEvent.DELETE, None),
    *rules(
        (BillStatus.RECEIVED, BillStatus.PARTIALLY_PAID),
        BillEvent.RECORD_PAYMENT, (BillStatus.PARTIALLY_PAID, BillStatus.PAID),
        action=record_payment, validate=validate_payment
    ),
    Rule(
        BillStatus.OVERDUE, BillEvent.RECORD_PAYMENT, (BillStatus.OVERDUE, BillStatus.PAID),
        action=record_payment, validate=validate_payment
    ),
    *rules(
        (BillStatus.RECEIVED, BillStatus.PARTIALLY_PAID),
        BillEvent.APPLY_DEBIT, (BillStatus.PARTIALLY_PAID, BillStatus.PAID),
        action=apply_debit, validate=validate_payment
    ),
    Rule(
        BillStatus.OVERDUE, BillEvent.APPLY_DEBIT, (BillStatus.OVERDUE, BillStatus.PAID),
        action=apply_debit, validate=validate_payment
    ),
    *rules(
        (BillStatus.RECEIVED, BillStatus.PARTIALLY_PAID),
        BillEvent.MARK_OVERDUE, BillStatus.OVERDUE,
        condition=is_overdue, automatic=True
    ),
    *rules((BillStatus.DRAFT,) + OPEN_STATES, BillEvent.VOID, BillStatus.VOID, action=void),
]

bill_machine = StateMachine(
    family=DocumentFamily.BILL,
    states=BillStatus,
    events=BillEvent,
    rules=TRANSITIONS,
    initial=BillStatus.DRAFT
)
