"""
Tabla de transiciones de Facturas de venta

Enviar la factura descuenta inventario, aumenta el saldo del cliente y
registra la venta contra cuentas por cobrar. Es el espejo de Bills.
"""

from docflow.core.config import settings
from docflow.modules.calculations.terms import due_date_for
from docflow.modules.invoices.schemas import Invoice, InvoiceEvent, InvoiceStatus
from docflow.modules.lifecycle.actions import (
    edit_document, payment_amount, require_lines, status_after_payment, validate_payment
)
from docflow.modules.lifecycle.effects import (
    balance_update, inventory_adjustments, journal_entry, outstanding_fraction
)
from docflow.modules.lifecycle.machine import Outcome, Rule, StateMachine, rules
from docflow.modules.lifecycle.schemas import DocumentFamily, TransitionContext

OPEN_STATES = (InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.OVERDUE)


def _label(invoice: Invoice) -> str:
    return f"Factura {invoice.document_number or invoice.id}"


def _sales_account(invoice: Invoice) -> str:
    return invoice.account_id or settings.SALES_ACCOUNT


def _settled_status(invoice: Invoice, amount):
    return status_after_payment(
        invoice, amount, InvoiceStatus.PAID, InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.OVERDUE
    )


def send(invoice: Invoice, context: TransitionContext) -> Outcome:
    totals = invoice.totals
    total = totals.total_amount
    effects = (
        inventory_adjustments(invoice.line_items, -1)
        + balance_update(invoice.counterparty_id, total)
        + journal_entry(settings.ACCOUNTS_RECEIVABLE_ACCOUNT, _sales_account(invoice), total, _label(invoice))
    )
    changes = {"sent_on": context.occurred_on, "total_amount": total}
    if invoice.due_date is None and invoice.payment_terms is not None:
        changes["due_date"] = due_date_for(invoice.issue_date, invoice.payment_terms)
    return Outcome(effects=effects, changes=changes, warnings=list(totals.warnings))


def record_payment(invoice: Invoice, context: TransitionContext) -> Outcome:
    amount = payment_amount(invoice, context)
    cash = context.payment_account or settings.CASH_ACCOUNT
    return Outcome(
        status=_settled_status(invoice, amount),
        effects=(
            journal_entry(cash, settings.ACCOUNTS_RECEIVABLE_ACCOUNT, amount, f"Cobro {_label(invoice)}")
            + balance_update(invoice.counterparty_id, -amount)
        ),
        changes={"amount_paid": invoice.amount_paid + amount}
    )


def apply_credit(invoice: Invoice, context: TransitionContext) -> Outcome:
    amount = payment_amount(invoice, context)
    changes = {"amount_credited": invoice.amount_credited + amount}
    if context.linked_document_id is not None:
        changes["linked_document_id"] = context.linked_document_id
    return Outcome(status=_settled_status(invoice, amount), changes=changes)


def is_overdue(invoice: Invoice, as_of) -> bool:
    return invoice.due_date is not None and invoice.due_date < as_of and invoice.amount_due > 0


def void(invoice: Invoice, context: TransitionContext) -> Outcome:
    changes = {"voided_on": context.occurred_on, "void_reason": context.reason}
    if invoice.status == InvoiceStatus.DRAFT:
        return Outcome(changes=changes)

    outstanding = invoice.amount_due
    fraction = outstanding_fraction(outstanding, invoice.total_amount)
    effects = (
        inventory_adjustments(invoice.line_items, +1, fraction)
        + balance_update(invoice.counterparty_id, -outstanding)
        + journal_entry(_sales_account(invoice), settings.ACCOUNTS_RECEIVABLE_ACCOUNT, outstanding, f"Anulación {_label(invoice)}")
    )
    changes["amount_voided"] = invoice.amount_voided + outstanding
    return Outcome(effects=effects, changes=changes)


TRANSITIONS = [
    Rule(InvoiceStatus.DRAFT, InvoiceEvent.SEND, InvoiceStatus.SENT, action=send, validate=require_lines),
    Rule(InvoiceStatus.DRAFT, InvoiceEvent.EDIT, InvoiceStatus.DRAFT, action=edit_document),
    Rule(InvoiceStatus.DRAFT, InvoiceEvent.DELETE, None),
    *rules(
        (InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID),
        InvoiceEvent.RECORD_PAYMENT, (InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.PAID),
        action=record_payment, validate=validate_payment
    ),
    Rule(
        InvoiceStatus.OVERDUE, InvoiceEvent.RECORD_PAYMENT, (InvoiceStatus.OVERDUE, InvoiceStatus.PAID),
        action=record_payment, validate=validate_payment
    ),
    *rules(
        (InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID),
        InvoiceEvent.APPLY_CREDIT, (InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.PAID),
        action=apply_credit, validate=validate_payment
    ),
    Rule(
        InvoiceStatus.OVERDUE, InvoiceEvent.APPLY_CREDIT, (InvoiceStatus.OVERDUE, InvoiceStatus.PAID),
        action=apply_credit, validate=validate_payment
    ),
    *rules(
        (InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID),
        InvoiceEvent.MARK_OVERDUE, InvoiceStatus.OVERDUE,
        condition=is_overdue, automatic=True
    ),
    *rules((InvoiceStatus.DRAFT,) + OPEN_STATES, InvoiceEvent.VOID, InvoiceStatus.VOID, action=void),
]

invoice_machine = StateMachine(
    family=DocumentFamily.INVOICE,
    states=InvoiceStatus,
    events=InvoiceEvent,
    rules=TRANSITIONS,
    initial=InvoiceStatus.DRAFT
)
