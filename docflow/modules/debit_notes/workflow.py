"""
Tabla de transiciones de Notas débito

Misma forma que las notas crédito, del lado de cuentas por pagar: al abrirse
la mercancía devuelta sale del inventario y baja la deuda con el proveedor.
"""

from docflow.core.config import settings
from docflow.modules.debit_notes.schemas import DebitNote, DebitNoteEvent, DebitNoteStatus
from docflow.modules.lifecycle.actions import (
    apply_note_credit, edit_document, refund_amount, require_lines
)
from docflow.modules.lifecycle.effects import (
    balance_update, inventory_adjustments, journal_entry, outstanding_fraction
)
from docflow.modules.lifecycle.machine import Outcome, Rule, StateMachine, rules
from docflow.modules.lifecycle.schemas import DocumentFamily, TransitionContext

AVAILABLE_STATES = (DebitNoteStatus.OPEN, DebitNoteStatus.PARTIALLY_APPLIED)


def _label(note: DebitNote) -> str:
    return f"Nota débito {note.document_number or note.id}"


def _returns_account(note: DebitNote) -> str:
    return note.account_id or settings.PURCHASE_RETURNS_ACCOUNT


def open_note(note: DebitNote, context: TransitionContext) -> Outcome:
    totals = note.totals
    total = totals.total_amount
    effects = (
        inventory_adjustments(note.line_items, -1)
        + balance_update(note.counterparty_id, -total)
        + journal_entry(settings.ACCOUNTS_PAYABLE_ACCOUNT, _returns_account(note), total, _label(note))
    )
    return Outcome(
        effects=effects,
        changes={"opened_on": context.occurred_on, "total_amount": total},
        warnings=list(totals.warnings)
    )


def apply(note: DebitNote, context: TransitionContext) -> Outcome:
    return apply_note_credit(note, context, DebitNoteStatus.PARTIALLY_APPLIED, DebitNoteStatus.APPLIED)


def refund(note: DebitNote, context: TransitionContext) -> Outcome:
    amount, warnings = refund_amount(note, context)
    cash = context.payment_account or settings.CASH_ACCOUNT
    return Outcome(
        effects=(
            journal_entry(cash, settings.ACCOUNTS_PAYABLE_ACCOUNT, amount, f"Reembolso {_label(note)}")
            + balance_update(note.counterparty_id, amount)
        ),
        changes={"amount_refunded": note.amount_refunded + amount},
        warnings=warnings
    )


def void(note: DebitNote, context: TransitionContext) -> Outcome:
    changes = {"voided_on": context.occurred_on, "void_reason": context.reason}
    if note.status == DebitNoteStatus.DRAFT:
        return Outcome(changes=changes)

    remainder = note.remaining_credit
    fraction = outstanding_fraction(remainder, note.total_amount)
    effects = (
        inventory_adjustments(note.line_items, +1, fraction)
        + balance_update(note.counterparty_id, remainder)
        + journal_entry(_returns_account(note), settings.ACCOUNTS_PAYABLE_ACCOUNT, remainder, f"Anulación {_label(note)}")
    )
    changes["amount_voided"] = note.amount_voided + remainder
    return Outcome(effects=effects, changes=changes)


TRANSITIONS = [
    Rule(DebitNoteStatus.DRAFT, DebitNoteEvent.OPEN, DebitNoteStatus.OPEN, action=open_note, validate=require_lines),
    Rule(DebitNoteStatus.DRAFT, DebitNoteEvent.EDIT, DebitNoteStatus.DRAFT, action=edit_document),
    Rule(DebitNoteStatus.DRAFT, DebitNoteEvent.DELETE, None),
    *rules(
        AVAILABLE_STATES, DebitNoteEvent.APPLY,
        (DebitNoteStatus.PARTIALLY_APPLIED, DebitNoteStatus.APPLIED),
        action=apply
    ),
    Rule(DebitNoteStatus.OPEN, DebitNoteEvent.REFUND, DebitNoteStatus.OPEN, action=refund),
    Rule(
        DebitNoteStatus.PARTIALLY_APPLIED, DebitNoteEvent.REFUND, DebitNoteStatus.PARTIALLY_APPLIED,
        action=refund
    ),
    *rules((DebitNoteStatus.DRAFT,) + AVAILABLE_STATES, DebitNoteEvent.VOID, DebitNoteStatus.VOID, action=void),
]

debit_note_machine = StateMachine(
    family=DocumentFamily.DEBIT_NOTE,
    states=DebitNoteStatus,
    events=DebitNoteEvent,
    rules=TRANSITIONS,
    initial=DebitNoteStatus.DRAFT
)
