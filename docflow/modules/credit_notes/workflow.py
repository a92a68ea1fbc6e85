"""
Tabla de transiciones de Notas crédito

- open: el cliente queda con saldo a favor, se registra la devolución y
  regresa al inventario la mercancía de las líneas de producto
- apply: reparte el crédito restante entre facturas (ver allocations)
- refund: devuelve dinero al cliente sin cambiar de estado
- void: cancela solo el crédito que no se ha aplicado ni reembolsado
"""

from docflow.core.config import settings
from docflow.modules.credit_notes.schemas import CreditNote, CreditNoteEvent, CreditNoteStatus
from docflow.modules.lifecycle.actions import (
    apply_note_credit, edit_document, refund_amount, require_lines
)
from docflow.modules.lifecycle.effects import (
    balance_update, inventory_adjustments, journal_entry, outstanding_fraction
)
from docflow.modules.lifecycle.machine import Outcome, Rule, StateMachine, rules
from docflow.modules.lifecycle.schemas import DocumentFamily, TransitionContext

AVAILABLE_STATES = (CreditNoteStatus.OPEN, CreditNoteStatus.PARTIALLY_APPLIED)


def _label(note: CreditNote) -> str:
    return f"Nota crédito {note.document_number or note.id}"


def _returns_account(note: CreditNote) -> str:
    return note.account_id or settings.SALES_RETURNS_ACCOUNT


def open_note(note: CreditNote, context: TransitionContext) -> Outcome:
    totals = note.totals
    total = totals.total_amount
    effects = (
        inventory_adjustments(note.line_items, +1)
        + balance_update(note.counterparty_id, -total)
        + journal_entry(_returns_account(note), settings.ACCOUNTS_RECEIVABLE_ACCOUNT, total, _label(note))
    )
    return Outcome(
        effects=effects,
        changes={"opened_on": context.occurred_on, "total_amount": total},
        warnings=list(totals.warnings)
    )


def apply(note: CreditNote, context: TransitionContext) -> Outcome:
    return apply_note_credit(note, context, CreditNoteStatus.PARTIALLY_APPLIED, CreditNoteStatus.APPLIED)


def refund(note: CreditNote, context: TransitionContext) -> Outcome:
    amount, warnings = refund_amount(note, context)
    cash = context.payment_account or settings.CASH_ACCOUNT
    return Outcome(
        effects=(
            journal_entry(settings.ACCOUNTS_RECEIVABLE_ACCOUNT, cash, amount, f"Reembolso {_label(note)}")
            + balance_update(note.counterparty_id, amount)
        ),
        changes={"amount_refunded": note.amount_refunded + amount},
        warnings=warnings
    )


def void(note: CreditNote, context: TransitionContext) -> Outcome:
    changes = {"voided_on": context.occurred_on, "void_reason": context.reason}
    if note.status == CreditNoteStatus.DRAFT:
        return Outcome(changes=changes)

    remainder = note.remaining_credit
    fraction = outstanding_fraction(remainder, note.total_amount)
    effects = (
        inventory_adjustments(note.line_items, -1, fraction)
        + balance_update(note.counterparty_id, remainder)
        + journal_entry(settings.ACCOUNTS_RECEIVABLE_ACCOUNT, _returns_account(note), remainder, f"Anulación {_label(note)}")
    )
    changes["amount_voided"] = note.amount_voided + remainder
    return Outcome(effects=effects, changes=changes)


TRANSITIONS = [
    Rule(CreditNoteStatus.DRAFT, CreditNoteEvent.OPEN, CreditNoteStatus.OPEN, action=open_note, validate=require_lines),
    Rule(CreditNoteStatus.DRAFT, CreditNoteEvent.EDIT, CreditNoteStatus.DRAFT, action=edit_document),
    Rule(CreditNoteStatus.DRAFT, CreditNoteEvent.DELETE, None),
    *rules(
        AVAILABLE_STATES, CreditNoteEvent.APPLY,
        (CreditNoteStatus.PARTIALLY_APPLIED, CreditNoteStatus.APPLIED),
        action=apply
    ),
    Rule(CreditNoteStatus.OPEN, CreditNoteEvent.REFUND, CreditNoteStatus.OPEN, action=refund),
    Rule(
        CreditNoteStatus.PARTIALLY_APPLIED, CreditNoteEvent.REFUND, CreditNoteStatus.PARTIALLY_APPLIED,
        action=refund
    ),
    *rules((CreditNoteStatus.DRAFT,) + AVAILABLE_STATES, CreditNoteEvent.VOID, CreditNoteStatus.VOID, action=void),
]

credit_note_machine = StateMachine(
    family=DocumentFamily.CREDIT_NOTE,
    states=CreditNoteStatus,
    events=CreditNoteEvent,
    rules=TRANSITIONS,
    initial=CreditNoteStatus.DRAFT
)
