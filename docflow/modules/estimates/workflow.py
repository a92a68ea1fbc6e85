"""
Tabla de transiciones de Cotizaciones (Estimates)

Las cotizaciones no mueven inventario ni contabilidad. Al enviarse sin fecha
de expiración reciben la de por defecto; el sistema las marca como vencidas
cuando esa fecha pasa sin respuesta del cliente.
"""

from docflow.modules.calculations.terms import default_expiration_date
from docflow.modules.estimates.schemas import Estimate, EstimateEvent, EstimateStatus
from docflow.modules.lifecycle.actions import edit_document, require_lines
from docflow.modules.lifecycle.machine import Outcome, Rule, StateMachine, rules
from docflow.modules.lifecycle.schemas import DocumentFamily, TransitionContext

AWAITING_RESPONSE = (EstimateStatus.SENT, EstimateStatus.VIEWED)
VOIDABLE = (
    EstimateStatus.DRAFT, EstimateStatus.SENT, EstimateStatus.VIEWED,
    EstimateStatus.ACCEPTED, EstimateStatus.REJECTED, EstimateStatus.EXPIRED,
)


def send(estimate: Estimate, context: TransitionContext) -> Outcome:
    changes = {"sent_on": context.occurred_on, "total_amount": estimate.total_amount}
    if estimate.expiration_date is None:
        changes["expiration_date"] = default_expiration_date(estimate.issue_date)
    return Outcome(changes=changes, warnings=list(estimate.totals.warnings))


def view(estimate: Estimate, context: TransitionContext) -> Outcome:
    return Outcome(changes={"viewed_on": context.occurred_on})


def accept(estimate: Estimate, context: TransitionContext) -> Outcome:
    return Outcome(changes={"accepted_on": context.occurred_on})


def convert(estimate: Estimate, context: TransitionContext) -> Outcome:
    changes = {"converted_on": context.occurred_on}
    if context.linked_document_id is not None:
        changes["linked_document_id"] = context.linked_document_id
    return Outcome(changes=changes)


def reject(estimate: Estimate, context: TransitionContext) -> Outcome:
    return Outcome(changes={"rejected_on": context.occurred_on, "rejection_reason": context.reason})


def is_expired(estimate: Estimate, as_of) -> bool:
    return estimate.expiration_date is not None and estimate.expiration_date < as_of


def void(estimate: Estimate, context: TransitionContext) -> Outcome:
    return Outcome(changes={"voided_on": context.occurred_on, "void_reason": context.reason})


TRANSITIONS = [
    Rule(EstimateStatus.DRAFT, EstimateEvent.SEND, EstimateStatus.SENT, action=send, validate=require_lines),
    Rule(EstimateStatus.DRAFT, EstimateEvent.EDIT, EstimateStatus.DRAFT, action=edit_document),
    Rule(EstimateStatus.DRAFT, EstimateEvent.DELETE, None),
    Rule(EstimateStatus.SENT, EstimateEvent.VIEW, EstimateStatus.VIEWED, action=view),
    *rules(AWAITING_RESPONSE, EstimateEvent.ACCEPT, EstimateStatus.ACCEPTED, action=accept),
    *rules(AWAITING_RESPONSE, EstimateEvent.REJECT, EstimateStatus.REJECTED, action=reject),
    *rules(
        AWAITING_RESPONSE, EstimateEvent.EXPIRE, EstimateStatus.EXPIRED,
        condition=is_expired, automatic=True
    ),
    Rule(EstimateStatus.ACCEPTED, EstimateEvent.CONVERT, EstimateStatus.CONVERTED, action=convert),
    *rules(VOIDABLE, EstimateEvent.VOID, EstimateStatus.VOID, action=void),
]

estimate_machine = StateMachine(
    family=DocumentFamily.ESTIMATE,
    states=EstimateStatus,
    events=EstimateEvent,
    rules=TRANSITIONS,
    initial=EstimateStatus.DRAFT
)
