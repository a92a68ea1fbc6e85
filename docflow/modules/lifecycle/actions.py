"""
Validaciones y acciones compartidas por las tablas de transiciones

Cada familia arma sus reglas combinando estas piezas: exigir líneas antes de
emitir, recalcular al editar, validar pagos contra el saldo pendiente y
aplicar crédito de una nota a documentos destino.
"""

import logging
from decimal import Decimal

from docflow.common.money import ZERO, quantize_money
from docflow.common.validators import validate_positive
from docflow.core.exceptions import ClampedValueWarning, ValidationError
from docflow.modules.allocations.service import allocate, status_after_allocation
from docflow.modules.lifecycle.machine import Outcome
from docflow.modules.lifecycle.schemas import FinancialDocument, TransitionContext

logger = logging.getLogger(__name__)


def require_lines(document: FinancialDocument, context: TransitionContext):
    """Un documento sin líneas no se puede emitir"""
    if not document.effective_line_items():
        raise ValidationError(
            f"{document.family.value} {document.document_number or document.id} no tiene líneas; no se puede emitir"
        )


def edit_document(document: FinancialDocument, context: TransitionContext) -> Outcome:
    """
    Reemplazar líneas y descuento global, y recalcular totales

    Solo los campos presentes en el contexto cambian.
    """
    update = {}
    if context.line_items is not None:
        update["line_items"] = context.line_items
    if context.discount_type is not None:
        update["discount_type"] = context.discount_type
    if context.discount_value is not None:
        update["discount_value"] = context.discount_value

    edited = document.model_copy(update=update)
    totals = edited.totals

    changes = dict(update)
    changes.update({
        "subtotal": totals.subtotal,
        "discount_amount": totals.discount_amount,
        "tax_amount": totals.tax_total,
        "total_amount": totals.total_amount,
    })
    return Outcome(changes=changes, warnings=list(totals.warnings))


def payment_amount(document: FinancialDocument, context: TransitionContext) -> Decimal:
    """
    Monto de un pago o aplicación contra el saldo pendiente

    Raises:
        ValidationError: monto no positivo o mayor que el saldo
    """
    amount = quantize_money(validate_positive(context.amount, "amount"))
    due = document.amount_due
    if amount > due:
        raise ValidationError(f"El pago ({amount}) excede el saldo pendiente ({due})")
    return amount


def validate_payment(document: FinancialDocument, context: TransitionContext):
    payment_amount(document, context)


def status_after_payment(document: FinancialDocument, amount: Decimal, paid, partial, overdue):
    """
    Estado tras un pago: pagado si el saldo llega a cero; un documento
    vencido sigue vencido mientras quede saldo
    """
    if document.amount_due - amount <= ZERO:
        return paid
    if document.status == overdue:
        return overdue
    return partial


def apply_note_credit(document: FinancialDocument, context: TransitionContext, partial, full) -> Outcome:
    """Aplicar el crédito restante de una nota a documentos destino"""
    result = allocate(
        document.remaining_credit,
        context.proposals,
        source_id=document.id,
        applied_at=context.applied_at
    )
    return Outcome(
        status=status_after_allocation(result.remaining_credit_after, partial, full),
        changes={"amount_applied": quantize_money(document.amount_applied + result.total_applied)},
        applications=result.applications,
        warnings=list(result.warnings)
    )


def refund_amount(document: FinancialDocument, context: TransitionContext):
    """
    Monto a reembolsar, truncado al crédito restante

    Returns:
        (monto, avisos)
    """
    requested = quantize_money(validate_positive(context.amount, "amount"))
    remaining = document.remaining_credit
    warnings = []
    amount = requested
    if requested > remaining:
        warning = ClampedValueWarning("refund_amount", requested, remaining)
        logger.warning(f"Reembolso truncado en {document.id}: {warning.message}")
        warnings.append(warning)
        amount = remaining
    if amount <= ZERO:
        raise ValidationError("La nota no tiene crédito restante para reembolsar")
    return amount, warnings
