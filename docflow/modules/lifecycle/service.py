"""
Registro de familias y puntos de entrada del ciclo de vida

- transition: aplicar un evento solicitado por el usuario
- reconcile: reglas automáticas (vencidas/expiradas) para el planificador externo
- permissions_for: banderas allow_<evento> para la interfaz
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

from pydantic import ValidationError as SchemaError

from docflow.core.exceptions import ValidationError
from docflow.modules.bills.schemas import Bill
from docflow.modules.bills.workflow import bill_machine
from docflow.modules.credit_notes.schemas import CreditNote
from docflow.modules.credit_notes.workflow import credit_note_machine
from docflow.modules.debit_notes.schemas import DebitNote
from docflow.modules.debit_notes.workflow import debit_note_machine
from docflow.modules.estimates.schemas import Estimate
from docflow.modules.estimates.workflow import estimate_machine
from docflow.modules.expenses.schemas import Expense
from docflow.modules.expenses.workflow import expense_machine
from docflow.modules.invoices.schemas import Invoice
from docflow.modules.invoices.workflow import invoice_machine
from docflow.modules.lifecycle.machine import StateMachine
from docflow.modules.lifecycle.schemas import (
    DocumentFamily, FinancialDocument, Permissions, TransitionContext, TransitionResult
)

logger = logging.getLogger(__name__)

MACHINES: Dict[DocumentFamily, StateMachine] = {
    DocumentFamily.BILL: bill_machine,
    DocumentFamily.INVOICE: invoice_machine,
    DocumentFamily.CREDIT_NOTE: credit_note_machine,
    DocumentFamily.DEBIT_NOTE: debit_note_machine,
    DocumentFamily.ESTIMATE: estimate_machine,
    DocumentFamily.EXPENSE: expense_machine,
}

DOCUMENT_MODELS = {
    DocumentFamily.BILL: Bill,
    DocumentFamily.INVOICE: Invoice,
    DocumentFamily.CREDIT_NOTE: CreditNote,
    DocumentFamily.DEBIT_NOTE: DebitNote,
    DocumentFamily.ESTIMATE: Estimate,
    DocumentFamily.EXPENSE: Expense,
}


def get_machine(family) -> StateMachine:
    return MACHINES[DocumentFamily(family)]


def parse_document(family, payload: Dict[str, Any]) -> FinancialDocument:
    """
    Construir el documento tipado de una familia a partir de un dict

    Raises:
        ValidationError: si el payload no corresponde a la familia
    """
    family = DocumentFamily(family)
    model = DOCUMENT_MODELS[family]
    data = dict(payload)
    declared = data.pop("family", family.value)
    if declared != family.value:
        raise ValidationError(f"El documento es de la familia {declared}, no {family.value}")
    data["family"] = family
    try:
        return model.model_validate(data)
    except SchemaError as e:
        raise ValidationError(f"Documento {family.value} inválido: {e}")


def transition(document: FinancialDocument, event, context: TransitionContext) -> TransitionResult:
    """Aplicar `event` sobre `document` con la máquina de su familia"""
    return get_machine(document.family).transition(document, event, context)


def reconcile(document: FinancialDocument, as_of: Optional[date] = None) -> Optional[TransitionResult]:
    """Ejecutar la transición automática que corresponda a la fecha, si hay alguna"""
    as_of = as_of or date.today()
    result = get_machine(document.family).reconcile(document, as_of)
    if result is None:
        logger.debug(f"{document.family.value} {document.id}: sin transiciones automáticas al {as_of}")
    return result


def permissions_for(family, status) -> Permissions:
    return get_machine(family).permissions_for(status)


def apply_result(document: FinancialDocument, result: TransitionResult) -> Optional[FinancialDocument]:
    """
    Documento tal como queda después de persistir `result`

    Solo copia los cambios que son campos del documento (las fechas de auditoría
    como `received_on` quedan para la capa de persistencia). Devuelve None si
    la transición eliminó el documento.
    """
    if result.deleted:
        return None
    fields = type(document).model_fields
    update = {key: value for key, value in result.changes.items() if key in fields}
    update["status"] = get_machine(document.family).states(result.new_status)
    update["version"] = result.new_version
    return document.model_copy(update=update)
