"""
Esquemas de Notas débito

Espejo de las notas crédito del lado de compras: saldo a favor con un
proveedor que se aplica a facturas de proveedor o se reembolsa.
"""

from enum import Enum
from typing import Literal

from docflow.modules.lifecycle.schemas import DocumentFamily, FinancialDocument


class DebitNoteStatus(str, Enum):
    DRAFT = "draft"
    OPEN = "open"
    PARTIALLY_APPLIED = "partially_applied"
    APPLIED = "applied"
    VOID = "void"


class DebitNoteEvent(str, Enum):
    OPEN = "open"
    APPLY = "apply"
    REFUND = "refund"
    VOID = "void"
    DELETE = "delete"
    EDIT = "edit"


class DebitNote(FinancialDocument):
    family: Literal[DocumentFamily.DEBIT_NOTE] = DocumentFamily.DEBIT_NOTE
    status: DebitNoteStatus = DebitNoteStatus.DRAFT
