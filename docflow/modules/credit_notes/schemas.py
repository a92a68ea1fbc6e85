"""
Esquemas de Notas crédito

Una nota crédito reconoce un saldo a favor del cliente (devolución o ajuste)
que luego se aplica a facturas abiertas o se reembolsa.
"""

from enum import Enum
from typing import Literal

from docflow.modules.lifecycle.schemas import DocumentFamily, FinancialDocument


class CreditNoteStatus(str, Enum):
    DRAFT = "draft"
    OPEN = "open"
    PARTIALLY_APPLIED = "partially_applied"
    APPLIED = "applied"
    VOID = "void"


class CreditNoteEvent(str, Enum):
    OPEN = "open"
    APPLY = "apply"
    REFUND = "refund"
    VOID = "void"
    DELETE = "delete"
    EDIT = "edit"


class CreditNote(FinancialDocument):
    """`counterparty_id` es el cliente; `linked_document_id` la factura de origen si existe"""
    family: Literal[DocumentFamily.CREDIT_NOTE] = DocumentFamily.CREDIT_NOTE
    status: CreditNoteStatus = CreditNoteStatus.DRAFT
