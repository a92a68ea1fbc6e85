from enum import Enum
from typing import Literal

from docflow.modules.lifecycle.schemas import DocumentFamily, FinancialDocument


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PARTIALLY_PAID = "partially_paid"
    OVERDUE = "overdue"
    PAID = "paid"
    VOID = "void"


class InvoiceEvent(str, Enum):
    SEND = "send"
    RECORD_PAYMENT = "record_payment"
    APPLY_CREDIT = "apply_credit"
    MARK_OVERDUE = "mark_overdue"
    VOID = "void"
    DELETE = "delete"
    EDIT = "edit"


class Invoice(FinancialDocument):
    """Factura de venta; `counterparty_id` es el cliente"""
    family: Literal[DocumentFamily.INVOICE] = DocumentFamily.INVOICE
    status: InvoiceStatus = InvoiceStatus.DRAFT
