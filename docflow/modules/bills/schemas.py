"""
Esquemas Pydantic para Facturas de proveedor (Bills)

Estados:
- draft: Borrador (no afecta inventario ni contabilidad)
- received: Recibida (entra inventario, se registra la cuenta por pagar)
- partially_paid: Pago parcial
- overdue: Vencida con saldo pendiente (la marca el sistema)
- paid: Pagada completamente
- void: Anulada
"""

from enum import Enum
from typing import Literal

from docflow.modules.lifecycle.schemas import DocumentFamily, FinancialDocument


class BillStatus(str, Enum):
    DRAFT = "draft"
    RECEIVED = "received"
    PARTIALLY_PAID = "partially_paid"
    OVERDUE = "overdue"
    PAID = "paid"
    VOID = "void"


class BillEvent(str, Enum):
    RECEIVE = "receive"
    RECORD_PAYMENT = "record_payment"
    APPLY_DEBIT = "apply_debit"
    MARK_OVERDUE = "mark_overdue"
    VOID = "void"
    DELETE = "delete"
    EDIT = "edit"


class Bill(FinancialDocument):
    """Factura de proveedor; `counterparty_id` es el proveedor"""
    family: Literal[DocumentFamily.BILL] = DocumentFamily.BILL
    status: BillStatus = BillStatus.DRAFT
