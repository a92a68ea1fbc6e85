"""
Esquemas de Gastos (Expenses)

El monto de un gasto sale de una de tres fuentes, en este orden:
kilometraje (distancia × tarifa), gasto dividido en varias cuentas, o monto
único con impuesto. Los totales se calculan con las mismas reglas que el
resto de documentos.
"""

from decimal import Decimal
from enum import Enum
from typing import List, Literal, Optional

from pydantic import Field

from docflow.modules.calculations.calculator import compute_expense, expense_line_items
from docflow.modules.calculations.schemas import ExpenseLine, ExpenseTotals, LineItem
from docflow.modules.lifecycle.schemas import DocumentFamily, FinancialDocument


class ExpenseStatus(str, Enum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    PAID = "paid"
    REIMBURSED = "reimbursed"
    VOID = "void"


class ExpenseEvent(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    MARK_PAID = "mark_paid"
    VOID = "void"
    DELETE = "delete"
    EDIT = "edit"


class Expense(FinancialDocument):
    """Gasto; `counterparty_id` es el proveedor o empleado, `account_id` la cuenta de gasto"""
    family: Literal[DocumentFamily.EXPENSE] = DocumentFamily.EXPENSE
    status: ExpenseStatus = ExpenseStatus.DRAFT
    amount: Optional[Decimal] = Field(None, description="Monto único antes de impuesto")
    tax_percent: Decimal = Decimal('0')
    expense_lines: List[ExpenseLine] = Field(default_factory=list)
    is_reimbursable: bool = Field(False, description="Lo pagó un empleado y se le reembolsa")
    is_billable: bool = Field(False, description="Se refactura al cliente")
    markup_percent: Optional[Decimal] = None
    is_mileage: bool = False
    mileage_distance: Optional[Decimal] = None
    mileage_rate: Optional[Decimal] = None

    def effective_line_items(self) -> List[LineItem]:
        return expense_line_items(
            amount=self.amount,
            tax_percent=self.tax_percent,
            line_items=self.expense_lines,
            is_mileage=self.is_mileage,
            mileage_distance=self.mileage_distance,
            mileage_rate=self.mileage_rate
        )

    @property
    def expense_totals(self) -> ExpenseTotals:
        return compute_expense(
            amount=self.amount,
            tax_percent=self.tax_percent,
            line_items=self.expense_lines,
            is_mileage=self.is_mileage,
            mileage_distance=self.mileage_distance,
            mileage_rate=self.mileage_rate,
            is_billable=self.is_billable,
            markup_percent=self.markup_percent
        )
