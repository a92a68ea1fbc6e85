"""
Esquemas compartidos del ciclo de vida de documentos financieros

FinancialDocument es la forma común que cada familia especializa (Bill,
Invoice, CreditNote, DebitNote, Estimate, Expense). Los totales y saldos son
siempre derivados: se recalculan a partir de las líneas y de los montos
pagados/aplicados/reembolsados/anulados.
"""

from pydantic import BaseModel, ConfigDict, Field
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4
from datetime import date, datetime
from enum import Enum

from docflow.core.exceptions import ClampedValueWarning
from docflow.modules.allocations.schemas import AllocationProposal, CreditApplication
from docflow.modules.calculations.calculator import (
    compute_amount_due, compute_remaining_credit, compute_totals
)
from docflow.modules.calculations.schemas import (
    DiscountType, DocumentTotals, ExpenseLine, HeaderDiscount, LineItem, PaymentTerms, WarningOut
)
from docflow.modules.lifecycle.effects import SideEffect


class DocumentFamily(str, Enum):
    BILL = "BILL"
    INVOICE = "INVOICE"
    CREDIT_NOTE = "CREDIT_NOTE"
    DEBIT_NOTE = "DEBIT_NOTE"
    ESTIMATE = "ESTIMATE"
    EXPENSE = "EXPENSE"


class FinancialDocument(BaseModel):
    """Documento financiero genérico; cada familia fija `family` y el tipo de `status`"""
    id: UUID = Field(default_factory=uuid4)
    family: DocumentFamily
    document_number: str = Field("", max_length=50)
    status: str = "draft"
    version: int = Field(0, ge=0, description="Token de concurrencia optimista")
    issue_date: date = Field(default_factory=date.today)
    due_date: Optional[date] = None
    payment_terms: Optional[PaymentTerms] = None
    counterparty_id: Optional[UUID] = Field(None, description="Proveedor o cliente")
    linked_document_id: Optional[UUID] = None
    line_items: List[LineItem] = Field(default_factory=list)
    discount_type: DiscountType = DiscountType.NONE
    discount_value: Decimal = Decimal('0')
    amount_paid: Decimal = Decimal('0')
    amount_applied: Decimal = Decimal('0')
    amount_credited: Decimal = Decimal('0')
    amount_refunded: Decimal = Decimal('0')
    amount_voided: Decimal = Decimal('0')
    account_id: Optional[str] = Field(None, description="Cuenta contable principal del documento")
    notes: Optional[str] = None

    def header_discount(self) -> HeaderDiscount:
        return HeaderDiscount(discount_type=self.discount_type, discount_value=self.discount_value)

    def effective_line_items(self) -> List[LineItem]:
        return list(self.line_items)

    @property
    def totals(self) -> DocumentTotals:
        return compute_totals(self.effective_line_items(), self.header_discount())

    @property
    def total_amount(self) -> Decimal:
        return self.totals.total_amount

    @property
    def amount_due(self) -> Decimal:
        return compute_amount_due(self.total_amount, self.amount_paid + self.amount_credited, self.amount_voided)

    @property
    def remaining_credit(self) -> Decimal:
        return compute_remaining_credit(
            self.total_amount, [self.amount_applied], [self.amount_refunded], self.amount_voided
        )


class TransitionContext(BaseModel):
    """Datos que acompañan a un evento solicitado por el llamador"""
    expected_version: int = Field(..., ge=0, description="Versión del documento leída por el llamador")
    actor_id: Optional[str] = None
    occurred_on: date = Field(default_factory=date.today)
    amount: Optional[Decimal] = Field(None, description="Monto de pago o reembolso")
    payment_account: Optional[str] = None
    reason: Optional[str] = None
    proposals: List[AllocationProposal] = Field(default_factory=list)
    applied_at: Optional[datetime] = None
    linked_document_id: Optional[UUID] = None
    line_items: Optional[List[LineItem]] = None
    expense_lines: Optional[List[ExpenseLine]] = None
    tax_percent: Optional[Decimal] = None
    is_reimbursable: Optional[bool] = None
    is_billable: Optional[bool] = None
    markup_percent: Optional[Decimal] = None
    is_mileage: Optional[bool] = None
    mileage_distance: Optional[Decimal] = None
    mileage_rate: Optional[Decimal] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = None


class TransitionResult(BaseModel):
    """
    Resultado de una transición

    El llamador persiste `changes` y el nuevo estado con compare-and-swap sobre
    `expected_version`, y ejecuta cada efecto exactamente una vez.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    family: DocumentFamily
    document_id: UUID
    event: str
    previous_status: str
    new_status: Optional[str] = None
    deleted: bool = False
    expected_version: int
    new_version: int
    effects: List[SideEffect] = Field(default_factory=list)
    changes: Dict[str, Any] = Field(default_factory=dict)
    applications: List[CreditApplication] = Field(default_factory=list)
    warnings: List[ClampedValueWarning] = Field(default_factory=list)


class Permissions(BaseModel):
    """Acciones disponibles en un estado, derivadas de la tabla de transiciones"""
    family: DocumentFamily
    status: str
    terminal: bool
    actions: List[str] = Field(default_factory=list)
    flags: Dict[str, bool] = Field(default_factory=dict)

    def allows(self, event) -> bool:
        value = event.value if isinstance(event, Enum) else str(event)
        return self.flags.get(f"allow_{value}", False)

    @property
    def allow_edit(self) -> bool:
        return self.allows("edit")

    @property
    def allow_delete(self) -> bool:
        return self.allows("delete")

    @property
    def allow_void(self) -> bool:
        return self.allows("void")


# ===== REQUEST / RESPONSE =====

class TransitionRequest(BaseModel):
    document: Dict[str, Any]
    event: str
    context: TransitionContext


class ReconcileRequest(BaseModel):
    document: Dict[str, Any]
    as_of: date = Field(default_factory=date.today)


class TransitionOut(BaseModel):
    family: DocumentFamily
    document_id: UUID
    event: str
    previous_status: str
    new_status: Optional[str] = None
    deleted: bool = False
    expected_version: int
    new_version: int
    effects: List[SideEffect] = Field(default_factory=list)
    changes: Dict[str, Any] = Field(default_factory=dict)
    applications: List[CreditApplication] = Field(default_factory=list)
    warnings: List[WarningOut] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: TransitionResult) -> "TransitionOut":
        return cls(
            **result.model_dump(exclude={"warnings"}),
            warnings=[WarningOut.from_warning(w) for w in result.warnings]
        )


class RuleOut(BaseModel):
    source: str
    event: str
    targets: List[Optional[str]]
    automatic: bool = False
