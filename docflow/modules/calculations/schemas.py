from pydantic import BaseModel, ConfigDict, Field
from decimal import Decimal
from typing import Optional, List
from uuid import UUID, uuid4
from enum import Enum
from datetime import date

from docflow.core.exceptions import ClampedValueWarning


class DiscountType(str, Enum):
    NONE = "NONE"
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


class PaymentTerms(str, Enum):
    DUE_ON_RECEIPT = "DUE_ON_RECEIPT"
    NET_10 = "NET_10"
    NET_15 = "NET_15"
    NET_30 = "NET_30"
    NET_45 = "NET_45"
    NET_60 = "NET_60"
    NET_90 = "NET_90"
    CUSTOM = "CUSTOM"


class LineItem(BaseModel):
    """
    Línea de un documento financiero

    Los montos derivados nunca se almacenan: se recalculan con compute_line.
    """
    id: UUID = Field(default_factory=uuid4, description="Referencia de la línea para efectos de inventario")
    description: str = Field("", max_length=500)
    quantity: Decimal = Field(..., description="Cantidad (> 0)")
    unit_price: Decimal = Field(..., description="Precio unitario (>= 0)")
    discount_percent: Decimal = Field(Decimal('0'), description="Descuento de línea en base 100")
    tax_percent: Decimal = Field(Decimal('0'), description="Impuesto de línea en base 100")
    product_id: Optional[UUID] = None
    account_id: Optional[str] = Field(None, description="Cuenta de gasto/ingreso de la línea")
    is_inventory: bool = Field(False, description="La línea mueve inventario")
    sort_order: int = 0


class LineAmounts(BaseModel):
    """Montos exactos de una línea (sin redondear)"""
    model_config = ConfigDict(frozen=True)

    gross: Decimal
    discount: Decimal
    taxable: Decimal
    tax: Decimal
    net: Decimal


class HeaderDiscount(BaseModel):
    """Descuento global del documento, aplicado después de los descuentos de línea"""
    discount_type: DiscountType = DiscountType.NONE
    discount_value: Decimal = Decimal('0')


class DocumentTotals(BaseModel):
    """Totales redondeados a la unidad mínima de la moneda"""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    subtotal: Decimal
    line_discount_total: Decimal
    header_discount_amount: Decimal
    tax_total: Decimal
    total_amount: Decimal
    warnings: List[ClampedValueWarning] = Field(default_factory=list)

    @property
    def discount_amount(self) -> Decimal:
        """Descuento total (línea + encabezado), como lo muestra el documento"""
        return self.line_discount_total + self.header_discount_amount


class TaxBreakdown(BaseModel):
    """Impuestos agrupados por tasa"""
    tax_percent: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal


class ExpenseLine(BaseModel):
    """Línea de gasto dividido (split) entre cuentas"""
    account_id: Optional[str] = None
    description: str = ""
    amount: Decimal
    tax_percent: Decimal = Decimal('0')
    sort_order: int = 0


class ExpenseTotals(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    marked_up_amount: Optional[Decimal] = None
    warnings: List[ClampedValueWarning] = Field(default_factory=list)


# ===== REQUEST / RESPONSE =====

class WarningOut(BaseModel):
    field: str
    requested: Decimal
    applied: Decimal
    message: str

    @classmethod
    def from_warning(cls, warning: ClampedValueWarning) -> "WarningOut":
        return cls(
            field=warning.field,
            requested=warning.requested,
            applied=warning.applied,
            message=warning.message
        )


class LineCalculationRequest(BaseModel):
    quantity: Decimal
    unit_price: Decimal
    discount_percent: Decimal = Decimal('0')
    tax_percent: Decimal = Decimal('0')


class TotalsRequest(BaseModel):
    line_items: List[LineItem] = Field(default_factory=list)
    header_discount: Optional[HeaderDiscount] = None


class TotalsOut(BaseModel):
    subtotal: Decimal
    line_discount_total: Decimal
    header_discount_amount: Decimal
    tax_total: Decimal
    total_amount: Decimal
    lines: List[LineAmounts] = Field(default_factory=list)
    tax_breakdown: List[TaxBreakdown] = Field(default_factory=list)
    warnings: List[WarningOut] = Field(default_factory=list)


class ExpenseCalculationRequest(BaseModel):
    amount: Optional[Decimal] = None
    tax_percent: Decimal = Decimal('0')
    line_items: List[ExpenseLine] = Field(default_factory=list)
    is_mileage: bool = False
    mileage_distance: Optional[Decimal] = None
    mileage_rate: Optional[Decimal] = None
    is_billable: bool = False
    markup_percent: Optional[Decimal] = None


class ExpenseTotalsOut(BaseModel):
    amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    marked_up_amount: Optional[Decimal] = None
    warnings: List[WarningOut] = Field(default_factory=list)


class DueDateOut(BaseModel):
    issue_date: date
    payment_terms: PaymentTerms
    due_date: Optional[date] = None
