"""
Módulo de Cálculos - montos de línea, totales de documento y saldos

REGLAS:
- Descuento de línea antes del impuesto; el impuesto se calcula sobre la base descontada
- Descuento global (PERCENTAGE o FIXED) después de los descuentos de línea
- El descuento global no reduce el impuesto
- Un descuento FIXED mayor que la base se trunca y genera ClampedValueWarning
- El total nunca es negativo

REDONDEO:
- Líneas exactas (Decimal), redondeo ROUND_HALF_UP solo al agregar totales
"""

from .schemas import (
    DiscountType, PaymentTerms, LineItem, LineAmounts, HeaderDiscount,
    DocumentTotals, ExpenseLine, ExpenseTotals, TaxBreakdown
)
from .calculator import (
    compute_line, compute_line_item, compute_lines, compute_totals,
    compute_amount_due, compute_remaining_credit, compute_expense,
    expense_line_items, tax_breakdown
)
from .terms import due_date_for, default_expiration_date

__all__ = [
    # Schemas
    "DiscountType", "PaymentTerms", "LineItem", "LineAmounts", "HeaderDiscount",
    "DocumentTotals", "ExpenseLine", "ExpenseTotals", "TaxBreakdown",

    # Calculator
    "compute_line", "compute_line_item", "compute_lines", "compute_totals",
    "compute_amount_due", "compute_remaining_credit", "compute_expense",
    "expense_line_items", "tax_breakdown",

    # Terms
    "due_date_for", "default_expiration_date",
]
