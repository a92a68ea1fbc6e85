"""
Cálculo de líneas, totales y saldos de documentos financieros

Política de redondeo:
- Los montos de línea se calculan con Decimal exacto y no se redondean.
- Cada agregado (subtotal, descuentos, impuestos) se suma exacto y se
  redondea una sola vez a la unidad mínima de la moneda.
- El total se arma con los agregados ya redondeados, de modo que el
  documento siempre cuadra al centavo con lo que se muestra.

El impuesto se calcula por línea sobre la base ya descontada; el descuento
global del encabezado NO reduce el impuesto reportado.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from docflow.common.money import (
    ONE, ZERO, percent_of, quantize_money, sum_amounts, to_decimal
)
from docflow.common.validators import (
    validate_non_negative, validate_percent, validate_positive
)
from docflow.core.config import settings
from docflow.core.exceptions import ClampedValueWarning, ValidationError
from docflow.modules.calculations.schemas import (
    DiscountType, DocumentTotals, ExpenseLine, ExpenseTotals, HeaderDiscount,
    LineAmounts, LineItem, TaxBreakdown
)

logger = logging.getLogger(__name__)


def compute_line(
    quantity,
    unit_price,
    discount_percent=ZERO,
    tax_percent=ZERO
) -> LineAmounts:
    """
    Calcular los montos de una línea

    Args:
        quantity: Cantidad (> 0)
        unit_price: Precio unitario (>= 0)
        discount_percent: Descuento en base 100
        tax_percent: Impuesto en base 100, aplicado después del descuento

    Returns:
        LineAmounts con gross, discount, taxable, tax y net exactos

    Raises:
        ValidationError: si algún valor está fuera de rango
    """
    quantity = validate_positive(quantity, "quantity")
    unit_price = validate_non_negative(unit_price, "unit_price")
    discount_percent = validate_percent(discount_percent, "discount_percent")
    tax_percent = validate_percent(tax_percent, "tax_percent")

    gross = quantity * unit_price
    discount = percent_of(gross, discount_percent)
    taxable = gross - discount
    tax = percent_of(taxable, tax_percent)

    return LineAmounts(
        gross=gross,
        discount=discount,
        taxable=taxable,
        tax=tax,
        net=taxable + tax
    )


def compute_line_item(item: LineItem) -> LineAmounts:
    return compute_line(item.quantity, item.unit_price, item.discount_percent, item.tax_percent)


def compute_lines(line_items: Sequence[LineItem]) -> List[LineAmounts]:
    """Calcular todas las líneas; una línea inválida rechaza el documento completo"""
    results = []
    for position, item in enumerate(line_items, start=1):
        try:
            results.append(compute_line_item(item))
        except ValidationError as e:
            raise ValidationError(f"Línea {position}: {e.message}")
    return results


def compute_totals(
    line_items: Sequence[LineItem],
    header_discount: Optional[HeaderDiscount] = None
) -> DocumentTotals:
    """
    Calcular los totales de un documento

    Args:
        line_items: Líneas del documento
        header_discount: Descuento global opcional (porcentaje o fijo)

    Returns:
        DocumentTotals redondeados, con avisos si algún valor fue truncado
    """
    lines = compute_lines(line_items)

    subtotal = quantize_money(sum_amounts(line.gross for line in lines))
    line_discount_total = quantize_money(sum_amounts(line.discount for line in lines))
    tax_total = quantize_money(sum_amounts(line.tax for line in lines))

    discountable_base = subtotal - line_discount_total
    header_discount_amount, warnings = _header_discount_amount(discountable_base, header_discount)

    total_amount = discountable_base - header_discount_amount + tax_total
    if total_amount < ZERO:
        warnings.append(ClampedValueWarning("total_amount", total_amount, ZERO))
        total_amount = ZERO

    for warning in warnings:
        logger.warning(f"Valor truncado al calcular totales: {warning.message}")

    return DocumentTotals(
        subtotal=subtotal,
        line_discount_total=line_discount_total,
        header_discount_amount=header_discount_amount,
        tax_total=tax_total,
        total_amount=total_amount,
        warnings=warnings
    )


def _header_discount_amount(
    base: Decimal,
    header_discount: Optional[HeaderDiscount]
) -> Tuple[Decimal, List[ClampedValueWarning]]:
    """
    Calcular el descuento global sobre la base ya descontada por línea

    Un descuento fijo mayor que la base se trunca a la base y genera aviso.
    """
    warnings: List[ClampedValueWarning] = []
    if header_discount is None or header_discount.discount_type == DiscountType.NONE:
        return ZERO, warnings

    if header_discount.discount_type == DiscountType.PERCENTAGE:
        percent = validate_percent(header_discount.discount_value, "discount_value")
        return quantize_money(percent_of(base, percent)), warnings

    requested = quantize_money(validate_non_negative(header_discount.discount_value, "discount_value"))
    if requested > base:
        warnings.append(ClampedValueWarning("discount_value", requested, base))
        return base, warnings
    return requested, warnings


def tax_breakdown(line_items: Sequence[LineItem]) -> List[TaxBreakdown]:
    """
    Agrupar impuestos por tasa

    Returns:
        Lista ordenada por tasa con base gravable e impuesto redondeados
    """
    grouped = {}

    for item, amounts in zip(line_items, compute_lines(line_items)):
        key = to_decimal(item.tax_percent).normalize()
        if key not in grouped:
            grouped[key] = {"taxable": ZERO, "tax": ZERO}
        grouped[key]["taxable"] += amounts.taxable
        grouped[key]["tax"] += amounts.tax

    return [
        TaxBreakdown(
            tax_percent=rate,
            taxable_amount=quantize_money(values["taxable"]),
            tax_amount=quantize_money(values["tax"])
        )
        for rate, values in sorted(grouped.items())
    ]


# ===== SALDOS =====

def compute_amount_due(total_amount, amount_paid, amount_voided=ZERO) -> Decimal:
    """Saldo pendiente de documentos por pagar/cobrar (Bills, Invoices, Expenses)"""
    due = to_decimal(total_amount) - to_decimal(amount_paid) - to_decimal(amount_voided)
    return quantize_money(max(ZERO, due))


def compute_remaining_credit(
    total_amount,
    applications: Iterable = (),
    refunds: Iterable = (),
    amount_voided=ZERO
) -> Decimal:
    """Crédito restante de notas crédito/débito: total menos aplicado, reembolsado y anulado"""
    applied = sum_amounts(to_decimal(a) for a in applications)
    refunded = sum_amounts(to_decimal(r) for r in refunds)
    remaining = to_decimal(total_amount) - applied - refunded - to_decimal(amount_voided)
    return quantize_money(max(ZERO, remaining))


# ===== GASTOS =====

def expense_line_items(
    amount=None,
    tax_percent=ZERO,
    line_items: Optional[Sequence[ExpenseLine]] = None,
    is_mileage: bool = False,
    mileage_distance=None,
    mileage_rate=None
) -> List[LineItem]:
    """
    Expresar el monto de un gasto como líneas de documento

    Prioridad: kilometraje > gasto dividido > monto único.
    Sin ninguna fuente de monto se devuelve una lista vacía.
    """
    if is_mileage:
        rate = settings.DEFAULT_MILEAGE_RATE if mileage_rate is None else mileage_rate
        return [LineItem(
            description="Kilometraje",
            quantity=validate_positive(mileage_distance, "mileage_distance"),
            unit_price=to_decimal(rate, "mileage_rate"),
            tax_percent=tax_percent
        )]

    if line_items:
        return [
            LineItem(
                description=line.description,
                quantity=ONE,
                unit_price=line.amount,
                tax_percent=line.tax_percent,
                account_id=line.account_id,
                sort_order=line.sort_order
            )
            for line in line_items
        ]

    if amount is None:
        return []

    return [LineItem(quantity=ONE, unit_price=to_decimal(amount, "amount"), tax_percent=tax_percent)]


def compute_expense(
    amount=None,
    tax_percent=ZERO,
    line_items: Optional[Sequence[ExpenseLine]] = None,
    is_mileage: bool = False,
    mileage_distance=None,
    mileage_rate=None,
    is_billable: bool = False,
    markup_percent=None
) -> ExpenseTotals:
    """
    Calcular monto, impuesto y total de un gasto

    Si el gasto es facturable al cliente con recargo, también calcula el
    monto con recargo (total × (1 + recargo/100)).
    """
    lines = expense_line_items(
        amount=amount,
        tax_percent=tax_percent,
        line_items=line_items,
        is_mileage=is_mileage,
        mileage_distance=mileage_distance,
        mileage_rate=mileage_rate
    )
    totals = compute_totals(lines)

    marked_up_amount = None
    if is_billable and markup_percent is not None:
        markup = validate_non_negative(markup_percent, "markup_percent")
        if markup > ZERO:
            marked_up_amount = quantize_money(totals.total_amount + percent_of(totals.total_amount, markup))

    return ExpenseTotals(
        amount=totals.subtotal,
        tax_amount=totals.tax_total,
        total_amount=totals.total_amount,
        marked_up_amount=marked_up_amount,
        warnings=list(totals.warnings)
    )
