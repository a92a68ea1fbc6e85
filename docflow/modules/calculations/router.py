from fastapi import APIRouter, HTTPException, Query
from datetime import date

from docflow.core.exceptions import DocflowError
from docflow.modules.calculations.calculator import (
    compute_expense, compute_line, compute_lines, compute_totals, tax_breakdown
)
from docflow.modules.calculations.schemas import (
    DueDateOut, ExpenseCalculationRequest, ExpenseTotalsOut, LineAmounts,
    LineCalculationRequest, PaymentTerms, TotalsOut, TotalsRequest, WarningOut
)
from docflow.modules.calculations.terms import due_date_for

calculations_router = APIRouter(prefix="/calculations", tags=["Calculations"])


@calculations_router.post("/line", response_model=LineAmounts)
def calculate_line(data: LineCalculationRequest):
    """
    Calcular los montos de una línea

    Orden fijo: primero el descuento, luego el impuesto sobre la base descontada.
    Los montos se devuelven exactos, sin redondear.
    """
    try:
        return compute_line(data.quantity, data.unit_price, data.discount_percent, data.tax_percent)
    except DocflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@calculations_router.post("/totals", response_model=TotalsOut)
def calculate_totals(data: TotalsRequest):
    """
    Calcular subtotal, descuentos, impuestos y total de un documento

    Un descuento fijo mayor que la base se trunca y se informa en `warnings`.
    """
    try:
        totals = compute_totals(data.line_items, data.header_discount)
        return TotalsOut(
            subtotal=totals.subtotal,
            line_discount_total=totals.line_discount_total,
            header_discount_amount=totals.header_discount_amount,
            tax_total=totals.tax_total,
            total_amount=totals.total_amount,
            lines=compute_lines(data.line_items),
            tax_breakdown=tax_breakdown(data.line_items),
            warnings=[WarningOut.from_warning(w) for w in totals.warnings]
        )
    except DocflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@calculations_router.post("/expense", response_model=ExpenseTotalsOut)
def calculate_expense(data: ExpenseCalculationRequest):
    """
    Calcular un gasto por monto único, gasto dividido o kilometraje
    """
    try:
        totals = compute_expense(
            amount=data.amount,
            tax_percent=data.tax_percent,
            line_items=data.line_items,
            is_mileage=data.is_mileage,
            mileage_distance=data.mileage_distance,
            mileage_rate=data.mileage_rate,
            is_billable=data.is_billable,
            markup_percent=data.markup_percent
        )
        return ExpenseTotalsOut(
            amount=totals.amount,
            tax_amount=totals.tax_amount,
            total_amount=totals.total_amount,
            marked_up_amount=totals.marked_up_amount,
            warnings=[WarningOut.from_warning(w) for w in totals.warnings]
        )
    except DocflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@calculations_router.get("/due-date", response_model=DueDateOut)
def calculate_due_date(
    issue_date: date = Query(..., description="Fecha de emisión"),
    payment_terms: PaymentTerms = Query(PaymentTerms.NET_30, description="Condiciones de pago")
):
    """
    Fecha de vencimiento sugerida según condiciones de pago (CUSTOM no tiene fecha)
    """
    return DueDateOut(
        issue_date=issue_date,
        payment_terms=payment_terms,
        due_date=due_date_for(issue_date, payment_terms)
    )
