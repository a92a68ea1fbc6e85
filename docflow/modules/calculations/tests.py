"""
Tests para el módulo de Cálculos

Cubren:
- Montos de línea (descuento antes de impuesto, validaciones)
- Totales de documento y descuento global (porcentaje y fijo truncado)
- Política de redondeo por agregado
- Saldos (monto pendiente, crédito restante)
- Gastos: monto único, dividido, kilometraje y recargo facturable
- Fechas de vencimiento y expiración
- Endpoints HTTP
"""

import pytest
from fastapi.testclient import TestClient
from datetime import date
from decimal import Decimal

from docflow.main import app
from docflow.common.money import to_decimal
from docflow.core.exceptions import ClampedValueWarning, ValidationError
from docflow.modules.calculations.calculator import (
    compute_amount_due, compute_expense, compute_line, compute_remaining_credit,
    compute_totals, tax_breakdown
)
from docflow.modules.calculations.schemas import (
    DiscountType, ExpenseLine, HeaderDiscount, LineItem, PaymentTerms
)
from docflow.modules.calculations.terms import default_expiration_date, due_date_for


client = TestClient(app)


# ===== FIXTURES =====

@pytest.fixture
def discounted_line():
    """2 × 100 con 10% de descuento y 8% de impuesto"""
    return LineItem(
        description="Servicio de consultoría",
        quantity=Decimal("2"),
        unit_price=Decimal("100"),
        discount_percent=Decimal("10"),
        tax_percent=Decimal("8")
    )


# ===== TESTS DE LÍNEAS =====

class TestComputeLine:
    """Tests para el cálculo de una línea"""

    def test_discount_before_tax(self):
        """Test descuento aplicado antes del impuesto"""
        amounts = compute_line(Decimal("2"), Decimal("100"), Decimal("10"), Decimal("8"))

        assert amounts.gross == Decimal("200")
        assert amounts.discount == Decimal("20")
        assert amounts.taxable == Decimal("180")
        assert amounts.tax == Decimal("14.4")
        assert amounts.net == Decimal("194.4")

    def test_line_amounts_are_not_rounded(self):
        """Test los montos de línea se mantienen exactos"""
        amounts = compute_line(Decimal("3"), Decimal("0.333"), tax_percent=Decimal("7"))

        assert amounts.gross == Decimal("0.999")
        assert amounts.tax == Decimal("0.06993")

    def test_zero_quantity_rejected(self):
        """Test cantidad 0 es un error, no se convierte en 0 silenciosamente"""
        with pytest.raises(ValidationError):
            compute_line(Decimal("0"), Decimal("100"))

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            compute_line(Decimal("1"), Decimal("-5"))

    @pytest.mark.parametrize("percent", [Decimal("-1"), Decimal("100.01")])
    def test_percent_out_of_range(self, percent):
        """Test porcentajes fuera de [0, 100]"""
        with pytest.raises(ValidationError):
            compute_line(Decimal("1"), Decimal("10"), discount_percent=percent)
        with pytest.raises(ValidationError):
            compute_line(Decimal("1"), Decimal("10"), tax_percent=percent)

    def test_non_numeric_input(self):
        with pytest.raises(ValidationError):
            compute_line("dos", Decimal("10"))

    def test_full_discount(self):
        """Test descuento del 100% deja la línea en cero"""
        amounts = compute_line(Decimal("1"), Decimal("50"), Decimal("100"), Decimal("19"))
        assert amounts.taxable == Decimal("0")
        assert amounts.net == Decimal("0")


class TestMoney:
    """Tests para la conversión a Decimal"""

    def test_float_goes_through_text(self):
        assert to_decimal(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("value", [None, True, "NaN", "Infinity", "abc"])
    def test_invalid_values(self, value):
        with pytest.raises(ValidationError):
            to_decimal(value)


# ===== TESTS DE TOTALES =====

class TestComputeTotals:
    """Tests para los totales del documento"""

    def test_single_line_totals(self, discounted_line):
        totals = compute_totals([discounted_line])

        assert totals.subtotal == Decimal("200.00")
        assert totals.line_discount_total == Decimal("20.00")
        assert totals.header_discount_amount == Decimal("0")
        assert totals.tax_total == Decimal("14.40")
        assert totals.total_amount == Decimal("194.40")
        assert totals.warnings == []

    def test_percentage_header_discount(self, discounted_line):
        """Test descuento global porcentual sobre la base ya descontada"""
        totals = compute_totals(
            [discounted_line],
            HeaderDiscount(discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("10"))
        )

        assert totals.header_discount_amount == Decimal("18.00")
        assert totals.discount_amount == Decimal("38.00")
        # El descuento global no reduce el impuesto
        assert totals.tax_total == Decimal("14.40")
        assert totals.total_amount == Decimal("176.40")

    def test_fixed_discount_clamped_to_base(self):
        """Test descuento fijo 600 sobre base 500 se trunca y genera aviso"""
        line = LineItem(quantity=Decimal("1"), unit_price=Decimal("500"))
        totals = compute_totals(
            [line],
            HeaderDiscount(discount_type=DiscountType.FIXED, discount_value=Decimal("600"))
        )

        assert totals.header_discount_amount == Decimal("500")
        assert totals.total_amount == Decimal("0")
        assert len(totals.warnings) == 1
        warning = totals.warnings[0]
        assert isinstance(warning, ClampedValueWarning)
        assert warning.field == "discount_value"
        assert warning.requested == Decimal("600")
        assert warning.applied == Decimal("500")

    def test_fixed_discount_within_base(self):
        line = LineItem(quantity=Decimal("1"), unit_price=Decimal("500"))
        totals = compute_totals(
            [line],
            HeaderDiscount(discount_type=DiscountType.FIXED, discount_value=Decimal("120.50"))
        )
        assert totals.total_amount == Decimal("379.50")
        assert totals.warnings == []

    def test_rounding_once_per_aggregate(self):
        """Test se redondea la suma exacta, no cada línea"""
        lines = [LineItem(quantity=Decimal("1"), unit_price=Decimal("0.005")) for _ in range(3)]
        totals = compute_totals(lines)

        # 0.015 → 0.02 (redondear cada línea daría 0.03)
        assert totals.subtotal == Decimal("0.02")
        assert totals.total_amount == Decimal("0.02")

    def test_invalid_line_rejects_document(self, discounted_line):
        """Test una línea inválida rechaza el documento e indica la posición"""
        bad_line = LineItem(quantity=Decimal("0"), unit_price=Decimal("10"))

        with pytest.raises(ValidationError) as exc_info:
            compute_totals([discounted_line, bad_line])
        assert "Línea 2" in exc_info.value.message

    def test_empty_document(self):
        totals = compute_totals([])
        assert totals.total_amount == Decimal("0")

    def test_idempotent(self, discounted_line):
        """Test calcular dos veces da el mismo resultado"""
        header = HeaderDiscount(discount_type=DiscountType.FIXED, discount_value=Decimal("999"))
        assert compute_totals([discounted_line], header) == compute_totals([discounted_line], header)

    def test_tax_breakdown_groups_by_rate(self, discounted_line):
        other = LineItem(quantity=Decimal("1"), unit_price=Decimal("50"), tax_percent=Decimal("8.0"))
        exempt = LineItem(quantity=Decimal("1"), unit_price=Decimal("30"))

        breakdown = tax_breakdown([discounted_line, other, exempt])

        assert [group.tax_percent for group in breakdown] == [Decimal("0"), Decimal("8")]
        assert breakdown[1].taxable_amount == Decimal("230.00")
        assert breakdown[1].tax_amount == Decimal("18.40")


# ===== TESTS DE SALDOS =====

class TestBalances:
    """Tests para saldos pendientes y crédito restante"""

    def test_amount_due(self):
        assert compute_amount_due(Decimal("100"), Decimal("30")) == Decimal("70.00")
        assert compute_amount_due(Decimal("100"), Decimal("30"), Decimal("70")) == Decimal("0.00")

    def test_amount_due_never_negative(self):
        assert compute_amount_due(Decimal("100"), Decimal("150")) == Decimal("0.00")

    def test_remaining_credit(self):
        remaining = compute_remaining_credit(
            Decimal("150"), [Decimal("50"), Decimal("25")], [Decimal("10")]
        )
        assert remaining == Decimal("65.00")


# ===== TESTS DE GASTOS =====

class TestComputeExpense:
    """Tests para el cálculo de gastos"""

    def test_single_amount_with_tax(self):
        totals = compute_expense(amount=Decimal("200"), tax_percent=Decimal("8"))

        assert totals.amount == Decimal("200.00")
        assert totals.tax_amount == Decimal("16.00")
        assert totals.total_amount == Decimal("216.00")
        assert totals.marked_up_amount is None

    def test_split_lines(self):
        """Test gasto dividido: impuesto por línea"""
        totals = compute_expense(line_items=[
            ExpenseLine(account_id="6100", amount=Decimal("40"), tax_percent=Decimal("10")),
            ExpenseLine(account_id="6200", amount=Decimal("60")),
        ])

        assert totals.amount == Decimal("100.00")
        assert totals.tax_amount == Decimal("4.00")
        assert totals.total_amount == Decimal("104.00")

    def test_mileage_default_rate(self):
        """Test kilometraje con tarifa por defecto"""
        totals = compute_expense(is_mileage=True, mileage_distance=Decimal("100"))
        assert totals.total_amount == Decimal("65.50")

    def test_mileage_takes_priority(self):
        totals = compute_expense(
            amount=Decimal("999"),
            is_mileage=True,
            mileage_distance=Decimal("10"),
            mileage_rate=Decimal("0.5")
        )
        assert totals.total_amount == Decimal("5.00")

    def test_billable_markup(self):
        totals = compute_expense(
            amount=Decimal("200"),
            tax_percent=Decimal("8"),
            is_billable=True,
            markup_percent=Decimal("10")
        )
        assert totals.marked_up_amount == Decimal("237.60")

    def test_markup_ignored_when_not_billable(self):
        totals = compute_expense(amount=Decimal("200"), markup_percent=Decimal("10"))
        assert totals.marked_up_amount is None


# ===== TESTS DE FECHAS =====

class TestTerms:
    """Tests para condiciones de pago y expiración"""

    def test_net_terms(self):
        assert due_date_for(date(2024, 1, 1), PaymentTerms.NET_30) == date(2024, 1, 31)
        assert due_date_for(date(2024, 1, 1), PaymentTerms.NET_15) == date(2024, 1, 16)

    def test_due_on_receipt(self):
        assert due_date_for(date(2024, 3, 5), PaymentTerms.DUE_ON_RECEIPT) == date(2024, 3, 5)

    def test_custom_has_no_due_date(self):
        assert due_date_for(date(2024, 3, 5), PaymentTerms.CUSTOM) is None

    def test_default_expiration(self):
        assert default_expiration_date(date(2024, 1, 1)) == date(2024, 1, 31)


# ===== TESTS DE ENDPOINTS =====

class TestCalculationsEndpoints:
    """Tests para los endpoints de cálculo"""

    def test_line_endpoint(self):
        response = client.post("/calculations/line", json={
            "quantity": "2", "unit_price": "100", "discount_percent": "10", "tax_percent": "8"
        })

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["taxable"]) == Decimal("180")
        assert Decimal(data["net"]) == Decimal("194.4")

    def test_line_endpoint_invalid_quantity(self):
        response = client.post("/calculations/line", json={"quantity": "0", "unit_price": "100"})

        assert response.status_code == 422
        assert "quantity" in response.json()["detail"]

    def test_totals_endpoint_with_clamp(self):
        response = client.post("/calculations/totals", json={
            "line_items": [{"quantity": "1", "unit_price": "500"}],
            "header_discount": {"discount_type": "FIXED", "discount_value": "600"}
        })

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["total_amount"]) == Decimal("0")
        assert len(data["lines"]) == 1
        assert data["warnings"][0]["field"] == "discount_value"

    def test_expense_endpoint(self):
        response = client.post("/calculations/expense", json={
            "is_mileage": True, "mileage_distance": "100"
        })

        assert response.status_code == 200
        assert Decimal(response.json()["total_amount"]) == Decimal("65.50")

    def test_due_date_endpoint(self):
        response = client.get("/calculations/due-date", params={
            "issue_date": "2024-01-01", "payment_terms": "NET_30"
        })

        assert response.status_code == 200
        assert response.json()["due_date"] == "2024-01-31"
