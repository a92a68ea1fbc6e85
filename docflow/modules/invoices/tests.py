"""
Tests para el flujo de Facturas de venta
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from docflow.core.config import settings
from docflow.core.exceptions import ValidationError
from docflow.modules.calculations.schemas import DiscountType, LineItem
from docflow.modules.invoices.schemas import Invoice, InvoiceEvent, InvoiceStatus
from docflow.modules.lifecycle.effects import (
    AdjustInventory, PostJournalEntry, UpdateCounterpartyBalance
)
from docflow.modules.lifecycle.schemas import TransitionContext
from docflow.modules.lifecycle.service import apply_result, reconcile, transition


@pytest.fixture
def draft_invoice():
    """Factura de 4 × 50 con 19% de IVA y 10% de descuento global"""
    return Invoice(
        document_number="INV-0001",
        counterparty_id=uuid4(),
        issue_date=date(2024, 3, 1),
        due_date=date(2024, 3, 31),
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("10"),
        line_items=[
            LineItem(quantity=Decimal("4"), unit_price=Decimal("50"), tax_percent=Decimal("19"),
                     product_id=uuid4(), is_inventory=True),
        ]
    )


def run(document, event, **context):
    context.setdefault("expected_version", document.version)
    result = transition(document, event, TransitionContext(**context))
    return result, apply_result(document, result)


class TestInvoiceWorkflow:
    """Tests para el ciclo de vida de una factura de venta"""

    def test_send_effects(self, draft_invoice):
        result, invoice = run(draft_invoice, InvoiceEvent.SEND)

        # 200 - 20 de descuento global + 38 de IVA (el descuento no reduce el impuesto)
        assert invoice.total_amount == Decimal("218.00")
        assert invoice.status == InvoiceStatus.SENT
        assert [e.delta for e in result.effects if isinstance(e, AdjustInventory)] == [Decimal("-4")]
        assert [e.delta for e in result.effects if isinstance(e, UpdateCounterpartyBalance)] == [Decimal("218.00")]
        journal = [e for e in result.effects if isinstance(e, PostJournalEntry)][0]
        assert (journal.debit_account, journal.credit_account) == (
            settings.ACCOUNTS_RECEIVABLE_ACCOUNT, settings.SALES_ACCOUNT
        )

    def test_payment_and_credit(self, draft_invoice):
        _, invoice = run(draft_invoice, InvoiceEvent.SEND)

        result, invoice = run(invoice, InvoiceEvent.RECORD_PAYMENT, amount=Decimal("100"))
        journal = [e for e in result.effects if isinstance(e, PostJournalEntry)][0]
        assert (journal.debit_account, journal.credit_account) == (
            settings.CASH_ACCOUNT, settings.ACCOUNTS_RECEIVABLE_ACCOUNT
        )
        assert invoice.status == InvoiceStatus.PARTIALLY_PAID

        result, invoice = run(invoice, InvoiceEvent.APPLY_CREDIT, amount=Decimal("118"))
        assert result.effects == []
        assert invoice.status == InvoiceStatus.PAID

    def test_credit_above_due_rejected(self, draft_invoice):
        _, invoice = run(draft_invoice, InvoiceEvent.SEND)
        with pytest.raises(ValidationError):
            run(invoice, InvoiceEvent.APPLY_CREDIT, amount=Decimal("218.01"))

    def test_overdue_and_void(self, draft_invoice):
        _, invoice = run(draft_invoice, InvoiceEvent.SEND)
        invoice = apply_result(invoice, reconcile(invoice, date(2024, 4, 15)))
        assert invoice.status == InvoiceStatus.OVERDUE

        _, invoice = run(invoice, InvoiceEvent.RECORD_PAYMENT, amount=Decimal("109"))
        assert invoice.status == InvoiceStatus.OVERDUE

        result, invoice = run(invoice, InvoiceEvent.VOID)
        # La mitad sigue pendiente: vuelven 2 unidades al inventario
        assert [e.delta for e in result.effects if isinstance(e, AdjustInventory)] == [Decimal("2")]
        assert invoice.status == InvoiceStatus.VOID
        assert invoice.amount_voided == Decimal("109.00")
