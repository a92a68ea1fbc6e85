"""
Tests para el motor de asignación de crédito

Todo lote se acepta o se rechaza completo; los montos solicitados se truncan
al menor entre el crédito restante y el saldo del destino.
"""

import pytest
from fastapi.testclient import TestClient
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError as SchemaError

from docflow.main import app
from docflow.core.exceptions import (
    EmptyAllocationError, InsufficientCreditError, ValidationError
)
from docflow.modules.allocations.schemas import AllocationProposal
from docflow.modules.allocations.service import allocate, status_after_allocation


client = TestClient(app)


def proposal(requested, due="1000", target_id=None):
    return AllocationProposal(
        target_id=target_id or uuid4(),
        amount_due=Decimal(due),
        requested_amount=Decimal(requested)
    )


class TestAllocate:
    """Tests para allocate"""

    def test_batch_exceeding_credit_rejected(self):
        """Test 150 de crédito contra 100 + 80 rechaza todo el lote"""
        with pytest.raises(InsufficientCreditError) as exc_info:
            allocate(Decimal("150"), [proposal("100", "200"), proposal("80", "200")])

        assert exc_info.value.requested == Decimal("180.00")
        assert exc_info.value.available == Decimal("150.00")

    def test_successful_batch(self):
        source_id = uuid4()
        first, second = proposal("100", "200"), proposal("50", "50")

        result = allocate(Decimal("150"), [first, second], source_id=source_id)

        assert result.total_applied == Decimal("150.00")
        assert result.remaining_credit_before == Decimal("150.00")
        assert result.remaining_credit_after == Decimal("0.00")
        assert [a.target_id for a in result.applications] == [first.target_id, second.target_id]
        assert all(a.source_id == source_id for a in result.applications)
        assert result.warnings == []

    def test_request_clamped_to_amount_due(self):
        """Test solicitud mayor que el saldo del destino se trunca con aviso"""
        result = allocate(Decimal("100"), [proposal("120", "50")])

        assert result.total_applied == Decimal("50.00")
        assert result.remaining_credit_after == Decimal("50.00")
        assert len(result.warnings) == 1
        assert result.warnings[0].applied == Decimal("50.00")

    def test_request_clamped_to_remaining_credit(self):
        result = allocate(Decimal("30"), [proposal("80", "200")])

        assert result.total_applied == Decimal("30.00")
        assert result.warnings[0].requested == Decimal("80.00")

    def test_zero_proposals_dropped(self):
        result = allocate(Decimal("100"), [proposal("0"), proposal("25")])
        assert len(result.applications) == 1

    def test_empty_batch(self):
        """Test lote sin montos positivos"""
        with pytest.raises(EmptyAllocationError):
            allocate(Decimal("100"), [proposal("0"), proposal("0")])
        with pytest.raises(EmptyAllocationError):
            allocate(Decimal("100"), [])

    def test_negative_request_rejected(self):
        with pytest.raises(ValidationError):
            allocate(Decimal("100"), [proposal("-10")])

    def test_duplicate_target_rejected(self):
        target_id = uuid4()
        with pytest.raises(ValidationError):
            allocate(Decimal("100"), [proposal("10", target_id=target_id), proposal("20", target_id=target_id)])

    def test_applications_are_frozen(self):
        result = allocate(Decimal("100"), [proposal("10")])
        with pytest.raises(SchemaError):
            result.applications[0].amount = Decimal("99")

    def test_applied_at_propagated(self):
        applied_at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        result = allocate(Decimal("100"), [proposal("10")], applied_at=applied_at)
        assert result.applications[0].applied_at == applied_at

    def test_invoice_id_alias(self):
        """Test la propuesta acepta invoice_id o bill_id como destino"""
        target_id = uuid4()
        parsed = AllocationProposal.model_validate({
            "invoice_id": str(target_id), "amount_due": "10", "requested_amount": "5"
        })
        assert parsed.target_id == target_id


class TestStatusAfterAllocation:

    def test_partial_and_full(self):
        assert status_after_allocation(Decimal("0.01"), "partial", "full") == "partial"
        assert status_after_allocation(Decimal("0"), "partial", "full") == "full"


class TestAllocationsEndpoint:
    """Tests para POST /allocations"""

    def test_allocate_endpoint(self):
        response = client.post("/allocations/", json={
            "remaining_credit": "100",
            "proposals": [{"target_id": str(uuid4()), "amount_due": "40", "requested_amount": "60"}]
        })

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["total_applied"]) == Decimal("40")
        assert Decimal(data["remaining_credit_after"]) == Decimal("60")
        assert data["warnings"][0]["field"] == "proposals[1].requested_amount"

    def test_allocate_endpoint_insufficient_credit(self):
        response = client.post("/allocations/", json={
            "remaining_credit": "150",
            "proposals": [
                {"target_id": str(uuid4()), "amount_due": "200", "requested_amount": "100"},
                {"target_id": str(uuid4()), "amount_due": "200", "requested_amount": "80"},
            ]
        })

        assert response.status_code == 422
