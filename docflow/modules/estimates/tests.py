import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from docflow.core.exceptions import InvalidTransitionError, ValidationError
from docflow.modules.calculations.schemas import LineItem
from docflow.modules.estimates.schemas import Estimate, EstimateEvent, EstimateStatus
from docflow.modules.lifecycle.schemas import TransitionContext
from docflow.modules.lifecycle.service import apply_result, reconcile, transition


@pytest.fixture
def draft_estimate():
    return Estimate(
        document_number="EST-0001",
        issue_date=date(2024, 6, 1),
        line_items=[LineItem(quantity=Decimal("1"), unit_price=Decimal("1500"))]
    )


def run(document, event, **context):
    context.setdefault("expected_version", document.version)
    result = transition(document, event, TransitionContext(**context))
    return result, apply_result(document, result)


class TestEstimateWorkflow:
    """Tests para el ciclo de vida de una cotización"""

    def test_send_assigns_default_expiration(self, draft_estimate):
        result, estimate = run(draft_estimate, EstimateEvent.SEND)

        assert estimate.status == EstimateStatus.SENT
        assert estimate.expiration_date == date(2024, 7, 1)
        assert result.effects == []

    def test_send_keeps_explicit_expiration(self, draft_estimate):
        estimate = draft_estimate.model_copy(update={"expiration_date": date(2024, 6, 15)})
        _, estimate = run(estimate, EstimateEvent.SEND)
        assert estimate.expiration_date == date(2024, 6, 15)

    def test_send_without_lines_rejected(self):
        with pytest.raises(ValidationError):
            run(Estimate(), EstimateEvent.SEND)

    def test_view_accept_convert(self, draft_estimate):
        invoice_id = uuid4()
        _, estimate = run(draft_estimate, EstimateEvent.SEND)
        _, estimate = run(estimate, EstimateEvent.VIEW)
        _, estimate = run(estimate, EstimateEvent.ACCEPT)
        result, estimate = run(estimate, EstimateEvent.CONVERT, linked_document_id=invoice_id)

        assert estimate.status == EstimateStatus.CONVERTED
        assert estimate.linked_document_id == invoice_id
        assert estimate.version == 4
        assert result.effects == []

    def test_view_only_from_sent(self, draft_estimate):
        _, estimate = run(draft_estimate, EstimateEvent.SEND)
        _, estimate = run(estimate, EstimateEvent.VIEW)
        with pytest.raises(InvalidTransitionError):
            run(estimate, EstimateEvent.VIEW)

    def test_reject(self, draft_estimate):
        _, estimate = run(draft_estimate, EstimateEvent.SEND)
        result, estimate = run(estimate, EstimateEvent.REJECT, reason="Precio alto")

        assert estimate.status == EstimateStatus.REJECTED
        assert result.changes["rejection_reason"] == "Precio alto"

    def test_expire_by_reconcile(self, draft_estimate):
        _, estimate = run(draft_estimate, EstimateEvent.SEND)

        assert reconcile(estimate, date(2024, 7, 1)) is None
        result = reconcile(estimate, date(2024, 7, 2))
        assert result.new_status == "expired"

        expired = apply_result(estimate, result)
        _, voided = run(expired, EstimateEvent.VOID)
        assert voided.status == EstimateStatus.VOID

    def test_converted_cannot_be_voided(self, draft_estimate):
        _, estimate = run(draft_estimate, EstimateEvent.SEND)
        _, estimate = run(estimate, EstimateEvent.ACCEPT)
        _, estimate = run(estimate, EstimateEvent.CONVERT)

        with pytest.raises(InvalidTransitionError):
            run(estimate, EstimateEvent.VOID)
