"""
Tests para la máquina de estados genérica

Cubren:
- Exhaustividad: todo par (estado, evento) fuera de la tabla es inválido, en todas las familias
- Estados terminales y permisos derivados de la tabla
- Token de versión (StaleDocumentError)
- Reglas automáticas solo vía reconcile
- Endpoints HTTP
"""

import pytest
from fastapi.testclient import TestClient
from datetime import date
from decimal import Decimal

from docflow.main import app
from docflow.core.exceptions import InvalidTransitionError, StaleDocumentError
from docflow.modules.bills.schemas import BillEvent, BillStatus
from docflow.modules.calculations.schemas import LineItem
from docflow.modules.lifecycle.machine import Rule, StateMachine
from docflow.modules.lifecycle.schemas import DocumentFamily, TransitionContext
from docflow.modules.lifecycle.service import (
    DOCUMENT_MODELS, MACHINES, apply_result, parse_document, permissions_for, reconcile, transition
)


client = TestClient(app)

TERMINAL_STATES = {
    DocumentFamily.BILL: {"paid", "void"},
    DocumentFamily.INVOICE: {"paid", "void"},
    DocumentFamily.CREDIT_NOTE: {"applied", "void"},
    DocumentFamily.DEBIT_NOTE: {"applied", "void"},
    DocumentFamily.ESTIMATE: {"converted", "void"},
    DocumentFamily.EXPENSE: {"paid", "reimbursed", "void"},
}


def build_document(family, status, **overrides):
    data = {
        "status": status,
        "line_items": [LineItem(quantity=Decimal("1"), unit_price=Decimal("100"))],
    }
    if family == DocumentFamily.EXPENSE:
        data["amount"] = Decimal("100")
    data.update(overrides)
    return DOCUMENT_MODELS[family](**data)


def all_cases():
    for family, machine in MACHINES.items():
        for status in machine.states:
            for event in machine.events:
                yield family, status, event


# ===== EXHAUSTIVIDAD =====

class TestExhaustiveness:
    """Tests de la tabla de transiciones completa de cada familia"""

    @pytest.mark.parametrize("family,status,event", list(all_cases()))
    def test_undefined_pairs_are_invalid(self, family, status, event):
        """Test todo par fuera de la tabla (o automático) lanza InvalidTransitionError"""
        machine = MACHINES[family]
        rule = machine._table.get((status, event))
        if rule is not None and not rule.automatic:
            assert machine.find(status, event) is rule
            return

        document = build_document(family, status)
        with pytest.raises(InvalidTransitionError):
            transition(document, event, TransitionContext(expected_version=0))

    @pytest.mark.parametrize("family", list(DocumentFamily))
    def test_terminal_states(self, family):
        """Test terminalidad derivada de la tabla"""
        machine = MACHINES[family]
        terminal = {status.value for status in machine.states if machine.is_terminal(status)}
        assert terminal == TERMINAL_STATES[family]

    @pytest.mark.parametrize("family", list(DocumentFamily))
    def test_every_family_starts_in_draft(self, family):
        assert MACHINES[family].initial.value == "draft"
        assert DOCUMENT_MODELS[family]().status.value == "draft"

    @pytest.mark.parametrize("family", list(DocumentFamily))
    def test_edit_only_in_editable_states(self, family):
        machine = MACHINES[family]
        editable = {status.value for status in machine.states if permissions_for(family, status).allow_edit}
        expected = {"draft", "rejected"} if family == DocumentFamily.EXPENSE else {"draft"}
        assert editable == expected

    @pytest.mark.parametrize("family", list(DocumentFamily))
    def test_delete_only_from_draft(self, family):
        machine = MACHINES[family]
        deletable = [status.value for status in machine.states if permissions_for(family, status).allow_delete]
        assert deletable == ["draft"]


# ===== PERMISOS =====

class TestPermissions:
    """Tests para las banderas allow_<evento>"""

    @pytest.mark.parametrize("family", list(DocumentFamily))
    def test_flags_match_table(self, family):
        machine = MACHINES[family]
        for status in machine.states:
            permissions = permissions_for(family, status)
            for event in machine.events:
                rule = machine._table.get((status, event))
                expected = rule is not None and not rule.automatic
                assert permissions.flags[f"allow_{event.value}"] == expected

    def test_terminal_has_no_actions(self):
        permissions = permissions_for(DocumentFamily.BILL, BillStatus.PAID)
        assert permissions.terminal is True
        assert permissions.actions == []
        assert not any(permissions.flags.values())

    def test_automatic_event_not_exposed(self):
        permissions = permissions_for(DocumentFamily.BILL, "received")
        assert permissions.allows(BillEvent.RECORD_PAYMENT)
        assert not permissions.allows(BillEvent.MARK_OVERDUE)

    def test_unknown_status(self):
        with pytest.raises(InvalidTransitionError):
            permissions_for(DocumentFamily.BILL, "archived")


# ===== VERSIONES Y RESULTADOS =====

class TestTransitionContract:
    """Tests para el contrato de transition"""

    def test_stale_version_rejected(self):
        bill = build_document(DocumentFamily.BILL, "draft", version=3)

        with pytest.raises(StaleDocumentError) as exc_info:
            transition(bill, "receive", TransitionContext(expected_version=2))
        assert exc_info.value.current_version == 3

    def test_version_advances(self):
        bill = build_document(DocumentFamily.BILL, "draft", version=3)

        result = transition(bill, "receive", TransitionContext(expected_version=3))

        assert result.expected_version == 3
        assert result.new_version == 4
        assert result.previous_status == "draft"
        assert result.new_status == "received"

    def test_unknown_event(self):
        bill = build_document(DocumentFamily.BILL, "draft")
        with pytest.raises(InvalidTransitionError):
            transition(bill, "archive", TransitionContext(expected_version=0))

    def test_delete_draft(self):
        bill = build_document(DocumentFamily.BILL, "draft")

        result = transition(bill, BillEvent.DELETE, TransitionContext(expected_version=0))

        assert result.deleted is True
        assert result.new_status is None
        assert result.effects == []
        assert apply_result(bill, result) is None

    def test_apply_result(self):
        bill = build_document(DocumentFamily.BILL, "draft", payment_terms="NET_30", issue_date=date(2024, 1, 1))

        result = transition(bill, "receive", TransitionContext(expected_version=0))
        received = apply_result(bill, result)

        assert received.status == BillStatus.RECEIVED
        assert received.version == 1
        assert received.due_date == date(2024, 1, 31)

    def test_automatic_rule_not_requestable(self):
        """Test mark_overdue solo lo ejecuta reconcile"""
        bill = build_document(DocumentFamily.BILL, "received", due_date=date(2020, 1, 1))

        with pytest.raises(InvalidTransitionError):
            transition(bill, BillEvent.MARK_OVERDUE, TransitionContext(expected_version=0))

        result = reconcile(bill, date(2024, 1, 1))
        assert result.new_status == "overdue"

    def test_reconcile_without_matching_rule(self):
        bill = build_document(DocumentFamily.BILL, "draft", due_date=date(2020, 1, 1))
        assert reconcile(bill, date(2024, 1, 1)) is None

    def test_parse_document_rejects_other_family(self):
        with pytest.raises(Exception) as exc_info:
            parse_document(DocumentFamily.BILL, {"family": "INVOICE"})
        assert "INVOICE" in str(exc_info.value)


class TestStateMachineDefinition:
    """Tests para la construcción de tablas"""

    def test_duplicate_rule_rejected(self):
        with pytest.raises(ValueError):
            StateMachine(
                family=DocumentFamily.BILL,
                states=BillStatus,
                events=BillEvent,
                rules=[
                    Rule(BillStatus.DRAFT, BillEvent.RECEIVE, BillStatus.RECEIVED),
                    Rule(BillStatus.DRAFT, BillEvent.RECEIVE, BillStatus.VOID),
                ],
                initial=BillStatus.DRAFT
            )

    def test_automatic_rule_needs_condition(self):
        with pytest.raises(ValueError):
            StateMachine(
                family=DocumentFamily.BILL,
                states=BillStatus,
                events=BillEvent,
                rules=[Rule(BillStatus.RECEIVED, BillEvent.MARK_OVERDUE, BillStatus.OVERDUE, automatic=True)],
                initial=BillStatus.DRAFT
            )


# ===== ENDPOINTS =====

class TestLifecycleEndpoints:
    """Tests para los endpoints de ciclo de vida"""

    @pytest.fixture
    def bill_payload(self):
        return {
            "status": "draft",
            "version": 0,
            "line_items": [{"quantity": "10", "unit_price": "5", "is_inventory": True}],
        }

    def test_transition_endpoint(self, bill_payload):
        response = client.post("/lifecycle/BILL/transition", json={
            "document": bill_payload,
            "event": "receive",
            "context": {"expected_version": 0}
        })

        assert response.status_code == 200
        data = response.json()
        assert data["new_status"] == "received"
        assert data["new_version"] == 1
        kinds = [effect["kind"] for effect in data["effects"]]
        assert kinds == ["adjust_inventory", "update_counterparty_balance", "post_journal_entry"]

    def test_transition_endpoint_stale(self, bill_payload):
        response = client.post("/lifecycle/BILL/transition", json={
            "document": bill_payload,
            "event": "receive",
            "context": {"expected_version": 5}
        })
        assert response.status_code == 409

    def test_transition_endpoint_invalid_event(self, bill_payload):
        response = client.post("/lifecycle/BILL/transition", json={
            "document": bill_payload,
            "event": "record_payment",
            "context": {"expected_version": 0, "amount": "10"}
        })
        assert response.status_code == 409

    def test_reconcile_endpoint(self, bill_payload):
        bill_payload.update({"status": "received", "due_date": "2024-01-10"})

        response = client.post("/lifecycle/BILL/reconcile", json={
            "document": bill_payload, "as_of": "2024-02-01"
        })

        assert response.status_code == 200
        assert response.json()["new_status"] == "overdue"

    def test_reconcile_endpoint_nothing_due(self, bill_payload):
        response = client.post("/lifecycle/BILL/reconcile", json={
            "document": bill_payload, "as_of": "2024-02-01"
        })

        assert response.status_code == 200
        assert response.json() is None

    def test_permissions_endpoint(self):
        response = client.get("/lifecycle/ESTIMATE/permissions/sent")

        assert response.status_code == 200
        flags = response.json()["flags"]
        assert flags["allow_view"] is True
        assert flags["allow_expire"] is False
        assert flags["allow_edit"] is False

    def test_permissions_endpoint_unknown_status(self):
        response = client.get("/lifecycle/ESTIMATE/permissions/archived")
        assert response.status_code == 409

    def test_table_endpoint(self):
        response = client.get("/lifecycle/EXPENSE/table")

        assert response.status_code == 200
        rules = response.json()
        mark_paid = [rule for rule in rules if rule["event"] == "mark_paid"]
        assert mark_paid == [{
            "source": "approved", "event": "mark_paid",
            "targets": ["paid", "reimbursed"], "automatic": False
        }]
