"""
Tests para la numeración sugerida de documentos
"""

import pytest
import threading
from concurrent.futures import ThreadPoolExecutor
from fastapi.testclient import TestClient

from docflow.main import app
from docflow.modules.lifecycle.schemas import DocumentFamily
from docflow.modules.numbering.service import NumberingService, next_number, parse_number


client = TestClient(app)


class TestNextNumber:
    """Tests para next_number (función pura)"""

    @pytest.mark.parametrize("family,expected", [
        (DocumentFamily.BILL, "BILL-0001"),
        (DocumentFamily.INVOICE, "INV-0001"),
        (DocumentFamily.CREDIT_NOTE, "CN-0001"),
        (DocumentFamily.DEBIT_NOTE, "DN-0001"),
        (DocumentFamily.ESTIMATE, "EST-0001"),
        (DocumentFamily.EXPENSE, "EXP-0001"),
    ])
    def test_first_number(self, family, expected):
        assert next_number(family) == expected

    def test_follows_highest_issued(self):
        issued = ["BILL-0007", "BILL-0003", "INV-0100", "borrador", "BILL-12"]
        assert next_number(DocumentFamily.BILL, issued) == "BILL-0013"

    def test_grows_past_padding(self):
        assert next_number(DocumentFamily.ESTIMATE, ["EST-9999"]) == "EST-10000"

    def test_parse_number(self):
        assert parse_number(DocumentFamily.CREDIT_NOTE, "CN-0042") == 42
        assert parse_number(DocumentFamily.CREDIT_NOTE, "DN-0042") is None
        assert parse_number(DocumentFamily.CREDIT_NOTE, "CN-00X2") is None


class TestNumberingService:
    """Tests para NumberingService"""

    def test_next_number_does_not_advance(self):
        service = NumberingService()

        first = service.next_number(DocumentFamily.INVOICE)
        second = service.next_number(DocumentFamily.INVOICE)

        assert first == second
        assert first.next_number == "INV-0001"
        assert first.current_sequence == 1

    def test_observe_advances(self):
        service = NumberingService()

        assert service.observe(DocumentFamily.INVOICE, "INV-0010") is True
        assert service.next_number(DocumentFamily.INVOICE).next_number == "INV-0011"

    def test_observe_never_goes_back(self):
        service = NumberingService()
        service.observe(DocumentFamily.BILL, "BILL-0010")
        service.observe(DocumentFamily.BILL, "BILL-0004")

        assert service.get_sequence(DocumentFamily.BILL).current_number == 10

    def test_observe_interleaved_with_higher_number(self):
        """Test un observe más alto que ocurre a mitad de otro no se pierde"""
        service = NumberingService()
        original_sequence = service._sequence
        competitors = []

        def read_then_race(family):
            sequence = original_sequence(family)
            if not competitors:
                competitor = threading.Thread(target=service.observe, args=(family, "BILL-0007"))
                competitors.append(competitor)
                competitor.start()
                competitor.join(timeout=0.05)
            return sequence

        service._sequence = read_then_race
        service.observe(DocumentFamily.BILL, "BILL-0005")
        competitors[0].join(timeout=5)

        assert not competitors[0].is_alive()
        assert service.get_sequence(DocumentFamily.BILL).current_number == 7

    def test_concurrent_observe_keeps_highest(self):
        service = NumberingService()
        numbers = [f"INV-{n:04d}" for n in range(1, 201)]
        numbers.reverse()

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda number: service.observe(DocumentFamily.INVOICE, number), numbers))

        assert all(results)
        assert service.get_sequence(DocumentFamily.INVOICE).current_number == 200

    def test_observe_ignores_foreign_format(self):
        service = NumberingService()

        assert service.observe(DocumentFamily.BILL, "FV000123") is False
        assert service.get_sequence(DocumentFamily.BILL).current_number == 0


class TestNumberingEndpoints:

    def test_next_endpoint(self):
        response = client.get("/numbering/DEBIT_NOTE/next")

        assert response.status_code == 200
        assert response.json()["prefix"] == "DN"

    def test_observe_endpoint(self):
        response = client.post("/numbering/EXPENSE/observe", json={"number": "EXP-0500"})

        assert response.status_code == 200
        data = response.json()
        assert data["accepted"] is True
        assert data["current_number"] >= 500
        assert client.get("/numbering/EXPENSE/next").json()["next_number"] == f"EXP-{data['current_number'] + 1:04d}"

    def test_unknown_family(self):
        response = client.get("/numbering/RECEIPT/next")
        assert response.status_code == 422
