"""
Tests de la aplicación: endpoints base y middleware
"""

import pytest
from pathlib import Path
from fastapi.testclient import TestClient

from docflow.main import app
from docflow.core.config import Settings


client = TestClient(app)


class TestApp:

    def test_root(self):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Docflow API is running"
        assert data["currency"] == "USD"

    def test_health(self):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_request_id_generated(self):
        response = client.get("/health")
        assert response.headers["X-Request-ID"]
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_request_id_propagated(self):
        response = client.get("/", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"


class TestSettings:

    def test_debug_parsed_from_string(self):
        assert Settings(DEBUG="false").DEBUG is False
        assert Settings(DEBUG="'yes'").DEBUG is True

    def test_quantum_follows_places(self):
        settings = Settings(CURRENCY_DECIMAL_PLACES=0)
        assert str(settings.money_quantum) == "1"
        assert str(Settings().money_quantum) == "0.01"


class TestPackaging:

    def test_metadata_does_not_point_to_design_notes(self):
        pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"
        if not pyproject.exists():
            pytest.skip("pyproject.toml no disponible fuera del repositorio")

        content = pyproject.read_text(encoding="utf-8")
        assert "SPEC_FULL.md" not in content
        assert 'name = "docflow"' in content
