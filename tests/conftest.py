import pytest
from fastapi.testclient import TestClient

import config
import main
from crop_catalog import CropCatalogEntry


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self.text = "" if payload is None else str(payload)

    def json(self):
        return self._payload


@pytest.fixture
def make_crop():
    def _make(**overrides):
        fields = {
            "id": "test-crop",
            "name": "Test Crop",
            "suitable_regions": ["Punjab"],
            "suitable_soil_types": ["Loamy"],
            "min_land_size": 1.0,
            "growing_duration_days": 120,
            "season": "Rabi (Winter)",
            "expected_yield_per_acre": 40,
            "water_requirement": "Medium",
        }
        fields.update(overrides)
        return CropCatalogEntry(**fields)

    return _make


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(config, "MODEL_LOAD_DELAY", 0.0)
    with TestClient(main.app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client):
    res = client.post("/login", json={"username": config.API_USERNAME, "password": config.API_PASSWORD})
    assert res.status_code == 200
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


@pytest.fixture
def fake_response():
    return FakeResponse
