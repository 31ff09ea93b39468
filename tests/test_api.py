from fastapi.testclient import TestClient

import config
import farming_plan
import main
import weather_service
from weather_service import WeatherData, WeatherError


def _weather(temperature=33.0, humidity=72.0):
    return WeatherData(city_name="Lahore", temperature=temperature, humidity=humidity, condition="Clouds")


def _unavailable(region):
    raise WeatherError("Weather API key not configured")


def test_login(client):
    ok = client.post("/login", json={"username": config.API_USERNAME, "password": config.API_PASSWORD})
    assert ok.status_code == 200
    assert ok.json()["token_type"] == "bearer"

    bad = client.post("/login", json={"username": config.API_USERNAME, "password": "wrong"})
    assert bad.status_code == 401


def test_protected_routes_need_token(client):
    assert client.post("/recommend", json={"region": "Punjab", "soil_type": "Loamy", "land_size": 2}).status_code == 401
    assert client.post("/classify", json={}, headers={"Authorization": "Bearer garbage"}).status_code == 401
    assert client.get("/weather", params={"region": "Punjab"}, headers={"Authorization": "Token x"}).status_code == 401


def test_public_lookups(client):
    assert client.get("/regions").json() == ["Punjab", "Sindh", "KPK", "Balochistan"]
    assert "Sandy Loam" in client.get("/soil-types").json()
    crops = client.get("/crops").json()
    assert len(crops) == 8
    assert crops[0]["id"] == "wheat"


def test_recommend_with_custom_catalog(client, auth_headers):
    body = {
        "region": "Punjab",
        "soil_type": "Loamy",
        "land_size": 2.0,
        "month": 11,
        "catalog": [
            {
                "id": "wheat",
                "name": "Wheat",
                "suitable_regions": ["Punjab"],
                "suitable_soil_types": ["Loamy"],
                "min_land_size": 1.0,
                "season": "Rabi (Winter)",
            },
            {
                "id": "dates",
                "name": "Dates",
                "suitable_regions": ["Balochistan"],
                "suitable_soil_types": ["Sandy"],
                "min_land_size": 5.0,
                "season": "Kharif (Summer)",
            },
        ],
    }
    res = client.post("/recommend", json=body, headers=auth_headers)
    assert res.status_code == 200
    data = res.json()
    assert data["season"] == "rabi"
    assert data["season_display"] == "Rabi (Winter)"
    assert data["total_crops_evaluated"] == 2
    # dates: 0 region, 0 soil, 0 land, off season 3 -> still listed
    assert [r["crop"]["id"] for r in data["recommendations"]] == ["wheat", "dates"]
    top = data["recommendations"][0]
    assert top["suitability_score"] == 105.0
    assert top["score_percentage"] == "105%"
    assert top["suitability_level"] == "Excellent"
    assert data["recommendations"][1]["suitability_score"] == 3.0


def test_recommend_defaults_to_builtin_catalog(client, auth_headers):
    res = client.post(
        "/recommend",
        json={"region": "Sindh", "soil_type": "Clay", "land_size": 3, "month": 7},
        headers=auth_headers,
    )
    assert res.status_code == 200
    assert res.json()["total_crops_evaluated"] == 8


def test_recommend_rejects_bad_month(client, auth_headers):
    res = client.post(
        "/recommend",
        json={"region": "Sindh", "soil_type": "Clay", "land_size": 3, "month": 13},
        headers=auth_headers,
    )
    assert res.status_code == 422


def test_classify(client, auth_headers):
    res = client.post(
        "/classify",
        json={"nitrogen": 90, "phosphorus": 42, "potassium": 43, "temperature": 20.9, "humidity": 82, "ph": 6.5, "rainfall": 202.9},
        headers=auth_headers,
    )
    assert res.status_code == 200
    data = res.json()
    assert data["model_state"] == "ready"
    assert len(data["predictions"]) == 22
    assert data["predictions"][0]["crop_key"] == "rice"


def test_classify_top_n_with_defaults(client, auth_headers):
    res = client.post("/classify", json={"top_n": 5}, headers=auth_headers)
    assert res.status_code == 200
    assert len(res.json()["predictions"]) == 5


def test_soil_defaults_and_rainfall(client):
    soil = client.get("/soil-defaults", params={"soil_type": "Clay"}).json()
    assert soil == {"soil_type": "Clay", "N": 60, "P": 45, "K": 55, "pH": 7.0}
    rain = client.get("/rainfall-estimate", params={"region": "KPK"}).json()
    assert rain == {"region": "KPK", "rainfall": 800}


def test_weather(client, auth_headers, monkeypatch):
    monkeypatch.setattr(main, "fetch_current_weather", lambda region: _weather())
    res = client.get("/weather", params={"region": "Punjab"}, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["city_name"] == "Lahore"


def test_weather_failure_is_bad_gateway(client, auth_headers, monkeypatch):
    monkeypatch.setattr(main, "fetch_current_weather", _unavailable)
    res = client.get("/weather", params={"region": "Punjab"}, headers=auth_headers)
    assert res.status_code == 502
    assert "not configured" in res.json()["detail"]


def test_suggested_features_with_weather(client, auth_headers, monkeypatch):
    monkeypatch.setattr(main, "fetch_current_weather", lambda region: _weather(38.0, 30.0))
    data = client.get(
        "/suggested-features", params={"region": "Sindh", "soil_type": "Sandy"}, headers=auth_headers
    ).json()
    assert data["weather_available"] is True
    assert data["temperature"] == 38.0
    assert data["humidity"] == 30.0
    assert data["nitrogen"] == 20
    assert data["ph"] == 5.5
    assert data["rainfall"] == 200


def test_suggested_features_without_weather(client, auth_headers, monkeypatch):
    monkeypatch.setattr(main, "fetch_current_weather", _unavailable)
    data = client.get("/suggested-features", headers=auth_headers).json()
    assert data["weather_available"] is False
    assert data["temperature"] == 25
    assert data["humidity"] == 60
    assert data["rainfall"] == 500


def test_suggested_features_with_garbled_weather(client, auth_headers, monkeypatch, fake_response):
    monkeypatch.setattr(config, "WEATHER_API_KEY", "test-key")
    payload = {"name": "Karachi", "main": {"temp": "n/a", "humidity": 70}}
    monkeypatch.setattr(weather_service.requests, "get", lambda *a, **kw: fake_response(200, payload))

    res = client.get("/suggested-features", params={"region": "Sindh"}, headers=auth_headers)
    assert res.status_code == 200
    data = res.json()
    assert data["weather_available"] is False
    assert data["temperature"] == 25
    assert data["humidity"] == 60


def test_farming_plan_fixed_schedule(client, auth_headers):
    res = client.post(
        "/farming-plan",
        json={
            "crop_id": "wheat",
            "region": "Punjab",
            "soil_type": "Loamy",
            "land_size": 2,
            "sowing_date": "2025-11-01T00:00:00",
            "use_ai": False,
        },
        headers=auth_headers,
    )
    assert res.status_code == 200
    plan = res.json()
    assert plan["crop_name"] == "Wheat"
    assert plan["harvest_date"].startswith("2026-03-01")
    assert len(plan["activities"]) == 10
    assert plan["is_ai_generated"] is False


def test_farming_plan_without_api_key_falls_back(client, auth_headers, monkeypatch):
    monkeypatch.setattr(config, "GEMINI_API_KEY", "")
    res = client.post(
        "/farming-plan",
        json={
            "crop_id": "millet",
            "crop_name": "Millet",
            "growing_duration_days": 80,
            "region": "Sindh",
            "soil_type": "Sandy",
            "land_size": 1,
            "sowing_date": "2025-07-01T00:00:00",
        },
        headers=auth_headers,
    )
    assert res.status_code == 200
    plan = res.json()
    assert len(plan["activities"]) == 13
    assert plan["activities"][-1]["type"] == "harvesting"
    assert plan["is_ai_generated"] is False


def test_farming_plan_unknown_crop(client, auth_headers):
    res = client.post(
        "/farming-plan",
        json={"crop_id": "millet", "region": "Sindh", "soil_type": "Sandy", "land_size": 1, "use_ai": False},
        headers=auth_headers,
    )
    assert res.status_code == 404


def test_health(client):
    data = client.get("/health").json()
    assert data["status"] == "active"
    assert data["model_state"] == "ready"


def test_model_loads_in_worker_thread(monkeypatch):
    calls = []

    async def fake_run_in_threadpool(func, *args, **kwargs):
        calls.append(func)
        return func(*args, **kwargs)

    monkeypatch.setattr(config, "MODEL_LOAD_DELAY", 0.0)
    monkeypatch.setattr(main, "run_in_threadpool", fake_run_in_threadpool)
    monkeypatch.setattr(main, "classifier", main.CropClassifier())

    with TestClient(main.app) as test_client:
        assert test_client.get("/health").json()["model_state"] == "ready"
    assert calls == [main.classifier.load_model]


def test_farming_plan_with_unusable_generator_answer(client, auth_headers, monkeypatch, fake_response):
    text = '[{"title": "Someday", "daysFromSowing": 100000000000, "type": "harvesting"}]'
    payload = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    monkeypatch.setattr(config, "GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(farming_plan.requests, "post", lambda *a, **kw: fake_response(200, payload))

    res = client.post(
        "/farming-plan",
        json={"crop_id": "onion", "region": "Sindh", "soil_type": "Loamy", "land_size": 1},
        headers=auth_headers,
    )
    assert res.status_code == 200
    plan = res.json()
    assert plan["is_ai_generated"] is False
    assert len(plan["activities"]) == 13
