import pytest
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from risk_predictor.api import main
from risk_predictor.api.observability import SERVICE_NAME
from risk_predictor.inference import load


@pytest.fixture
def client():
    return TestClient(main.app)


@pytest.fixture
def loaded(monkeypatch, identity_model_path):
    monkeypatch.setattr(main, "model", load(identity_model_path))


@pytest.fixture
def unloaded(monkeypatch):
    monkeypatch.setattr(main, "model", None)


def test_health_without_model(client, unloaded):
    r = client.get("/health")
    assert r.status_code == 503
    assert r.json()["detail"] == "Model not loaded"


def test_health_with_model(client, loaded):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_predict_without_model_is_explicit_error(client, unloaded):
    r = client.post("/predict", json={"age": "7", "weight": "4.5", "height": "65"})
    assert r.status_code == 503


def test_predict_text_fields(client, loaded):
    r = client.post("/predict", json={"age": "7", "weight": "4.5", "height": "65"})
    assert r.status_code == 200
    body = r.json()
    assert body["score"] == 1.0
    assert body["label"] == "High Risk"
    assert body["text"] == "High Risk (Score: 1.0)"
    assert body["progress"] == 100
    assert body["coerced_fields"] == []


def test_predict_numeric_fields(client, loaded):
    r = client.post("/predict", json={"age": 5.0, "weight": 4.5, "height": 65.0})
    body = r.json()
    assert body["score"] == 0.0
    assert body["label"] == "Low Risk"
    assert body["progress"] == 0


def test_predict_reports_coerced_fields(client, loaded):
    # age "" -> 0.0 -> normalized -2.5
    r = client.post("/predict", json={"age": "", "weight": "heavy", "height": "65"})
    assert r.status_code == 200
    body = r.json()
    assert body["coerced_fields"] == ["age", "weight"]
    assert body["score"] == -2.5
    assert body["progress"] == 0


def test_predict_missing_fields_are_coerced(client, loaded):
    r = client.post("/predict", json={})
    assert r.status_code == 200
    assert r.json()["coerced_fields"] == ["age", "weight", "height"]


def test_predict_batch(client, loaded):
    r = client.post(
        "/predict/batch",
        json=[
            {"age": "5", "weight": "4.5", "height": "65"},
            {"age": "7", "weight": "4.5", "height": "65"},
        ],
    )
    assert r.status_code == 200
    scores = [p["score"] for p in r.json()["predictions"]]
    assert scores == [0.0, 1.0]


def test_inference_error_surfaces(client, monkeypatch, two_output_model_path):
    monkeypatch.setattr(main, "model", load(two_output_model_path))
    r = client.post("/predict", json={"age": "7", "weight": "4.5", "height": "65"})
    assert r.status_code == 500
    assert "Expected exactly 1 output value" in r.json()["detail"]


def test_request_id_roundtrip(client, loaded):
    r = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"


def test_metrics_endpoint(client, loaded):
    client.post("/predict", json={"age": "7", "weight": "4.5", "height": "65"})
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "model_predictions_total" in r.text


@pytest.mark.parametrize("age", ["nan", "inf", "1e39"])
def test_non_finite_score_is_error(client, loaded, age):
    r = client.post("/predict", json={"age": age, "weight": "4.5", "height": "65"})
    assert r.status_code == 500
    assert "Non-finite score" in r.json()["detail"]


def _served(label):
    return REGISTRY.get_sample_value(
        "model_predictions_total",
        {"service": SERVICE_NAME, "model_version": main.MODEL_VERSION, "label": label},
    ) or 0.0


def test_failed_batch_serves_nothing(client, loaded):
    before = _served("Low Risk")
    r = client.post(
        "/predict/batch",
        json=[
            {"age": "5", "weight": "4.5", "height": "65"},
            {"age": "nan", "weight": "4.5", "height": "65"},
        ],
    )
    assert r.status_code == 500
    assert _served("Low Risk") == before
