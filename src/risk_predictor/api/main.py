import time
from dataclasses import dataclass
from typing import Dict, List, Tuple

from fastapi import FastAPI, HTTPException, Request
from loguru import logger
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from ..config import FEATURE_ORDER, load_settings
from ..inference import InferenceError, RiskModel, coerce_float, parse_float
from ..presentation import build_report
from ..utils import setup_logging
from .model_loader import load_model
from .observability import (
    RequestContextMiddleware,
    audit_prediction_event,
    observe_inference_latency,
    record_coerced_inputs,
)
from .schemas import BatchPredictionResponse, PredictionRequest, PredictionResponse

setup_logging()

app = FastAPI(title="Risk Predictor API", version="1.0.0")
app.add_middleware(RequestContextMiddleware)

SETTINGS = load_settings()
MODEL_VERSION = SETTINGS.model_version

model = load_model(SETTINGS.model_path, normalization=SETTINGS.normalization)


@dataclass(frozen=True)
class ScoredItem:
    values: Dict[str, float]
    coerced: List[str]
    score: float
    latency_ms: float


def _require_model() -> RiskModel:
    if model is None:
        raise HTTPException(status_code=503, detail="Model not loaded")
    return model


def read_form(payload: PredictionRequest) -> Tuple[Dict[str, float], List[str]]:
    """Coerce raw form fields to floats, collecting the ones that did not parse."""
    values: Dict[str, float] = {}
    coerced: List[str] = []
    for name in FEATURE_ORDER:
        raw = getattr(payload, name)
        if parse_float(raw) is None:
            coerced.append(name)
        values[name] = coerce_float(raw)

    if coerced:
        logger.warning("Unparseable input for {}, read as 0.0", ", ".join(coerced))
        record_coerced_inputs(coerced)
    return values, coerced


def _infer(handle: RiskModel, payload: PredictionRequest, request_id: str) -> ScoredItem:
    values, coerced = read_form(payload)

    start = time.perf_counter()
    try:
        score = handle.predict(values["age"], values["weight"], values["height"])
    except InferenceError as exc:
        infer_seconds = time.perf_counter() - start
        observe_inference_latency(model_version=MODEL_VERSION, outcome="error", seconds=infer_seconds)
        audit_prediction_event(
            request_id=request_id,
            model_version=MODEL_VERSION,
            latency_ms=infer_seconds * 1000.0,
            inputs=values,
            output={"error": str(exc)},
            error_type=type(exc).__name__,
        )
        raise HTTPException(status_code=500, detail=str(exc))

    infer_seconds = time.perf_counter() - start
    observe_inference_latency(model_version=MODEL_VERSION, outcome="success", seconds=infer_seconds)
    return ScoredItem(values=values, coerced=coerced, score=score, latency_ms=infer_seconds * 1000.0)


def _respond(item: ScoredItem, request_id: str) -> PredictionResponse:
    report = build_report(item.score, threshold=SETTINGS.risk_threshold)
    audit_prediction_event(
        request_id=request_id,
        model_version=MODEL_VERSION,
        latency_ms=item.latency_ms,
        inputs=item.values,
        output={"score": report.score, "progress": report.progress, "label": report.label},
    )
    return PredictionResponse(
        score=report.score,
        label=report.label,
        text=report.text,
        progress=report.progress,
        coerced_fields=item.coerced,
    )


@app.get("/health")
def health_check():
    _require_model()
    return {"status": "ok", "model_version": MODEL_VERSION}


@app.get("/metrics")
def metrics():
    # Prometheus scrape endpoint
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.post("/predict", response_model=PredictionResponse)
def predict_single(payload: PredictionRequest, request: Request):
    handle = _require_model()
    request_id = getattr(request.state, "request_id", "unknown")
    return _respond(_infer(handle, payload, request_id), request_id)


@app.post("/predict/batch", response_model=BatchPredictionResponse)
def predict_batch(payloads: List[PredictionRequest], request: Request):
    handle = _require_model()
    request_id = getattr(request.state, "request_id", "unknown")
    # Score every item before auditing any, so a failing item serves nothing.
    items = [_infer(handle, p, request_id) for p in payloads]
    return BatchPredictionResponse(
        predictions=[_respond(item, request_id) for item in items]
    )
