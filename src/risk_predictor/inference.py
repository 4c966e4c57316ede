"""
inference.py

Loads the bundled risk model into ONNX Runtime and scores
(age, weight, height) triples with it.

The model contract is fixed: one float32 input of shape (1, 3) ordered
[age, weight, height], already z-score normalized, and one float32 output
holding a single risk score. Shapes are not introspected at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import numpy as np
import onnxruntime as ort
from loguru import logger

from .config import DEFAULT_NORMALIZATION, Normalization


class RiskModelError(Exception):
    """Base class for model load/inference failures."""


class LoadError(RiskModelError):
    pass


class InferenceError(RiskModelError):
    pass


def normalize(value: float, mean: float, std: float) -> float:
    return (value - mean) / std


def parse_float(text: Any) -> Optional[float]:
    if text is None or isinstance(text, bool):
        return None
    if not isinstance(text, (int, float)):
        text = str(text)
    try:
        return float(text)
    except (ValueError, OverflowError):
        return None


def coerce_float(text: Any) -> float:
    """
    Parse caller input as a float. Anything that does not parse becomes 0.0.
    """
    value = parse_float(text)
    return 0.0 if value is None else value


def pack_features(
    age: float,
    weight: float,
    height: float,
    normalization: Normalization = DEFAULT_NORMALIZATION,
) -> np.ndarray:
    values = [
        normalize(np.float32(raw), np.float32(scale.mean), np.float32(scale.std))
        for raw, scale in zip((age, weight, height), normalization.scales())
    ]
    # native byte order, float32, [age, weight, height]
    return np.asarray([values], dtype=np.float32)


@dataclass(frozen=True)
class RiskModel:
    session: ort.InferenceSession
    input_name: str
    output_name: str
    source: Path
    normalization: Normalization = DEFAULT_NORMALIZATION

    def predict(self, age: float, weight: float, height: float) -> float:
        batch = pack_features(age, weight, height, self.normalization)
        try:
            outputs = self.session.run([self.output_name], {self.input_name: batch})
        except Exception as exc:
            raise InferenceError(f"Inference failed for {self.source}: {exc}") from exc

        out = np.asarray(outputs[0], dtype=np.float32).reshape(-1)
        if out.size != 1:
            raise InferenceError(
                f"Expected exactly 1 output value from {self.source}, got {out.size}"
            )
        if not np.isfinite(out[0]):
            raise InferenceError(
                f"Non-finite score {out[0]} from {self.source} for "
                f"age={age}, weight={weight}, height={height}"
            )
        return float(out[0])


def load(
    model_path: Union[str, Path],
    normalization: Normalization = DEFAULT_NORMALIZATION,
) -> RiskModel:
    """
    Read a model artifact fully into memory and build a ready-to-run handle.

    Raises LoadError if the file is missing, unreadable, or rejected by
    ONNX Runtime. The file itself is never modified.
    """
    path = Path(model_path)
    if not path.is_file():
        raise LoadError(f"Model file not found at {path}")

    try:
        payload = path.read_bytes()
    except OSError as exc:
        raise LoadError(f"Could not read model file {path}: {exc}") from exc

    try:
        session = ort.InferenceSession(payload, providers=["CPUExecutionProvider"])
        input_name = session.get_inputs()[0].name
        output_name = session.get_outputs()[0].name
    except Exception as exc:
        raise LoadError(f"Invalid model artifact {path}: {exc}") from exc

    logger.info("Model loaded from {} (input={}, output={})", str(path), input_name, output_name)
    return RiskModel(
        session=session,
        input_name=input_name,
        output_name=output_name,
        source=path,
        normalization=normalization,
    )


def predict(model: Optional[RiskModel], age: float, weight: float, height: float) -> float:
    if model is None:
        raise InferenceError("Model not loaded")
    return model.predict(age, weight, height)
