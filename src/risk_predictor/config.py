# src/risk_predictor/config.py
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from loguru import logger

from .utils import load_config

FEATURE_ORDER: Tuple[str, str, str] = ("age", "weight", "height")

DEFAULT_MODEL_PATH = "models/risk_model.onnx"
DEFAULT_MODEL_VERSION = "dev"
DEFAULT_RISK_THRESHOLD = 0.5
DEFAULT_CONFIG_PATH = "params.yaml"


@dataclass(frozen=True)
class FeatureScale:
    mean: float
    std: float


@dataclass(frozen=True)
class Normalization:
    """
    Per-feature (mean, std) pairs the bundled model was trained with.
    Swap these together with the model artifact.
    """
    age: FeatureScale = FeatureScale(mean=5.0, std=2.0)
    weight: FeatureScale = FeatureScale(mean=4.5, std=0.7)
    height: FeatureScale = FeatureScale(mean=65.0, std=5.0)

    def scales(self) -> Tuple[FeatureScale, FeatureScale, FeatureScale]:
        return self.age, self.weight, self.height


DEFAULT_NORMALIZATION = Normalization()


@dataclass(frozen=True)
class Settings:
    model_path: Path = Path(DEFAULT_MODEL_PATH)
    model_version: str = DEFAULT_MODEL_VERSION
    risk_threshold: float = DEFAULT_RISK_THRESHOLD
    normalization: Normalization = field(default_factory=Normalization)


def _parse_scale(name: str, raw: Any, default: FeatureScale) -> FeatureScale:
    if raw is None:
        return default
    if not isinstance(raw, dict):
        raise ValueError(f"normalization.{name} must be a mapping with mean/std, got {raw!r}")
    try:
        mean = float(raw.get("mean", default.mean))
        std = float(raw.get("std", default.std))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"normalization.{name} has non-numeric mean/std: {raw!r}") from exc
    return FeatureScale(mean=mean, std=std)


def parse_normalization(raw: Optional[Dict[str, Any]]) -> Normalization:
    if raw is None:
        return DEFAULT_NORMALIZATION
    if not isinstance(raw, dict):
        raise ValueError(f"normalization must be a mapping, got {raw!r}")
    defaults = DEFAULT_NORMALIZATION
    return Normalization(
        age=_parse_scale("age", raw.get("age"), defaults.age),
        weight=_parse_scale("weight", raw.get("weight"), defaults.weight),
        height=_parse_scale("height", raw.get("height"), defaults.height),
    )


def load_settings(config_path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Read params.yaml (or RISK_CONFIG) and apply MODEL_PATH / MODEL_VERSION
    env overrides. A missing config file yields the built-in defaults.
    """
    path = Path(config_path or os.getenv("RISK_CONFIG", DEFAULT_CONFIG_PATH))

    config: Dict[str, Any] = {}
    if path.exists():
        config = load_config(path)
    else:
        logger.debug("Config file {} not found, using defaults", str(path))

    model_cfg = config.get("model") or {}
    if not isinstance(model_cfg, dict):
        raise ValueError(f"model section must be a mapping, got {model_cfg!r}")

    model_path = os.getenv("MODEL_PATH", model_cfg.get("path", DEFAULT_MODEL_PATH))
    model_version = os.getenv("MODEL_VERSION", model_cfg.get("version", DEFAULT_MODEL_VERSION))

    try:
        threshold = float(model_cfg.get("risk_threshold", DEFAULT_RISK_THRESHOLD))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"model.risk_threshold must be numeric, got {model_cfg.get('risk_threshold')!r}") from exc

    return Settings(
        model_path=Path(model_path),
        model_version=str(model_version),
        risk_threshold=threshold,
        normalization=parse_normalization(config.get("normalization")),
    )
