"""
On-device style risk scoring: three body measurements in, one model score out.
"""

from .config import DEFAULT_NORMALIZATION, FeatureScale, Normalization, Settings, load_settings
from .inference import (
    InferenceError,
    LoadError,
    RiskModel,
    RiskModelError,
    coerce_float,
    load,
    normalize,
    predict,
)
from .presentation import RiskReport, build_report

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_NORMALIZATION",
    "FeatureScale",
    "InferenceError",
    "LoadError",
    "Normalization",
    "RiskModel",
    "RiskModelError",
    "RiskReport",
    "Settings",
    "build_report",
    "coerce_float",
    "load",
    "load_settings",
    "normalize",
    "predict",
]
