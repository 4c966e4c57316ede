from pathlib import Path
from typing import Optional

from loguru import logger

from ..config import DEFAULT_NORMALIZATION, Normalization
from ..inference import LoadError, RiskModel, load


def load_model(
    model_path: Path,
    normalization: Normalization = DEFAULT_NORMALIZATION,
) -> Optional[RiskModel]:
    try:
        return load(model_path, normalization=normalization)
    except LoadError as exc:
        logger.error("Model unavailable, serving in degraded mode: {}", exc)
        return None
