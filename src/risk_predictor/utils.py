# src/risk_predictor/utils.py
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from loguru import logger


def load_config(config_path: Union[str, Path] = "params.yaml") -> Dict[str, Any]:
    """Load YAML configuration."""
    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f)
    return config or {}


def setup_logging(level: Optional[str] = None) -> None:
    """
    Structured JSON logs to stdout.
    """
    logger.remove()
    logger.add(
        sink=sys.stdout,
        serialize=True,
        level=level or os.getenv("LOG_LEVEL", "INFO"),
        backtrace=False,
        diagnose=False,
    )
