import math
from dataclasses import dataclass

import numpy as np

from .config import DEFAULT_RISK_THRESHOLD

HIGH_RISK = "High Risk"
LOW_RISK = "Low Risk"


@dataclass(frozen=True)
class RiskReport:
    score: float
    label: str
    text: str
    progress: int  # 0..100


def score_to_progress(score: float) -> int:
    """Scale a score to an integer percentage, truncated and clamped to [0, 100]."""
    if math.isnan(score):
        return 0
    if math.isinf(score):
        return 100 if score > 0 else 0
    return max(0, min(100, int(score * 100)))


def build_report(score: float, threshold: float = DEFAULT_RISK_THRESHOLD) -> RiskReport:
    label = HIGH_RISK if score > threshold else LOW_RISK
    return RiskReport(
        score=score,
        label=label,
        # model output is float32; print its shortest float32 form
        text=f"{label} (Score: {str(np.float32(score))})",
        progress=score_to_progress(score),
    )
