"""
Anomaly Detection.

Flags statistically outlying points per metric with a population z-score:

    z = |value - mean| / stdev        (stdev with divisor N)

A series with zero spread has ``z = 0`` for every point.  Metrics with
fewer than two points are not scored.
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from financial_ingest.config import AnalysisConfig
from financial_ingest.logging_setup import get_logger
from financial_ingest.schema import AnomalyFlag, FinancialSeries

logger = get_logger("anomaly")


class AnomalyDetector:
    """Z-score anomaly detector.

    Parameters
    ----------
    config:
        Supplies ``anomaly_z_threshold``.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None) -> None:
        self._threshold = (config or AnalysisConfig()).anomaly_z_threshold

    def detect(self, series: FinancialSeries) -> List[AnomalyFlag]:
        flags: List[AnomalyFlag] = []
        for metric, values in series.items():
            if len(values) < 2:
                continue

            arr = np.asarray(values, dtype=float)
            mean = float(np.mean(arr))
            std_dev = float(np.std(arr, ddof=0))
            # Spread at rounding-noise level counts as a constant series
            if std_dev > 1e-12 * max(1.0, abs(mean)):
                z_scores = np.abs(arr - mean) / std_dev
            else:
                z_scores = np.zeros_like(arr)

            for i, value in enumerate(values):
                z = float(z_scores[i])
                flag = AnomalyFlag(
                    metric=metric,
                    value=value,
                    is_anomaly=z > self._threshold,
                    period_index=i,
                    z_score=z,
                )
                if flag.is_anomaly:
                    logger.warning(
                        "Anomaly: %s period %d value=%s z=%.2f (mean=%.2f, sd=%.2f)",
                        metric.value, i, value, z, mean, std_dev,
                    )
                flags.append(flag)

        logger.info(
            "Anomaly pass — points=%d, anomalies=%d",
            len(flags), sum(f.is_anomaly for f in flags),
        )
        return flags
