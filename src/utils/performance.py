"""
Performance monitoring utilities for recurring pattern detection.

This module provides a tracker for detection runs, recording:
- Total execution time
- Per-stage time (grouping, clustering, interval analysis, pattern building)
- Transaction, cluster and pattern counts
"""

import time
import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

SLOW_DETECTION_WARNING_MS = 5000
SLOW_DETECTION_ERROR_MS = 15000


@dataclass
class DetectionPerformanceMetrics:
    """Container for detection run performance metrics."""
    operation_name: str
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None
    elapsed_ms: Optional[float] = None
    transaction_count: int = 0
    merchant_groups: int = 0
    clusters_identified: int = 0
    clusters_rejected: int = 0
    patterns_detected: int = 0
    stage_ms: Dict[str, float] = field(default_factory=dict)

    def finish(self):
        """Mark the operation as finished and calculate elapsed time."""
        self.end_time = time.time()
        self.elapsed_ms = (self.end_time - self.start_time) * 1000

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary for logging."""
        return {
            'operation_name': self.operation_name,
            'elapsed_ms': self.elapsed_ms,
            'transaction_count': self.transaction_count,
            'merchant_groups': self.merchant_groups,
            'clusters_identified': self.clusters_identified,
            'clusters_rejected': self.clusters_rejected,
            'patterns_detected': self.patterns_detected,
            'stage_ms': dict(self.stage_ms),
            'timestamp': datetime.now(timezone.utc).isoformat()
        }

    def log_metrics(self):
        """Log the performance metrics."""
        metrics = self.to_dict()
        elapsed = self.elapsed_ms or 0.0

        if elapsed > SLOW_DETECTION_ERROR_MS:
            logger.error(
                f"SLOW DETECTION: {self.operation_name} took {elapsed:.2f}ms",
                extra={'detection_metrics': metrics}
            )
        elif elapsed > SLOW_DETECTION_WARNING_MS:
            logger.warning(
                f"Slow detection: {self.operation_name} took {elapsed:.2f}ms",
                extra={'detection_metrics': metrics}
            )
        else:
            logger.info(
                f"Detection completed: {self.operation_name} in {elapsed:.2f}ms",
                extra={'detection_metrics': metrics}
            )

        if self.stage_ms:
            breakdown = ', '.join(f"{name}: {ms:.2f}ms" for name, ms in self.stage_ms.items())
            logger.debug(
                f"Detection breakdown for {self.operation_name}: {breakdown}",
                extra={'detection_metrics': metrics}
            )


class StageTimer:
    """Context manager that records one stage's duration on a metrics object."""

    def __init__(self, metrics: DetectionPerformanceMetrics, stage: str):
        self.metrics = metrics
        self.stage = stage
        self.start_time: float = 0.0

    def __enter__(self):
        self.start_time = time.time()
        logger.debug(f"Starting stage: {self.stage}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed_ms = (time.time() - self.start_time) * 1000
        self.metrics.stage_ms[self.stage] = self.metrics.stage_ms.get(self.stage, 0.0) + elapsed_ms
        logger.debug(f"Completed stage {self.stage} in {elapsed_ms:.2f}ms")


class DetectionPerformanceTracker:
    """
    Context manager for detection run performance tracking.

    Usage:
        with DetectionPerformanceTracker("recurring_pattern_detection") as tracker:
            tracker.set_transaction_count(len(transactions))

            with tracker.stage('merchant_grouping'):
                groups = grouper.group(transactions)

            with tracker.stage('amount_clustering'):
                clusters = clusterer.cluster(group)
            tracker.add_clusters_identified(len(clusters))
    """

    def __init__(self, operation_name: str):
        self.metrics = DetectionPerformanceMetrics(operation_name=operation_name)

    def __enter__(self):
        logger.info(f"Starting detection: {self.metrics.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.metrics.finish()
        self.metrics.log_metrics()

    def stage(self, stage_name: str) -> StageTimer:
        """Create a context manager for tracking a stage."""
        return StageTimer(self.metrics, stage_name)

    def set_transaction_count(self, count: int):
        self.metrics.transaction_count = count

    def set_merchant_groups(self, count: int):
        self.metrics.merchant_groups = count

    def add_clusters_identified(self, count: int):
        self.metrics.clusters_identified += count

    def add_cluster_rejected(self):
        self.metrics.clusters_rejected += 1

    def set_patterns_detected(self, count: int):
        self.metrics.patterns_detected = count
