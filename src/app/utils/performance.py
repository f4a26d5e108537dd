import logging
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

# Prometheus Metrics
TASK_DURATION_SECONDS = Histogram(
    "tripmuse_task_duration_seconds",
    "Time spent performing the task",
    ["task_name"],
)

TASK_ITEMS = Histogram(
    "tripmuse_task_items",
    "Number of items handled by one task run",
    ["task_name"],
    buckets=(0, 1, 3, 10, 30, 100, 300, 1000),
)

UPLOAD_RESULTS = Counter(
    "tripmuse_media_uploads_total",
    "Per-item media upload attempts by outcome",
    ["outcome"],
)


class PerformanceMonitor:
    """Helper to measure and report how long a task took."""

    def __init__(self, label: str):
        self.label = label
        self.start_time = 0.0
        self.end_time = 0.0

    def start(self):
        self.start_time = time.perf_counter()

    def stop(self):
        self.end_time = time.perf_counter()

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def report(self, count: Optional[int] = None) -> str:
        TASK_DURATION_SECONDS.labels(task_name=self.label).observe(self.duration)
        count_str = ""
        if count is not None:
            TASK_ITEMS.labels(task_name=self.label).observe(count)
            count_str = f" (N={count})"
        return f"[{self.label}]{count_str} Time: {self.duration:.4f}s"


@contextmanager
def monitored(label: str) -> Iterator[PerformanceMonitor]:
    """Times the block; the caller reports with the item count it knows about."""
    monitor = PerformanceMonitor(label)
    monitor.start()
    try:
        yield monitor
    finally:
        monitor.stop()


def record_upload(success: bool) -> None:
    UPLOAD_RESULTS.labels(outcome="success" if success else "failure").inc()
