"""In-process request metrics and alert threshold evaluation.

Keeps a bounded sample of recent request outcomes and computes the
figures the deployment config alerts on: error rate (fraction of failed
requests) and p99 latency in milliseconds. Tool calls served over HTTP
and agent session turns both feed the same recorder; token_usage only
grows when a responder reports tokens. gpu_utilization is accepted in
the config but has no in-process source, so it is never reported.
"""

import math
import threading
from collections import deque
from dataclasses import dataclass, field

from agent_ops.config.deployment import AlertThresholds, MetricKind, MonitoringConfig

DEFAULT_SAMPLE_SIZE = 1000


@dataclass
class MetricsSnapshot:
    request_count: int
    error_count: int
    error_rate: float
    p99_latency_ms: float
    token_usage: int
    breaches: list[str] = field(default_factory=list)

    def to_dict(self, kinds: frozenset[MetricKind] | None = None) -> dict:
        values = {
            MetricKind.REQUEST_COUNT: ("request_count", self.request_count),
            MetricKind.ERROR_RATE: ("error_rate", self.error_rate),
            MetricKind.LATENCY: ("p99_latency_ms", self.p99_latency_ms),
            MetricKind.TOKEN_USAGE: ("token_usage", self.token_usage),
        }
        out = {}
        for kind, (name, value) in values.items():
            if kinds is None or kind in kinds:
                out[name] = value
        out["breaches"] = list(self.breaches)
        return out


def percentile(samples: list[float], pct: float) -> float:
    """Nearest-rank percentile; 0.0 for an empty sample."""
    if not samples:
        return 0.0
    ordered = sorted(samples)
    rank = max(1, math.ceil(pct / 100 * len(ordered)))
    return ordered[rank - 1]


class MetricsRecorder:

    def __init__(self, sample_size: int = DEFAULT_SAMPLE_SIZE):
        self._lock = threading.Lock()
        self._outcomes: deque[tuple[bool, float]] = deque(maxlen=sample_size)
        self._request_count = 0
        self._token_usage = 0

    def record(self, success: bool, latency_ms: float, tokens: int = 0) -> None:
        with self._lock:
            self._outcomes.append((success, latency_ms))
            self._request_count += 1
            self._token_usage += tokens

    def reset(self) -> None:
        with self._lock:
            self._outcomes.clear()
            self._request_count = 0
            self._token_usage = 0

    def snapshot(self, thresholds: AlertThresholds | None = None) -> MetricsSnapshot:
        with self._lock:
            outcomes = list(self._outcomes)
            request_count = self._request_count
            token_usage = self._token_usage

        errors = sum(1 for ok, _ in outcomes if not ok)
        error_rate = round(errors / len(outcomes), 4) if outcomes else 0.0
        p99 = percentile([latency for _, latency in outcomes], 99)

        breaches = []
        if thresholds is not None and outcomes:
            if error_rate > thresholds.error_rate:
                breaches.append(f"error_rate {error_rate} > {thresholds.error_rate}")
            if p99 > thresholds.p99_latency:
                breaches.append(f"p99_latency {p99}ms > {thresholds.p99_latency}ms")

        return MetricsSnapshot(
            request_count=request_count,
            error_count=errors,
            error_rate=error_rate,
            p99_latency_ms=p99,
            token_usage=token_usage,
            breaches=breaches,
        )

    def evaluate(self, monitoring: MonitoringConfig) -> MetricsSnapshot:
        return self.snapshot(monitoring.alerting.thresholds)


_recorder = MetricsRecorder()


def get_recorder() -> MetricsRecorder:
    return _recorder
