from __future__ import annotations

from prometheus_client import Counter, Histogram

# Registered once per process; scopes are told apart by the namespace label
EVALUATIONS = Counter(
    'matchpattern_evaluations_total',
    'Total scope evaluations',
    ['namespace', 'result']
)
LATENCY = Histogram(
    'matchpattern_evaluation_seconds',
    'Scope evaluation latency',
    ['namespace']
)


class ScopeMetrics:
    """Prometheus metrics for scope evaluations."""

    IN_SCOPE = "in_scope"
    OUT_OF_SCOPE = "out_of_scope"
    EXCLUDED = "excluded"

    def __init__(self, namespace: str = "default"):
        self.namespace = namespace
        self.evaluations = EVALUATIONS
        self.latency = LATENCY

    def record(self, result: str) -> None:
        self.evaluations.labels(namespace=self.namespace, result=result).inc()

    def observe_latency(self, seconds: float) -> None:
        self.latency.labels(namespace=self.namespace).observe(seconds)
