"""
Vidtube Prometheus metrics. Exposed by the ASGI app mounted at ``/metrics``.
"""
from __future__ import annotations

from prometheus_client import Counter, Histogram

FAULTS_RENDERED = Counter(
    "vidtube_faults_rendered_total",
    "Error envelopes sent by the boundary layer",
    ["status_code"],
)

REQUEST_LATENCY = Histogram(
    "vidtube_request_seconds",
    "Wall time spent handling HTTP requests",
    ["method"],
)

TOGGLE_OUTCOMES = Counter(
    "vidtube_toggle_outcomes_total",
    "Like/subscription toggle results",
    ["kind", "outcome"],
)
