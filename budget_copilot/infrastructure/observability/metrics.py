"""Prometheus metrics for decision outcomes, compute latency and lifecycle events"""

from prometheus_client import Counter, Histogram

# Decision metrics
decision_counter = Counter(
    "budget_decision_total",
    "Decisions computed",
    ["risk_level", "command_type"],
)

compute_duration_histogram = Histogram(
    "budget_decision_compute_seconds",
    "Time to read a snapshot and persist a decision",
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

excluded_entity_counter = Counter(
    "budget_excluded_entities_total",
    "Malformed records left out of a computation",
    ["kind"],  # account | transaction | debt | bill | income
)

lock_conflict_counter = Counter(
    "budget_compute_lock_conflicts_total",
    "Computations rejected because another one held the user's lock",
)

acknowledgement_counter = Counter(
    "budget_acknowledgements_total",
    "Acknowledge requests by outcome",
    ["outcome"],  # acknowledged | already_acknowledged | superseded
)

recompute_counter = Counter(
    "budget_recompute_checks_total",
    "Recompute trigger evaluations",
    ["triggered"],  # true | false
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_decision(risk_level: str, command_type: str, excluded_kinds=()) -> None:
    decision_counter.labels(risk_level=risk_level, command_type=command_type).inc()
    for kind in excluded_kinds:
        excluded_entity_counter.labels(kind=kind).inc()


def record_recompute_check(triggered: bool) -> None:
    recompute_counter.labels(triggered="true" if triggered else "false").inc()
