"""
Prometheus metrics collection for brandguard

Counters and histograms for rule validation, legacy migration,
upstream workflow calls and repository failures.
"""
from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Private registry so tests and embedding processes don't collide with the default one
REGISTRY = CollectorRegistry()


# =======================
# RULE ENGINE METRICS
# =======================

rule_validations_total = Counter(
    name="brandguard_rule_validations_total",
    documentation="Total number of rule set validations",
    labelnames=["status"],  # status: valid, invalid
    registry=REGISTRY,
)

rule_validation_issues_total = Counter(
    name="brandguard_rule_validation_issues_total",
    documentation="Total number of field-level validation issues reported",
    labelnames=["section"],
    registry=REGISTRY,
)

rule_migrations_total = Counter(
    name="brandguard_rule_migrations_total",
    documentation="Total number of V1 to V2 rule migrations",
    registry=REGISTRY,
)

# =======================
# UPSTREAM METRICS
# =======================

upstream_requests_total = Counter(
    name="brandguard_upstream_requests_total",
    documentation="Total number of upstream workflow operations by outcome",
    labelnames=["operation", "outcome"],  # outcome: success or a failure kind
    registry=REGISTRY,
)

upstream_request_duration_seconds = Histogram(
    name="brandguard_upstream_request_duration_seconds",
    documentation="Time spent waiting on the upstream workflow engine",
    labelnames=["operation"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 15.0, 30.0, 60.0],
    registry=REGISTRY,
)

# =======================
# PERSISTENCE METRICS
# =======================

repository_errors_total = Counter(
    name="brandguard_repository_errors_total",
    documentation="Total number of repository operations that failed",
    labelnames=["repository", "operation"],
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """All brandguard metrics in the Prometheus text exposition format"""
    return generate_latest(REGISTRY)


def track_duration(histogram: Histogram, **labels):
    """
    Time a block into a labelled histogram; exceptions are timed too

    Usage:
        with track_duration(upstream_request_duration_seconds, operation="evaluate"):
            response = client.post(...)
    """
    return histogram.labels(**labels).time()


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """Increment a counter, selecting the label set when labels are given"""
    if labels:
        counter.labels(**labels).inc(value)
    else:
        counter.inc(value)


def record_validation(passed: bool, issue_paths: list[str] | None = None) -> None:
    """
    Record the outcome of a rule set validation.

    Args:
        passed: Whether the rule set validated
        issue_paths: Dotted field paths of the reported issues
    """
    increment_counter(rule_validations_total, status="valid" if passed else "invalid")
    for path in issue_paths or []:
        section = path.split(".", 1)[0] or "(root)"
        increment_counter(rule_validation_issues_total, section=section)


def record_upstream_outcome(operation: str, outcome: str) -> None:
    """Record the classified outcome of an upstream operation."""
    increment_counter(upstream_requests_total, operation=operation, outcome=outcome)
