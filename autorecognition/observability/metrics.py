from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

# counters
recognition_attempts_total = Counter(
    "autorecognition_attempts_total",
    "total number of recognition attempts by outcome",
    ["outcome"],
)

recognition_failures_total = Counter(
    "autorecognition_failures_total",
    "total number of failed attempts by error kind",
    ["kind"],
)

retries_total = Counter(
    "autorecognition_retries_total",
    "total number of retries by pipeline stage",
    ["stage"],
)

# histograms
stage_duration_seconds = Histogram(
    "autorecognition_stage_duration_seconds",
    "pipeline stage duration in seconds",
    ["stage"],
    buckets=[0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# gauges
active_attempts = Gauge(
    "autorecognition_active_attempts", "number of in-flight recognition attempts"
)


def metrics_endpoint() -> Response:
    """prometheus metrics endpoint"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def record_attempt(outcome: str) -> None:
    """record a finished attempt (success, failed, cancelled)"""
    recognition_attempts_total.labels(outcome=outcome).inc()


def record_failure(kind: str) -> None:
    """record a failure kind"""
    recognition_failures_total.labels(kind=kind).inc()


def record_retry(stage: str) -> None:
    """record a retry"""
    retries_total.labels(stage=stage).inc()


def record_stage_duration(stage: str, duration: float) -> None:
    """record stage duration"""
    stage_duration_seconds.labels(stage=stage).observe(duration)
