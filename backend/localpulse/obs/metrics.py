"""Central registry for Prometheus metrics used across the service."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNTER = Counter(
	"localpulse_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"localpulse_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SHARING_TOGGLES = Counter(
	"localpulse_sharing_toggles_total",
	"Location sharing toggles by outcome",
	["result"],
)

CONSENT_FAIL_CLOSED = Counter(
	"localpulse_consent_fail_closed_total",
	"Consent resolutions that hid locations because the store was unreadable",
)

PROJECTION_MEMBERS = Counter(
	"localpulse_projection_members_total",
	"Family members projected, by visibility",
	["visibility"],
)

PROXIMITY_ANNOTATIONS = Counter(
	"localpulse_proximity_annotations_total",
	"Proximity annotation calls, by viewer mode",
	["mode"],
)

REDIS_UP = Gauge("localpulse_redis_up", "Redis reachability from the readiness probe")
POSTGRES_UP = Gauge("localpulse_postgres_up", "Postgres reachability from the readiness probe")


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_sharing_toggle(result: str) -> None:
	SHARING_TOGGLES.labels(result=result).inc()


def inc_consent_fail_closed() -> None:
	CONSENT_FAIL_CLOSED.inc()


def inc_projection_member(visibility: str) -> None:
	PROJECTION_MEMBERS.labels(visibility=visibility).inc()


def inc_proximity_annotation(mode: str) -> None:
	PROXIMITY_ANNOTATIONS.labels(mode=mode).inc()


def mark_redis(ok: bool) -> None:
	REDIS_UP.set(1 if ok else 0)


def mark_postgres(ok: bool) -> None:
	POSTGRES_UP.set(1 if ok else 0)
