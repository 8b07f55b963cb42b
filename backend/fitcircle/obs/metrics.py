"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNTER = Counter(
	"fitcircle_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"fitcircle_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SEARCH_QUERIES = Counter(
	"fitcircle_search_queries_total",
	"Discovery searches served",
	["mode"],
)

SEARCH_LATENCY = Histogram(
	"fitcircle_search_latency_seconds",
	"Discovery search latency in seconds",
	["mode"],
	buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

SEARCH_RESULTS = Gauge(
	"fitcircle_search_results_last",
	"Result count of the most recent search per mode",
	["mode"],
)

CONNECT_OUTCOMES = Counter(
	"fitcircle_connect_requests_total",
	"Connect requests by outcome",
	["outcome"],
)

RELATIONSHIP_TRANSITIONS = Counter(
	"fitcircle_relationship_transitions_total",
	"Relationship state transitions",
	["status"],
)

PROFILE_FIELDS_REDACTED = Counter(
	"fitcircle_profile_fields_redacted_total",
	"Profile fields replaced with the hidden marker",
	["surface"],
)

PROFILE_PREVIEWS = Counter(
	"fitcircle_profile_previews_total",
	"Profile previews served",
	["scope"],
)

PRIVACY_UPDATES = Counter(
	"fitcircle_privacy_updates_total",
	"Privacy settings writes",
	["source"],
)

PRIVACY_REJECTS = Counter(
	"fitcircle_privacy_rejects_total",
	"Privacy settings writes rejected by validation",
)

STORE_FAILURES = Counter(
	"fitcircle_store_failures_total",
	"Store operations that failed or timed out",
	["operation"],
)

AUDIT_FAILURES = Counter(
	"fitcircle_audit_failures_total",
	"Audit stream appends that were dropped",
	["stream"],
)

HEALTH_REDIS = Gauge("fitcircle_health_redis_ok", "Redis readiness flag")
HEALTH_POSTGRES = Gauge("fitcircle_health_postgres_ok", "Postgres readiness flag")


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_search_query(mode: str, results: int) -> None:
	SEARCH_QUERIES.labels(mode=mode).inc()
	SEARCH_RESULTS.labels(mode=mode).set(results)


def observe_search_latency(mode: str, latency_seconds: float) -> None:
	SEARCH_LATENCY.labels(mode=mode).observe(latency_seconds)


def inc_connect(outcome: str) -> None:
	CONNECT_OUTCOMES.labels(outcome=outcome).inc()


def inc_relationship_transition(status: str) -> None:
	RELATIONSHIP_TRANSITIONS.labels(status=status).inc()


def inc_fields_redacted(surface: str, count: int) -> None:
	if count > 0:
		PROFILE_FIELDS_REDACTED.labels(surface=surface).inc(count)


def inc_profile_preview(scope: str) -> None:
	PROFILE_PREVIEWS.labels(scope=scope).inc()


def inc_privacy_update(source: str) -> None:
	PRIVACY_UPDATES.labels(source=source).inc()


def inc_privacy_reject() -> None:
	PRIVACY_REJECTS.inc()


def inc_store_failure(operation: str) -> None:
	STORE_FAILURES.labels(operation=operation).inc()


def inc_audit_failure(stream: str) -> None:
	AUDIT_FAILURES.labels(stream=stream).inc()


def mark_redis(ok: bool) -> None:
	HEALTH_REDIS.set(1 if ok else 0)


def mark_postgres(ok: bool) -> None:
	HEALTH_POSTGRES.set(1 if ok else 0)
