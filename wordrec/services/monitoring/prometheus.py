import logging

from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

# Recommendation requests
recommendation_requests = Counter(
    "wordrec_recommendation_requests_total",
    "Recommendation requests served",
    ["recommendation_type", "from_cache"],
)

recommendation_latency = Histogram(
    "wordrec_recommendation_generation_seconds",
    "Time spent generating recommendations on a cache miss",
    ["recommendation_type"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Signal extractors
extractor_duration = Histogram(
    "wordrec_extractor_duration_seconds",
    "Signal extractor run time",
    ["extractor"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

extractor_candidates = Histogram(
    "wordrec_extractor_candidates",
    "Candidates returned per extractor run",
    ["extractor"],
    buckets=[0, 1, 2, 5, 10, 20, 50],
)

extractor_failures = Counter(
    "wordrec_extractor_failures_total",
    "Extractor runs that failed or timed out",
    ["extractor", "reason"],
)

# Feedback
feedback_events = Counter(
    "wordrec_feedback_events_total", "Feedback events recorded", ["feedback_type", "status"]
)

# Cache
cache_lookups = Counter(
    "wordrec_cache_lookups_total", "Recommendation cache lookups", ["recommendation_type", "result"]
)


class RecommendationMonitoring:
    """Prometheus instrumentation of the recommendation pipeline"""

    def observe_extractor(
        self, extractor: str, duration: float, candidates: int, status: str = "ok"
    ) -> None:
        extractor_duration.labels(extractor=extractor).observe(duration)
        if status == "ok":
            extractor_candidates.labels(extractor=extractor).observe(candidates)
        else:
            extractor_failures.labels(extractor=extractor, reason=status).inc()

    def record_request(self, recommendation_type: str, from_cache: bool) -> None:
        recommendation_requests.labels(
            recommendation_type=recommendation_type, from_cache=str(from_cache).lower()
        ).inc()

    def record_cache_lookup(self, recommendation_type: str, hit: bool) -> None:
        cache_lookups.labels(
            recommendation_type=recommendation_type, result="hit" if hit else "miss"
        ).inc()

    def record_feedback(self, feedback_type: str, success: bool = True) -> None:
        feedback_events.labels(
            feedback_type=feedback_type, status="success" if success else "failed"
        ).inc()

    def observe_generation(self, recommendation_type: str, duration: float) -> None:
        recommendation_latency.labels(recommendation_type=recommendation_type).observe(duration)


monitoring = RecommendationMonitoring()


def get_monitoring_service() -> RecommendationMonitoring:
    return monitoring
