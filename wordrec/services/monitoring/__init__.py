from wordrec.services.monitoring.prometheus import (
    RecommendationMonitoring,
    get_monitoring_service,
    monitoring,
)

__all__ = ["RecommendationMonitoring", "get_monitoring_service", "monitoring"]
