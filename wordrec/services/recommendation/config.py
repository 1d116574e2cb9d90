import logging
from typing import ClassVar

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wordrec.services.recommendation import constants

logger = logging.getLogger(__name__)


class RecommendationConfig(BaseSettings):
    """Word recommendation settings"""

    model_config = SettingsConfigDict(
        env_prefix="RECO_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    ALGORITHM_NAME: ClassVar[str] = constants.ALGORITHM_NAME

    # Cache
    cache_ttl_seconds: int = Field(
        default=constants.CACHE_TTL_SECONDS, ge=60, le=86400, description="Recommendation cache TTL"
    )

    # Extractor execution
    extractor_timeout_seconds: float = Field(
        default=constants.EXTRACTOR_TIMEOUT_SECONDS, gt=0, le=60, description="Per-extractor timeout"
    )

    # Default weights for new profiles
    behavioral_weight: float = Field(default=constants.DEFAULT_BEHAVIORAL_WEIGHT, ge=0.0, le=1.0)
    semantic_weight: float = Field(default=constants.DEFAULT_SEMANTIC_WEIGHT, ge=0.0, le=1.0)
    community_weight: float = Field(default=constants.DEFAULT_COMMUNITY_WEIGHT, ge=0.0, le=1.0)
    linguistic_weight: float = Field(default=constants.DEFAULT_LINGUISTIC_WEIGHT, ge=0.0, le=1.0)

    # Windows and caps
    behavioral_view_window_days: int = Field(
        default=constants.BEHAVIORAL_VIEW_WINDOW_DAYS, ge=1, le=365
    )
    behavioral_view_cap: int = Field(default=constants.BEHAVIORAL_VIEW_CAP, ge=1, le=1000)
    semantic_recent_words: int = Field(default=constants.SEMANTIC_RECENT_WORDS, ge=1, le=100)
    community_window_days: int = Field(default=constants.COMMUNITY_WINDOW_DAYS, ge=1, le=90)
    community_activity_cap: int = Field(default=constants.COMMUNITY_ACTIVITY_CAP, ge=1, le=10000)

    # Optional collaborators
    use_keyword_similarity: bool = Field(
        default=False, description="Score semantic relatedness from keyword overlap"
    )
    dispatch_profile_refresh: bool = Field(
        default=True, description="Queue a profile refresh task after feedback"
    )

    @model_validator(mode="after")
    def warn_on_zero_weights(self) -> "RecommendationConfig":
        if not any(
            (self.behavioral_weight, self.semantic_weight, self.community_weight, self.linguistic_weight)
        ):
            logger.warning("[RECO CONFIG] All default weights are 0, mixed results will be empty")
        return self

    @property
    def default_weights(self) -> dict[str, float]:
        """Default blend weights keyed by signal"""
        return {
            "behavioral": self.behavioral_weight,
            "semantic": self.semantic_weight,
            "community": self.community_weight,
            "linguistic": self.linguistic_weight,
        }

    def log_configuration(self) -> None:
        logger.info(
            f"Recommendation configuration loaded: cache_ttl={self.cache_ttl_seconds}s, "
            f"extractor_timeout={self.extractor_timeout_seconds}s, "
            f"keyword_similarity={self.use_keyword_similarity}"
        )


reco_config = RecommendationConfig()

reco_config.log_configuration()
