from wordrec.services.recommendation.constants import (
    ALGORITHM_NAME,
    CACHE_KEY_PREFIX,
    DEFAULT_BEHAVIORAL_WEIGHT,
    DEFAULT_COMMUNITY_WEIGHT,
    DEFAULT_LINGUISTIC_WEIGHT,
    DEFAULT_SEMANTIC_WEIGHT,
)

__all__ = [
    "ALGORITHM_NAME",
    "CACHE_KEY_PREFIX",
    "DEFAULT_BEHAVIORAL_WEIGHT",
    "DEFAULT_SEMANTIC_WEIGHT",
    "DEFAULT_COMMUNITY_WEIGHT",
    "DEFAULT_LINGUISTIC_WEIGHT",
]
