from wordrec.core.config import settings
from wordrec.core.exception import (
    CacheError,
    FeedbackError,
    RecommendationError,
    UserNotFoundError,
    WordNotFoundError,
    WordRecError,
)

from .security import security

__all__ = [
    "settings",
    "WordRecError",
    "UserNotFoundError",
    "WordNotFoundError",
    "RecommendationError",
    "FeedbackError",
    "CacheError",
    "security",
]
