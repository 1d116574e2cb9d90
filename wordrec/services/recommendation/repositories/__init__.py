from wordrec.services.recommendation.repositories.cache_repository import (
    RecommendationCacheRepository,
)
from wordrec.services.recommendation.repositories.interaction_repository import (
    ActivityRepository,
    FavoriteRepository,
    TrendingTarget,
    WordViewRepository,
)
from wordrec.services.recommendation.repositories.profile_repository import ProfileRepository
from wordrec.services.recommendation.repositories.user_repository import (
    LanguageRepository,
    UserRepository,
)
from wordrec.services.recommendation.repositories.word_repository import WordRepository

__all__ = [
    "WordRepository",
    "WordViewRepository",
    "FavoriteRepository",
    "ActivityRepository",
    "TrendingTarget",
    "UserRepository",
    "LanguageRepository",
    "ProfileRepository",
    "RecommendationCacheRepository",
]
