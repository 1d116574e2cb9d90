from wordrec.models.base import Base
from wordrec.models.interaction import ActivityEvent, FavoriteWord, WordView
from wordrec.models.language import Language
from wordrec.models.recommendation_profile import RecommendationFeedback, UserRecommendationProfile
from wordrec.models.user import User, UserLearningLanguage
from wordrec.models.word import Category, Word, WordKeyword, WordMeaning

__all__ = [
    "Base",
    "ActivityEvent",
    "Category",
    "FavoriteWord",
    "Language",
    "RecommendationFeedback",
    "User",
    "UserLearningLanguage",
    "UserRecommendationProfile",
    "Word",
    "WordKeyword",
    "WordMeaning",
    "WordView",
]
