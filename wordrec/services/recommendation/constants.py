"""Word recommendation constants"""

from typing import Final

# Algorithm
ALGORITHM_NAME: Final[str] = "intelligent_v1"

# Default blend weights
DEFAULT_BEHAVIORAL_WEIGHT: Final[float] = 0.4
DEFAULT_SEMANTIC_WEIGHT: Final[float] = 0.3
DEFAULT_COMMUNITY_WEIGHT: Final[float] = 0.2
DEFAULT_LINGUISTIC_WEIGHT: Final[float] = 0.1

# Proficiency
MIN_PROFICIENCY: Final[int] = 1
MAX_PROFICIENCY: Final[int] = 5
DEFAULT_PROFICIENCY: Final[int] = 1
BEGINNER_MAX_LEVEL: Final[int] = 2
ADVANCED_MIN_LEVEL: Final[int] = 5

# Request limits
MAX_PERSONAL_LIMIT: Final[int] = 20
MAX_TRENDING_LIMIT: Final[int] = 10
MAX_LINGUISTIC_LIMIT: Final[int] = 15

# Behavioral signal
BEHAVIORAL_VIEW_WINDOW_DAYS: Final[int] = 30
BEHAVIORAL_VIEW_CAP: Final[int] = 50
BEHAVIORAL_OVERFETCH_FACTOR: Final[int] = 3
BEHAVIORAL_BASE_SCORE: Final[float] = 0.1
BEHAVIORAL_CATEGORY_BONUS: Final[float] = 0.3
BEHAVIORAL_LANGUAGE_BONUS: Final[float] = 0.2
BEHAVIORAL_KEYWORD_BONUS: Final[float] = 0.1
BEHAVIORAL_KEYWORD_CAP: Final[float] = 0.3
BEHAVIORAL_POPULAR_BONUS: Final[float] = 0.1
POPULAR_TRANSLATION_THRESHOLD: Final[int] = 5

# Semantic signal
SEMANTIC_RECENT_WORDS: Final[int] = 10
SEMANTIC_BASELINE_RELATEDNESS: Final[float] = 0.7
SEMANTIC_SCORE_FACTOR: Final[float] = 0.8
SEMANTIC_SCORE_OFFSET: Final[float] = 0.2
RELATION_SAME_CATEGORY: Final[str] = "same_category"
RELATION_SHARED_KEYWORDS: Final[str] = "shared_keywords"
RELATION_SAME_PART_OF_SPEECH: Final[str] = "same_part_of_speech"

# Community signal
COMMUNITY_WINDOW_DAYS: Final[int] = 7
COMMUNITY_ACTIVITY_CAP: Final[int] = 100
COMMUNITY_TARGET_FACTOR: Final[int] = 2
COMMUNITY_BASE_SCORE: Final[float] = 0.1
COMMUNITY_INTERACTION_BONUS: Final[float] = 0.1
COMMUNITY_INTERACTION_CAP: Final[float] = 0.6
COMMUNITY_NEW_WORD_BONUS: Final[float] = 0.3
COMMUNITY_NEW_WORD_DAYS: Final[int] = 7

# Linguistic signal
LINGUISTIC_BASE_SCORE: Final[float] = 0.2
LINGUISTIC_SINGLE_SENSE_BONUS: Final[float] = 0.4
LINGUISTIC_FREQUENT_BONUS: Final[float] = 0.3
LINGUISTIC_MULTI_SENSE_BONUS: Final[float] = 0.5
LINGUISTIC_KEYWORD_RICH_BONUS: Final[float] = 0.3
LINGUISTIC_CORE_BONUS: Final[float] = 0.3
BEGINNER_MIN_TRANSLATIONS: Final[int] = 1
CORE_TRANSLATION_THRESHOLD: Final[int] = 3

# Trending
TRENDING_SCORE_DIVISOR: Final[float] = 10.0
TRENDING_PERIOD_HOURS: Final[dict[str, int]] = {"24h": 24, "7d": 24 * 7, "30d": 24 * 30}

# Standalone linguistic recommendations
LEVEL_BEGINNER_MIN_TRANSLATIONS: Final[int] = 3
LEVEL_INTERMEDIATE_MAX_SENSES: Final[int] = 3
LEVEL_SCORE_BASE: Final[float] = 0.8
LEVEL_SCORE_STEP: Final[float] = 0.04

# Explanation
EXPLAIN_ALTERNATIVES: Final[int] = 3

# Cache
CACHE_KEY_PREFIX: Final[str] = "recommendations"
CACHE_TTL_SECONDS: Final[int] = 3600

# Extractor execution
EXTRACTOR_TIMEOUT_SECONDS: Final[float] = 5.0
WEIGHT_ROUNDING_DIGITS: Final[int] = 9

# Profile refresh
PEAK_HOURS_COUNT: Final[int] = 3
CONTENT_TYPES_COUNT: Final[int] = 3
SEMANTIC_INTERESTS_COUNT: Final[int] = 20
ACTIVE_PROFILE_WINDOW_DAYS: Final[int] = 1

# Stats
STATS_TOP_COUNT: Final[int] = 5
