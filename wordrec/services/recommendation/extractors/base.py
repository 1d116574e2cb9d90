from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar

from wordrec.models.recommendation_profile import UserRecommendationProfile
from wordrec.models.user import User
from wordrec.models.word import Word
from wordrec.schemas.recommendation import RecommendationCategory, RecommendationResult


@dataclass
class ExtractionContext:
    """Everything an extractor needs to know about the requesting user"""

    user_id: str
    profile: UserRecommendationProfile
    native_language: str | None = None
    learning_languages: list[str] = field(default_factory=list)
    languages: list[str] | None = None
    categories: list[str] | None = None

    @classmethod
    def for_user(
        cls,
        user: User,
        profile: UserRecommendationProfile,
        languages: list[str] | None = None,
        categories: list[str] | None = None,
    ) -> "ExtractionContext":
        return cls(
            user_id=user.id,
            profile=profile,
            native_language=user.native_language,
            learning_languages=list(user.learning_languages),
            languages=languages or None,
            categories=categories or None,
        )

    @property
    def known_languages(self) -> list[str]:
        """Native language first, then learning languages"""
        known = [self.native_language] if self.native_language else []
        for code in self.learning_languages:
            if code not in known:
                known.append(code)
        return known

    def accepts(self, word: Word) -> bool:
        """Whether a candidate passes the request's language and category filters"""
        if self.languages and word.language not in self.languages:
            return False
        if self.categories and word.category_id not in self.categories:
            return False
        return True


class SignalExtractor(ABC):
    """One independent scoring algorithm over one kind of evidence.

    Extractors never depend on each other. The aggregator runs them side by
    side and blends their output using the profile weights.
    """

    name: ClassVar[str]
    category: ClassVar[RecommendationCategory]

    @abstractmethod
    async def extract(self, context: ExtractionContext, limit: int) -> list[RecommendationResult]:
        """Return up to ``limit`` scored candidates, best first"""

    @abstractmethod
    async def score_candidate(self, context: ExtractionContext, word: Word) -> RecommendationResult:
        """Score one given word with the same rules ``extract`` uses"""

    def empty_result(self, word: Word, reason: str) -> RecommendationResult:
        return RecommendationResult(
            entry_id=word.id, score=0.0, reasons=[reason], category=self.category
        )

    @staticmethod
    def rank(results: list[RecommendationResult], limit: int) -> list[RecommendationResult]:
        """Stable sort by score descending, then truncate"""
        return sorted(results, key=lambda r: r.score, reverse=True)[:limit]
