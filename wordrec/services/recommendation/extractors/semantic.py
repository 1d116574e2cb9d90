import logging
from dataclasses import dataclass

from wordrec.models.word import Word
from wordrec.schemas.recommendation import RecommendationCategory, RecommendationResult
from wordrec.services.recommendation.constants import (
    RELATION_SAME_CATEGORY,
    RELATION_SAME_PART_OF_SPEECH,
    RELATION_SHARED_KEYWORDS,
    SEMANTIC_BASELINE_RELATEDNESS,
    SEMANTIC_RECENT_WORDS,
    SEMANTIC_SCORE_FACTOR,
    SEMANTIC_SCORE_OFFSET,
)
from wordrec.services.recommendation.extractors.base import ExtractionContext, SignalExtractor
from wordrec.services.recommendation.repositories import WordRepository, WordViewRepository
from wordrec.services.recommendation.similarity import SimilarityScorer

logger = logging.getLogger(__name__)


def relationship_between(source: Word, candidate: Word) -> str | None:
    """First relationship that holds between two words, if any"""
    if source.category_id and source.category_id == candidate.category_id:
        return RELATION_SAME_CATEGORY
    if set(source.extracted_keywords) & set(candidate.extracted_keywords):
        return RELATION_SHARED_KEYWORDS
    if set(source.parts_of_speech) & set(candidate.parts_of_speech):
        return RELATION_SAME_PART_OF_SPEECH
    return None


@dataclass
class Relation:
    source: Word
    relationship: str
    relatedness: float


class SemanticExtractor(SignalExtractor):
    """Recommends words related to the user's most recently viewed words"""

    name = "semantic"
    category = RecommendationCategory.SEMANTIC

    def __init__(
        self,
        word_repo: WordRepository,
        view_repo: WordViewRepository,
        similarity: SimilarityScorer | None = None,
        recent_words: int = SEMANTIC_RECENT_WORDS,
    ):
        self.word_repo = word_repo
        self.view_repo = view_repo
        self.similarity = similarity
        self.recent_words = recent_words

    def relatedness(self, source: Word, candidate: Word) -> float:
        if self.similarity is None:
            return SEMANTIC_BASELINE_RELATEDNESS
        return self.similarity.score(source, candidate)

    def score(self, source: Word, candidate: Word, relationship: str) -> RecommendationResult:
        relatedness = self.relatedness(source, candidate)
        return RecommendationResult(
            entry_id=candidate.id,
            score=min(1.0, relatedness * SEMANTIC_SCORE_FACTOR + SEMANTIC_SCORE_OFFSET),
            reasons=[f'Similar to "{source.word}"', f"Related concept: {relationship}"],
            category=self.category,
            metadata={
                "related_word": source.word,
                "related_word_id": source.id,
                "relationship": relationship,
                "similarity": relatedness,
            },
        )

    async def extract(self, context: ExtractionContext, limit: int) -> list[RecommendationResult]:
        recent = await self.view_repo.get_recent_words(context.user_id, self.recent_words)
        if not recent:
            return []

        seen: set[str] = set()
        results: list[RecommendationResult] = []
        for source in recent:
            try:
                related = await self.word_repo.find_related(source, limit)
            except Exception as e:
                logger.warning(f"[SEMANTIC] Related word lookup failed for '{source.word}': {e}")
                continue

            for candidate in related:
                if candidate.id in seen:
                    continue
                seen.add(candidate.id)
                if not context.accepts(candidate):
                    continue
                relationship = relationship_between(source, candidate) or RELATION_SAME_CATEGORY
                results.append(self.score(source, candidate, relationship))

        return self.rank(results, limit)

    async def relations(self, context: ExtractionContext, word: Word) -> list[Relation]:
        """The user's recent words that relate to ``word``, strongest first"""
        recent = await self.view_repo.get_recent_words(context.user_id, self.recent_words)
        relations: list[Relation] = []
        seen: set[str] = set()
        for source in recent:
            if source.id == word.id or source.id in seen:
                continue
            seen.add(source.id)
            relationship = relationship_between(source, word)
            if relationship is not None:
                relations.append(Relation(source, relationship, self.relatedness(source, word)))
        return sorted(relations, key=lambda r: r.relatedness, reverse=True)

    async def score_candidate(self, context: ExtractionContext, word: Word) -> RecommendationResult:
        relations = await self.relations(context, word)
        if not relations:
            return self.empty_result(word, "Not related to recently viewed words")
        best = relations[0]
        return self.score(best.source, word, best.relationship)
