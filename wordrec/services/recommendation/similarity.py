from abc import ABC, abstractmethod

from wordrec.models.word import Word


class SimilarityScorer(ABC):
    """Supplies a relatedness score in [0, 1] between two words"""

    @abstractmethod
    def score(self, source: Word, candidate: Word) -> float: ...


class KeywordOverlapSimilarity(SimilarityScorer):
    """Jaccard overlap of extracted keywords, with a bonus for a shared category.

    Words without keywords fall back to ``floor`` so that category or part of
    speech matches still rank above nothing.
    """

    def __init__(self, category_bonus: float = 0.2, floor: float = 0.3) -> None:
        self.category_bonus = category_bonus
        self.floor = floor

    def score(self, source: Word, candidate: Word) -> float:
        source_keywords = set(source.extracted_keywords)
        candidate_keywords = set(candidate.extracted_keywords)
        union = source_keywords | candidate_keywords

        if union:
            similarity = len(source_keywords & candidate_keywords) / len(union)
        else:
            similarity = 0.0
        similarity = max(similarity, self.floor)

        if source.category_id and source.category_id == candidate.category_id:
            similarity += self.category_bonus

        return min(1.0, similarity)
