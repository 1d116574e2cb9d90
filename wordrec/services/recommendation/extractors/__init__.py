from wordrec.services.recommendation.extractors.base import ExtractionContext, SignalExtractor
from wordrec.services.recommendation.extractors.behavioral import BehavioralExtractor
from wordrec.services.recommendation.extractors.community import CommunityExtractor
from wordrec.services.recommendation.extractors.linguistic import LinguisticExtractor
from wordrec.services.recommendation.extractors.semantic import SemanticExtractor

__all__ = [
    "ExtractionContext",
    "SignalExtractor",
    "BehavioralExtractor",
    "SemanticExtractor",
    "CommunityExtractor",
    "LinguisticExtractor",
]
