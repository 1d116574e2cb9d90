import asyncio
import logging
import time
from collections import Counter
from collections.abc import Callable
from datetime import datetime, timedelta

from wordrec.core.exception import (
    RecommendationError,
    UserNotFoundError,
    WordNotFoundError,
    WordRecError,
)
from wordrec.models.recommendation_profile import UserRecommendationProfile
from wordrec.models.user import User
from wordrec.schemas.recommendation import (
    AlgorithmWeights,
    FactorBreakdown,
    FeedbackRequest,
    FeedbackResponse,
    FeedbackType,
    LinguisticRecommendationRequest,
    PersonalRecommendationRequest,
    PreferencesResponse,
    PreferencesUpdateRequest,
    RecommendationCategory,
    RecommendationExplanation,
    RecommendationResult,
    RecommendationsResponse,
    RecommendationStats,
    RecommendationType,
    RelatedWord,
    TrendingRecommendationRequest,
    clamp_score,
)
from wordrec.services.monitoring.prometheus import RecommendationMonitoring, monitoring
from wordrec.services.recommendation.aggregator import MixedAggregator
from wordrec.services.recommendation.config import RecommendationConfig, reco_config
from wordrec.services.recommendation.constants import (
    BEGINNER_MAX_LEVEL,
    EXPLAIN_ALTERNATIVES,
    LEVEL_SCORE_BASE,
    LEVEL_SCORE_STEP,
    POPULAR_TRANSLATION_THRESHOLD,
    STATS_TOP_COUNT,
    TRENDING_PERIOD_HOURS,
    TRENDING_SCORE_DIVISOR,
)
from wordrec.services.recommendation.extractors import (
    BehavioralExtractor,
    CommunityExtractor,
    ExtractionContext,
    LinguisticExtractor,
    SemanticExtractor,
    SignalExtractor,
)
from wordrec.services.recommendation.extractors.semantic import relationship_between
from wordrec.services.recommendation.feedback import FeedbackProcessor
from wordrec.services.recommendation.formatter import ResponseFormatter
from wordrec.services.recommendation.repositories import (
    ActivityRepository,
    FavoriteRepository,
    LanguageRepository,
    ProfileRepository,
    RecommendationCacheRepository,
    UserRepository,
    WordRepository,
    WordViewRepository,
)
from wordrec.services.recommendation.similarity import KeywordOverlapSimilarity

logger = logging.getLogger(__name__)

POSITIVE_FEEDBACK = (FeedbackType.LIKE.value, FeedbackType.FAVORITE.value, FeedbackType.VIEW.value)


def profile_weights(profile: UserRecommendationProfile) -> AlgorithmWeights:
    return AlgorithmWeights(
        behavioral=profile.behavioral_weight,
        semantic=profile.semantic_weight,
        community=profile.community_weight,
        linguistic=profile.linguistic_weight,
    )


def level_label(level: int) -> str:
    if level <= BEGINNER_MAX_LEVEL:
        return "beginner"
    if level == 3:
        return "intermediate"
    return "advanced"


class RecommendationService:
    """Personalized word recommendations"""

    def __init__(
        self,
        user_repo: UserRepository,
        profile_repo: ProfileRepository,
        word_repo: WordRepository,
        view_repo: WordViewRepository,
        favorite_repo: FavoriteRepository,
        activity_repo: ActivityRepository,
        language_repo: LanguageRepository,
        cache_repo: RecommendationCacheRepository,
        config: RecommendationConfig = reco_config,
        refresh_dispatcher: Callable[[str], object] | None = None,
        metrics: RecommendationMonitoring = monitoring,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.user_repo = user_repo
        self.profile_repo = profile_repo
        self.word_repo = word_repo
        self.activity_repo = activity_repo
        self.cache_repo = cache_repo
        self.config = config
        self.metrics = metrics
        self.clock = clock

        similarity = KeywordOverlapSimilarity() if config.use_keyword_similarity else None
        self.behavioral = BehavioralExtractor(
            word_repo,
            view_repo,
            favorite_repo,
            view_window_days=config.behavioral_view_window_days,
            view_cap=config.behavioral_view_cap,
            clock=clock,
        )
        self.semantic = SemanticExtractor(
            word_repo, view_repo, similarity=similarity, recent_words=config.semantic_recent_words
        )
        self.community = CommunityExtractor(
            word_repo,
            activity_repo,
            window_days=config.community_window_days,
            activity_cap=config.community_activity_cap,
            clock=clock,
        )
        self.linguistic = LinguisticExtractor(word_repo)

        self.aggregator = MixedAggregator(
            [self.behavioral, self.semantic, self.community, self.linguistic],
            timeout_seconds=config.extractor_timeout_seconds,
            metrics=metrics,
        )
        self.formatter = ResponseFormatter(word_repo, language_repo, clock=clock)
        self.feedback = FeedbackProcessor(
            profile_repo,
            cache_repo,
            refresh_dispatcher=refresh_dispatcher if config.dispatch_profile_refresh else None,
            metrics=metrics,
            clock=clock,
        )

    @property
    def extractors(self) -> list[SignalExtractor]:
        return [self.behavioral, self.semantic, self.community, self.linguistic]

    def extractor_for(self, recommendation_type: RecommendationType) -> SignalExtractor:
        return {
            RecommendationType.PERSONAL: self.behavioral,
            RecommendationType.SEMANTIC: self.semantic,
            RecommendationType.TRENDING: self.community,
            RecommendationType.LINGUISTIC: self.linguistic,
        }[recommendation_type]

    @property
    def default_weights(self) -> AlgorithmWeights:
        return AlgorithmWeights(**self.config.default_weights)

    async def _require_user(self, user_id: str) -> User:
        user = await self.user_repo.get_user_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def get_personal_recommendations(
        self, user_id: str, request: PersonalRecommendationRequest
    ) -> RecommendationsResponse:
        """Cached, personalized recommendations of the requested type.

        Requests with language or category filters neither read nor write the
        cache, since the cached set is keyed by user and type only.
        """
        rec_type = request.type
        use_cache = not request.has_filters

        if use_cache and not request.refresh:
            cached = await self.cache_repo.get(user_id, rec_type)
            if cached is not None and not cached.covers(request.limit):
                logger.info(
                    f"[CACHE] Cached {rec_type.value} set of user {user_id} holds "
                    f"{len(cached.recommendations)} items, {request.limit} requested"
                )
                cached = None
            self.metrics.record_cache_lookup(rec_type.value, hit=cached is not None)
            if cached is not None:
                self.metrics.record_request(rec_type.value, from_cache=True)
                return await self.formatter.build_response(
                    cached.recommendations[: request.limit],
                    rec_type.value,
                    from_cache=True,
                    generation_time_ms=cached.generation_time_ms,
                    weights=cached.weights,
                )

        user = await self._require_user(user_id)
        profile = await self.profile_repo.get_or_create(user_id)
        weights = profile_weights(profile)
        context = ExtractionContext.for_user(
            user, profile, languages=request.languages, categories=request.categories
        )

        start_time = time.perf_counter()
        results = await self._generate(context, rec_type, request.limit, weights)
        elapsed = time.perf_counter() - start_time
        generation_time_ms = int(elapsed * 1000)
        self.metrics.observe_generation(rec_type.value, elapsed)

        if use_cache:
            await self.cache_repo.put(
                user_id, rec_type, results, generation_time_ms, weights, requested_limit=request.limit
            )
        await self.profile_repo.touch_last_recommendation(user_id, self.clock())

        logger.info(
            f"[RECOMMENDATION] {len(results)} {rec_type.value} recommendations for user {user_id} "
            f"in {generation_time_ms}ms"
        )
        self.metrics.record_request(rec_type.value, from_cache=False)
        return await self.formatter.build_response(
            results,
            rec_type.value,
            from_cache=False,
            generation_time_ms=generation_time_ms,
            weights=weights,
        )

    async def _generate(
        self,
        context: ExtractionContext,
        rec_type: RecommendationType,
        limit: int,
        weights: AlgorithmWeights,
    ) -> list[RecommendationResult]:
        if rec_type == RecommendationType.MIXED:
            return await self.aggregator.aggregate(context, limit, weights)

        extractor = self.extractor_for(rec_type)
        try:
            return await extractor.extract(context, limit)
        except WordRecError:
            raise
        except Exception as e:
            logger.error(f"[RECOMMENDATION] {extractor.name} extraction failed: {e}", exc_info=True)
            raise RecommendationError(str(e), user_id=context.user_id) from e

    async def get_trending_recommendations(
        self, request: TrendingRecommendationRequest
    ) -> RecommendationsResponse:
        """Words with the most community activity over the period"""
        start_time = time.perf_counter()
        period = request.period.value
        since = self.clock() - timedelta(hours=TRENDING_PERIOD_HOURS[period])

        targets = await self.activity_repo.get_trending_targets(
            since, request.limit, region=request.region
        )
        words = await self.word_repo.get_approved_words([t.entry_id for t in targets])
        approved = {word.id for word in words}

        results = [
            RecommendationResult(
                entry_id=target.entry_id,
                score=min(1.0, target.interactions / TRENDING_SCORE_DIVISOR),
                reasons=[
                    f"{target.interactions} recent interactions",
                    f"Trending over {period}",
                    "Recently added word" if "word_created" in target.activity_types else "Popular",
                ],
                category=RecommendationCategory.COMMUNITY,
                metadata={
                    "interactions": target.interactions,
                    "trend_period": period,
                    "region": request.region,
                    "activity_types": target.activity_types,
                },
            )
            for target in targets
            if target.entry_id in approved
        ]

        return await self.formatter.build_response(
            results,
            RecommendationType.TRENDING.value,
            from_cache=False,
            generation_time_ms=int((time.perf_counter() - start_time) * 1000),
            weights=self.default_weights,
        )

    async def get_linguistic_recommendations(
        self, request: LinguisticRecommendationRequest
    ) -> RecommendationsResponse:
        """Words of one language whose complexity fits a level"""
        start_time = time.perf_counter()
        label = level_label(request.level)
        words = await self.word_repo.find_by_level(request.language, request.level, request.limit)

        results = [
            RecommendationResult(
                entry_id=word.id,
                score=LEVEL_SCORE_BASE + request.level * LEVEL_SCORE_STEP,
                reasons=[
                    f"Suited to {label} level",
                    f"Language: {request.language}",
                    "Popular word"
                    if (word.translation_count or 0) > POPULAR_TRANSLATION_THRESHOLD
                    else "Enriching word",
                ],
                category=RecommendationCategory.LINGUISTIC,
                metadata={
                    "language": request.language,
                    "level": request.level,
                    "difficulty": label,
                    "translation_count": word.translation_count or 0,
                },
            )
            for word in words
        ]

        return await self.formatter.build_response(
            results,
            RecommendationType.LINGUISTIC.value,
            from_cache=False,
            generation_time_ms=int((time.perf_counter() - start_time) * 1000),
            weights=self.default_weights,
        )

    async def record_feedback(self, user_id: str, request: FeedbackRequest) -> FeedbackResponse:
        await self._require_user(user_id)
        return await self.feedback.record(user_id, request)

    async def explain_recommendation(self, user_id: str, word_id: str) -> RecommendationExplanation:
        """Break the score of one word down into the four signals"""
        word = await self.word_repo.get_word_by_id(word_id)
        if word is None:
            raise WordNotFoundError(word_id)

        user = await self._require_user(user_id)
        profile = await self.profile_repo.get_or_create(user_id)
        weights = profile_weights(profile)
        context = ExtractionContext.for_user(user, profile)

        scored = await asyncio.gather(*(ex.score_candidate(context, word) for ex in self.extractors))
        factors = {
            ex.name: FactorBreakdown(score=result.score, details=result.reasons)
            for ex, result in zip(self.extractors, scored)
        }
        overall = clamp_score(
            sum(weights.for_category(ex.category) * r.score for ex, r in zip(self.extractors, scored))
        )

        relations = await self.semantic.relations(context, word)
        related_words = [
            RelatedWord(
                id=relation.source.id,
                word=relation.source.word,
                language=relation.source.language,
                similarity=relation.relatedness,
                reason=relation.relationship,
            )
            for relation in relations
        ]

        alternatives = await self.word_repo.find_related(word, EXPLAIN_ALTERNATIVES)
        alternative_results = [
            self.semantic.score(word, candidate, relationship_between(word, candidate) or "related")
            for candidate in alternatives
        ]

        return RecommendationExplanation(
            word_id=word.id,
            score=round(overall, 4),
            factors=factors,
            related_words=related_words,
            alternatives=await self.formatter.format_items(alternative_results),
        )

    async def get_recommendation_stats(self, user_id: str) -> RecommendationStats:
        """Engagement counters and the themes of positively rated words"""
        await self._require_user(user_id)
        profile = await self.profile_repo.get_or_create(user_id)

        seen = profile.total_recommendations_seen or 0
        clicked = profile.total_recommendations_clicked or 0
        favorited = profile.total_recommendations_favorited or 0

        events = await self.profile_repo.get_feedback_events(user_id, list(POSITIVE_FEEDBACK))
        positive_ids = list(dict.fromkeys(event.word_id for event in events))
        words = await self.word_repo.get_words_by_ids(positive_ids)
        categories = Counter(word.category_id for word in words if word.category_id)
        languages = Counter(word.language for word in words if word.language)

        return RecommendationStats(
            total_recommendations_seen=seen,
            total_clicked=clicked,
            total_favorited=favorited,
            click_through_rate=round(clicked / seen, 4) if seen else 0.0,
            favorite_rate=round(favorited / seen, 4) if seen else 0.0,
            top_categories=[c for c, _ in categories.most_common(STATS_TOP_COUNT)],
            top_languages=[lang for lang, _ in languages.most_common(STATS_TOP_COUNT)],
            learning_progress=dict(profile.language_proficiency or {}),
            timestamp=self.clock(),
        )

    async def update_preferences(
        self, user_id: str, request: PreferencesUpdateRequest
    ) -> PreferencesResponse:
        """Partially update weights, preferred categories and proficiency levels"""
        await self._require_user(user_id)
        weights = (
            request.algorithm_weights.model_dump(exclude_none=True)
            if request.algorithm_weights
            else None
        )
        profile = await self.profile_repo.update_preferences(
            user_id,
            weights=weights,
            preferred_categories=request.preferred_categories,
            language_proficiency=request.language_proficiency,
        )
        await self.cache_repo.invalidate(user_id)
        logger.info(f"[PREFERENCES] Updated preferences of user {user_id}")

        return PreferencesResponse(
            success=True,
            message="Preferences updated",
            algorithm_weights=profile_weights(profile),
            preferred_categories=list(profile.preferred_categories or []),
            language_proficiency=dict(profile.language_proficiency or {}),
        )
