from collections.abc import Callable
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from wordrec.core.exception import RecommendationError, UserNotFoundError, WordNotFoundError
from wordrec.models import User, UserRecommendationProfile, Word
from wordrec.models.recommendation_profile import RecommendationFeedback
from wordrec.schemas.recommendation import (
    FeedbackRequest,
    LinguisticRecommendationRequest,
    PersonalRecommendationRequest,
    PreferencesUpdateRequest,
    RecommendationType,
    TrendingRecommendationRequest,
)
from wordrec.services.recommendation.config import RecommendationConfig
from wordrec.services.recommendation.repositories import (
    RecommendationCacheRepository,
    TrendingTarget,
)
from wordrec.services.recommendation.service import RecommendationService, level_label

NOW = datetime(2026, 3, 2, 12, 0, 0)


def view_of(word: Word) -> MagicMock:
    view = MagicMock()
    view.word = word
    return view


@pytest.fixture
def user(make_user: Callable[..., User]) -> User:
    return make_user("user-1", native_language="en", learning=["fr"])


@pytest.fixture
def profile(make_profile: Callable[..., UserRecommendationProfile]) -> UserRecommendationProfile:
    return make_profile("user-1")


@pytest.fixture
def catalogue(make_word: Callable[..., Word], word_store: dict[str, Word]) -> list[Word]:
    """Twelve approved French food words, registered with the mocked word store"""
    words = [
        make_word(
            f"w{i}",
            word=f"mot{i}",
            language="fr",
            category_id="food",
            keywords=["cuisine"],
            translation_count=i,
        )
        for i in range(12)
    ]
    word_store.update({word.id: word for word in words})
    return words


@pytest.fixture
def personalized(
    mock_repositories: dict[str, AsyncMock],
    user: User,
    profile: UserRecommendationProfile,
    catalogue: list[Word],
) -> dict[str, AsyncMock]:
    """Repositories describing a user with some history in French food words"""
    repos = mock_repositories
    repos["user_repo"].get_user_by_id.return_value = user
    repos["profile_repo"].get_or_create.return_value = profile
    repos["view_repo"].get_recent_views.return_value = [view_of(catalogue[0])]
    repos["view_repo"].get_recent_words.return_value = [catalogue[0]]
    repos["word_repo"].find_by_interests.return_value = catalogue[1:]
    repos["word_repo"].find_related.return_value = catalogue[2:8]
    repos["word_repo"].find_for_learning.return_value = catalogue[5:]
    repos["word_repo"].get_approved_words.return_value = catalogue[3:6]
    repos["activity_repo"].get_trending_targets.return_value = [
        TrendingTarget(entry_id=w.id, interactions=3) for w in catalogue[3:6]
    ]
    return repos


@pytest.fixture
def cached_service(
    personalized: dict[str, AsyncMock],
    mock_redis_client: MagicMock,
    mock_metrics: MagicMock,
) -> RecommendationService:
    """Service whose cache is a real repository over the dict-backed Redis mock"""
    repos = {
        **personalized,
        "cache_repo": RecommendationCacheRepository(mock_redis_client, clock=lambda: NOW),
    }
    return RecommendationService(
        **repos,
        config=RecommendationConfig(),
        metrics=mock_metrics,
        clock=lambda: NOW,
    )


class TestPersonalRecommendations:
    async def test_unknown_user_is_not_found(
        self, recommendation_service: RecommendationService, mock_repositories: dict[str, AsyncMock]
    ) -> None:
        mock_repositories["user_repo"].get_user_by_id.return_value = None

        with pytest.raises(UserNotFoundError):
            await recommendation_service.get_personal_recommendations(
                "ghost", PersonalRecommendationRequest()
            )

    @pytest.mark.parametrize("limit", [1, 5, 10, 20])
    async def test_mixed_results_are_bounded_unique_and_scored(
        self, cached_service: RecommendationService, limit: int
    ) -> None:
        response = await cached_service.get_personal_recommendations(
            "user-1", PersonalRecommendationRequest(limit=limit)
        )

        ids = [item.id for item in response.recommendations]
        assert len(ids) == len(set(ids))
        # eleven distinct candidates exist besides the viewed word
        assert response.count == min(limit, 11)
        assert all(0.0 <= item.score <= 1.0 for item in response.recommendations)
        assert response.type == "mixed"
        assert response.algorithm.type == "intelligent_v1"
        assert response.from_cache is False

    async def test_repeat_request_is_served_from_cache(
        self, cached_service: RecommendationService, personalized: dict[str, AsyncMock]
    ) -> None:
        request = PersonalRecommendationRequest(limit=5)
        first = await cached_service.get_personal_recommendations("user-1", request)
        personalized["word_repo"].find_by_interests.reset_mock()

        second = await cached_service.get_personal_recommendations("user-1", request)

        assert second.from_cache is True
        assert [i.id for i in second.recommendations] == [i.id for i in first.recommendations]
        assert [i.score for i in second.recommendations] == [i.score for i in first.recommendations]
        personalized["word_repo"].find_by_interests.assert_not_called()

    async def test_refresh_regenerates_and_overwrites(
        self, cached_service: RecommendationService, mock_redis_client: MagicMock
    ) -> None:
        await cached_service.get_personal_recommendations(
            "user-1", PersonalRecommendationRequest(limit=5)
        )
        writes_before = mock_redis_client.setex.call_count

        refreshed = await cached_service.get_personal_recommendations(
            "user-1", PersonalRecommendationRequest(limit=5, refresh=True)
        )

        assert refreshed.from_cache is False
        assert mock_redis_client.setex.call_count == writes_before + 1

    async def test_feedback_from_unknown_user_is_not_found(
        self, recommendation_service: RecommendationService, mock_repositories: dict[str, AsyncMock]
    ) -> None:
        mock_repositories["user_repo"].get_user_by_id.return_value = None

        with pytest.raises(UserNotFoundError):
            await recommendation_service.record_feedback(
                "ghost", FeedbackRequest(entry_id="w1", feedback_type="like")
            )

        mock_repositories["profile_repo"].append_feedback.assert_not_awaited()
        mock_repositories["cache_repo"].invalidate.assert_not_awaited()

    async def test_feedback_invalidates_the_cache(
        self, cached_service: RecommendationService, personalized: dict[str, AsyncMock]
    ) -> None:
        request = PersonalRecommendationRequest(limit=5)
        await cached_service.get_personal_recommendations("user-1", request)

        await cached_service.record_feedback(
            "user-1", FeedbackRequest(entry_id="w1", feedback_type="like")
        )
        after = await cached_service.get_personal_recommendations("user-1", request)

        assert after.from_cache is False
        personalized["profile_repo"].append_feedback.assert_awaited_once()

    async def test_filtered_requests_bypass_the_cache(
        self, cached_service: RecommendationService, mock_redis_client: MagicMock
    ) -> None:
        request = PersonalRecommendationRequest(limit=5, languages=["fr"])

        await cached_service.get_personal_recommendations("user-1", request)
        second = await cached_service.get_personal_recommendations("user-1", request)

        assert second.from_cache is False
        mock_redis_client.setex.assert_not_called()

    async def test_cache_hit_is_truncated_to_limit(self, cached_service: RecommendationService) -> None:
        await cached_service.get_personal_recommendations(
            "user-1", PersonalRecommendationRequest(limit=10)
        )

        smaller = await cached_service.get_personal_recommendations(
            "user-1", PersonalRecommendationRequest(limit=3)
        )

        assert smaller.from_cache is True
        assert smaller.count == 3

    async def test_short_cache_entry_does_not_answer_a_larger_limit(
        self, cached_service: RecommendationService, personalized: dict[str, AsyncMock]
    ) -> None:
        await cached_service.get_personal_recommendations(
            "user-1", PersonalRecommendationRequest(limit=5)
        )
        personalized["word_repo"].find_by_interests.reset_mock()

        larger = await cached_service.get_personal_recommendations(
            "user-1", PersonalRecommendationRequest(limit=20)
        )

        assert larger.from_cache is False
        assert larger.count == 11
        personalized["word_repo"].find_by_interests.assert_awaited()

    async def test_exhausted_cache_entry_answers_a_smaller_limit(
        self, cached_service: RecommendationService, personalized: dict[str, AsyncMock]
    ) -> None:
        await cached_service.get_personal_recommendations(
            "user-1", PersonalRecommendationRequest(limit=20)
        )
        personalized["word_repo"].find_by_interests.reset_mock()

        again = await cached_service.get_personal_recommendations(
            "user-1", PersonalRecommendationRequest(limit=15)
        )

        assert again.from_cache is True
        assert again.count == 11
        personalized["word_repo"].find_by_interests.assert_not_called()

    async def test_single_type_uses_its_extractor(
        self, cached_service: RecommendationService, personalized: dict[str, AsyncMock]
    ) -> None:
        response = await cached_service.get_personal_recommendations(
            "user-1", PersonalRecommendationRequest(limit=4, type=RecommendationType.LINGUISTIC)
        )

        assert response.type == "linguistic"
        assert {item.category.value for item in response.recommendations} == {"linguistic"}
        personalized["word_repo"].find_by_interests.assert_not_called()

    async def test_single_type_failure_is_a_recommendation_error(
        self, cached_service: RecommendationService, personalized: dict[str, AsyncMock]
    ) -> None:
        personalized["view_repo"].get_recent_views.side_effect = RuntimeError("db down")

        with pytest.raises(RecommendationError):
            await cached_service.get_personal_recommendations(
                "user-1", PersonalRecommendationRequest(type=RecommendationType.PERSONAL)
            )

    async def test_generation_touches_the_profile(
        self, cached_service: RecommendationService, personalized: dict[str, AsyncMock]
    ) -> None:
        await cached_service.get_personal_recommendations("user-1", PersonalRecommendationRequest())

        personalized["profile_repo"].touch_last_recommendation.assert_awaited_once_with(
            "user-1", NOW
        )

    async def test_profile_weights_are_used(
        self,
        cached_service: RecommendationService,
        profile: UserRecommendationProfile,
        personalized: dict[str, AsyncMock],
    ) -> None:
        profile.behavioral_weight = 1.0
        profile.semantic_weight = 0.0
        profile.community_weight = 0.0
        profile.linguistic_weight = 0.0

        response = await cached_service.get_personal_recommendations(
            "user-1", PersonalRecommendationRequest(limit=5)
        )

        assert {item.metadata["source"] for item in response.recommendations} == {"behavioral"}
        assert response.algorithm.weights.behavioral == 1.0
        personalized["word_repo"].find_related.assert_not_called()


class TestTrending:
    async def test_no_recent_activity_is_an_empty_list(
        self, recommendation_service: RecommendationService, mock_repositories: dict[str, AsyncMock]
    ) -> None:
        response = await recommendation_service.get_trending_recommendations(
            TrendingRecommendationRequest(period="24h", limit=5)
        )

        assert response.recommendations == []
        assert response.count == 0
        assert response.avg_score == 0.0
        since = mock_repositories["activity_repo"].get_trending_targets.call_args.args[0]
        assert since == NOW - timedelta(hours=24)

    async def test_ranked_by_interactions(
        self,
        recommendation_service: RecommendationService,
        mock_repositories: dict[str, AsyncMock],
        catalogue: list[Word],
    ) -> None:
        mock_repositories["activity_repo"].get_trending_targets.return_value = [
            TrendingTarget(entry_id="w1", interactions=14, activity_types=["word_favorited"]),
            TrendingTarget(entry_id="w2", interactions=4, activity_types=["word_created"]),
        ]
        mock_repositories["word_repo"].get_approved_words.return_value = catalogue[1:3]

        response = await recommendation_service.get_trending_recommendations(
            TrendingRecommendationRequest(region="Europe", period="30d")
        )

        assert [item.id for item in response.recommendations] == ["w1", "w2"]
        assert [item.score for item in response.recommendations] == [1.0, pytest.approx(0.4)]
        assert {item.category.value for item in response.recommendations} == {"community"}
        assert response.recommendations[1].reasons[-1] == "Recently added word"
        kwargs = mock_repositories["activity_repo"].get_trending_targets.call_args.kwargs
        assert kwargs["region"] == "Europe"


class TestLinguistic:
    async def test_beginner_french_for_a_user_without_history(
        self,
        recommendation_service: RecommendationService,
        mock_repositories: dict[str, AsyncMock],
        catalogue: list[Word],
    ) -> None:
        mock_repositories["word_repo"].find_by_level.return_value = catalogue[:5]

        response = await recommendation_service.get_linguistic_recommendations(
            LinguisticRecommendationRequest(language="fr", level=1, limit=5)
        )

        assert 0 < response.count <= 5
        for item in response.recommendations:
            assert item.metadata["difficulty"] == "beginner"
            assert 0.2 <= item.score <= 1.0
            assert item.score == pytest.approx(0.84)
        mock_repositories["word_repo"].find_by_level.assert_awaited_once_with("fr", 1, 5)

    @pytest.mark.parametrize(
        "level, label", [(1, "beginner"), (2, "beginner"), (3, "intermediate"), (5, "advanced")]
    )
    def test_level_label(self, level: int, label: str) -> None:
        assert level_label(level) == label


class TestExplain:
    async def test_unknown_word_is_not_found(
        self, recommendation_service: RecommendationService
    ) -> None:
        with pytest.raises(WordNotFoundError):
            await recommendation_service.explain_recommendation("user-1", "missing")

    async def test_factors_cover_every_signal(
        self,
        cached_service: RecommendationService,
        personalized: dict[str, AsyncMock],
        catalogue: list[Word],
    ) -> None:
        personalized["word_repo"].find_related.return_value = catalogue[2:5]

        explanation = await cached_service.explain_recommendation("user-1", "w7")

        assert set(explanation.factors) == {"behavioral", "semantic", "community", "linguistic"}
        assert all(0.0 <= f.score <= 1.0 for f in explanation.factors.values())
        assert 0.0 <= explanation.score <= 1.0
        assert [r.id for r in explanation.related_words] == ["w0"]
        assert explanation.related_words[0].reason == "same_category"
        assert [a.id for a in explanation.alternatives] == ["w2", "w3", "w4"]
        personalized["word_repo"].find_related.assert_awaited_with(catalogue[7], 3)


class TestStatsAndPreferences:
    async def test_stats(
        self,
        cached_service: RecommendationService,
        personalized: dict[str, AsyncMock],
        profile: UserRecommendationProfile,
    ) -> None:
        profile.total_recommendations_seen = 10
        profile.total_recommendations_clicked = 4
        profile.total_recommendations_favorited = 1
        profile.language_proficiency = {"fr": 2}
        personalized["profile_repo"].get_feedback_events.return_value = [
            RecommendationFeedback(word_id="w1", feedback_type="like", timestamp=NOW),
            RecommendationFeedback(word_id="w2", feedback_type="favorite", timestamp=NOW),
        ]

        stats = await cached_service.get_recommendation_stats("user-1")

        assert stats.click_through_rate == 0.4
        assert stats.favorite_rate == 0.1
        assert stats.top_categories == ["food"]
        assert stats.top_languages == ["fr"]
        assert stats.learning_progress == {"fr": 2}

    async def test_stats_without_views(
        self, cached_service: RecommendationService, personalized: dict[str, AsyncMock]
    ) -> None:
        personalized["profile_repo"].get_feedback_events.return_value = []

        stats = await cached_service.get_recommendation_stats("user-1")

        assert stats.click_through_rate == 0.0
        assert stats.top_categories == []

    async def test_update_preferences_invalidates_cache(
        self,
        recommendation_service: RecommendationService,
        mock_repositories: dict[str, AsyncMock],
        user: User,
        make_profile: Callable[..., UserRecommendationProfile],
    ) -> None:
        mock_repositories["user_repo"].get_user_by_id.return_value = user
        mock_repositories["profile_repo"].update_preferences.return_value = make_profile(
            behavioral_weight=1.0, language_proficiency={"fr": 5}
        )

        response = await recommendation_service.update_preferences(
            "user-1",
            PreferencesUpdateRequest(
                algorithm_weights={"behavioral": 3.0}, language_proficiency={"fr": 7}
            ),
        )

        kwargs = mock_repositories["profile_repo"].update_preferences.call_args.kwargs
        assert kwargs["weights"] == {"behavioral": 1.0}
        assert kwargs["language_proficiency"] == {"fr": 5}
        mock_repositories["cache_repo"].invalidate.assert_awaited_once_with("user-1")
        assert response.algorithm_weights.behavioral == 1.0
        assert response.success is True
