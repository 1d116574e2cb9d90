from collections.abc import Callable
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from wordrec.models import (
    FavoriteWord,
    RecommendationFeedback,
    UserRecommendationProfile,
    Word,
    WordView,
)
from wordrec.services.recommendation import tasks
from wordrec.services.recommendation.tasks import derive_patterns, refresh_profile, top_values

NOW = datetime(2026, 3, 2, 12, 0, 0)


def view(hour: int, view_type: str = "direct") -> WordView:
    return WordView(
        user_id="user-1",
        word_id="w",
        view_type=view_type,
        last_viewed_at=NOW.replace(hour=hour),
    )


def feedback(word_id: str, feedback_type: str) -> RecommendationFeedback:
    return RecommendationFeedback(word_id=word_id, feedback_type=feedback_type, timestamp=NOW)


def test_top_values_keeps_first_seen_order_on_ties() -> None:
    assert top_values(["b", "a", "a", "b", "c"], 2) == ["b", "a"]
    assert top_values([], 3) == []


def test_derive_patterns(make_word: Callable[..., Word]) -> None:
    views = [view(9), view(9), view(21, "search"), view(21, "search"), view(21), view(7, "favorite")]
    liked = [
        make_word("w1", category_id="food", keywords=["bread", "crust"]),
        make_word("w2", category_id="music", keywords=["bread"]),
    ]
    rejected = [make_word("w3", category_id="sport")]

    derived = derive_patterns(views, liked, rejected, ["sport", "travel"])

    assert derived["interaction_patterns"] == {
        "peak_hours": [21, 9, 7],
        "preferred_content_types": ["direct", "search", "favorite"],
    }
    assert derived["semantic_interests"] == ["bread", "crust"]
    assert derived["preferred_categories"] == ["travel", "food", "music"]


def test_derive_patterns_without_history() -> None:
    derived = derive_patterns([], [], [], [])

    assert derived == {
        "interaction_patterns": {"peak_hours": [], "preferred_content_types": []},
        "semantic_interests": [],
        "preferred_categories": [],
    }


@pytest.fixture
def repos() -> dict[str, AsyncMock]:
    view_repo = AsyncMock()
    view_repo.get_recent_views.return_value = [view(10)]
    favorite_repo = AsyncMock()
    favorite_repo.get_user_favorites.return_value = []
    return {
        "profile_repo": AsyncMock(),
        "view_repo": view_repo,
        "favorite_repo": favorite_repo,
        "word_repo": AsyncMock(),
    }


async def test_refresh_profile_skips_unknown_users(repos: dict[str, AsyncMock]) -> None:
    repos["profile_repo"].get_by_user_id.return_value = None

    assert await refresh_profile("ghost", **repos, clock=lambda: NOW) is None

    repos["profile_repo"].update_patterns.assert_not_awaited()


async def test_refresh_profile_uses_feedback_and_favorites(
    repos: dict[str, AsyncMock], make_word: Callable[..., Word]
) -> None:
    liked = make_word("w1", category_id="food", keywords=["bread"])
    rejected = make_word("w2", category_id="sport")
    favorite = make_word("w3", category_id="music", keywords=["song"])
    repos["profile_repo"].get_by_user_id.return_value = UserRecommendationProfile(
        user_id="user-1",
        preferred_categories=["sport"],
        feedback_history=[
            feedback("w1", "like"),
            feedback("w2", "not_interested"),
            feedback("w9", "view"),
        ],
    )
    repos["word_repo"].get_words_by_ids.return_value = [liked, rejected]
    repos["favorite_repo"].get_user_favorites.return_value = [
        FavoriteWord(user_id="user-1", word_id="w3", added_at=NOW, word=favorite)
    ]

    derived = await refresh_profile("user-1", **repos, clock=lambda: NOW)

    assert derived is not None
    repos["word_repo"].get_words_by_ids.assert_awaited_once_with(["w1", "w2"])
    repos["view_repo"].get_recent_views.assert_awaited_once_with(
        "user-1", since=NOW - timedelta(days=30), limit=tasks.PATTERN_VIEW_CAP
    )
    repos["profile_repo"].update_patterns.assert_awaited_once_with("user-1", **derived)
    assert derived["preferred_categories"] == ["food", "music"]
    assert derived["semantic_interests"] == ["bread", "song"]
    assert derived["interaction_patterns"]["peak_hours"] == [10]


def test_refresh_profile_patterns_task_reports_skipped_profiles() -> None:
    with patch.object(tasks, "_refresh_with_retry", AsyncMock(return_value=None)):
        result = tasks.refresh_profile_patterns.apply(args=("ghost",)).get()

    assert result == {"status": "skipped", "user_id": "ghost"}


def test_refresh_active_profiles_queues_one_task_per_user() -> None:
    with (
        patch.object(tasks, "_active_users", AsyncMock(return_value=["u1", "u2"])),
        patch.object(tasks.refresh_profile_patterns, "delay", MagicMock()) as delay,
    ):
        result = tasks.refresh_active_profiles.apply().get()

    assert result == {"status": "success", "queued": 2}
    assert [c.args for c in delay.call_args_list] == [("u1",), ("u2",)]


def test_dispatch_profile_refresh_queues_the_task() -> None:
    with patch.object(tasks.refresh_profile_patterns, "delay", MagicMock()) as delay:
        tasks.dispatch_profile_refresh("user-1")

    delay.assert_called_once_with("user-1")
