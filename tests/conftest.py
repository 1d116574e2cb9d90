import os

# Settings are read at import time, so the environment must be in place first
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-the-wordrec-suite-0123456789")
os.environ.setdefault("ENVIRONMENT", "test")

from collections.abc import AsyncGenerator, Callable, Generator  # noqa: E402
from datetime import datetime, timedelta  # noqa: E402
from typing import Any  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from wordrec.core.security import SecurityManager  # noqa: E402
from wordrec.infrastructure.redis import RedisClient  # noqa: E402
from wordrec.models import (  # noqa: E402
    Base,
    User,
    UserLearningLanguage,
    UserRecommendationProfile,
    Word,
    WordKeyword,
    WordMeaning,
)
from wordrec.models.word import WORD_STATUS_APPROVED  # noqa: E402
from wordrec.services.monitoring import RecommendationMonitoring  # noqa: E402
from wordrec.services.recommendation.config import RecommendationConfig  # noqa: E402
from wordrec.services.recommendation.service import RecommendationService  # noqa: E402

NOW = datetime(2026, 3, 2, 12, 0, 0)


def fixed_clock() -> datetime:
    return NOW


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_word() -> Callable[..., Word]:
    """Transient Word factory. ``senses`` is a list of (part of speech, definition)."""

    def _make(
        word_id: str,
        word: str | None = None,
        language: str | None = "fr",
        category_id: str | None = None,
        keywords: tuple[str, ...] | list[str] = (),
        senses: list[tuple[str, str]] | None = None,
        translation_count: int = 0,
        status: str = WORD_STATUS_APPROVED,
        created_by: str | None = None,
        created_at: datetime | None = None,
        etymology: str | None = None,
        examples: list[str] | None = None,
    ) -> Word:
        if senses is None:
            senses = [("noun", f"Definition of {word or word_id}")]
        return Word(
            id=word_id,
            word=word or word_id,
            language=language,
            category_id=category_id,
            status=status,
            created_by=created_by,
            translation_count=translation_count,
            etymology=etymology,
            created_at=created_at or NOW - timedelta(days=60),
            updated_at=created_at or NOW - timedelta(days=60),
            meanings=[
                WordMeaning(
                    position=i,
                    part_of_speech=pos,
                    definition=definition,
                    examples=list(examples or []) if i == 0 else [],
                )
                for i, (pos, definition) in enumerate(senses)
            ],
            keywords=[WordKeyword(keyword=keyword) for keyword in keywords],
        )

    return _make


@pytest.fixture
def make_user() -> Callable[..., User]:
    def _make(
        user_id: str = "user-1",
        native_language: str | None = "en",
        learning: tuple[str, ...] | list[str] = (),
        region: str | None = None,
    ) -> User:
        return User(
            id=user_id,
            username=f"name-{user_id}",
            native_language=native_language,
            region=region,
            is_active=True,
            created_at=NOW,
            updated_at=NOW,
            learning_language_links=[UserLearningLanguage(language_code=code) for code in learning],
        )

    return _make


@pytest.fixture
def make_profile() -> Callable[..., UserRecommendationProfile]:
    def _make(user_id: str = "user-1", **kwargs: Any) -> UserRecommendationProfile:
        return UserRecommendationProfile(user_id=user_id, **kwargs)

    return _make


@pytest.fixture
def word_store() -> dict[str, Word]:
    """Words the mocked word repository can resolve by id"""
    return {}


@pytest.fixture
def mock_repositories(word_store: dict[str, Word]) -> dict[str, AsyncMock]:
    """Mock all repositories, returning empty results unless a test says otherwise"""
    word_repo = AsyncMock()
    word_repo.get_word_by_id.side_effect = lambda word_id: word_store.get(word_id)
    word_repo.get_words_by_ids.side_effect = lambda ids: [word_store[i] for i in ids if i in word_store]
    word_repo.find_by_interests.return_value = []
    word_repo.find_related.return_value = []
    word_repo.get_approved_words.return_value = []
    word_repo.find_for_learning.return_value = []
    word_repo.find_by_level.return_value = []

    view_repo = AsyncMock()
    view_repo.get_recent_views.return_value = []
    view_repo.get_recent_words.return_value = []

    favorite_repo = AsyncMock()
    favorite_repo.get_user_favorites.return_value = []

    activity_repo = AsyncMock()
    activity_repo.get_trending_targets.return_value = []
    activity_repo.count_interactions.return_value = 0

    language_repo = AsyncMock()
    language_repo.get_languages_by_codes.return_value = {}

    cache_repo = AsyncMock()
    cache_repo.get.return_value = None
    cache_repo.invalidate.return_value = 5

    return {
        "user_repo": AsyncMock(),
        "profile_repo": AsyncMock(),
        "word_repo": word_repo,
        "view_repo": view_repo,
        "favorite_repo": favorite_repo,
        "activity_repo": activity_repo,
        "language_repo": language_repo,
        "cache_repo": cache_repo,
    }


@pytest.fixture
def mock_metrics() -> MagicMock:
    return MagicMock(spec=RecommendationMonitoring)


@pytest.fixture
def reco_test_config() -> RecommendationConfig:
    return RecommendationConfig(extractor_timeout_seconds=0.5)


@pytest.fixture
def recommendation_service(
    mock_repositories: dict[str, AsyncMock],
    mock_metrics: MagicMock,
    reco_test_config: RecommendationConfig,
) -> RecommendationService:
    return RecommendationService(
        **mock_repositories,
        config=reco_test_config,
        metrics=mock_metrics,
        clock=fixed_clock,
    )


@pytest.fixture
def mock_redis_client() -> MagicMock:
    """Mock Redis client backed by a dict"""
    store: dict[str, bytes] = {}

    def _setex(key: str, ttl: int, value: str | bytes) -> bool:
        store[key] = value.encode() if isinstance(value, str) else value
        return True

    def _delete(*keys: str) -> int:
        return sum(1 for key in keys if store.pop(key, None) is not None)

    client = MagicMock()
    client.ping.return_value = True
    client.get.side_effect = store.get
    client.setex.side_effect = _setex
    client.delete.side_effect = _delete
    client.store = store
    return client


@pytest.fixture
def reset_redis_client() -> Generator[None, None, None]:
    """Reset the Redis client singleton for test isolation"""
    original_instance = RedisClient._instance
    original_client = RedisClient._client
    RedisClient._instance = None
    RedisClient._client = None

    yield

    RedisClient._instance = original_instance
    RedisClient._client = original_client


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """In-memory SQLite database with every table created"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def security_manager() -> SecurityManager:
    return SecurityManager()


@pytest.fixture
def auth_headers(security_manager: SecurityManager) -> dict[str, str]:
    token = security_manager.create_access_token({"user_id": "user-1"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def mock_service() -> AsyncMock:
    return AsyncMock(spec=RecommendationService)


@pytest.fixture
def test_client(mock_service: AsyncMock) -> Generator[TestClient, None, None]:
    """API client with the recommendation service replaced by a mock"""
    from wordrec.api.dependencies import get_recommendation_service
    from wordrec.main import create_app

    app = create_app()
    app.dependency_overrides[get_recommendation_service] = lambda: mock_service
    yield TestClient(app)
    app.dependency_overrides.clear()
