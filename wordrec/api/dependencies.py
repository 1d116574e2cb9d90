import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wordrec.core.security import security
from wordrec.infrastructure.database import get_session_factory
from wordrec.infrastructure.redis import get_redis_client
from wordrec.services.monitoring import RecommendationMonitoring
from wordrec.services.monitoring.prometheus import get_monitoring_service as _get_monitoring
from wordrec.services.recommendation.config import RecommendationConfig, reco_config
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
from wordrec.services.recommendation.service import RecommendationService
from wordrec.services.recommendation.tasks import dispatch_profile_refresh

logger = logging.getLogger(__name__)

# JWT Bearer scheme
security_scheme = HTTPBearer(auto_error=False)


def get_recommendation_config() -> RecommendationConfig:
    return reco_config


def get_monitoring_service() -> RecommendationMonitoring:
    return _get_monitoring()


def get_cache_repository(
    config: RecommendationConfig = Depends(get_recommendation_config),
) -> RecommendationCacheRepository:
    """Recommendation cache dependency"""
    return RecommendationCacheRepository(get_redis_client(), ttl_seconds=config.cache_ttl_seconds)


def get_recommendation_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    cache_repo: RecommendationCacheRepository = Depends(get_cache_repository),
    config: RecommendationConfig = Depends(get_recommendation_config),
    metrics: RecommendationMonitoring = Depends(get_monitoring_service),
) -> RecommendationService:
    """Recommendation service dependency"""
    return RecommendationService(
        user_repo=UserRepository(session_factory),
        profile_repo=ProfileRepository(session_factory, default_weights=config.default_weights),
        word_repo=WordRepository(session_factory),
        view_repo=WordViewRepository(session_factory),
        favorite_repo=FavoriteRepository(session_factory),
        activity_repo=ActivityRepository(session_factory),
        language_repo=LanguageRepository(session_factory),
        cache_repo=cache_repo,
        config=config,
        refresh_dispatcher=dispatch_profile_refresh,
        metrics=metrics,
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
) -> str:
    """User id taken from the Bearer token"""
    if credentials is None:
        raise _unauthorized("Not authenticated")

    payload = security.verify_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Invalid authentication credentials")

    user_id = payload.get("user_id") or payload.get("sub")
    if not user_id:
        logger.warning("Token payload carries no user id")
        raise _unauthorized("Invalid token payload: missing user_id")

    return str(user_id)
