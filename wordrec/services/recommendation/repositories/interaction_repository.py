import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wordrec.models.interaction import COMMUNITY_ACTIVITY_TYPES, ActivityEvent, FavoriteWord, WordView
from wordrec.models.word import Word

logger = logging.getLogger(__name__)


class WordViewRepository:
    """Per-user view history accessor"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_recent_views(
        self, user_id: str, since: datetime | None = None, limit: int = 50
    ) -> list[WordView]:
        """Most recent views first"""
        query = select(WordView).where(WordView.user_id == user_id)
        if since is not None:
            query = query.where(WordView.last_viewed_at >= since)
        query = query.order_by(WordView.last_viewed_at.desc(), WordView.id.desc()).limit(limit)

        async with self.session_factory() as db:
            result = await db.execute(query)
            return list(result.scalars().all())

    async def get_recent_words(self, user_id: str, limit: int) -> list[Word]:
        """Words of the most recent views, most recent first"""
        views = await self.get_recent_views(user_id, limit=limit)
        return [view.word for view in views if view.word is not None]


class FavoriteRepository:
    """Per-user favorites accessor"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_user_favorites(self, user_id: str) -> list[FavoriteWord]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(FavoriteWord)
                .where(FavoriteWord.user_id == user_id)
                .order_by(FavoriteWord.added_at.desc())
            )
            return list(result.scalars().all())


@dataclass
class TrendingTarget:
    """Activity counts of one target word over a window"""

    entry_id: str
    interactions: int
    last_activity: datetime | None = None
    activity_types: list[str] = field(default_factory=list)


class ActivityRepository:
    """Activity feed accessor"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_trending_targets(
        self,
        since: datetime,
        limit: int,
        region: str | None = None,
        scan_limit: int | None = None,
    ) -> list[TrendingTarget]:
        """
        Group community activity since ``since`` by target word, most active first

        Args:
            since: start of the window
            limit: number of targets to return
            region: only count events from users of this region
            scan_limit: only consider the most recent ``scan_limit`` events

        Returns:
            [TrendingTarget, ...]
        """
        events = select(
            ActivityEvent.entity_id, ActivityEvent.activity_type, ActivityEvent.created_at
        ).where(
            ActivityEvent.activity_type.in_(COMMUNITY_ACTIVITY_TYPES),
            ActivityEvent.created_at >= since,
        )
        if region:
            events = events.where(ActivityEvent.user_region == region)
        if scan_limit:
            events = events.order_by(ActivityEvent.created_at.desc()).limit(scan_limit)
        recent = events.subquery()

        interactions = func.count().label("interactions")
        last_activity = func.max(recent.c.created_at).label("last_activity")
        grouped = (
            select(recent.c.entity_id, interactions, last_activity)
            .group_by(recent.c.entity_id)
            .order_by(interactions.desc(), last_activity.desc(), recent.c.entity_id)
            .limit(limit)
        )

        async with self.session_factory() as db:
            rows = (await db.execute(grouped)).all()
            targets = [
                TrendingTarget(entry_id=row[0], interactions=int(row[1]), last_activity=row[2])
                for row in rows
            ]
            if not targets:
                return []

            type_rows = await db.execute(
                select(recent.c.entity_id, recent.c.activity_type)
                .where(recent.c.entity_id.in_([t.entry_id for t in targets]))
                .distinct()
            )
            types_by_target: dict[str, list[str]] = {}
            for entity_id, activity_type in type_rows.all():
                types_by_target.setdefault(entity_id, []).append(activity_type)

        for target in targets:
            target.activity_types = sorted(types_by_target.get(target.entry_id, []))
        return targets

    async def count_interactions(self, entry_id: str, since: datetime) -> int:
        """Community activity count of one word since ``since``"""
        async with self.session_factory() as db:
            result = await db.execute(
                select(func.count(ActivityEvent.id)).where(
                    ActivityEvent.entity_id == entry_id,
                    ActivityEvent.activity_type.in_(COMMUNITY_ACTIVITY_TYPES),
                    ActivityEvent.created_at >= since,
                )
            )
            return int(result.scalar() or 0)
