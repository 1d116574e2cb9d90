import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wordrec.models.language import Language
from wordrec.models.user import User

logger = logging.getLogger(__name__)


class UserRepository:
    """User directory accessor"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_user_by_id(self, user_id: str) -> User | None:
        """Look a user up by id, learning languages included"""
        async with self.session_factory() as db:
            result = await db.execute(select(User).where(User.id == user_id))
            return result.scalar_one_or_none()


class LanguageRepository:
    """Language registry accessor, display enrichment only"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_languages_by_codes(self, codes: set[str]) -> dict[str, Language]:
        """Map each requested code to its language, matching on code or name"""
        if not codes:
            return {}
        async with self.session_factory() as db:
            result = await db.execute(
                select(Language).where(or_(Language.code.in_(codes), Language.name.in_(codes)))
            )
            languages = list(result.scalars().all())

        by_code: dict[str, Language] = {}
        for language in languages:
            for key in (language.code, language.name):
                if key in codes:
                    by_code.setdefault(key, language)
        return by_code
