import logging
from collections.abc import Iterable

from sqlalchemy import and_, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.elements import ColumnElement

from wordrec.models.word import WORD_STATUS_APPROVED, Word, WordKeyword, WordMeaning
from wordrec.services.recommendation.constants import (
    BEGINNER_MAX_LEVEL,
    BEGINNER_MIN_TRANSLATIONS,
    LEVEL_BEGINNER_MIN_TRANSLATIONS,
    LEVEL_INTERMEDIATE_MAX_SENSES,
)

logger = logging.getLogger(__name__)


def _sense_count() -> ColumnElement[int]:
    return (
        select(func.count(WordMeaning.id))
        .where(WordMeaning.word_id == Word.id)
        .correlate(Word)
        .scalar_subquery()
    )


def _has_keywords() -> ColumnElement[bool]:
    return exists().where(WordKeyword.word_id == Word.id)


def _keyword_match(keywords: Iterable[str]) -> ColumnElement[bool]:
    return Word.id.in_(select(WordKeyword.word_id).where(WordKeyword.keyword.in_(list(keywords))))


class WordRepository:
    """Dictionary entry store accessor"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_word_by_id(self, word_id: str) -> Word | None:
        async with self.session_factory() as db:
            result = await db.execute(select(Word).where(Word.id == word_id))
            return result.scalar_one_or_none()

    async def get_words_by_ids(self, word_ids: list[str]) -> list[Word]:
        """Fetch words by id, keeping the order of ``word_ids``"""
        if not word_ids:
            return []
        async with self.session_factory() as db:
            result = await db.execute(select(Word).where(Word.id.in_(word_ids)))
            by_id = {word.id: word for word in result.scalars().all()}
        return [by_id[word_id] for word_id in word_ids if word_id in by_id]

    async def find_by_interests(
        self,
        categories: set[str],
        languages: set[str],
        keywords: set[str],
        exclude_author: str,
        limit: int,
    ) -> list[Word]:
        """Approved words matching any interest, excluding the user's own words"""
        conditions: list[ColumnElement[bool]] = []
        if categories:
            conditions.append(Word.category_id.in_(categories))
        if languages:
            conditions.append(Word.language.in_(languages))
        if keywords:
            conditions.append(_keyword_match(keywords))
        if not conditions:
            return []

        query = (
            select(Word)
            .where(
                Word.status == WORD_STATUS_APPROVED,
                or_(Word.created_by.is_(None), Word.created_by != exclude_author),
                or_(*conditions),
            )
            .order_by(Word.translation_count.desc(), Word.id)
            .limit(limit)
        )
        async with self.session_factory() as db:
            result = await db.execute(query)
            return list(result.scalars().all())

    async def find_related(self, word: Word, limit: int) -> list[Word]:
        """Approved words sharing the category, a keyword or a part of speech with ``word``"""
        conditions: list[ColumnElement[bool]] = []
        if word.category_id:
            conditions.append(Word.category_id == word.category_id)
        if word.extracted_keywords:
            conditions.append(_keyword_match(word.extracted_keywords))
        if word.parts_of_speech:
            conditions.append(
                Word.id.in_(
                    select(WordMeaning.word_id).where(
                        WordMeaning.part_of_speech.in_(word.parts_of_speech)
                    )
                )
            )
        if not conditions:
            return []

        query = (
            select(Word)
            .where(Word.status == WORD_STATUS_APPROVED, Word.id != word.id, or_(*conditions))
            .order_by(Word.translation_count.desc(), Word.id)
            .limit(limit)
        )
        async with self.session_factory() as db:
            result = await db.execute(query)
            return list(result.scalars().all())

    async def get_approved_words(
        self, word_ids: list[str], languages: Iterable[str] | None = None
    ) -> list[Word]:
        """Approved words among ``word_ids``, optionally restricted to languages"""
        if not word_ids:
            return []
        query = select(Word).where(Word.id.in_(word_ids), Word.status == WORD_STATUS_APPROVED)
        if languages is not None:
            query = query.where(Word.language.in_(list(languages)))
        async with self.session_factory() as db:
            result = await db.execute(query)
            by_id = {word.id: word for word in result.scalars().all()}
        return [by_id[word_id] for word_id in word_ids if word_id in by_id]

    async def find_for_learning(self, language: str, proficiency: int, limit: int) -> list[Word]:
        """Approved words of a language matching the complexity of a proficiency level"""
        if proficiency <= BEGINNER_MAX_LEVEL:
            complexity = or_(
                _sense_count() >= 1, Word.translation_count >= BEGINNER_MIN_TRANSLATIONS
            )
        else:
            complexity = or_(_sense_count() >= 2, _has_keywords())

        query = (
            select(Word)
            .where(Word.language == language, Word.status == WORD_STATUS_APPROVED, complexity)
            .order_by(Word.translation_count.desc(), Word.id)
            .limit(limit)
        )
        async with self.session_factory() as db:
            result = await db.execute(query)
            return list(result.scalars().all())

    async def find_by_level(self, language: str, level: int, limit: int) -> list[Word]:
        """Approved words of a language filtered by the complexity rule of ``level``"""
        if level <= BEGINNER_MAX_LEVEL:
            complexity = or_(
                _sense_count() == 1, Word.translation_count >= LEVEL_BEGINNER_MIN_TRANSLATIONS
            )
        elif level == 3:
            complexity = and_(_sense_count() >= 1, _sense_count() <= LEVEL_INTERMEDIATE_MAX_SENSES)
        else:
            complexity = or_(
                _sense_count() >= 2, and_(Word.etymology.is_not(None), Word.etymology != "")
            )

        query = (
            select(Word)
            .where(Word.language == language, Word.status == WORD_STATUS_APPROVED, complexity)
            .order_by(Word.translation_count.desc(), Word.id)
            .limit(limit)
        )
        async with self.session_factory() as db:
            result = await db.execute(query)
            return list(result.scalars().all())
