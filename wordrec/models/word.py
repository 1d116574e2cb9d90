from sqlalchemy import JSON, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from wordrec.models.base import Base, TimestampMixin

WORD_STATUS_APPROVED = "approved"
WORD_STATUS_PENDING = "pending"
WORD_STATUS_REJECTED = "rejected"


class Category(Base, TimestampMixin):
    """Word category"""

    __tablename__ = "categories"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Category(id='{self.id}', name='{self.name}')>"


class Word(Base, TimestampMixin):
    """Dictionary entry"""

    __tablename__ = "words"

    id = Column(String(64), primary_key=True, index=True)
    word = Column(String(255), nullable=False, index=True)
    language = Column(String(32), nullable=True, index=True)
    category_id = Column(String(64), ForeignKey("categories.id"), nullable=True, index=True)
    pronunciation = Column(String(255), nullable=True)
    etymology = Column(Text, nullable=True)
    status = Column(String(20), default=WORD_STATUS_PENDING, nullable=False, index=True)
    created_by = Column(String(64), nullable=True, index=True)
    translation_count = Column(Integer, default=0, nullable=False)
    audio_url = Column(String(500), nullable=True)

    category = relationship("Category", lazy="selectin")
    meanings = relationship(
        "WordMeaning",
        back_populates="word",
        cascade="all, delete-orphan",
        order_by="WordMeaning.position",
        lazy="selectin",
    )
    keywords = relationship(
        "WordKeyword", back_populates="word", cascade="all, delete-orphan", lazy="selectin"
    )

    @property
    def sense_count(self) -> int:
        return len(self.meanings)

    @property
    def extracted_keywords(self) -> list[str]:
        return [k.keyword for k in self.keywords]

    @property
    def parts_of_speech(self) -> list[str]:
        return list(dict.fromkeys(m.part_of_speech for m in self.meanings if m.part_of_speech))

    @property
    def primary_definition(self) -> str | None:
        return self.meanings[0].definition if self.meanings else None

    @property
    def primary_examples(self) -> list[str]:
        if not self.meanings:
            return []
        return list(self.meanings[0].examples or [])

    def __repr__(self) -> str:
        return f"<Word(id='{self.id}', word='{self.word}', language='{self.language}')>"


class WordMeaning(Base):
    """One sense of a word"""

    __tablename__ = "word_meanings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    word_id = Column(String(64), ForeignKey("words.id"), nullable=False, index=True)
    position = Column(Integer, default=0, nullable=False)
    part_of_speech = Column(String(50), nullable=False)
    definition = Column(Text, nullable=False)
    examples = Column(JSON, default=list, nullable=False)

    word = relationship("Word", back_populates="meanings")

    def __repr__(self) -> str:
        return f"<WordMeaning(word_id='{self.word_id}', part_of_speech='{self.part_of_speech}')>"


class WordKeyword(Base):
    """Keyword extracted from a word's definitions, used for similarity"""

    __tablename__ = "word_keywords"

    word_id = Column(String(64), ForeignKey("words.id"), primary_key=True)
    keyword = Column(String(100), primary_key=True, index=True)

    word = relationship("Word", back_populates="keywords")

    def __repr__(self) -> str:
        return f"<WordKeyword(word_id='{self.word_id}', keyword='{self.keyword}')>"
