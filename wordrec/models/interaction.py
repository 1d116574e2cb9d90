from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from wordrec.models.base import Base

ACTIVITY_WORD_CREATED = "word_created"
ACTIVITY_WORD_APPROVED = "word_approved"
ACTIVITY_WORD_FAVORITED = "word_favorited"

# Activity types that count as community interest in a word
COMMUNITY_ACTIVITY_TYPES = (
    ACTIVITY_WORD_CREATED,
    ACTIVITY_WORD_APPROVED,
    ACTIVITY_WORD_FAVORITED,
)


class WordView(Base):
    """Per-user consultation history of a word"""

    __tablename__ = "word_views"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    word_id = Column(String(64), ForeignKey("words.id"), nullable=False, index=True)
    view_type = Column(String(20), default="direct", nullable=False)  # search|direct|favorite|recommendation
    view_count = Column(Integer, default=1, nullable=False)
    viewed_at = Column(DateTime, default=func.now(), nullable=False)
    last_viewed_at = Column(DateTime, default=func.now(), nullable=False, index=True)

    word = relationship("Word", lazy="selectin")

    def __repr__(self) -> str:
        return f"<WordView(user_id='{self.user_id}', word_id='{self.word_id}')>"


class FavoriteWord(Base):
    """Word favorited by a user"""

    __tablename__ = "favorite_words"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    word_id = Column(String(64), ForeignKey("words.id"), nullable=False, index=True)
    added_at = Column(DateTime, default=func.now(), nullable=False)

    word = relationship("Word", lazy="selectin")

    __table_args__ = (UniqueConstraint("user_id", "word_id", name="unique_user_favorite_word"),)

    def __repr__(self) -> str:
        return f"<FavoriteWord(user_id='{self.user_id}', word_id='{self.word_id}')>"


class ActivityEvent(Base):
    """Activity feed event"""

    __tablename__ = "activity_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    activity_type = Column(String(50), nullable=False, index=True)
    entity_type = Column(String(30), default="word", nullable=False)
    entity_id = Column(String(64), nullable=False, index=True)
    user_region = Column(String(100), nullable=True)
    language_region = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False, index=True)

    def __repr__(self) -> str:
        return (
            f"<ActivityEvent(type='{self.activity_type}', entity_id='{self.entity_id}', "
            f"created_at={self.created_at})>"
        )
