from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from wordrec.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """User directory entry"""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    native_language = Column(String(32), nullable=True)
    region = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)

    learning_language_links = relationship(
        "UserLearningLanguage", back_populates="user", cascade="all, delete-orphan", lazy="selectin"
    )

    @property
    def learning_languages(self) -> list[str]:
        return [link.language_code for link in self.learning_language_links]

    def __repr__(self) -> str:
        return f"<User(id='{self.id}', username='{self.username}')>"


class UserLearningLanguage(Base):
    """Language a user is actively learning"""

    __tablename__ = "user_learning_languages"

    user_id = Column(String(64), ForeignKey("users.id"), primary_key=True)
    language_code = Column(String(32), primary_key=True)

    user = relationship("User", back_populates="learning_language_links")

    def __repr__(self) -> str:
        return f"<UserLearningLanguage(user_id='{self.user_id}', language='{self.language_code}')>"
