from sqlalchemy import Boolean, Column, String

from wordrec.models.base import Base


class Language(Base):
    """Language registry entry, used for display enrichment only"""

    __tablename__ = "languages"

    code = Column(String(32), primary_key=True)  # ISO 639-1 code, or the name when none exists
    name = Column(String(100), nullable=False)
    native_name = Column(String(100), nullable=True)
    flag_emoji = Column(String(16), nullable=True)
    region = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Language(code='{self.code}', name='{self.name}')>"
