"""
User directory model (owned by the accounts service, read here).
"""
from sqlalchemy import Column, String

from messaging.core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name={self.name})>"
