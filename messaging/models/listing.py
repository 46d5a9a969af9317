"""
Listing model (owned by the listings service, read here for message context).
"""
from sqlalchemy import JSON, Column, String

from messaging.core.database import Base


class Listing(Base):
    __tablename__ = "listings"

    id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False)

    # Image URLs, primary image first
    images = Column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, title={self.title})>"
