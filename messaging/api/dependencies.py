"""
Shared FastAPI dependencies.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from messaging.core.config import Settings, get_settings
from messaging.core.database import get_db
from messaging.services.directory import Directory
from messaging.services.ledger import ConversationLedger


def get_ledger(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ConversationLedger:
    """Build a request-scoped ledger bound to the request's session."""
    return ConversationLedger(db, directory=Directory(db), settings=settings)
