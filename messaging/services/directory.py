"""
Identity and listing lookups.

Users and listings belong to other marketplace services; this module only
resolves ids to the display fields the messaging views need.
"""
from typing import Dict, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from messaging.core.exceptions import NotFound
from messaging.models.listing import Listing
from messaging.models.user import User
from messaging.schemas.message import ListingRef, UserRef


class Directory:
    """Resolves user and listing ids against the shared marketplace tables."""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: str) -> UserRef:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFound("User", user_id)
        return UserRef(id=user.id, name=user.name)

    def get_listing(self, listing_id: str) -> ListingRef:
        listing = self.db.get(Listing, listing_id)
        if listing is None:
            raise NotFound("Listing", listing_id)
        return _listing_ref(listing)

    def users_by_id(self, user_ids: Iterable[str]) -> Dict[str, UserRef]:
        """Resolve many users in one query. Unknown ids are omitted."""
        ids = set(user_ids)
        if not ids:
            return {}
        rows = self.db.scalars(select(User).where(User.id.in_(ids)))
        return {user.id: UserRef(id=user.id, name=user.name) for user in rows}

    def listings_by_id(self, listing_ids: Iterable[str]) -> Dict[str, ListingRef]:
        """Resolve many listings in one query. Unknown ids are omitted."""
        ids = {listing_id for listing_id in listing_ids if listing_id}
        if not ids:
            return {}
        rows = self.db.scalars(select(Listing).where(Listing.id.in_(ids)))
        return {listing.id: _listing_ref(listing) for listing in rows}


def _listing_ref(listing: Listing) -> ListingRef:
    return ListingRef(id=listing.id, title=listing.title, images=list(listing.images or []))
