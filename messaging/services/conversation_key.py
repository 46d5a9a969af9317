"""
Conversation identity.

A conversation is the set of messages exchanged between two participants,
optionally scoped to one listing. Direction does not matter: A->B and B->A
under the same listing belong to the same conversation.
"""
import hashlib
import json
from typing import NamedTuple, Optional


class ConversationKey(NamedTuple):
    participant_low: str
    participant_high: str
    listing_id: Optional[str] = None

    @property
    def conversation_id(self) -> str:
        """Stable public id; hashing the JSON form keeps ids free of separator collisions."""
        payload = json.dumps(list(self), separators=(",", ":"))
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:32]

    def counterpart(self, user_id: str) -> str:
        if user_id == self.participant_low:
            return self.participant_high
        if user_id == self.participant_high:
            return self.participant_low
        raise ValueError(f"{user_id!r} is not a participant of this conversation")


def conversation_key(sender_id: str, receiver_id: str, listing_id: Optional[str] = None) -> ConversationKey:
    """Canonicalize a message's participants and listing into its conversation key."""
    low, high = sorted((sender_id, receiver_id))
    return ConversationKey(low, high, listing_id or None)
