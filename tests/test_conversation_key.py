"""
Tests for conversation key canonicalization.
"""
import pytest

from messaging.services.conversation_key import ConversationKey, conversation_key


class TestConversationKey:

    def test_direction_does_not_matter(self):
        assert conversation_key("alice", "bob", "bike") == conversation_key("bob", "alice", "bike")

    def test_listing_scopes_the_conversation(self):
        assert conversation_key("alice", "bob", "bike") != conversation_key("alice", "bob", "lamp")
        assert conversation_key("alice", "bob", "bike") != conversation_key("alice", "bob")

    def test_empty_listing_means_unscoped(self):
        assert conversation_key("alice", "bob", "") == conversation_key("alice", "bob", None)
        assert conversation_key("alice", "bob").listing_id is None

    def test_participants_are_ordered(self):
        key = conversation_key("zed", "amy")
        assert key.participant_low == "amy"
        assert key.participant_high == "zed"

    def test_ids_containing_separators_do_not_collide(self):
        # "a-b" + "c" and "a" + "b-c" collapse to the same string under naive concatenation
        first = conversation_key("a-b", "c", None)
        second = conversation_key("a", "b-c", None)
        assert first != second
        assert first.conversation_id != second.conversation_id

    def test_conversation_id_is_stable(self):
        key = conversation_key("bob", "alice", "bike")
        assert key.conversation_id == ConversationKey("alice", "bob", "bike").conversation_id
        assert len(key.conversation_id) == 32

    def test_counterpart(self):
        key = conversation_key("alice", "bob", "bike")
        assert key.counterpart("alice") == "bob"
        assert key.counterpart("bob") == "alice"

    def test_counterpart_rejects_outsider(self):
        with pytest.raises(ValueError):
            conversation_key("alice", "bob").counterpart("carol")
