import pytest

from chatapp.core.enums import ConversationType
from chatapp.core.exceptions import (
    ForbiddenException,
    InvalidIdentifierException,
    InvalidReplyException,
    NotFoundException,
)
from chatapp.core.ulid_helper import generate_ulid
from chatapp.services.conversation_resolver import (
    ConversationContext,
    ConversationResolver,
    PeerTarget,
    RoomTarget,
)
from tests._utils.factories import follow, make_message, make_room


@pytest.fixture
def resolver(db):
    return ConversationResolver(db)


class TestResolveSendPermission:
    def test_room_member_resolves_to_room(self, db, resolver, alice, bob):
        room = make_room(db, alice, bob)

        target = resolver.resolve_send_permission(bob.id, room.id)

        assert target == RoomTarget(room_id=room.id)
        assert target.conversation_type == ConversationType.ROOM

    def test_non_member_cannot_post_to_room(self, db, resolver, alice, carol):
        room = make_room(db, alice)

        with pytest.raises(ForbiddenException) as exc:
            resolver.resolve_send_permission(carol.id, room.id)
        assert exc.value.message == "Only room members can send messages to this room"

    def test_dm_requires_sender_to_follow_recipient(self, db, resolver, alice, bob):
        with pytest.raises(ForbiddenException) as exc:
            resolver.resolve_send_permission(alice.id, bob.id)
        assert exc.value.message == "Follow this user first to send direct messages"

        follow(db, alice, bob)
        assert resolver.resolve_send_permission(alice.id, bob.id) == PeerTarget(peer_id=bob.id)

    def test_follow_back_is_not_required(self, db, resolver, alice, bob):
        follow(db, alice, bob)

        # bob never followed alice, so only alice may open the DM
        assert resolver.resolve_send_permission(alice.id, bob.id).target_id == bob.id
        with pytest.raises(ForbiddenException):
            resolver.resolve_send_permission(bob.id, alice.id)

    def test_malformed_ids_are_rejected(self, resolver, alice):
        with pytest.raises(InvalidIdentifierException) as exc:
            resolver.resolve_send_permission(alice.id, "not-an-id")
        assert exc.value.message == "Invalid sender or receiver identifier"

    def test_unknown_sender_and_recipient(self, resolver, alice):
        with pytest.raises(NotFoundException) as exc:
            resolver.resolve_send_permission(generate_ulid(), alice.id)
        assert exc.value.message == "Sender user not found"

        with pytest.raises(NotFoundException) as exc:
            resolver.resolve_send_permission(alice.id, generate_ulid())
        assert exc.value.message == "Recipient user not found"


class TestResolveReplyTarget:
    def test_no_reply_requested(self, resolver, alice):
        assert resolver.resolve_reply_target(None, PeerTarget(peer_id=alice.id), alice.id) is None
        assert resolver.resolve_reply_target("", PeerTarget(peer_id=alice.id), alice.id) is None

    def test_reply_in_same_room(self, db, resolver, alice, bob):
        room = make_room(db, alice, bob)
        original = make_message(db, alice, room.id)

        reply_id = resolver.resolve_reply_target(original.id, RoomTarget(room_id=room.id), bob.id)

        assert reply_id == original.id

    def test_reply_from_other_room_is_rejected(self, db, resolver, alice, bob):
        room = make_room(db, alice, bob)
        other_room = make_room(db, alice, name="Other")
        original = make_message(db, alice, other_room.id)

        with pytest.raises(InvalidReplyException) as exc:
            resolver.resolve_reply_target(original.id, RoomTarget(room_id=room.id), bob.id)
        assert exc.value.message == "Reply message must belong to the same room"

    def test_reply_in_either_dm_direction(self, db, resolver, alice, bob):
        from_bob = make_message(db, bob, alice.id)

        reply_id = resolver.resolve_reply_target(from_bob.id, PeerTarget(peer_id=bob.id), alice.id)

        assert reply_id == from_bob.id

    def test_reply_from_other_dm_is_rejected(self, db, resolver, alice, bob, carol):
        foreign = make_message(db, carol, bob.id)

        with pytest.raises(InvalidReplyException) as exc:
            resolver.resolve_reply_target(foreign.id, PeerTarget(peer_id=bob.id), alice.id)
        assert exc.value.message == "Reply message must belong to the same conversation"

    def test_malformed_and_missing_reply(self, resolver, alice, bob):
        target = PeerTarget(peer_id=bob.id)
        with pytest.raises(InvalidIdentifierException):
            resolver.resolve_reply_target("nope", target, alice.id)
        with pytest.raises(NotFoundException) as exc:
            resolver.resolve_reply_target(generate_ulid(), target, alice.id)
        assert exc.value.message == "Reply target message not found"


class TestResolveActorPermission:
    def test_room_context_snapshots_creator_and_members(self, db, resolver, alice, bob):
        room = make_room(db, alice, bob)

        context = resolver.resolve_actor_permission(bob.id, room.id)

        assert context.is_room
        assert context.room_created_by == alice.id
        assert set(context.room_member_ids) == {alice.id, bob.id}

    def test_room_outsider_cannot_manage(self, db, resolver, alice, carol):
        room = make_room(db, alice)

        with pytest.raises(ForbiddenException) as exc:
            resolver.resolve_actor_permission(carol.id, room.id)
        assert exc.value.message == "Only room members can manage room messages"

    def test_dm_context_needs_no_follow_edge(self, resolver, alice, bob):
        context = resolver.resolve_actor_permission(alice.id, bob.id)

        assert not context.is_room
        assert context.target == PeerTarget(peer_id=bob.id)
        assert context.conversation_type == ConversationType.DM

    def test_unknown_actor_and_target(self, resolver, alice):
        with pytest.raises(NotFoundException) as exc:
            resolver.resolve_actor_permission(generate_ulid(), alice.id)
        assert exc.value.message == "Actor user not found"

        with pytest.raises(NotFoundException) as exc:
            resolver.resolve_actor_permission(alice.id, generate_ulid())
        assert exc.value.message == "Conversation target not found"


class TestManagementRules:
    def test_room_delete_allowed_for_sender_and_creator_only(self, db, alice, bob, carol):
        room = make_room(db, alice, bob, carol)
        message = make_message(db, bob, room.id)
        members = (alice.id, bob.id, carol.id)

        def context(actor):
            return ConversationContext(
                actor_id=actor.id,
                target=RoomTarget(room_id=room.id),
                room_created_by=alice.id,
                room_member_ids=members,
            )

        assert ConversationResolver.can_delete_message(message, context(bob))
        assert ConversationResolver.can_delete_message(message, context(alice))
        assert not ConversationResolver.can_delete_message(message, context(carol))

    def test_dm_delete_allowed_for_either_party(self, db, alice, bob, carol):
        message = make_message(db, alice, bob.id)

        for actor, allowed in ((alice, True), (bob, True), (carol, False)):
            context = ConversationContext(actor_id=actor.id, target=PeerTarget(peer_id=bob.id))
            assert ConversationResolver.can_delete_message(message, context) is allowed

    def test_clear_rules(self, alice, bob):
        room_target = RoomTarget(room_id=generate_ulid())
        creator = ConversationContext(actor_id=alice.id, target=room_target, room_created_by=alice.id)
        member = ConversationContext(actor_id=bob.id, target=room_target, room_created_by=alice.id)
        dm = ConversationContext(actor_id=bob.id, target=PeerTarget(peer_id=alice.id))

        assert ConversationResolver.can_clear_conversation(creator)
        assert not ConversationResolver.can_clear_conversation(member)
        assert ConversationResolver.can_clear_conversation(dm)


def test_classify_target(db, resolver, alice):
    room = make_room(db, alice)

    assert resolver.classify_target(room.id) == RoomTarget(room_id=room.id)
    assert resolver.classify_target(alice.id) == PeerTarget(peer_id=alice.id)
