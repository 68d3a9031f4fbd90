import pytest

from chatapp.core.exceptions import (
    ForbiddenException,
    InvalidIdentifierException,
    InvalidReplyException,
    NotFoundException,
    ValidationException,
)
from chatapp.core.ulid_helper import generate_ulid
from chatapp.models.message import Message, MessageReaction
from chatapp.services.conversation_resolver import PeerTarget, RoomTarget
from chatapp.services.message_service import MessageService, normalize_encryption
from tests._utils.factories import follow, make_message, make_room


@pytest.fixture
def service(db):
    return MessageService(db)


class TestNormalizeEncryption:
    def test_unencrypted_always_none(self):
        assert normalize_encryption(False, "RSA") == (False, "none")
        assert normalize_encryption(None, None) == (False, "none")

    def test_known_method_is_kept(self):
        assert normalize_encryption(True, "RSA") == (True, "RSA")
        assert normalize_encryption(True, "E2EE-AES-GCM") == (True, "E2EE-AES-GCM")

    def test_unknown_method_falls_back_to_aes(self):
        assert normalize_encryption(True, "rot13") == (True, "AES")
        assert normalize_encryption(True, None) == (True, "AES")


class TestSendMessage:
    def test_dm_blocked_until_follow(self, db, service, alice, bob):
        with pytest.raises(ForbiddenException):
            service.send_message(alice.id, bob.id, "hi")
        assert db.query(Message).count() == 0

        follow(db, alice, bob)
        result = service.send_message(alice.id, bob.id, "hi")

        assert result.target == PeerTarget(peer_id=bob.id)
        assert result.message.receiver_user_id_or_room_id == bob.id
        assert result.message.message_type == "text"
        assert result.message.read_status is False
        assert result.message.encryption_method == "none"

    def test_room_message(self, db, service, alice, bob):
        room = make_room(db, alice, bob)

        result = service.send_message(bob.id, room.id, "hello room", message_type="image")

        assert result.target == RoomTarget(room_id=room.id)
        assert result.message.message_type == "image"

    @pytest.mark.parametrize(
        "content,message_type,error",
        [
            ("   ", None, "Message content cannot be empty"),
            ("x" * 5001, None, "Message content cannot exceed 5000 characters"),
            ("hi", "video", "Invalid message type. Must be: text, image, or file"),
        ],
    )
    def test_content_validation(self, db, service, alice, bob, content, message_type, error):
        follow(db, alice, bob)

        with pytest.raises(ValidationException) as exc:
            service.send_message(alice.id, bob.id, content, message_type=message_type)
        assert exc.value.message == error

    def test_missing_fields(self, service, alice):
        with pytest.raises(ValidationException) as exc:
            service.send_message(alice.id, None, "hi")
        assert exc.value.message == "All fields required"

    def test_content_at_limit_is_accepted(self, db, service, alice, bob):
        follow(db, alice, bob)

        result = service.send_message(alice.id, bob.id, "x" * 5000)

        assert len(result.message.message_content) == 5000

    def test_encryption_is_normalized_on_store(self, db, service, alice, bob):
        follow(db, alice, bob)

        result = service.send_message(
            alice.id, bob.id, "ciphertext", is_encrypted=True, encryption_method="bogus"
        )

        assert result.message.is_encrypted is True
        assert result.message.encryption_method == "AES"

    def test_reply_must_stay_in_conversation(self, db, service, alice, bob, carol):
        follow(db, alice, bob)
        room = make_room(db, alice)
        in_room = make_message(db, alice, room.id)

        with pytest.raises(InvalidReplyException):
            service.send_message(alice.id, bob.id, "re", reply_to_id=in_room.id)

        original = service.send_message(alice.id, bob.id, "first").message
        reply = service.send_message(alice.id, bob.id, "re", reply_to_id=original.id).message

        assert reply.reply_to_id == original.id
        assert reply.reply_to.message_content == "first"


class TestListing:
    def test_between_covers_both_directions_in_order(self, db, service, alice, bob, carol):
        first = make_message(db, alice, bob.id, "one")
        second = make_message(db, bob, alice.id, "two")
        make_message(db, carol, bob.id, "elsewhere")

        history = service.list_between(bob.id, alice.id)

        assert [m.id for m in history] == [first.id, second.id]

    def test_for_target(self, db, service, alice, bob):
        room = make_room(db, alice, bob)
        make_message(db, alice, room.id, "a")
        make_message(db, bob, room.id, "b")
        make_message(db, alice, bob.id, "dm")

        assert [m.message_content for m in service.list_for_target(room.id)] == ["a", "b"]


class TestDeleteMessage:
    def test_dm_receiver_may_delete(self, db, service, alice, bob):
        message = make_message(db, alice, bob.id)

        result = service.delete_message(message.id, bob.id)

        assert result.message.id == message.id
        assert result.target == PeerTarget(peer_id=bob.id)
        assert db.query(Message).count() == 0

    def test_room_creator_may_delete_others(self, db, service, alice, bob):
        room = make_room(db, alice, bob)
        message = make_message(db, bob, room.id)

        result = service.delete_message(message.id, alice.id)

        assert result.target == RoomTarget(room_id=room.id)
        assert result.message.sender_user_id == bob.id

    def test_room_member_cannot_delete_others(self, db, service, alice, bob, carol):
        room = make_room(db, alice, bob, carol)
        message = make_message(db, bob, room.id)

        with pytest.raises(ForbiddenException) as exc:
            service.delete_message(message.id, carol.id)
        assert exc.value.message == "You can only delete your own message in this chat"
        assert db.query(Message).count() == 1

    def test_delete_drops_reactions_and_unlinks_replies(self, db, service, alice, bob):
        message = make_message(db, alice, bob.id)
        reply = make_message(db, bob, alice.id, "re", reply_to_id=message.id)
        db.add(MessageReaction(message_id=message.id, user_id=bob.id, emoji="+1"))
        db.commit()

        service.delete_message(message.id, alice.id)

        assert db.query(MessageReaction).count() == 0
        assert db.query(Message).filter(Message.id == reply.id).one().reply_to_id is None

    def test_errors(self, service, alice):
        with pytest.raises(ValidationException) as exc:
            service.delete_message(generate_ulid(), None)
        assert exc.value.message == "actorUserId is required"
        with pytest.raises(InvalidIdentifierException):
            service.delete_message("bad", alice.id)
        with pytest.raises(NotFoundException):
            service.delete_message(generate_ulid(), alice.id)


class TestClearConversation:
    def test_dm_clear_counts_both_directions_then_zero(self, db, service, alice, bob, carol):
        make_message(db, alice, bob.id)
        make_message(db, bob, alice.id)
        make_message(db, alice, carol.id)

        first = service.clear_conversation(bob.id, alice.id)
        second = service.clear_conversation(bob.id, alice.id)

        assert first.deleted_count == 2
        assert second.deleted_count == 0
        assert db.query(Message).count() == 1

    def test_room_clear_is_creator_only(self, db, service, alice, bob):
        room = make_room(db, alice, bob)
        make_message(db, alice, room.id)
        make_message(db, bob, room.id)

        with pytest.raises(ForbiddenException) as exc:
            service.clear_conversation(bob.id, room.id)
        assert exc.value.message == "Only room creator can clear room chat"

        result = service.clear_conversation(alice.id, room.id)

        assert result.deleted_count == 2
        assert result.context.is_room
        assert service.list_for_target(room.id) == []

    def test_missing_fields(self, service, alice):
        with pytest.raises(ValidationException):
            service.clear_conversation(alice.id, "")


def test_mark_read(db, service, alice, bob):
    message = make_message(db, alice, bob.id)

    result = service.mark_read(message.id)

    assert result.message.read_status is True
    assert result.target == PeerTarget(peer_id=bob.id)
    with pytest.raises(NotFoundException):
        service.mark_read(generate_ulid())
