from chatapp.core.ulid_helper import generate_ulid
from chatapp.services.messaging.channels import dm_channel
from tests._utils.factories import follow, make_message, make_room


def _send(client, sender_id, target_id, content="hello", **extra):
    return client.post(
        "/api/messages/send",
        json={
            "senderUserId": sender_id,
            "receiverUserIdOrRoomId": target_id,
            "messageContent": content,
            **extra,
        },
    )


def test_dm_send_requires_follow_and_emits(client, db, recorder, alice, bob):
    blocked = _send(client, alice.id, bob.id)
    assert blocked.status_code == 403
    assert blocked.json() == {"message": "Follow this user first to send direct messages"}
    assert recorder.sent == []

    follow(db, alice, bob)
    response = _send(client, alice.id, bob.id, "hi bob")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["messageContent"] == "hi bob"
    assert data["sender"]["username"] == "alice"
    assert data["encryptionMethod"] == "none"

    channels, payload = recorder.last("message:new")
    assert channels == [f"user:{alice.id}", f"user:{bob.id}", dm_channel(alice.id, bob.id)]
    assert payload == {"data": data}


def test_room_send_with_reply(client, db, recorder, alice, bob):
    room = make_room(db, alice, bob)
    original = make_message(db, alice, room.id, "question")

    response = _send(client, bob.id, room.id, "answer", replyToMessageId=original.id)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["replyToId"] == original.id
    assert data["replyTo"]["messageContent"] == "question"
    channels, _ = recorder.last("message:new")
    assert f"room:{room.id}" in channels
    assert f"conversation:{room.id}" in channels


def test_legacy_reply_field_and_foreign_reply(client, db, alice, bob, carol):
    follow(db, alice, bob)
    foreign = make_message(db, carol, bob.id)

    response = _send(client, alice.id, bob.id, "re", replyTo=foreign.id)

    assert response.status_code == 400
    assert response.json() == {"message": "Reply message must belong to the same conversation"}


def test_history_endpoints(client, db, alice, bob):
    make_message(db, alice, bob.id, "one")
    make_message(db, bob, alice.id, "two")
    room = make_room(db, alice)
    make_message(db, alice, room.id, "room")

    between = client.get(f"/api/messages/between/{bob.id}/{alice.id}").json()
    assert [m["messageContent"] for m in between] == ["one", "two"]

    for_room = client.get(f"/api/messages/{room.id}").json()
    assert [m["messageContent"] for m in for_room] == ["room"]


def test_delete_message_emits_deleted(client, db, recorder, alice, bob):
    message = make_message(db, alice, bob.id)

    response = client.delete(f"/api/messages/{message.id}?actorUserId={bob.id}")

    assert response.status_code == 200
    assert response.json() == {"message": "Message deleted successfully", "messageId": message.id}
    channels, payload = recorder.last("message:deleted")
    assert dm_channel(alice.id, bob.id) in channels
    assert payload == {
        "messageId": message.id,
        "receiverUserIdOrRoomId": bob.id,
        "actorUserId": bob.id,
    }


def test_delete_message_forbidden_for_other_room_member(client, db, recorder, alice, bob, carol):
    room = make_room(db, alice, bob, carol)
    message = make_message(db, bob, room.id)

    response = client.request(
        "DELETE", f"/api/messages/{message.id}", json={"actorUserId": carol.id}
    )

    assert response.status_code == 403
    assert recorder.sent == []


def test_clear_conversation(client, db, recorder, alice, bob):
    make_message(db, alice, bob.id)
    make_message(db, bob, alice.id)

    response = client.request(
        "DELETE",
        "/api/messages/conversation/clear",
        json={"actorUserId": alice.id, "receiverUserIdOrRoomId": bob.id},
    )

    assert response.status_code == 200
    assert response.json()["deletedCount"] == 2
    channels, payload = recorder.last("conversation:cleared")
    assert channels == [f"user:{alice.id}", f"user:{bob.id}", dm_channel(alice.id, bob.id)]
    assert payload["deletedCount"] == 2
    assert payload["conversationType"] == "dm"

    again = client.delete(
        f"/api/messages/conversation/clear?actorUserId={alice.id}&receiverUserIdOrRoomId={bob.id}"
    )
    assert again.json()["deletedCount"] == 0


def test_room_clear_by_member_is_forbidden(client, db, alice, bob):
    room = make_room(db, alice, bob)
    make_message(db, alice, room.id)

    response = client.delete(
        f"/api/messages/conversation/clear?actorUserId={bob.id}&receiverUserIdOrRoomId={room.id}"
    )

    assert response.status_code == 403
    assert response.json() == {"message": "Only room creator can clear room chat"}


def test_reactions(client, db, recorder, alice, bob):
    message = make_message(db, alice, bob.id)

    added = client.put(f"/api/messages/{message.id}/reactions", json={"userId": bob.id, "emoji": "👍"})
    assert added.status_code == 200
    assert added.json()["action"] == "added"
    _, payload = recorder.last("message:reaction_updated")
    assert payload == {
        "messageId": message.id,
        "reactions": [{"user": bob.id, "emoji": "👍"}],
        "action": "added",
    }

    changed = client.put(f"/api/messages/{message.id}/reactions", json={"userId": bob.id, "emoji": "🔥"})
    assert changed.json()["action"] == "changed"
    assert [r["emoji"] for r in changed.json()["data"]["reactions"]] == ["🔥"]

    removed = client.delete(f"/api/messages/{message.id}/reactions?userId={bob.id}")
    assert removed.status_code == 200
    assert removed.json()["data"]["reactions"] == []

    missing = client.delete(f"/api/messages/{message.id}/reactions?userId={bob.id}")
    assert missing.status_code == 404


def test_mark_read(client, db, recorder, alice, bob):
    message = make_message(db, alice, bob.id)

    response = client.put(f"/api/messages/{message.id}/read")

    assert response.status_code == 200
    assert response.json()["data"]["readStatus"] is True
    _, payload = recorder.last("message:read")
    assert payload == {"messageId": message.id, "receiverUserIdOrRoomId": bob.id}


def test_unknown_message_and_endpoint(client):
    assert client.put(f"/api/messages/{generate_ulid()}/read").status_code == 404

    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json() == {"message": "Endpoint not found"}


def test_remove_reaction_reads_json_body(client, db, recorder, alice, bob):
    message = make_message(db, alice, bob.id)
    client.put(f"/api/messages/{message.id}/reactions", json={"userId": bob.id, "emoji": "👍"})

    response = client.request("DELETE", f"/api/messages/{message.id}/reactions", json={"userId": bob.id})

    assert response.status_code == 200
    assert response.json()["data"]["reactions"] == []
    _, payload = recorder.last("message:reaction_updated")
    assert payload["action"] == "removed"


def test_mistyped_action_body_is_rejected(client, db, recorder, alice, bob):
    message = make_message(db, alice, bob.id)

    response = client.request("DELETE", f"/api/messages/{message.id}", json={"actorUserId": 42})

    assert response.status_code == 400
    assert recorder.sent == []
