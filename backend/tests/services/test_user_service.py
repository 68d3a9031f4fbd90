import pytest

from chatapp.core.enums import FollowStatus
from chatapp.core.exceptions import (
    ConflictException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from chatapp.core.ulid_helper import generate_ulid
from chatapp.models.user import FollowRequest, UserFollow
from chatapp.services.user_service import UserService


@pytest.fixture
def service(db):
    return UserService(db)


class TestAccounts:
    def test_sign_up_then_login(self, service):
        user = service.sign_up("dana", "dana@example.com", "secret1")

        assert user.password_hash != "secret1"
        assert user.online_status is False

        logged_in = service.login("dana@example.com", "secret1")
        assert logged_in.id == user.id
        assert logged_in.online_status is True

    def test_name_is_accepted_for_username(self, service):
        user = service.sign_up(None, "erin@example.com", "secret1", name="erin")

        assert user.username == "erin"

    def test_duplicate_email_or_username(self, service):
        service.sign_up("dana", "dana@example.com", "secret1")

        with pytest.raises(ConflictException) as exc:
            service.sign_up("dana", "other@example.com", "secret1")
        assert exc.value.message == "Email or username already exists"
        with pytest.raises(ConflictException):
            service.sign_up("other", "dana@example.com", "secret1")

    @pytest.mark.parametrize(
        "username,email,password,error",
        [
            ("", "a@example.com", "secret1", "All fields required"),
            ("ab", "a@example.com", "secret1", "Username must be at least 3 characters"),
            ("abc", "not-an-email", "secret1", "Invalid email format"),
            ("abc", "a@example.com", "short", "Password must be at least 6 characters"),
        ],
    )
    def test_sign_up_validation(self, service, username, email, password, error):
        with pytest.raises(ValidationException) as exc:
            service.sign_up(username, email, password)
        assert exc.value.message == error

    def test_login_failures_look_the_same(self, service):
        service.sign_up("dana", "dana@example.com", "secret1")

        with pytest.raises(UnauthorizedException) as wrong_password:
            service.login("dana@example.com", "wrong-pass")
        with pytest.raises(UnauthorizedException) as unknown_email:
            service.login("nobody@example.com", "secret1")

        assert wrong_password.value.message == unknown_email.value.message == "Invalid credentials"

    def test_logout_and_status(self, service, alice):
        assert service.update_status(alice.id, True).online_status is True
        assert service.logout(alice.id).online_status is False

        with pytest.raises(ValidationException):
            service.update_status(alice.id, None)

    def test_update_profile_only_touches_given_fields(self, service, alice):
        user = service.update_profile(alice.id, {"bio": "hello", "password_hash": "nope"})

        assert user.bio == "hello"
        assert user.avatar_url == ""
        assert user.password_hash != "nope"

    def test_update_profile_username_must_be_unique(self, service, alice, bob):
        with pytest.raises(ConflictException) as exc:
            service.update_profile(alice.id, {"username": "bob"})
        assert exc.value.message == "Username already taken"

        # Keeping your own username is not a conflict
        assert service.update_profile(alice.id, {"username": "alice"}).username == "alice"

    def test_unknown_user(self, service):
        with pytest.raises(NotFoundException):
            service.get_user(generate_ulid())


class TestFollowGraph:
    def test_request_accept_flow(self, db, service, alice, bob):
        pending = service.send_follow_request(alice.id, bob.id)
        assert [u.id for u in pending] == [alice.id]
        assert service.get_follow_status(alice.id, bob.id).status == FollowStatus.PENDING

        followers = service.accept_follow_request(bob.id, alice.id)

        assert [u.id for u in followers] == [alice.id]
        assert db.query(FollowRequest).count() == 0
        assert [u.id for u in service.get_following(alice.id)] == [bob.id]
        assert service.get_follow_status(alice.id, bob.id).status == FollowStatus.FOLLOWING
        assert service.get_follow_status(bob.id, alice.id).status == FollowStatus.NOT_FOLLOWING

    def test_reject_leaves_no_edge(self, db, service, alice, bob):
        service.send_follow_request(alice.id, bob.id)

        remaining = service.reject_follow_request(bob.id, alice.id)

        assert remaining == []
        assert db.query(UserFollow).count() == 0

    def test_duplicate_and_self_requests(self, service, alice, bob):
        with pytest.raises(ValidationException) as exc:
            service.send_follow_request(alice.id, alice.id)
        assert exc.value.message == "Cannot follow yourself"

        service.send_follow_request(alice.id, bob.id)
        with pytest.raises(ValidationException) as exc:
            service.send_follow_request(alice.id, bob.id)
        assert exc.value.message == "Follow request already sent"

        service.accept_follow_request(bob.id, alice.id)
        with pytest.raises(ValidationException) as exc:
            service.send_follow_request(alice.id, bob.id)
        assert exc.value.message == "Already following this user"

    def test_unfollow(self, service, alice, bob, carol):
        for target in (bob, carol):
            service.send_follow_request(alice.id, target.id)
            service.accept_follow_request(target.id, alice.id)

        following = service.unfollow(alice.id, bob.id)

        assert [u.id for u in following] == [carol.id]
        assert service.get_followers(bob.id) == []

    def test_profile_and_follow_info(self, service, alice, bob, carol):
        service.send_follow_request(alice.id, bob.id)
        service.accept_follow_request(bob.id, alice.id)
        service.send_follow_request(carol.id, bob.id)
        service.send_follow_request(bob.id, carol.id)

        profile = service.get_profile(bob.id)
        assert [u.id for u in profile.followers] == [alice.id]
        assert profile.following == []
        assert [u.id for u in profile.follow_requests] == [carol.id]

        info = service.get_follow_info(bob.id)
        assert [u.id for u in info.received_requests] == [carol.id]
        assert [u.id for u in info.sent_requests] == [carol.id]
        assert [u.id for u in service.get_sent_follow_requests(bob.id)] == [carol.id]
