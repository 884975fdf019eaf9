import pytest

import config
from aws_mock_exam.backends.local_storage import MemoryStorage
from aws_mock_exam.backends.memory import MemoryIdentityProvider, MemoryProfileStore
from aws_mock_exam.errors import (
    BackendError, InputValidationError, InvalidCredentialsError, UsernameTakenError,
)
from aws_mock_exam.models.user_model import Role
from aws_mock_exam.services.auth_service import (
    SESSION_CREATED_KEY, TOKENS_KEY, USER_KEY, AuthSessionManager,
)

DAY = 24 * 3600


class FailingSignOutIdentity(MemoryIdentityProvider):
    def sign_out(self, tokens):
        raise BackendError("network down")


@pytest.fixture
def identity():
    return MemoryIdentityProvider()


@pytest.fixture
def profiles():
    return MemoryProfileStore()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def auth(identity, profiles, storage, clock):
    return AuthSessionManager(identity, profiles, storage, clock=clock)


def test_sign_up_creates_profile_and_caches(auth, profiles, storage, clock):
    user = auth.sign_up("alice01", "secret123")

    assert user.username == "alice01"
    assert user.role == Role.user
    assert profiles.get_profile(user.id)["username"] == "alice01"
    assert storage.get(USER_KEY)["id"] == user.id
    assert storage.get(SESSION_CREATED_KEY) == clock()
    assert auth.current_user() == user


def test_duplicate_username(auth):
    auth.sign_up("alice01", "secret123")
    with pytest.raises(UsernameTakenError):
        auth.sign_up("alice01", "another123")


@pytest.mark.parametrize("username", ["ab", "has space", "한글아이디", "x" * 21, ""])
def test_invalid_username(auth, username):
    with pytest.raises(InputValidationError):
        auth.sign_up(username, "secret123")


def test_short_password(auth):
    with pytest.raises(InputValidationError):
        auth.sign_up("alice01", "12345")


def test_username_min_length_is_configurable(auth, monkeypatch):
    monkeypatch.setattr(config, "USERNAME_MIN_LENGTH", 3)
    assert auth.sign_up("bob", "secret123").username == "bob"


def test_sign_in(auth, storage):
    created = auth.sign_up("alice01", "secret123")
    auth.sign_out()
    assert storage.get(USER_KEY) is None

    user = auth.sign_in("alice01", "secret123")
    assert user.id == created.id

    with pytest.raises(InvalidCredentialsError):
        auth.sign_in("alice01", "wrongpass")


def test_sign_in_malformed_input(auth):
    with pytest.raises(InputValidationError, match="아이디"):
        auth.sign_in("a!", "secret123")
    with pytest.raises(InputValidationError, match="올바른 아이디"):
        auth.sign_in("a" * 21, "secret123")
    with pytest.raises(InputValidationError, match="비밀번호"):
        auth.sign_in("alice01", "123")


def test_restore_within_seven_days(auth, clock):
    user = auth.sign_up("alice01", "secret123")
    clock.advance(6 * DAY)

    restored = auth.restore_session()
    assert restored.id == user.id
    assert restored.username == "alice01"


def test_restore_after_eight_days_signs_out(auth, identity, storage, clock):
    auth.sign_up("alice01", "secret123")
    tokens = auth._tokens()
    clock.advance(8 * DAY)

    assert auth.session_expired()
    assert auth.restore_session() is None
    assert storage.get(USER_KEY) is None
    assert storage.get(TOKENS_KEY) is None
    assert identity.get_user(tokens) is None


def test_restore_without_backend_session_clears_cache(auth, identity, storage):
    auth.sign_up("alice01", "secret123")
    identity.revoke_all()

    assert auth.restore_session() is None
    assert storage.get(USER_KEY) is None


def test_restore_without_tokens(auth):
    assert auth.restore_session() is None


def test_missing_marker_is_written_on_restore(auth, storage, clock):
    auth.sign_up("alice01", "secret123")
    storage.remove(SESSION_CREATED_KEY)
    clock.advance(30 * DAY)

    assert auth.restore_session() is not None
    assert storage.get(SESSION_CREATED_KEY) == clock()


def test_restore_picks_up_role_change(auth, profiles):
    user = auth.sign_up("alice01", "secret123")
    profiles.update_role(user.id, "admin")

    assert auth.restore_session().is_admin


def test_sign_out_clears_cache_even_if_backend_fails(profiles, storage, clock):
    auth = AuthSessionManager(FailingSignOutIdentity(), profiles, storage, clock=clock)
    auth.sign_up("alice01", "secret123")

    auth.sign_out()
    assert auth.current_user() is None
    assert storage.get(TOKENS_KEY) is None
