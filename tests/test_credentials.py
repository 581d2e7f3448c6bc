from concurrent.futures import ThreadPoolExecutor

import bcrypt
import pytest

from melos.auth.service import CredentialStore
from melos.utils.exceptions import Conflict, ValidationError


@pytest.fixture
def store(tmp_path):
    return CredentialStore(tmp_path, bcrypt_rounds=4)


def test_register_stores_only_a_hash(store):
    user_id = store.register("Ana", "Ana@X.com", "secret1")

    users = store.list_users()
    assert len(users) == 1
    user = users[0]
    assert user.id == user_id
    assert user.username == "ana"
    assert user.email == "ana@x.com"
    assert user.password_hash != "secret1"
    assert bcrypt.checkpw(b"secret1", user.password_hash.encode())
    assert "secret1" not in store.users_path.read_text(encoding="utf-8")


def test_distinct_registrations_create_one_record_each(store):
    ids = {
        store.register("ana", "ana@x.com", "secret1"),
        store.register("luis", "luis@x.com", "secret2"),
        store.register("marta", "marta@x.com", "secret3"),
    }
    assert len(ids) == 3
    assert len(store.list_users()) == 3


def test_duplicate_username_is_case_insensitive(store):
    store.register("ana", "ana@x.com", "secret1")
    with pytest.raises(Conflict) as exc:
        store.register("ANA", "other@x.com", "secret1")
    assert exc.value.field == "username"
    assert len(store.list_users()) == 1


def test_duplicate_email_reports_email(store):
    store.register("ana", "ana@x.com", "secret1")
    with pytest.raises(Conflict) as exc:
        store.register("ana2", "ANA@x.com", "secret1")
    assert exc.value.field == "email"


def test_validation_collects_every_violation(store):
    with pytest.raises(ValidationError) as exc:
        store.register("ab", "not-an-email", "123")
    errors = exc.value.errors
    assert len(errors) == 3
    assert any("username" in e for e in errors)
    assert any("email" in e for e in errors)
    assert any("password" in e for e in errors)
    assert store.list_users() == []


def test_password_longer_than_bcrypt_limit_is_rejected(store):
    with pytest.raises(ValidationError):
        store.register("ana", "ana@x.com", "x" * 73)


def test_lookup_matches_username_or_email(store):
    user_id = store.register("ana", "ana@x.com", "secret1")
    assert store.find_by_username_or_email("ANA").id == user_id
    assert store.find_by_username_or_email(" Ana@X.com ").id == user_id
    assert store.find_by_username_or_email("nobody") is None
    assert store.find_by_username_or_email("") is None


def test_verify_password(store):
    store.register("ana", "ana@x.com", "secret1")
    user = store.find_by_username_or_email("ana")
    assert store.verify_password(user, "secret1")
    assert not store.verify_password(user, "secret2")
    assert not store.verify_password(user, "")


def test_set_password_rehashes(store):
    user_id = store.register("ana", "ana@x.com", "secret1")
    before = store.get_by_id(user_id)

    store.set_password(user_id, "newsecret")

    after = store.get_by_id(user_id)
    assert after.password_hash != before.password_hash
    assert after.updated_at >= before.updated_at
    assert store.verify_password(after, "newsecret")
    assert not store.verify_password(after, "secret1")


def test_racing_registrations_have_one_winner(store):
    def attempt(i):
        try:
            return store.register("ana", f"ana{i}@x.com", "secret1")
        except Conflict:
            return None

    with ThreadPoolExecutor(max_workers=5) as pool:
        results = list(pool.map(attempt, range(5)))

    assert len([r for r in results if r]) == 1
    assert len(store.list_users()) == 1
