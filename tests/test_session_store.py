"""
Tests for the persisted auth session.
"""
from mock_interview.infrastructure.api import AuthSession, User


def test_save_and_load(tmp_path):
    path = str(tmp_path / "nested" / "auth.json")
    session = AuthSession(path)
    session.set("tok", User(id="42", email="dev@example.com", name="Dev"))
    session.save()

    restored = AuthSession(path)
    assert restored.load() is True
    assert restored.token == "tok"
    assert restored.user == User(id="42", email="dev@example.com", name="Dev")
    assert restored.user_id == "42"
    assert restored.is_authenticated


def test_missing_file(tmp_path):
    assert AuthSession(str(tmp_path / "absent.json")).load() is False


def test_corrupt_file(tmp_path):
    path = tmp_path / "auth.json"
    path.write_text("{not json")
    session = AuthSession(str(path))

    assert session.load() is False
    assert session.token is None


def test_file_without_token(tmp_path):
    path = tmp_path / "auth.json"
    path.write_text('{"token": null, "user": null}')
    assert AuthSession(str(path)).load() is False


def test_in_memory_session_never_writes(tmp_path):
    session = AuthSession()
    session.set("tok", User(id="1", email="a@b.com"))
    session.save()
    session.clear()
    assert session.token is None
    assert list(tmp_path.iterdir()) == []


def test_top_level_list_is_ignored(tmp_path):
    path = tmp_path / "auth.json"
    path.write_text("[]")
    session = AuthSession(str(path))

    assert session.load() is False
    assert session.token is None


def test_unknown_user_keys_are_dropped(tmp_path):
    path = tmp_path / "auth.json"
    path.write_text('{"token": "tok", "user": {"id": "7", "email": "a@b.com", "role": "admin"}}')
    session = AuthSession(str(path))

    assert session.load() is True
    assert session.user == User(id="7", email="a@b.com")


def test_malformed_user_record_is_ignored(tmp_path):
    path = tmp_path / "auth.json"
    path.write_text('{"token": "tok", "user": ["7", "a@b.com"]}')
    session = AuthSession(str(path))

    assert session.load() is False
    assert session.token is None
    assert session.user is None
