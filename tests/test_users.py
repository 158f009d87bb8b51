import pytest
from pydantic import ValidationError

from errors import ConflictError
from models import UserIn
from orm import UserORM
from users import UserService


def _body(**overrides):
    data = {"username": "alice", "email": "alice@example.com", "password": "s3cret!", "role": "manager"}
    data.update(overrides)
    return UserIn(**data)


def test_create_user_hashes_password(db_session):
    user = UserService(db_session).create(_body())

    assert user.id > 0
    assert user.username == "alice"
    assert user.role == "manager"
    assert not hasattr(user, "password_hash")

    row = db_session.get(UserORM, user.id)
    assert row.password_hash != "s3cret!"
    assert row.password_hash.startswith("$pbkdf2-sha256$")


def test_role_defaults_to_staff(db_session):
    user = UserService(db_session).create(
        UserIn(username="bob", email="bob@example.com", password="hunter22")
    )
    assert user.role == "staff"


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"email": "other@example.com"}, "username"),
        ({"username": "alice2"}, "email"),
    ],
)
def test_duplicate_username_or_email_conflicts(db_session, overrides, field):
    svc = UserService(db_session)
    svc.create(_body())

    with pytest.raises(ConflictError, match=f"{field} already exists"):
        svc.create(_body(**overrides))
    assert len(svc.list()) == 1


def test_invalid_input_rejected():
    with pytest.raises(ValidationError):
        _body(email="not-an-email")
    with pytest.raises(ValidationError):
        _body(password="123")
    with pytest.raises(ValidationError):
        _body(role="owner")


def test_authenticate(db_session):
    svc = UserService(db_session)
    created = svc.create(_body())

    assert svc.authenticate("alice", "s3cret!").id == created.id
    assert svc.authenticate("alice", "wrong") is None
    assert svc.authenticate("nobody", "s3cret!") is None


def test_list_and_get(db_session):
    svc = UserService(db_session)
    a = svc.create(_body())
    b = svc.create(_body(username="bob", email="bob@example.com", role="admin"))

    assert [u.id for u in svc.list()] == [a.id, b.id]
    assert svc.get_by_id(b.id).role == "admin"
    assert svc.get_by_id(999_999) is None
    assert svc.exists(a.id)
    assert not svc.exists(999_999)


def test_login_api(client):
    r = client.post(
        "/users",
        json={"username": "alice", "email": "alice@example.com", "password": "s3cret!", "role": "admin"},
    )
    assert r.status_code == 201
    user_id = r.json()["id"]

    r = client.post("/login", json={"username": "alice", "password": "s3cret!"})
    assert r.status_code == 200, r.text
    assert r.json()["id"] == user_id
    assert r.json()["role"] == "admin"
    assert "password_hash" not in r.json()


@pytest.mark.parametrize(
    "username, password",
    [("alice", "wrong-pass"), ("nobody", "s3cret!")],
)
def test_login_api_rejects_bad_credentials(client, username, password):
    body = {"username": "alice", "email": "alice@example.com", "password": "s3cret!"}
    assert client.post("/users", json=body).status_code == 201

    r = client.post("/login", json={"username": username, "password": password})
    assert r.status_code == 401
    assert r.json() == {"detail": "invalid username or password"}
