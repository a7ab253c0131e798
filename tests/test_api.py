from datetime import datetime, timedelta, timezone

from habit_tracker.tokens import TokenService

from .conftest import API, TEST_SECRET, bearer


def create_habit(client, token, **body):
    body.setdefault("name", "Read")
    r = client.post(f"{API}/habits", json=body, headers=bearer(token))
    assert r.status_code == 201, r.text
    return r.json()


def test_ping(client):
    assert client.get("/ping").json() == {"message": "pong"}


# -- auth --

def test_register_returns_user_and_token(client, register):
    body = register("alice", bio="reader")
    assert body["user"]["login"] == "alice"
    assert body["user"]["bio"] == "reader"
    assert "password_hash" not in body["user"]
    assert "password" not in body["user"]

    me = client.get(f"{API}/me", headers=bearer(body["token"]))
    assert me.status_code == 200
    assert me.json()["id"] == body["user"]["id"]


def test_register_duplicate_login_conflicts(client, register):
    register("alice", password="secret1")
    r = client.post(
        f"{API}/register",
        json={"login": "alice", "password": "other-pw", "name": "Impostor"},
    )
    assert r.status_code == 409
    assert r.json()["code"] == "login_taken"

    login = client.post(f"{API}/login", json={"login": "alice", "password": "secret1"})
    assert login.status_code == 200
    assert login.json()["user"]["name"] == "Alice"


def test_register_validation(client):
    r = client.post(f"{API}/register", json={"login": "alice", "password": "123", "name": "A"})
    assert r.status_code == 400
    assert r.json()["code"] == "validation_error"


def test_login_failures_are_indistinguishable(client, register):
    register("alice", password="secret1")
    wrong_pw = client.post(f"{API}/login", json={"login": "alice", "password": "nope-nope"})
    unknown = client.post(f"{API}/login", json={"login": "bob", "password": "secret1"})
    assert wrong_pw.status_code == unknown.status_code == 401
    assert wrong_pw.json() == unknown.json()


def test_missing_token(client):
    r = client.get(f"{API}/habits")
    assert r.status_code == 401
    assert r.json()["code"] == "missing_token"
    assert r.headers["WWW-Authenticate"] == "Bearer"


def test_garbage_token(client):
    r = client.get(f"{API}/habits", headers=bearer("garbage"))
    assert r.status_code == 401
    assert r.json()["code"] == "token_malformed"


def test_token_signed_with_other_key(client, register):
    user = register("alice")["user"]
    token = TokenService("not-our-secret").issue(user["id"], "alice")
    r = client.get(f"{API}/habits", headers=bearer(token))
    assert r.status_code == 401
    assert r.json()["code"] == "signature_invalid"


def test_expired_token(client, register):
    user = register("alice")["user"]
    long_ago = datetime.now(timezone.utc) - timedelta(days=8)
    token = TokenService(TEST_SECRET, clock=lambda: long_ago).issue(user["id"], "alice")
    r = client.get(f"{API}/habits", headers=bearer(token))
    assert r.status_code == 401
    assert r.json()["code"] == "token_expired"


def test_rejected_token_writes_nothing(client, register):
    token = register("alice")["token"]
    r = client.post(f"{API}/habits", json={"name": "Read"}, headers=bearer("garbage"))
    assert r.status_code == 401
    assert client.get(f"{API}/habits", headers=bearer(token)).json() == []


def test_me_for_deleted_user(client):
    token = TokenService(TEST_SECRET).issue(4242, "ghost")
    r = client.get(f"{API}/me", headers=bearer(token))
    assert r.status_code == 404
    assert r.json()["code"] == "user_not_found"


# -- habits --

def test_habit_crud(client, register):
    token = register("alice")["token"]
    habit = create_habit(client, token, name="Read", goal="20 pages")
    assert habit["is_public"] is False
    assert habit["completions"] == []

    listed = client.get(f"{API}/habits", headers=bearer(token)).json()
    assert [h["id"] for h in listed] == [habit["id"]]

    r = client.put(
        f"{API}/habits/{habit['id']}",
        json={"name": "", "is_public": True},
        headers=bearer(token),
    )
    assert r.status_code == 200
    assert (r.json()["name"], r.json()["goal"], r.json()["is_public"]) == ("Read", "20 pages", True)

    r = client.delete(f"{API}/habits/{habit['id']}", headers=bearer(token))
    assert r.json() == {"message": "Habit deleted"}
    r = client.get(f"{API}/habits/{habit['id']}", headers=bearer(token))
    assert r.status_code == 404


def test_create_habit_requires_name(client, register):
    token = register("alice")["token"]
    r = client.post(f"{API}/habits", json={"goal": "x"}, headers=bearer(token))
    assert r.status_code == 400


def test_owner_comes_from_token_not_body(client, register):
    alice = register("alice")
    bob = register("bob", name="Bob")
    habit = create_habit(client, bob["token"], name="Run", user_id=alice["user"]["id"])
    assert habit["user_id"] == bob["user"]["id"]


def test_other_users_habit_looks_missing(client, register):
    alice = register("alice")
    bob = register("bob", name="Bob")
    habit = create_habit(client, alice["token"], name="Diary")

    for method, path, body in [
        ("GET", f"/habits/{habit['id']}", None),
        ("PUT", f"/habits/{habit['id']}", {"name": "Mine now"}),
        ("DELETE", f"/habits/{habit['id']}", None),
        ("POST", f"/habits/{habit['id']}/toggle", {"date": "2024-01-01"}),
        ("POST", f"/habits/{habit['id']}/undo", None),
    ]:
        r = client.request(method, f"{API}{path}", json=body, headers=bearer(bob["token"]))
        assert r.status_code == 404, (method, path)
        assert "Diary" not in r.text

    mine = client.get(f"{API}/habits/{habit['id']}", headers=bearer(alice["token"]))
    assert mine.json()["name"] == "Diary"
    assert mine.json()["completions"] == []


# -- completions --

def test_toggle_and_undo(client, register):
    token = register("alice")["token"]
    habit = create_habit(client, token)
    toggle = f"{API}/habits/{habit['id']}/toggle"

    r = client.post(toggle, json={"date": "2024-01-05"}, headers=bearer(token))
    assert r.json() == {"message": "Completion added", "completed": True, "date": "2024-01-05"}

    r = client.post(toggle, json={"date": "2024-01-05"}, headers=bearer(token))
    assert r.json() == {"message": "Completion removed", "completed": False, "date": "2024-01-05"}

    for value in ("2024-01-01", "2024-01-05", "2024-01-03"):
        client.post(toggle, json={"date": value}, headers=bearer(token))

    r = client.post(f"{API}/habits/{habit['id']}/undo", headers=bearer(token))
    assert r.json() == {"message": "Last completion undone", "date": "2024-01-05"}

    got = client.get(f"{API}/habits/{habit['id']}", headers=bearer(token)).json()
    assert [c["date_completed"] for c in got["completions"]] == ["2024-01-01", "2024-01-03"]


def test_toggle_invalid_date(client, register):
    token = register("alice")["token"]
    habit = create_habit(client, token)
    for body in ({"date": "01/05/2024"}, {"date": ""}, {}):
        r = client.post(f"{API}/habits/{habit['id']}/toggle", json=body, headers=bearer(token))
        assert r.status_code == 400
        assert r.json()["code"] == "invalid_date"


def test_undo_with_no_completions(client, register):
    token = register("alice")["token"]
    habit = create_habit(client, token)
    r = client.post(f"{API}/habits/{habit['id']}/undo", headers=bearer(token))
    assert r.status_code == 404
    assert r.json()["code"] == "no_completions"


# -- public profile --

def test_public_profile(client, register):
    token = register("alice")["token"]
    read = create_habit(client, token, name="Read", is_public=True)
    create_habit(client, token, name="Run", is_public=True)
    create_habit(client, token, name="Diary")
    client.post(f"{API}/habits/{read['id']}/toggle", json={"date": "2024-01-02"}, headers=bearer(token))

    r = client.get(f"{API}/alice/habits")
    assert r.status_code == 200
    body = r.json()
    assert body["user"]["login"] == "alice"
    assert "password_hash" not in body["user"]
    assert [h["name"] for h in body["habits"]] == ["Read", "Run"]
    assert [c["date_completed"] for c in body["habits"][0]["completions"]] == ["2024-01-02"]


def test_public_profile_unknown_user(client):
    r = client.get(f"{API}/nobody/habits")
    assert r.status_code == 404


def test_public_profile_for_login_named_habits(client, register):
    token = register("habits", name="Habits")["token"]
    create_habit(client, token, name="Read", is_public=True)

    r = client.get(f"{API}/habits/habits")
    assert r.status_code == 200
    assert r.json()["user"]["login"] == "habits"
    assert [h["name"] for h in r.json()["habits"]] == ["Read"]


def test_register_with_null_bio(client):
    r = client.post(
        f"{API}/register",
        json={"login": "alice", "password": "secret1", "name": "Alice", "bio": None},
    )
    assert r.status_code == 201
    assert r.json()["user"]["bio"] is None
