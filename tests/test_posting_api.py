import itertools
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from werkzeug.test import Client

from servicefinder.posting_api import (
    CreateRequest,
    PostingHandler,
    posting_to_json,
    register,
    status_for,
)
from servicefinder.postings import (
    ForbiddenError,
    InvalidFieldsError,
    Posting,
    PostingError,
    PostingNotFoundError,
    PostingRepository,
    PostingService,
)
from servicefinder.routing import Router
from servicefinder.sessions import SessionManager
from servicefinder.users import UserRepository, UserService

PASSWORD = "password"
FIXED = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

VALID = {
    "title": " Pintura ",
    "description": "Pinto paredes",
    "price": 150,
    "category": "reforma",
    "city": "Recife",
    "district": "Boa Viagem",
}


def _counter(prefix):
    numbers = itertools.count(1)
    return lambda: f"{prefix}-{next(numbers)}"


@pytest.fixture
def env():
    users = UserService(UserRepository(), idgen=_counter("user"))
    sessions = SessionManager(300)
    service = PostingService(PostingRepository(), users, now=lambda: FIXED, idgen=_counter("post"))
    router = Router()
    register(router, PostingHandler(service), sessions)
    return SimpleNamespace(users=users, sessions=sessions, client=Client(router, use_cookies=False))


def _login(env, name, email, role="provider"):
    user = env.users.register(name, email, PASSWORD, role)
    return {"Cookie": f"sid={env.sessions.new(user.id)}"}


def _create(env, headers, body=VALID):
    response = env.client.post("/api/v1/postings", json=body, headers=headers)
    assert response.status_code == 201
    return response.get_json()


def _send_update(env, path, body, headers):
    return env.client.open(path, method="PATCH", json=body, headers=headers)


def test_list_public_starts_empty(env):
    response = env.client.get("/api/v1/postings")
    assert response.status_code == 200
    assert response.get_json() == []


def test_create_requires_session(env):
    response = env.client.post("/api/v1/postings", json=VALID)
    assert response.status_code == 401
    assert response.get_json() == {"error": "unauthorized"}


def test_create_returns_posting(env):
    body = _create(env, _login(env, "Ana", "ana@example.com"))
    assert body["ID"] == "post-1"
    assert body["ProviderID"] == "user-1"
    assert body["ProviderName"] == "Ana"
    assert body["Title"] == "Pintura"
    assert body["Price"] == 150
    assert body["Archived"] is False
    assert body["CreatedAt"] == "2024-01-02T03:04:05Z"


def test_create_invalid_json(env):
    headers = _login(env, "Ana", "ana@example.com")
    response = env.client.post("/api/v1/postings", data="{", headers=headers, content_type="application/json")
    assert response.status_code == 400
    assert response.get_json() == {"error": "invalid json"}


def test_create_missing_fields(env):
    headers = _login(env, "Ana", "ana@example.com")
    response = env.client.post("/api/v1/postings", json={**VALID, "city": "  "}, headers=headers)
    assert response.status_code == 400
    assert response.get_json() == {"error": "missing required fields"}


def test_create_with_unknown_provider(env):
    headers = {"Cookie": f"sid={env.sessions.new('ghost')}"}
    response = env.client.post("/api/v1/postings", json=VALID, headers=headers)
    assert response.status_code == 400
    assert response.get_json() == {"error": "missing required fields"}


def test_get_public(env):
    created = _create(env, _login(env, "Ana", "ana@example.com"))
    response = env.client.get(f"/api/v1/postings/{created['ID']}")
    assert response.status_code == 200
    assert response.get_json() == created


def test_get_public_unknown(env):
    response = env.client.get("/api/v1/postings/missing")
    assert response.status_code == 404
    assert response.get_json() == {"error": "not found"}


def test_update_by_owner(env):
    headers = _login(env, "Ana", "ana@example.com")
    created = _create(env, headers)
    response = _send_update(env, f"/api/v1/postings/{created['ID']}", {"title": " Novo ", "price": 200}, headers)
    assert response.status_code == 200
    body = response.get_json()
    assert body["Title"] == "Novo"
    assert body["Price"] == 200
    assert body["City"] == created["City"]


def test_update_by_other_is_forbidden(env):
    created = _create(env, _login(env, "Ana", "ana@example.com"))
    other = _login(env, "Bia", "bia@example.com")
    response = _send_update(env, f"/api/v1/postings/{created['ID']}", {"title": "X"}, other)
    assert response.status_code == 403
    assert response.get_json() == {"error": "forbidden"}


def test_update_unknown_posting(env):
    headers = _login(env, "Ana", "ana@example.com")
    response = _send_update(env, "/api/v1/postings/missing", {}, headers)
    assert response.status_code == 404
    assert response.get_json() == {"error": "posting not found"}


def test_update_rejects_non_positive_price(env):
    headers = _login(env, "Ana", "ana@example.com")
    created = _create(env, headers)
    response = _send_update(env, f"/api/v1/postings/{created['ID']}", {"price": -5}, headers)
    assert response.status_code == 400
    assert response.get_json() == {"error": "price must be > 0"}


def test_update_rejects_array_body(env):
    headers = _login(env, "Ana", "ana@example.com")
    created = _create(env, headers)
    response = _send_update(env, f"/api/v1/postings/{created['ID']}", [1], headers)
    assert response.status_code == 400
    assert response.get_json() == {"error": "invalid json"}


def test_archive_hides_posting(env):
    headers = _login(env, "Ana", "ana@example.com")
    created = _create(env, headers)
    response = env.client.post(f"/api/v1/postings/{created['ID']}/archive", headers=headers)
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}
    assert env.client.get(f"/api/v1/postings/{created['ID']}").status_code == 404
    assert env.client.get("/api/v1/postings").get_json() == []
    mine = env.client.get("/api/v1/postings/mine", headers=headers).get_json()
    assert [p["ID"] for p in mine] == [created["ID"]]
    assert mine[0]["Archived"] is True


def test_archive_by_other_is_forbidden(env):
    created = _create(env, _login(env, "Ana", "ana@example.com"))
    other = _login(env, "Bia", "bia@example.com")
    response = env.client.post(f"/api/v1/postings/{created['ID']}/archive", headers=other)
    assert response.status_code == 403


def test_post_to_other_subpath_is_not_found(env):
    headers = _login(env, "Ana", "ana@example.com")
    created = _create(env, headers)
    response = env.client.post(f"/api/v1/postings/{created['ID']}/other", headers=headers)
    assert response.status_code == 404
    assert response.get_data(as_text=True) == "404 page not found\n"


def test_list_mine_only_own(env):
    ana = _login(env, "Ana", "ana@example.com")
    bia = _login(env, "Bia", "bia@example.com")
    first = _create(env, ana)
    _create(env, bia)
    mine = env.client.get("/api/v1/postings/mine", headers=ana).get_json()
    assert [p["ID"] for p in mine] == [first["ID"]]
    assert len(env.client.get("/api/v1/postings").get_json()) == 2


def test_list_mine_requires_session(env):
    assert env.client.get("/api/v1/postings/mine").status_code == 401


def test_create_request_from_json_folds_key_case():
    request = CreateRequest.from_json({"TITLE": "A", "Price": 3, "unknown": True})
    assert request.title == "A"
    assert request.price == 3
    assert request.city == ""


def test_create_request_from_null():
    assert CreateRequest.from_json(None) == CreateRequest()


@pytest.mark.parametrize("data", [[1], {"price": 1.5}, {"price": "10"}, {"title": 4}, {"price": True}])
def test_create_request_rejects_bad_types(data):
    with pytest.raises(ValueError):
        CreateRequest.from_json(data)


@pytest.mark.parametrize(
    "error, status",
    [
        (ForbiddenError(), 403),
        (PostingNotFoundError(), 404),
        (InvalidFieldsError(), 400),
        (PostingError("price must be > 0"), 400),
    ],
)
def test_status_for(error, status):
    assert status_for(error) == status


def test_posting_to_json_fraction_of_second():
    moment = datetime(2024, 1, 2, 3, 4, 5, 500000, tzinfo=timezone.utc)
    posting = Posting("p", "u", "Ana", "t", "d", 1, "c", "x", "y", created_at=moment, updated_at=moment)
    data = posting_to_json(posting)
    assert data["CreatedAt"] == "2024-01-02T03:04:05.5Z"
    assert data["UpdatedAt"] == data["CreatedAt"]
    assert list(data)[:3] == ["ID", "ProviderID", "ProviderName"]