from __future__ import annotations

import json
import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.main import app
from app.services.mock_store import get_mock_store, reset_mock_store


@pytest.fixture(autouse=True)
def _reset_store() -> None:
    reset_mock_store()
    yield
    reset_mock_store()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def _post_review(client: TestClient, username: str = "alice", recipe_id: str = "52772") -> dict:
    response = client.post(
        "/reviews",
        json={
            "recipeId": recipe_id,
            "recipeName": "Teriyaki Chicken",
            "rating": 5,
            "content": "great",
        },
        headers={"X-Username": username},
    )
    assert response.status_code == 201
    return response.json()


def test_create_review_returns_stored_record(client: TestClient) -> None:
    body = _post_review(client)

    assert body["author"] == "alice"
    assert body["isRecent"] == 1
    assert body["reviewId"]
    assert body["createdAt"] > 0
    assert len(get_mock_store().reviews) == 1


def test_create_review_requires_identity(client: TestClient) -> None:
    response = client.post(
        "/reviews",
        json={"recipeId": "52772", "recipeName": "x", "rating": 5, "content": "y"},
    )

    assert response.status_code == 401


def test_create_review_rejects_missing_fields(client: TestClient) -> None:
    response = client.post(
        "/reviews", json={"recipeId": "52772"}, headers={"X-Username": "alice"}
    )

    assert response.status_code == 400


def test_list_reviews_by_recipe_pages_with_cursor(client: TestClient) -> None:
    for _ in range(3):
        _post_review(client)
    _post_review(client, recipe_id="other")

    first = client.get("/reviews", params={"recipeId": "52772", "Limit": 2})
    assert first.status_code == 200
    first_body = first.json()
    assert len(first_body["items"]) == 2
    assert "LastEvaluatedKey" in first_body

    second = client.get(
        "/reviews",
        params={
            "recipeId": "52772",
            "Limit": 2,
            "ExclusiveStartKey": json.dumps(first_body["LastEvaluatedKey"]),
        },
    )
    second_body = second.json()
    assert len(second_body["items"]) == 1
    assert "LastEvaluatedKey" not in second_body

    ids = [item["reviewId"] for item in first_body["items"] + second_body["items"]]
    assert len(set(ids)) == 3


def test_list_reviews_limit_out_of_range(client: TestClient) -> None:
    response = client.get("/reviews", params={"Limit": 100})

    assert response.status_code == 400
    assert "outside of allowed range" in response.json()["detail"]


def test_list_reviews_rejects_partial_cursor(client: TestClient) -> None:
    response = client.get(
        "/reviews",
        params={"author": "alice", "ExclusiveStartKey": json.dumps({"author": "alice"})},
    )

    assert response.status_code == 400
    assert "querying by author" in response.json()["detail"]


def test_list_reviews_rejects_unknown_parameters(client: TestClient) -> None:
    response = client.get("/reviews", params={"order": "asc"})

    assert response.status_code == 400


def test_get_review_and_not_found(client: TestClient) -> None:
    created = _post_review(client)

    found = client.get(f"/reviews/52772/{created['reviewId']}")
    missing = client.get("/reviews/52772/does-not-exist")

    assert found.status_code == 200
    assert found.json()["reviewId"] == created["reviewId"]
    assert missing.status_code == 404
    assert missing.json()["detail"] == "No Review has this ID"


def test_delete_review_by_other_user_is_forbidden(client: TestClient) -> None:
    created = _post_review(client)

    response = client.request(
        "DELETE",
        "/reviews",
        json={"recipeId": "52772", "reviewId": created["reviewId"]},
        headers={"X-Username": "bob"},
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "Cannot Delete Another Users Post"
    assert len(get_mock_store().reviews) == 1


def test_delete_review_by_admin(client: TestClient) -> None:
    created = _post_review(client)

    response = client.request(
        "DELETE",
        "/reviews",
        json={"recipeId": "52772", "reviewId": created["reviewId"]},
        headers={"X-Username": "moderator", "X-Is-Admin": "true"},
    )

    assert response.status_code == 200
    assert response.json()["reviewId"] == created["reviewId"]
    assert len(get_mock_store().reviews) == 0


def test_delete_review_requires_recipe_id(client: TestClient) -> None:
    response = client.request(
        "DELETE",
        "/reviews",
        json={"reviewId": "rev-1"},
        headers={"X-Username": "alice"},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Recipe Id must be defined in Request Body"


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"ok": True}
