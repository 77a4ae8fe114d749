"""End-to-end tests of the HTTP API with every external service mocked."""

import importlib
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from recuvia.api import dependencies
from recuvia.api.main import app
from recuvia.database.supabase_client import SupabaseClient
from recuvia.pipelines.ingestion_orchestrator import IngestionOrchestrator
from recuvia.services.item_service import ItemService
from recuvia.services.search_service import SearchService

# The package re-exports the node function under the module's own name
persist_mod = importlib.import_module("recuvia.pipelines.ingestion.persist_item_node")


@pytest.fixture
def orchestrator(mock_supabase, embedder, status_store):
    return IngestionOrchestrator(supabase=mock_supabase, embedder=embedder, status_store=status_store, max_retries=3)


@pytest.fixture
def client(mock_supabase, embedder, status_store, orchestrator):
    app.dependency_overrides[dependencies.get_supabase_client] = lambda: mock_supabase
    app.dependency_overrides[dependencies.get_status_store] = lambda: status_store
    app.dependency_overrides[dependencies.get_ingestion_orchestrator] = lambda: orchestrator
    app.dependency_overrides[dependencies.get_search_service] = lambda: SearchService(supabase=mock_supabase, embedder=embedder)
    app.dependency_overrides[dependencies.get_item_service] = lambda: ItemService(supabase=mock_supabase)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def signed_in(user):
    app.dependency_overrides[dependencies.get_current_user] = lambda: user
    yield user


def _upload_form(**overrides):
    data = {"title": "Blue umbrella", "description": "Near the door", "location": "Library"}
    data.update(overrides)
    return {key: value for key, value in data.items() if value is not None}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

def test_upload_without_session_is_401(client, mock_supabase, png_bytes):
    app.dependency_overrides[dependencies.get_supabase_client] = lambda: SupabaseClient()

    response = client.post("/api/upload", data=_upload_form(), files={"image": ("photo.png", png_bytes, "image/png")})

    assert response.status_code == 401
    assert response.json() == {"error": "No active session"}
    mock_supabase.upload_image.assert_not_called()


def test_upload_missing_fields_is_400(client, signed_in, mock_supabase, png_bytes):
    response = client.post("/api/upload", data=_upload_form(title=None), files={"image": ("photo.png", png_bytes, "image/png")})

    assert response.status_code == 400
    assert "title" in response.json()["error"]
    mock_supabase.upload_image.assert_not_called()
    mock_supabase.insert_item.assert_not_called()


def test_upload_missing_image_is_400(client, signed_in, mock_supabase):
    response = client.post("/api/upload", data=_upload_form())

    assert response.status_code == 400
    assert "image" in response.json()["error"]
    mock_supabase.upload_image.assert_not_called()


def test_upload_success_and_status(client, signed_in, mock_supabase, png_bytes):
    with patch.object(persist_mod, "time"):
        response = client.post("/api/upload", data=_upload_form(), files={"image": ("my photo.png", png_bytes, "image/png")})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["imageUrl"].endswith(f"{body['itemId']}-my_photo.png")
    assert body["processingTime"] >= 0

    status = client.get(f"/api/upload/status/{body['itemId']}")
    assert status.status_code == 200
    assert status.json()["status"] == "complete"


def test_upload_persistence_failure_is_500(client, signed_in, mock_supabase, png_bytes):
    mock_supabase.insert_item.side_effect = Exception("db down")

    with patch.object(persist_mod, "time") as mock_time:
        response = client.post("/api/upload", data=_upload_form(), files={"image": ("photo.png", png_bytes, "image/png")})

    assert response.status_code == 500
    assert response.json()["error"] == "Failed database insert after 3 attempts: db down"
    assert mock_supabase.insert_item.call_count == 3
    assert mock_time.sleep.call_count == 2


def test_unknown_status_is_404(client):
    response = client.get("/api/upload/status/does-not-exist")

    assert response.status_code == 404
    assert "error" in response.json()


def test_upload_preflight(client):
    response = client.options("/api/upload")

    assert response.status_code == 204
    assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def test_text_search_empty_query(client, embedder, mock_supabase):
    response = client.post("/api/search/text", json={"query": "  ", "threshold": 0.2})

    assert response.status_code == 200
    assert response.json() == {"items": []}
    assert embedder.text_calls == 0
    mock_supabase.match_items.assert_not_called()


def test_text_search_results(client, mock_supabase, sample_rows):
    mock_supabase.match_items.return_value = sample_rows

    response = client.post("/api/search/text", json={"query": "umbrella", "threshold": 0.3, "maxResults": 2})

    items = response.json()["items"]
    assert [item["id"] for item in items] == ["a", "c"]
    assert all(item["score"] >= 0.3 for item in items)
    assert "embedding" not in items[0]


def test_text_search_invalid_threshold(client):
    response = client.post("/api/search/text", json={"query": "keys", "threshold": 3})

    assert response.status_code == 400
    assert "threshold" in response.json()["error"]


def test_image_search_all_results(client, mock_supabase, sample_rows, png_bytes):
    mock_supabase.match_items.return_value = sample_rows

    response = client.post(
        "/api/search/image",
        data={"threshold": "0.1", "maxResults": "all"},
        files={"image": ("query.png", png_bytes, "image/png")},
    )

    assert response.status_code == 200
    assert len(response.json()["items"]) == 4
    assert mock_supabase.match_items.call_args.kwargs["match_count"] is None


def test_image_search_without_image(client):
    response = client.post("/api/search/image", data={"threshold": "0.5", "maxResults": "10"})

    assert response.status_code == 400


def test_search_by_item(client, mock_supabase, sample_rows, png_bytes, monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    mock_supabase.match_items.return_value = sample_rows
    image_url = "https://project.supabase.co/storage/v1/object/public/item-images/a-umbrella.jpg"

    with patch("recuvia.services.search_service.httpx.get", return_value=MagicMock(content=png_bytes)):
        response = client.post("/api/search/item", json={"imageUrl": image_url, "threshold": 0.5})

    assert response.status_code == 200
    assert [item["id"] for item in response.json()["items"]] == ["a", "c"]


def test_search_by_item_rejects_foreign_url(client, mock_supabase, monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")

    with patch("recuvia.services.search_service.httpx.get") as mock_get:
        response = client.post("/api/search/item", json={"imageUrl": "http://10.0.0.5/admin", "threshold": 0.5})

    assert response.status_code == 400
    mock_get.assert_not_called()


# ---------------------------------------------------------------------------
# Items and deletion
# ---------------------------------------------------------------------------

def test_browse_items_without_session(client, mock_supabase):
    mock_supabase.list_items.return_value = [
        {"id": "a", "title": "Keys", "description": "", "location": "Gym", "url": "https://x/a.jpg", "submitter_id": "u"}
    ]

    response = client.get("/api/items?limit=10")

    assert response.status_code == 200
    assert response.json()["items"][0]["id"] == "a"
    mock_supabase.list_items.assert_called_once_with(limit=10)


def test_delete_by_owner(client, signed_in, mock_supabase):
    mock_supabase.get_item.return_value = {"id": "item-1", "submitter_id": signed_in.id}

    response = client.post("/api/delete", json={"itemId": "item-1", "fileName": "item-1-keys.jpg"})

    assert response.status_code == 200
    assert response.json()["success"] is True
    mock_supabase.delete_item.assert_called_once_with(signed_in.client, "item-1")


def test_delete_by_non_owner_is_rejected(client, other_user, mock_supabase):
    app.dependency_overrides[dependencies.get_current_user] = lambda: other_user
    mock_supabase.get_item.return_value = {"id": "item-1", "submitter_id": "user-1"}

    response = client.post("/api/delete", json={"itemId": "item-1", "fileName": "item-1-keys.jpg"})

    assert response.status_code == 403
    assert "error" in response.json()
    mock_supabase.delete_image.assert_not_called()
    mock_supabase.delete_item.assert_not_called()


def test_delete_rejects_image_of_another_item(client, signed_in, mock_supabase):
    mock_supabase.get_item.return_value = {"id": "mine", "submitter_id": signed_in.id}

    response = client.post("/api/delete", json={"itemId": "mine", "fileName": "theirs-photo.jpg"})

    assert response.status_code == 400
    mock_supabase.delete_image.assert_not_called()


def test_delete_without_session(client, mock_supabase):
    app.dependency_overrides[dependencies.get_supabase_client] = lambda: SupabaseClient()

    response = client.post("/api/delete", json={"itemId": "item-1", "fileName": "f.jpg"})

    assert response.status_code == 401
    mock_supabase.get_item.assert_not_called()


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

def test_sign_in_sets_session_cookies(client, mock_supabase):
    mock_supabase.sign_in.return_value = {
        "user_id": "user-1", "email": "a@example.com", "access_token": "acc", "refresh_token": "ref"
    }

    response = client.post("/api/auth/signin", json={"email": "a@example.com", "password": "secret"})

    assert response.status_code == 200
    assert response.json() == {"user": {"id": "user-1", "email": "a@example.com"}}
    assert response.cookies.get(dependencies.ACCESS_TOKEN_COOKIE) == "acc"
    assert response.cookies.get(dependencies.REFRESH_TOKEN_COOKIE) == "ref"


def test_cookies_resolve_current_user(client, mock_supabase):
    mock_supabase.session_client.return_value = {
        "client": MagicMock(), "user_id": "user-1", "email": "a@example.com",
        "access_token": "acc", "refresh_token": "ref",
    }
    cookie = f"{dependencies.ACCESS_TOKEN_COOKIE}=acc; {dependencies.REFRESH_TOKEN_COOKIE}=ref"

    response = client.get("/api/auth/me", headers={"Cookie": cookie})

    assert response.status_code == 200
    assert response.json()["user"]["id"] == "user-1"
    mock_supabase.session_client.assert_called_once_with("acc", "ref")


def test_bearer_token_takes_precedence(client, mock_supabase):
    mock_supabase.session_client.return_value = {
        "client": MagicMock(), "user_id": "user-1", "email": "", "access_token": "", "refresh_token": "",
    }

    client.get("/api/auth/me", headers={"Authorization": "Bearer header-token", "x-refresh-token": "ref"})

    mock_supabase.session_client.assert_called_once_with("header-token", "ref")


def test_sign_out_clears_cookies(client):
    response = client.post("/api/auth/signout")

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert dependencies.ACCESS_TOKEN_COOKIE in response.headers.get("set-cookie", "")
