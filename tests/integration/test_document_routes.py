"""Integration tests for upload, listing, view, archive and reprocess routes."""

import uuid
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from hoteldocs.app.api.auth import DEV_HOTEL_ID
from hoteldocs.app.api.deps import get_blob_store, get_document_store, get_embeddings
from hoteldocs.app.config import Settings, get_settings
from hoteldocs.app.db.inmemory import InMemoryDocumentStore
from hoteldocs.app.embeddings.service import EmbeddingService
from hoteldocs.app.main import app
from hoteldocs.app.storage.blobs import LocalBlobStore

HANDBOOK = b"""Breakfast:
Free breakfast served 7-10am in the lobby restaurant.

Pool:
The rooftop pool is open 8am to 8pm. Towels are provided at the pool desk.
"""

OTHER_HOTEL_AUTH = {"Authorization": f"Bearer {uuid.uuid4()}:{uuid.uuid4()}"}


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        blob_root=str(tmp_path / "blobs"),
        blob_signing_secret="test-secret",
        max_upload_bytes=1024,
        signed_url_ttl_seconds=120,
    )


@pytest.fixture
def client(
    store: InMemoryDocumentStore, embeddings: EmbeddingService, settings: Settings
) -> Iterator[TestClient]:
    app.dependency_overrides[get_document_store] = lambda: store
    app.dependency_overrides[get_embeddings] = lambda: embeddings
    app.dependency_overrides[get_blob_store] = lambda: LocalBlobStore(settings.blob_root)
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


def _upload(
    client: TestClient,
    *,
    filename: str = "handbook.txt",
    data: bytes = HANDBOOK,
    title: str | None = "Guest Handbook",
    description: str | None = "Dining and pool times",
    headers: dict[str, str] | None = None,
) -> dict:
    form = {}
    if title is not None:
        form["title"] = title
    if description is not None:
        form["description"] = description
    response = client.post(
        "/api/upload",
        files={"file": (filename, data, "text/plain")},
        data=form,
        headers=headers or {},
    )
    return {"status": response.status_code, "body": response.json()}


def test_upload_chunks_and_makes_searchable(client: TestClient) -> None:
    """Test an uploaded file is chunked, embedded and searchable."""
    result = _upload(client)

    assert result["status"] == 201
    assert result["body"]["success"] is True
    assert result["body"]["processed"] is True
    assert result["body"]["chunk_count"] == 2

    search = client.post(
        "/api/search-documents",
        json={"query": "pool towels", "hotel_id": str(DEV_HOTEL_ID)},
    ).json()

    assert search["search_type"] == "rag_chunks"
    assert "rooftop pool" in search["results"][0]["content"]
    assert search["results"][0]["document_id"] == result["body"]["document_id"]


def test_upload_too_large_is_413(client: TestClient) -> None:
    result = _upload(client, data=b"x" * 2048)

    assert result["status"] == 413
    assert result["body"]["error"] == "File too large"


def test_upload_requires_title(client: TestClient) -> None:
    result = _upload(client, title="  ")

    assert result["status"] == 400
    assert result["body"]["details"] == "Title is required"


def test_upload_requires_file(client: TestClient) -> None:
    response = client.post("/api/upload", data={"title": "No file"})

    assert response.status_code == 400


def test_upload_unsupported_type_stored_without_chunks(client: TestClient) -> None:
    result = _upload(client, filename="brochure.docx", data=b"PK\x03\x04binary")

    assert result["status"] == 201
    assert result["body"]["chunk_count"] == 0
    assert result["body"]["processed"] is True


def test_list_documents_scoped_filtered_and_sorted(client: TestClient) -> None:
    _upload(client, title="Pool Rules", filename="pool.txt")
    _upload(client, title="Airport Shuttle", filename="shuttle.md", description="Shuttle times")
    _upload(client, title="Foreign", headers=OTHER_HOTEL_AUTH)

    listing = client.get("/api/documents").json()
    assert listing["total"] == 2

    by_title = client.get("/api/documents", params={"sort_by": "title", "sort_order": "asc"}).json()
    assert [d["title"] for d in by_title["documents"]] == ["Airport Shuttle", "Pool Rules"]

    searched = client.get("/api/documents", params={"search": "shuttle"}).json()
    assert [d["title"] for d in searched["documents"]] == ["Airport Shuttle"]

    by_type = client.get("/api/documents", params={"file_type": "md"}).json()
    assert by_type["total"] == 1

    paged = client.get("/api/documents", params={"limit": 1, "offset": 1}).json()
    assert len(paged["documents"]) == 1
    assert paged["total"] == 2


def test_list_documents_rejects_unknown_sort(client: TestClient) -> None:
    response = client.get("/api/documents", params={"sort_by": "embedding"})

    assert response.status_code == 400


def test_view_issues_signed_url_that_serves_the_file(client: TestClient) -> None:
    document_id = _upload(client)["body"]["document_id"]

    view = client.get(f"/api/documents/{document_id}/view")

    assert view.status_code == 200
    body = view.json()
    assert body["success"] is True
    assert body["expires_in"] == 120
    assert body["file_type"] == "txt"
    assert body["url"].startswith("/api/blobs?token=")

    download = client.get(body["url"])
    assert download.status_code == 200
    assert download.content == HANDBOOK


def test_view_other_hotels_document_is_404(client: TestClient) -> None:
    document_id = _upload(client)["body"]["document_id"]

    response = client.get(f"/api/documents/{document_id}/view", headers=OTHER_HOTEL_AUTH)

    assert response.status_code == 404
    assert response.json()["error"] == "Document not found"


def test_blob_download_rejects_bad_token(client: TestClient) -> None:
    response = client.get("/api/blobs", params={"token": "garbage"})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid or expired link"


def test_archive_hides_document_from_listing_and_search(client: TestClient) -> None:
    document_id = _upload(client)["body"]["document_id"]

    deleted = client.delete(f"/api/documents/{document_id}")
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True, "document_id": document_id}

    assert client.get("/api/documents").json()["total"] == 0
    search = client.post(
        "/api/search-documents",
        json={"query": "breakfast", "hotel_id": str(DEV_HOTEL_ID), "match_threshold": 0.0},
    ).json()
    assert search["count"] == 0

    assert client.delete(f"/api/documents/{document_id}").status_code == 404


def test_reprocess_rebuilds_chunks(client: TestClient, store: InMemoryDocumentStore) -> None:
    document_id = _upload(client)["body"]["document_id"]

    response = client.post(f"/api/documents/{document_id}/reprocess")

    assert response.status_code == 200
    assert response.json()["chunk_count"] == 2


def test_reprocess_unknown_document_is_404(client: TestClient) -> None:
    response = client.post(f"/api/documents/{uuid.uuid4()}/reprocess")

    assert response.status_code == 404


def test_invalid_bearer_is_401(client: TestClient) -> None:
    response = client.get("/api/documents", headers={"Authorization": "Token abc"})

    assert response.status_code == 401
