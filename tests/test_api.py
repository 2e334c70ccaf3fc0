# tests/test_api.py
"""
Integration Tests for the Interleaf HTTP API.

Focus
-----
These tests verify the HTTP contract (request/response schemas) and the
background upload lifecycle. Uploads never leave the process: the session
store's uploader factory is replaced with an in-memory stub.

Scenarios
---------
1. **Health Check**: Verify service is up.
2. **Editing Flow**: Create -> type -> split -> paste image -> poll (done).
3. **Error Handling**: 404 for unknown documents, 400 for unpublishable ones,
   409/202 for upload retries.
"""

from __future__ import annotations

import base64
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from interleaf.api.app import create_app
from interleaf.api.session_store import get_session_store
from interleaf.core.contracts.events import ImageResource
from interleaf.media.uploader import UploadError


class SwitchableUploader:
    """Fails while `failing` is set; otherwise returns a fixed URL scheme."""

    def __init__(self) -> None:
        self.failing = False
        self.calls = 0

    async def upload(self, resource: ImageResource) -> str:
        self.calls += 1
        if self.failing:
            raise UploadError("storage unavailable")
        return f"https://cdn.test/{resource.filename}"


@pytest.fixture  # type: ignore[misc]
def uploader() -> SwitchableUploader:
    return SwitchableUploader()


@pytest.fixture  # type: ignore[misc]
def client(uploader: SwitchableUploader) -> Generator[TestClient, None, None]:
    """
    Create a clean API client for each test.

    The SessionStore is a singleton, so it is cleared and its uploader factory
    swapped for the stub; the default factory is restored afterwards.
    """
    store = get_session_store()
    store.clear()
    original = store.uploader_factory
    store.uploader_factory = lambda: uploader

    with TestClient(create_app()) as c:
        yield c

    store.uploader_factory = original
    store.clear()


def _event(client: TestClient, doc_id: str, event: dict[str, object]) -> dict[str, object]:
    response = client.post(f"/documents/{doc_id}/events", json={"event": event})
    assert response.status_code == 200, response.text
    data: dict[str, object] = response.json()
    return data


def _paste_png(png: bytes) -> dict[str, object]:
    return {
        "type": "paste",
        "items": [
            {
                "filename": "chart.png",
                "mime_type": "image/png",
                "data": base64.b64encode(png).decode("ascii"),
            }
        ],
    }


def test_health_check(client: TestClient) -> None:
    """GET /health should return 200 OK and version info."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "version" in data


def test_create_document_is_normalized(client: TestClient) -> None:
    """Initial blocks go through the invariant passes."""
    empty = client.post("/documents")
    assert empty.status_code == 201
    assert [b["kind"] for b in empty.json()["blocks"]] == ["text"]

    seeded = client.post(
        "/documents",
        json={"blocks": [{"kind": "text", "content": "a"}, {"kind": "image"}]},
    )
    assert seeded.status_code == 201
    assert [b["kind"] for b in seeded.json()["blocks"]] == ["text", "image", "text"]


def test_editing_flow_with_background_upload(
    client: TestClient, uploader: SwitchableUploader, png_bytes: bytes
) -> None:
    """
    Type, split, paste an image and observe the upload completing.

    `TestClient` runs background tasks before returning the response, so the
    follow-up GET already sees the finished upload.
    """
    doc = client.post("/documents").json()
    doc_id, first = doc["id"], doc["blocks"][0]["id"]

    _event(client, doc_id, {"type": "text_input", "block_id": first, "content": "Hello world"})
    split = _event(
        client, doc_id, {"type": "key_down", "block_id": first, "key": "Enter", "offset": 5}
    )
    assert split["transition"] == "split"
    document = split["document"]
    assert isinstance(document, dict)
    assert [b["content"] for b in document["blocks"]] == ["Hello", " world"]
    second = document["blocks"][1]["id"]
    assert document["caret"] == {"block_id": second, "offset": 0}

    pasted = _event(client, doc_id, _paste_png(png_bytes))
    assert pasted["transition"] == "insert_image"
    document = pasted["document"]
    assert isinstance(document, dict)
    assert [b["kind"] for b in document["blocks"]] == ["text", "text", "image", "text"]
    image = document["blocks"][2]
    assert image["upload_status"] == "pending"
    assert image["preview_uri"].startswith("data:image/png;base64,")

    final = client.get(f"/documents/{doc_id}").json()
    image = final["blocks"][2]
    assert image["upload_status"] == "done"
    assert image["resource_ref"] == "https://cdn.test/chart.png"
    assert uploader.calls == 1

    topics = client.post(
        f"/documents/{doc_id}/topics", json={"title": "Week 1", "course_id": "c1"}
    )
    assert topics.status_code == 200
    assert [t["kind"] for t in topics.json()["topics"]] == ["TEXT", "TEXT", "IMAGE"]


def test_unknown_document_returns_404(client: TestClient) -> None:
    """Non-existent documents should return 404 Not Found."""
    assert client.get("/documents/non-existent-uuid").status_code == 404
    response = client.post(
        "/documents/non-existent-uuid/events",
        json={"event": {"type": "focus", "block_id": "x"}},
    )
    assert response.status_code == 404


def test_invalid_event_is_rejected(client: TestClient) -> None:
    doc_id = client.post("/documents").json()["id"]
    response = client.post(
        f"/documents/{doc_id}/events", json={"event": {"type": "teleport", "block_id": "x"}}
    )
    assert response.status_code == 422


def test_failed_upload_blocks_publishing_until_retried(
    client: TestClient, uploader: SwitchableUploader, png_bytes: bytes
) -> None:
    """A failed upload leaves the image FAILED; retry is the way back to DONE."""
    uploader.failing = True
    doc_id = client.post("/documents").json()["id"]
    document = _event(client, doc_id, _paste_png(png_bytes))["document"]
    assert isinstance(document, dict)
    image_id = document["blocks"][1]["id"]

    failed = client.get(f"/documents/{doc_id}").json()["blocks"][1]
    assert failed["upload_status"] == "failed"

    publish = client.post(f"/documents/{doc_id}/topics", json={"title": "T", "course_id": "c"})
    assert publish.status_code == 400
    assert image_id in publish.json()["detail"]

    uploader.failing = False
    retry = client.post(f"/documents/{doc_id}/blocks/{image_id}/retry")
    assert retry.status_code == 202
    assert retry.json() == {"status": "scheduled", "block_id": image_id}

    done = client.get(f"/documents/{doc_id}").json()["blocks"][1]
    assert done["upload_status"] == "done"

    again = client.post(f"/documents/{doc_id}/blocks/{image_id}/retry")
    assert again.status_code == 409
    first = document["blocks"][0]["id"]
    assert client.post(f"/documents/{doc_id}/blocks/{first}/retry").status_code == 404
