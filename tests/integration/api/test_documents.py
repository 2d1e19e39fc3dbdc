"""
Integration tests for the document endpoints.

Requests go through the full application (middleware, exception handlers,
routers) backed by an in-memory blob store.
"""

from unittest.mock import patch
from urllib.parse import quote

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from doc_manager.core.config import settings

TEST_ORIGIN = settings.CORS_EXACT_ORIGIN

DOCUMENTS = "/api/documents"


async def create(client, content="hello", file=None):
    files = {"file": file} if file else None
    response = await client.post(DOCUMENTS, data={"content": content}, files=files)
    assert response.status_code == 200, response.text
    return response.json()


@pytest_asyncio.fixture
async def failing_client(failing_store):
    """Client for an application whose store can be made to fail."""
    from doc_manager.main import create_app

    async with AsyncClient(
        transport=ASGITransport(app=create_app(blob_store=failing_store)),
        base_url="http://test",
    ) as client:
        yield client


class TestIndex:
    """Tests for the welcome route."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_welcome_message(self, async_client):
        response = await async_client.get("/api/")

        assert response.status_code == 200
        assert response.text.startswith("Welcome to the Document Manager!")
        assert response.headers["content-type"].startswith("text/plain")


class TestCreateDocument:
    """Tests for POST /documents."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_create_text(self, async_client):
        document = await create(async_client, "hello")

        assert set(document) == {"id", "content", "attachmentRef", "isBinary"}
        assert document["content"] == "hello"
        assert document["attachmentRef"] is None
        assert document["isBinary"] is False

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_create_with_file(self, async_client, blob_store):
        payload = bytes([0xFF, 0xFE, 0x00])

        document = await create(async_client, "hi", ("img.png", payload, "image/png"))

        assert document["attachmentRef"] == f"{document['id']}_img.png"
        assert await blob_store.get(document["attachmentRef"]) == payload

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_filename_sanitized(self, async_client):
        document = await create(async_client, "x", ("../../secret.txt", b"data", "text/plain"))

        assert document["attachmentRef"] == f"{document['id']}_secret.txt"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_content_required(self, async_client):
        response = await async_client.post(DOCUMENTS, data={})

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert "message" in body

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_file_too_large(self, async_client, blob_store):
        with patch.object(settings, "MAX_UPLOAD_SIZE", 4):
            response = await async_client.post(
                DOCUMENTS,
                data={"content": "x"},
                files={"file": ("big.bin", b"12345", "application/octet-stream")},
            )

        assert response.status_code == 413
        body = response.json()
        assert body["code"] == "PAYLOAD_TOO_LARGE"
        assert body["details"] == {"limit": 4, "received": 5}
        assert await blob_store.list() == []

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_store_failure(self, failing_client, failing_store):
        failing_store.fail("put")

        response = await failing_client.post(DOCUMENTS, data={"content": "x"})

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "TRANSPORT_ERROR"
        assert body["message"].startswith("Failed to create document")

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_attachment_failure_keeps_document(self, failing_client, failing_store):
        failing_store.fail("put", lambda key: "_" in key)

        response = await failing_client.post(
            DOCUMENTS,
            data={"content": "x"},
            files={"file": ("a.txt", b"1", "text/plain")},
        )

        assert response.status_code == 500
        assert response.json()["message"].startswith("Failed to upload file")
        assert len(failing_store) == 1


class TestReadDocuments:
    """Tests for GET /documents and GET /documents/{id}."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_get_document(self, async_client):
        created = await create(async_client, "hello")

        response = await async_client.get(f"{DOCUMENTS}/{created['id']}")

        assert response.status_code == 200
        assert response.json() == {
            "id": created["id"],
            "content": "hello",
            "attachmentRef": None,
            "isBinary": False,
        }

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_get_missing_document(self, async_client):
        response = await async_client.get(f"{DOCUMENTS}/does-not-exist")

        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "NOT_FOUND"
        assert "does-not-exist" in body["message"]

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_attachment_key_is_not_a_document(self, async_client):
        created = await create(async_client, "x", ("a.txt", b"1", "text/plain"))

        response = await async_client.get(f"{DOCUMENTS}/{created['attachmentRef']}")

        assert response.status_code == 404

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_binary_document(self, async_client, blob_store):
        await blob_store.put("bin-doc", b"\x89PNG\xff\x00")

        response = await async_client.get(f"{DOCUMENTS}/bin-doc")

        assert response.status_code == 200
        assert response.json()["content"] is None
        assert response.json()["isBinary"] is True

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_list_documents(self, async_client):
        first = await create(async_client, "one", ("a.png", b"\x00\xff", "image/png"))
        second = await create(async_client, "two")

        response = await async_client.get(DOCUMENTS)

        assert response.status_code == 200
        by_id = {document["id"]: document for document in response.json()}
        assert set(by_id) == {first["id"], second["id"]}
        assert by_id[first["id"]]["attachmentRef"] == first["attachmentRef"]
        assert by_id[second["id"]]["attachmentRef"] is None

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_list_empty(self, async_client):
        response = await async_client.get(DOCUMENTS)

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_list_failure(self, failing_client, failing_store):
        failing_store.fail("list")

        response = await failing_client.get(DOCUMENTS)

        assert response.status_code == 500
        assert response.json()["message"].startswith("Failed to list blobs")

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_document_text(self, async_client):
        created = await create(async_client, "plain text body")

        response = await async_client.get(f"{DOCUMENTS}/{created['id']}/content")

        assert response.status_code == 200
        assert response.text == "plain text body"
        assert response.headers["content-type"].startswith("text/plain")

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_document_text_of_binary(self, async_client, blob_store):
        await blob_store.put("bin-doc", b"\xff\xfe")

        response = await async_client.get(f"{DOCUMENTS}/bin-doc/content")

        assert response.status_code == 422
        assert response.json()["code"] == "ENCODING_ERROR"


class TestUpdateDocument:
    """Tests for PUT /documents/{id}."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_update_content(self, async_client):
        created = await create(async_client, "old")

        response = await async_client.put(
            f"{DOCUMENTS}/{created['id']}", data={"content": "new"}
        )

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]
        assert response.json()["content"] == "new"

        fetched = await async_client.get(f"{DOCUMENTS}/{created['id']}")
        assert fetched.json()["content"] == "new"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_update_replaces_attachment(self, async_client, blob_store):
        created = await create(async_client, "old", ("old.txt", b"1", "text/plain"))

        response = await async_client.put(
            f"{DOCUMENTS}/{created['id']}",
            data={"content": "new"},
            files={"file": ("new.txt", b"2", "text/plain")},
        )

        assert response.json()["attachmentRef"] == f"{created['id']}_new.txt"
        assert sorted(await blob_store.list()) == sorted(
            [created["id"], f"{created['id']}_new.txt"]
        )

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_update_keeps_attachment_without_file(self, async_client):
        created = await create(async_client, "old", ("a.txt", b"1", "text/plain"))

        response = await async_client.put(
            f"{DOCUMENTS}/{created['id']}", data={"content": "new"}
        )

        assert response.json()["attachmentRef"] == created["attachmentRef"]


class TestDeleteDocument:
    """Tests for DELETE /documents/{id}."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_delete(self, async_client, blob_store):
        created = await create(async_client, "bye", ("a.txt", b"1", "text/plain"))

        response = await async_client.delete(f"{DOCUMENTS}/{created['id']}")

        assert response.status_code == 200
        assert response.json() == "Document deleted successfully"
        assert await blob_store.list() == []

        fetched = await async_client.get(f"{DOCUMENTS}/{created['id']}")
        assert fetched.status_code == 404

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_delete_missing(self, async_client):
        response = await async_client.delete(f"{DOCUMENTS}/does-not-exist")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_delete_missing_clears_orphaned_attachment(self, async_client, blob_store):
        await blob_store.put("gone_file.txt", b"left behind")

        response = await async_client.delete(f"{DOCUMENTS}/gone")

        assert response.status_code == 404
        assert await blob_store.list() == []

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_delete_failure(self, failing_client, failing_store):
        created = await create(failing_client, "x")
        failing_store.fail("delete")

        response = await failing_client.delete(f"{DOCUMENTS}/{created['id']}")

        assert response.status_code == 500
        assert response.json()["code"] == "TRANSPORT_ERROR"


class TestDownloadDocument:
    """Tests for GET /documents/download/{key}."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_download_text(self, async_client):
        created = await create(async_client, "hello")

        response = await async_client.get(f"{DOCUMENTS}/download/{created['id']}")

        assert response.status_code == 200
        assert response.content == b"hello"
        assert response.headers["content-type"].startswith("text/plain")
        assert response.headers["content-disposition"] == (
            f'attachment; filename="{created["id"]}.txt"; '
            f"filename*=UTF-8''{created['id']}.txt"
        )

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_download_binary(self, async_client, blob_store):
        await blob_store.put("bin-doc", b"\xff\xfe\x00")

        response = await async_client.get(f"{DOCUMENTS}/download/bin-doc")

        assert response.status_code == 200
        assert response.content == b"\xff\xfe\x00"
        assert response.headers["content-type"] == "application/octet-stream"
        assert response.headers["content-disposition"].startswith(
            'attachment; filename="bin-doc.bin"'
        )

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_download_attachment(self, async_client):
        payload = bytes([0xFF, 0xFE, 0x00])
        created = await create(async_client, "hi", ("img.png", payload, "image/png"))

        response = await async_client.get(f"{DOCUMENTS}/download/{created['attachmentRef']}")

        assert response.status_code == 200
        assert response.content == payload

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_download_non_ascii_attachment(self, async_client):
        payload = b"\xff\xfe\x00"
        created = await create(async_client, "hi", ("报告.png", payload, "image/png"))
        ref = created["attachmentRef"]
        assert ref == f"{created['id']}_报告.png"

        response = await async_client.get(f"{DOCUMENTS}/download/{ref}")

        assert response.status_code == 200
        assert response.content == payload
        disposition = response.headers["content-disposition"]
        assert disposition.isascii()
        assert f'filename="{created["id"]}_??.png.bin"' in disposition
        assert f"filename*=UTF-8''{quote(f'{ref}.bin', safe='')}" in disposition

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_download_quoted_key(self, async_client, blob_store):
        key = 'doc_say "hi"\\now.txt'
        await blob_store.put(key, b"hello")

        response = await async_client.get(f"{DOCUMENTS}/download/{quote(key, safe='')}")

        assert response.status_code == 200
        assert response.headers["content-disposition"].startswith(
            'attachment; filename="doc_say \\"hi\\"\\\\now.txt.txt"; '
        )

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_download_missing(self, async_client):
        response = await async_client.get(f"{DOCUMENTS}/download/nothing-here")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"


class TestCors:
    """Tests for the single-origin CORS policy."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_allowed_origin(self, async_client):
        response = await async_client.get(DOCUMENTS, headers={"Origin": TEST_ORIGIN})

        assert response.headers["access-control-allow-origin"] == TEST_ORIGIN
        assert response.headers["access-control-allow-credentials"] == "true"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_preflight(self, async_client):
        response = await async_client.options(
            DOCUMENTS,
            headers={"Origin": TEST_ORIGIN, "Access-Control-Request-Method": "POST"},
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == TEST_ORIGIN

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_other_origin_not_allowed(self, async_client):
        response = await async_client.get(
            DOCUMENTS, headers={"Origin": "https://evil.example.com"}
        )

        assert "access-control-allow-origin" not in response.headers

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_process_time_header(self, async_client):
        response = await async_client.get(DOCUMENTS)

        assert "x-process-time" in response.headers
