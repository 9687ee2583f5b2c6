"""Tests for the analyses API (upload, pending retry, history, bias view)."""

import asyncio
import io
import threading
from unittest.mock import AsyncMock, patch

import docx
import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from app.llm import get_llm_client
from app.main import app
from app.models.analysis import Analysis

DOCUMENT = b"The chairman shall decide all disputes arising under this lease."


def _upload(name: str = "lease.txt", data: bytes = DOCUMENT, content_type: str = "text/plain") -> dict:
    return {"file": (name, data, content_type)}


async def _count_analyses(db) -> int:
    return (await db.execute(select(func.count(Analysis.id)))).scalar_one()


@pytest.mark.asyncio
async def test_create_analysis(client: AsyncClient, auth_headers, fake_generator, user):
    response = await client.post("/api/v1/analyses", files=_upload(), headers=auth_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["id"] > 0
    assert data["ownerId"] == str(user.id)
    assert data["fileName"] == "lease.txt"
    assert data["fileType"] == "txt"
    assert data["fileSize"] == len(DOCUMENT)
    assert data["summaryText"] == "Overview:\n\nThe lease runs 12 months."
    assert data["biasCount"] == 1
    assert data["biasConfidence"] == 82.0
    assert data["biasReportText"].startswith("Type: Gender Bias")
    assert len(fake_generator.prompts) == 2


@pytest.mark.asyncio
async def test_create_analysis_docx(client: AsyncClient, auth_headers, fake_generator):
    document = docx.Document()
    document.add_paragraph("The chairman shall decide.")
    buf = io.BytesIO()
    document.save(buf)

    response = await client.post(
        "/api/v1/analyses",
        files=_upload("lease.docx", buf.getvalue(), "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
        headers=auth_headers,
    )

    assert response.status_code == 201
    assert response.json()["fileType"] == "docx"
    assert "Summarize this legal document: The chairman shall decide." in fake_generator.prompts


@pytest.mark.asyncio
async def test_text_extraction_runs_off_the_event_loop(client: AsyncClient, auth_headers, fake_generator):
    from app.services.document_text import extract_text

    loop_thread = threading.get_ident()
    extraction_threads = []

    def recording_extract(file_name, data):
        extraction_threads.append(threading.get_ident())
        return extract_text(file_name, data)

    with patch("app.api.v1.analyses.extract_text", new=recording_extract):
        response = await client.post("/api/v1/analyses", files=_upload(), headers=auth_headers)

    assert response.status_code == 201
    assert len(extraction_threads) == 1
    assert extraction_threads[0] != loop_thread


@pytest.mark.asyncio
async def test_create_analysis_with_last_modified(client: AsyncClient, auth_headers, fake_generator):
    response = await client.post(
        "/api/v1/analyses",
        files=_upload(),
        data={"last_modified": "2026-03-01T12:00:00+00:00"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    assert response.json()["lastModified"].startswith("2026-03-01T12:00:00")


@pytest.mark.asyncio
async def test_create_analysis_requires_login(client: AsyncClient, fake_generator, db):
    response = await client.post("/api/v1/analyses", files=_upload())

    assert response.status_code == 401
    assert fake_generator.prompts == []
    assert await _count_analyses(db) == 0


@pytest.mark.asyncio
async def test_create_analysis_invalid_token_treated_as_anonymous(client: AsyncClient, fake_generator):
    response = await client.post("/api/v1/analyses", files=_upload(), headers={"Authorization": "Bearer junk"})
    assert response.status_code == 401
    assert fake_generator.prompts == []


@pytest.mark.asyncio
async def test_unsupported_file_type(client: AsyncClient, auth_headers, fake_generator):
    response = await client.post("/api/v1/analyses", files=_upload("photo.png", b"\x89PNG", "image/png"), headers=auth_headers)
    assert response.status_code == 415
    assert fake_generator.prompts == []


@pytest.mark.asyncio
async def test_empty_document(client: AsyncClient, auth_headers, fake_generator):
    response = await client.post("/api/v1/analyses", files=_upload(data=b"   \n  "), headers=auth_headers)
    assert response.status_code == 422
    assert fake_generator.prompts == []


@pytest.mark.asyncio
async def test_document_too_large(client: AsyncClient, auth_headers, fake_generator, monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "max_document_chars", 10)
    response = await client.post("/api/v1/analyses", files=_upload(), headers=auth_headers)
    assert response.status_code == 413
    assert fake_generator.prompts == []


@pytest.mark.asyncio
async def test_upload_too_large(client: AsyncClient, auth_headers, fake_generator, monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "max_upload_bytes", 10)
    response = await client.post("/api/v1/analyses", files=_upload(), headers=auth_headers)
    assert response.status_code == 413


@pytest.mark.asyncio
async def test_generation_failure(client: AsyncClient, auth_headers, db):
    failing = AsyncMock()
    failing.generate.side_effect = RuntimeError("upstream 500")
    app.dependency_overrides[get_llm_client] = lambda: failing
    try:
        response = await client.post("/api/v1/analyses", files=_upload(), headers=auth_headers)
    finally:
        app.dependency_overrides.pop(get_llm_client, None)

    assert response.status_code == 502
    assert await _count_analyses(db) == 0


@pytest.mark.asyncio
async def test_generation_timeout(client: AsyncClient, auth_headers, db):
    stalled = AsyncMock()
    stalled.generate.side_effect = TimeoutError("read timeout")
    app.dependency_overrides[get_llm_client] = lambda: stalled
    try:
        response = await client.post("/api/v1/analyses", files=_upload(), headers=auth_headers)
    finally:
        app.dependency_overrides.pop(get_llm_client, None)

    assert response.status_code == 504
    assert await _count_analyses(db) == 0


@pytest.mark.asyncio
async def test_missing_api_key_is_service_unavailable(client: AsyncClient, auth_headers, monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "llm_provider", "gemini")
    monkeypatch.setattr(settings, "gemini_api_key", "")
    response = await client.post("/api/v1/analyses", files=_upload(), headers=auth_headers)
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_persistence_failure_then_retry(client: AsyncClient, auth_headers, fake_generator, pending, db):
    with patch(
        "app.services.analysis_store.SqlAnalysisStore.insert",
        new=AsyncMock(side_effect=ConnectionError("database unreachable")),
    ):
        response = await client.post("/api/v1/analyses", files=_upload(), headers=auth_headers)

    assert response.status_code == 503
    detail = response.json()["detail"]
    pending_id = detail["pending_id"]
    assert detail["record"]["biasCount"] == 1
    assert detail["record"]["fileName"] == "lease.txt"
    assert len(pending) == 1
    assert await _count_analyses(db) == 0

    retry = await client.post(f"/api/v1/analyses/pending/{pending_id}/retry", headers=auth_headers)

    assert retry.status_code == 201
    assert retry.json()["id"] > 0
    assert retry.json()["biasCount"] == 1
    assert len(fake_generator.prompts) == 2
    assert len(pending) == 0
    assert await _count_analyses(db) == 1


async def _pending_id(client: AsyncClient, auth_headers) -> str:
    with patch(
        "app.services.analysis_store.SqlAnalysisStore.insert",
        new=AsyncMock(side_effect=ConnectionError("database unreachable")),
    ):
        response = await client.post("/api/v1/analyses", files=_upload(), headers=auth_headers)
    assert response.status_code == 503
    return response.json()["detail"]["pending_id"]


@pytest.mark.asyncio
async def test_concurrent_retries_store_once(client: AsyncClient, auth_headers, fake_generator, pending):
    pending_id = await _pending_id(client, auth_headers)
    inserted = []

    async def slow_insert(self, record):
        await asyncio.sleep(0.05)
        inserted.append(record)
        return len(inserted)

    url = f"/api/v1/analyses/pending/{pending_id}/retry"
    with patch("app.services.analysis_store.SqlAnalysisStore.insert", new=slow_insert):
        first, second = await asyncio.gather(
            client.post(url, headers=auth_headers),
            client.post(url, headers=auth_headers),
        )

    assert sorted([first.status_code, second.status_code]) == [201, 404]
    assert len(inserted) == 1
    assert len(pending) == 0


@pytest.mark.asyncio
async def test_failed_retry_keeps_record_pending(client: AsyncClient, auth_headers, fake_generator, pending, db):
    pending_id = await _pending_id(client, auth_headers)
    url = f"/api/v1/analyses/pending/{pending_id}/retry"

    with patch(
        "app.services.analysis_store.SqlAnalysisStore.insert",
        new=AsyncMock(side_effect=ConnectionError("still unreachable")),
    ):
        failed = await client.post(url, headers=auth_headers)

    assert failed.status_code == 503
    assert failed.json()["detail"]["pending_id"] == pending_id
    assert len(pending) == 1

    retry = await client.post(url, headers=auth_headers)
    assert retry.status_code == 201
    assert await _count_analyses(db) == 1


@pytest.mark.asyncio
async def test_retry_unknown_pending(client: AsyncClient, auth_headers, fake_generator, pending):
    response = await client.post("/api/v1/analyses/pending/doesnotexist/retry", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_history_newest_first(client: AsyncClient, auth_headers, fake_generator):
    await client.post("/api/v1/analyses", files=_upload("first.txt"), headers=auth_headers)
    fake_generator.bias = "No bias detected."
    await client.post("/api/v1/analyses", files=_upload("second.txt"), headers=auth_headers)

    response = await client.get("/api/v1/analyses", headers=auth_headers)

    assert response.status_code == 200
    items = response.json()
    assert [i["fileName"] for i in items] == ["second.txt", "first.txt"]
    assert items[0]["stats"] == {"biasCount": 0, "wordCount": 6}
    assert items[1]["stats"] == {"biasCount": 1, "wordCount": 6}


@pytest.mark.asyncio
async def test_history_requires_auth(client: AsyncClient):
    response = await client.get("/api/v1/analyses")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_analysis(client: AsyncClient, auth_headers, fake_generator):
    created = await client.post("/api/v1/analyses", files=_upload(), headers=auth_headers)
    analysis_id = created.json()["id"]

    response = await client.get(f"/api/v1/analyses/{analysis_id}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["id"] == analysis_id
    assert response.json()["biasReportText"] == created.json()["biasReportText"]


@pytest.mark.asyncio
async def test_get_analysis_of_other_user(client: AsyncClient, auth_headers, fake_generator):
    created = await client.post("/api/v1/analyses", files=_upload(), headers=auth_headers)
    analysis_id = created.json()["id"]

    register = await client.post(
        "/api/v1/auth/register",
        json={"email": "other@example.com", "password": "strongpass123", "full_name": "Other"},
    )
    other_headers = {"Authorization": f"Bearer {register.json()['access_token']}"}

    response = await client.get(f"/api/v1/analyses/{analysis_id}", headers=other_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_bias_view(client: AsyncClient, auth_headers, fake_generator):
    fake_generator.bias = (
        'Type: Gender Bias\nText: "chairman"\nConfidence: 80%\nAlternative: chairperson\n'
        'Type: Age Discrimination\nText: "young and energetic"\nConfidence: 60%\n'
        'Type: Gender Bias\nText: "he"\nConfidence: 70%\n'
    )
    created = await client.post("/api/v1/analyses", files=_upload(), headers=auth_headers)
    analysis_id = created.json()["id"]
    assert created.json()["biasCount"] == 3
    assert created.json()["biasConfidence"] == 70.0

    response = await client.get(f"/api/v1/analyses/{analysis_id}/bias", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["analysisId"] == analysis_id
    assert data["biasCount"] == 3
    categories = {c["category"]: c for c in data["categories"]}
    assert list(categories) == ["Gender Bias", "Age Discrimination"]
    assert categories["Gender Bias"]["severity"] == "high"
    assert categories["Gender Bias"]["color"] == "#FF4444"
    assert len(categories["Gender Bias"]["findings"]) == 2
    assert categories["Age Discrimination"]["color"] == "#FFBB33"
    assert categories["Gender Bias"]["findings"][0]["alternative"] == "chairperson"


@pytest.mark.asyncio
async def test_dashboard_totals(client: AsyncClient, auth_headers, fake_generator):
    empty = await client.get("/api/v1/dashboard", headers=auth_headers)
    assert empty.json() == {"totalAnalyses": 0, "totalBiases": 0, "totalWords": 0}

    await client.post("/api/v1/analyses", files=_upload("a.txt"), headers=auth_headers)
    await client.post("/api/v1/analyses", files=_upload("b.txt"), headers=auth_headers)

    response = await client.get("/api/v1/dashboard", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"totalAnalyses": 2, "totalBiases": 2, "totalWords": 12}
