"""Integration tests for the resumes HTTP API.

These tests exercise upload, listing, retrieval, replacement, tailoring,
saving, deletion and job extraction through an HTTPX AsyncClient wired to the
FastAPI app, with an in-memory repository, a fake page renderer and a mocked
Gemini client.
"""

import uuid

import pytest

from tests.conftest import (
    DOCX_MEDIA_TYPE,
    JOB_DESCRIPTION,
    OTHER_USER_ID,
    PDF_MEDIA_TYPE,
    USER_ID,
    fenced,
    make_gemini_response,
    make_resume_content,
    make_tailored_payload,
)

pytestmark = pytest.mark.integration

RESUMES_API = "/api/v1/resumes"


# ── helpers ──────────────────────────────────────────────────────────────


def _answer(model_client, text: str) -> None:
    model_client.aio.models.generate_content.return_value = make_gemini_response(text)


async def _upload(client, content: bytes, title: str = "Main", media_type: str = PDF_MEDIA_TYPE):
    return await client.post(
        f"{RESUMES_API}/upload-resume",
        files={"resume": ("cv.pdf", content, media_type)},
        data={"title": title},
    )


# ── upload ───────────────────────────────────────────────────────────────


async def test_upload_resume_pdf_201(client, sample_pdf, repository):
    resp = await _upload(client, sample_pdf)

    assert resp.status_code == 201
    body = resp.json()
    assert body["title"] == "Main"
    assert body["originalFileName"] == "cv.pdf"
    assert body["parsedName"] == "Alex Johnson"
    [stored] = await repository.list_by_user(USER_ID)
    assert str(stored.id) == body["id"]


async def test_upload_resume_docx_201(client, sample_docx):
    resp = await _upload(client, sample_docx, media_type=DOCX_MEDIA_TYPE)
    assert resp.status_code == 201


async def test_upload_duplicate_title_gets_suffix(client, sample_pdf):
    await _upload(client, sample_pdf)
    resp = await _upload(client, sample_pdf)
    assert resp.status_code == 201
    assert resp.json()["title"] == "Main (2)"


async def test_upload_name_not_detected(client, model_client, sample_pdf):
    _answer(model_client, fenced({"skills": ["Python"]}))
    resp = await _upload(client, sample_pdf)
    assert resp.status_code == 201
    assert resp.json()["parsedName"] == "Not detected"


async def test_upload_unsupported_type_400(client):
    resp = await _upload(client, b"plain text resume", media_type="text/plain")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Only PDF and DOCX files are allowed"


async def test_upload_missing_file_400(client):
    resp = await client.post(f"{RESUMES_API}/upload-resume", data={"title": "Main"})
    assert resp.status_code == 400


async def test_upload_blank_title_400(client, sample_pdf):
    resp = await _upload(client, sample_pdf, title="  ")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Resume title is required"


async def test_upload_too_large_400(client):
    resp = await _upload(client, b"%PDF-1.4\n" + b"0" * (11 * 1024 * 1024))
    assert resp.status_code == 400
    assert "exceeds maximum" in resp.json()["detail"]


async def test_upload_without_text_layer_400(client):
    resp = await _upload(client, b"not a pdf")
    assert resp.status_code == 400
    assert resp.json()["code"] == "extraction_failed"


async def test_upload_no_json_502_nothing_stored(client, model_client, sample_pdf, repository):
    _answer(model_client, "I could not read this resume, sorry.")

    resp = await _upload(client, sample_pdf)

    assert resp.status_code == 502
    assert resp.json() == {
        "error": "AI failed to produce valid output. Please try again.",
        "code": "no_json_found",
    }
    assert await repository.list_by_user(USER_ID) == []


async def test_upload_schema_mismatch_422(client, model_client, sample_pdf):
    _answer(model_client, fenced(make_resume_content(skills="Python")))
    resp = await _upload(client, sample_pdf)
    assert resp.status_code == 422
    assert resp.json()["code"] == "schema_mismatch"


async def test_upload_empty_extraction_422(client, model_client, sample_pdf):
    _answer(model_client, fenced({"personalInfo": {"fullName": None}}))
    resp = await _upload(client, sample_pdf)
    assert resp.status_code == 422
    assert resp.json()["error"] == "Could not extract usable resume data."


async def test_missing_user_header_401(client, sample_pdf):
    resp = await client.get(f"{RESUMES_API}/get-resumes", headers={"X-User-Id": ""})
    assert resp.status_code == 401


async def test_invalid_user_header_401(client):
    resp = await client.get(f"{RESUMES_API}/get-resumes", headers={"X-User-Id": "alice"})
    assert resp.status_code == 401


# ── read / replace / delete ──────────────────────────────────────────────


async def test_list_resumes_scoped_to_user(client, repository):
    await repository.insert(USER_ID, "Main", make_resume_content())
    await repository.insert(USER_ID, "Backend", make_resume_content())
    await repository.insert(OTHER_USER_ID, "Theirs", make_resume_content())

    resp = await client.get(f"{RESUMES_API}/get-resumes")

    assert resp.status_code == 200
    assert [r["title"] for r in resp.json()] == ["Backend", "Main"]


async def test_get_resume_200(client, repository):
    stored = await repository.insert(USER_ID, "Main", make_resume_content())

    resp = await client.get(f"{RESUMES_API}/get-resume/{stored.id}")

    assert resp.status_code == 200
    body = resp.json()
    assert body["extractedContent"]["personalInfo"]["fullName"] == "Alex Johnson"
    assert body["fileUrl"] is None


async def test_get_other_users_resume_404(client, repository):
    stored = await repository.insert(OTHER_USER_ID, "Theirs", make_resume_content())
    resp = await client.get(f"{RESUMES_API}/get-resume/{stored.id}")
    assert resp.status_code == 404


async def test_replace_resume_200(client, repository):
    stored = await repository.insert(USER_ID, "Main", make_resume_content())

    resp = await client.put(
        f"{RESUMES_API}/update-resume/{stored.id}",
        json={"title": "Renamed", "extractedContent": make_resume_content(skills=["Rust"])},
    )

    assert resp.status_code == 200
    assert resp.json() == {"resumeId": str(stored.id)}
    updated = await repository.get_by_id_and_user(stored.id, USER_ID)
    assert updated.title == "Renamed"
    assert updated.extracted_content["skills"] == ["Rust"]


async def test_replace_resume_title_conflict_409(client, repository):
    await repository.insert(USER_ID, "Main", make_resume_content())
    other = await repository.insert(USER_ID, "Backend", make_resume_content())

    resp = await client.put(
        f"{RESUMES_API}/update-resume/{other.id}",
        json={"title": "Main", "extractedContent": make_resume_content()},
    )

    assert resp.status_code == 409
    assert resp.json()["code"] == "conflict"


async def test_replace_missing_resume_404(client):
    resp = await client.put(
        f"{RESUMES_API}/update-resume/{uuid.uuid4()}",
        json={"title": "Main", "extractedContent": make_resume_content()},
    )
    assert resp.status_code == 404
    assert resp.json()["code"] == "resume_not_found"


async def test_delete_resume_200(client, repository):
    stored = await repository.insert(USER_ID, "Main", make_resume_content())

    resp = await client.delete(f"{RESUMES_API}/delete-resume/{stored.id}")

    assert resp.status_code == 200
    assert resp.json() == {"deletedResumeId": str(stored.id)}
    assert await repository.get_by_id_and_user(stored.id, USER_ID) is None


async def test_delete_missing_resume_404(client):
    resp = await client.delete(f"{RESUMES_API}/delete-resume/{uuid.uuid4()}")
    assert resp.status_code == 404


# ── tailoring ────────────────────────────────────────────────────────────


async def test_tailor_resume_preview_200(client, model_client, repository):
    stored = await repository.insert(USER_ID, "Main", make_resume_content())
    _answer(model_client, fenced(make_tailored_payload()))

    resp = await client.post(
        f"{RESUMES_API}/tailor-resume",
        json={"resumeTitle": "Main", "jobDescription": JOB_DESCRIPTION},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["originalResumeId"] == str(stored.id)
    assert body["targetTitle"] == "Tailored - Main"
    assert [c["id"] for c in body["changes"]] == ["sum-1", "skills-add-1"]
    assert body["changes"][0]["section"] == "summary"
    assert len(await repository.list_by_user(USER_ID)) == 1


async def test_tailor_resume_unknown_title_404(client):
    resp = await client.post(
        f"{RESUMES_API}/tailor-resume",
        json={"resumeTitle": "Missing", "jobDescription": JOB_DESCRIPTION},
    )
    assert resp.status_code == 404


async def test_tailor_resume_short_job_description_400(client, repository):
    await repository.insert(USER_ID, "Main", make_resume_content())
    resp = await client.post(
        f"{RESUMES_API}/tailor-resume",
        json={"resumeTitle": "Main", "jobDescription": "Python dev"},
    )
    assert resp.status_code == 400


async def test_save_resume_201(client, repository):
    await repository.insert(USER_ID, "Tailored - Main", make_resume_content())

    resp = await client.post(
        f"{RESUMES_API}/save-resume",
        json={"title": "Tailored - Main", "extractedContent": make_resume_content()},
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["title"] == "Tailored - Main (2)"
    assert body["originalFileName"] is None


async def test_tailor_resume_missing_job_description_400(client, model_client, repository):
    await repository.insert(USER_ID, "Main", make_resume_content())

    resp = await client.post(f"{RESUMES_API}/tailor-resume", json={"resumeTitle": "Main"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "invalid_request"
    assert body["error"] == "Invalid request: jobDescription: Field required"
    model_client.aio.models.generate_content.assert_not_awaited()


async def test_save_resume_title_too_long_400(client, repository):
    resp = await client.post(
        f"{RESUMES_API}/save-resume",
        json={"title": "T" * 121, "extractedContent": make_resume_content()},
    )

    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "invalid_request"
    assert body["error"].startswith("Invalid request: title:")
    assert await repository.list_by_user(USER_ID) == []


async def test_tailor_uploaded_file_200(client, model_client, sample_pdf):
    payload = {
        "resume": make_resume_content(),
        "summary": "Focused on FastAPI.",
        "coverLetter": {"opening": "Dear team,", "body": ["I build APIs."], "closing": "Best"},
    }
    _answer(model_client, fenced(payload))

    resp = await client.post(
        f"{RESUMES_API}/tailor",
        files={"resume": ("cv.pdf", sample_pdf, PDF_MEDIA_TYPE)},
        data={"jobDescription": JOB_DESCRIPTION},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["coverLetter"]["opening"] == "Dear team,"
    assert body["changes"] == []
    assert body["summary"] == "Focused on FastAPI."


async def test_tailor_uploaded_file_requires_job_description(client, sample_pdf):
    resp = await client.post(
        f"{RESUMES_API}/tailor",
        files={"resume": ("cv.pdf", sample_pdf, PDF_MEDIA_TYPE)},
    )
    assert resp.status_code == 400


async def test_tailor_model_timeout_504(client, model_client, repository):
    await repository.insert(USER_ID, "Main", make_resume_content())
    model_client.aio.models.generate_content.side_effect = TimeoutError()

    resp = await client.post(
        f"{RESUMES_API}/tailor-resume",
        json={"resumeTitle": "Main", "jobDescription": JOB_DESCRIPTION},
    )

    assert resp.status_code == 504
    assert resp.json()["code"] == "upstream_timeout"


# ── job extraction ───────────────────────────────────────────────────────


JOB = {
    "jobTitle": "Senior Python Engineer",
    "company": "Globex",
    "jobDescription": "Build FastAPI services.",
    "requiredSkills": ["Python", "FastAPI"],
}


async def test_extract_job_from_url_200(client, model_client, renderer):
    _answer(model_client, fenced(JOB))

    resp = await client.post(f"{RESUMES_API}/extract", json={"url": "https://jobs.example.com/42"})

    assert resp.status_code == 200
    assert resp.json()["requiredSkills"] == ["Python", "FastAPI"]
    assert renderer.open_pages == 0


async def test_extract_job_from_text_200(client, model_client, renderer):
    _answer(model_client, fenced(JOB))

    resp = await client.post(f"{RESUMES_API}/extract", json={"text": JOB_DESCRIPTION})

    assert resp.status_code == 200
    assert resp.json()["company"] == "Globex"
    assert renderer.calls == []


async def test_extract_job_without_input_400(client):
    resp = await client.post(f"{RESUMES_API}/extract", json={})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "url is required"


async def test_extract_job_missing_fields_422(client, model_client):
    _answer(model_client, fenced({**JOB, "company": None}))
    resp = await client.post(f"{RESUMES_API}/extract", json={"url": "https://jobs.example.com/42"})
    assert resp.status_code == 422
    assert resp.json()["error"] == "Job posting is missing required data: company"


async def test_extract_job_invalid_url_400(client):
    resp = await client.post(f"{RESUMES_API}/extract", json={"url": "file:///etc/passwd"})
    assert resp.status_code == 400
