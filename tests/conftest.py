import io
import json
import uuid
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from docx import Document
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from joblands.api.deps import get_model_invoker, get_resume_repository, get_text_extractor
from joblands.core.config import DOCX_MEDIA_TYPE, PDF_MEDIA_TYPE, Settings
from joblands.main import create_app
from joblands.services.model_invoker import ModelInvoker
from joblands.services.text_extraction import TextExtractor
from tests.mocks.fake_renderer import FakePageRenderer
from tests.mocks.memory_repository import InMemoryResumeRepository

USER_ID = uuid.UUID("6f1b9a1e-2c1d-4c33-9a55-0d7a7c1f2b10")
OTHER_USER_ID = uuid.UUID("0b2e2a57-77d8-4d1e-8d4f-3f1f4bb0c2aa")

RESUME_LINES = [
    "Alex Johnson - Senior Backend Engineer",
    "alex.johnson@example.com | Berlin, Germany",
    "Experience: Acme Corp, Software Engineer, 2019 - 2023",
    "Built Python APIs with FastAPI and PostgreSQL",
]

JOB_DESCRIPTION = (
    "We are hiring a Senior Python Engineer to build FastAPI services on AWS. "
    "You will own PostgreSQL schemas, CI/CD pipelines and mentor engineers."
)

JOB_PAGE_HTML = """
<html>
  <head><title>Careers</title><script>var tracking = true;</script></head>
  <body>
    <header>Site header</header>
    <nav>Home | Jobs</nav>
    <main>
      <h1>Senior Python Engineer</h1>
      <p>Globex is hiring a Senior Python Engineer to build FastAPI services.</p>
      <p>Requirements:   Python,   PostgreSQL,
         Docker</p>
    </main>
    <footer>Copyright Globex</footer>
    <noscript>Enable JavaScript</noscript>
  </body>
</html>
"""


def _pdf_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def make_pdf(lines: list[str]) -> bytes:
    """Build a one-page PDF with a Helvetica text layer."""
    commands = ["BT", "/F1 11 Tf", "72 720 Td", "14 TL"]
    for line in lines:
        commands.append(f"({_pdf_escape(line)}) Tj T*")
    commands.append("ET")
    stream = "\n".join(commands).encode("latin-1")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n".encode()
    out += f"startxref\n{xref_at}\n%%EOF\n".encode()
    return bytes(out)


def make_docx(paragraphs: list[str]) -> bytes:
    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


def make_resume_content(**overrides) -> dict:
    """Helper to create a stored-form (camelCase) resume document."""
    data = {
        "personalInfo": {
            "fullName": "Alex Johnson",
            "email": "alex.johnson@example.com",
            "phone": None,
            "location": "Berlin, Germany",
            "linkedin": None,
            "github": None,
            "portfolio": None,
            "other": {},
        },
        "professionalSummary": "Backend engineer focused on Python services.",
        "experience": [
            {
                "position": "Software Engineer",
                "company": "Acme Corp",
                "location": "Berlin",
                "startDate": "2019",
                "endDate": "2023",
                "description": ["Built Python APIs", "Maintained PostgreSQL schemas"],
            }
        ],
        "education": [],
        "skills": ["Python", "PostgreSQL"],
        "certifications": [],
        "projects": [],
        "languages": [],
    }
    data.update(overrides)
    return data


def make_tailored_payload(**overrides) -> dict:
    resume = make_resume_content(
        professionalSummary="Senior Python engineer building FastAPI services on AWS.",
        skills=["Python", "FastAPI", "PostgreSQL", "AWS"],
    )
    data = {
        "resume": resume,
        "changes": [
            {
                "id": "sum-1",
                "section": "professionalSummary",
                "type": "rephrased",
                "experienceIndex": None,
                "bulletIndex": None,
                "original": "Backend engineer focused on Python services.",
                "new": "Senior Python engineer building FastAPI services on AWS.",
                "reason": "JD asks for 'FastAPI services on AWS'",
            },
            {
                "id": "skills-add-1",
                "section": "skills",
                "type": "added",
                "experienceIndex": None,
                "bulletIndex": 1,
                "original": None,
                "new": "FastAPI",
                "reason": "JD names FastAPI",
            },
        ],
        "summary": "Rephrased the summary and added 2 skills.",
    }
    data.update(overrides)
    return data


def fenced(payload: dict, *, prose: bool = True) -> str:
    body = f"```json\n{json.dumps(payload, indent=2)}\n```"
    if prose:
        return f"Sure! Here is the JSON you asked for:\n{body}\nLet me know if you need changes."
    return body


def make_gemini_response(text: str | None) -> MagicMock:
    """Create a mock Gemini generate_content response."""
    response = MagicMock()
    response.text = text
    return response


def make_gemini_client(*texts: str | None) -> MagicMock:
    """A mocked google.genai.Client answering with ``texts`` in order."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(
        side_effect=[make_gemini_response(t) for t in texts]
    )
    return client


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,  # Prevent reading .env file during tests
        google_ai_api_key="test-key",
    )


@pytest.fixture
def repository() -> InMemoryResumeRepository:
    return InMemoryResumeRepository()


@pytest.fixture
def renderer() -> FakePageRenderer:
    return FakePageRenderer(JOB_PAGE_HTML)


@pytest.fixture
def extractor(renderer: FakePageRenderer) -> TextExtractor:
    return TextExtractor(renderer, render_timeout_ms=60_000, decode_timeout_seconds=10.0)


@pytest.fixture(scope="session")
def sample_pdf() -> bytes:
    return make_pdf(RESUME_LINES)


@pytest.fixture(scope="session")
def sample_docx() -> bytes:
    return make_docx(RESUME_LINES)


@pytest.fixture
def model_client() -> MagicMock:
    """Mock Gemini client; tests set ``generate_content`` answers as needed."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(
        return_value=make_gemini_response(fenced(make_resume_content()))
    )
    return client


@pytest.fixture
def app(
    repository: InMemoryResumeRepository,
    extractor: TextExtractor,
    model_client: MagicMock,
) -> FastAPI:
    app = create_app()
    app.dependency_overrides[get_resume_repository] = lambda: repository
    app.dependency_overrides[get_text_extractor] = lambda: extractor
    app.dependency_overrides[get_model_invoker] = lambda: ModelInvoker(model_client, "gemini-test")
    return app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-User-Id": str(USER_ID)},
        follow_redirects=True,
    ) as ac:
        yield ac
