import asyncio
import io
import logging
import re
from dataclasses import dataclass
from urllib.parse import urlparse

import pdfplumber
from bs4 import BeautifulSoup
from docx import Document
from docx.table import Table

from joblands.core.config import DOCX_MEDIA_TYPE, PDF_MEDIA_TYPE
from joblands.core.exceptions import ExtractionError, UpstreamTimeoutError
from joblands.services.page_renderer import PageRenderer

logger = logging.getLogger(__name__)

UNREADABLE_DOCUMENT = "Could not read the uploaded document"

NON_CONTENT_TAGS = ["script", "style", "nav", "footer", "header", "iframe", "noscript"]

_WHITESPACE_RE = re.compile(r"\s+")
_CID_RE = re.compile(r"\(cid:\d+\)")


@dataclass(frozen=True)
class DocumentSource:
    data: bytes
    media_type: str
    filename: str | None = None


@dataclass(frozen=True)
class PageSource:
    url: str


def extract_text_from_pdf(data: bytes) -> str:
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
            return _CID_RE.sub("", "\n\n".join(pages)).strip()
    except Exception as e:
        raise ExtractionError(
            f"PDF extraction failed: {e}", public_message=UNREADABLE_DOCUMENT
        ) from e


def _docx_blocks(container) -> list[str]:
    """Text of paragraphs and table cells in body order, nested tables included."""
    blocks = []
    for item in container.iter_inner_content():
        if isinstance(item, Table):
            seen = set()
            for row in item.rows:
                for cell in row.cells:
                    # merged cells repeat across the grid
                    if cell._tc in seen:
                        continue
                    seen.add(cell._tc)
                    blocks.extend(_docx_blocks(cell))
        elif item.text.strip():
            blocks.append(item.text)
    return blocks


def extract_text_from_docx(data: bytes) -> str:
    try:
        doc = Document(io.BytesIO(data))
        return "\n\n".join(_docx_blocks(doc))
    except Exception as e:
        raise ExtractionError(
            f"DOCX extraction failed: {e}", public_message=UNREADABLE_DOCUMENT
        ) from e


EXTRACTORS = {
    PDF_MEDIA_TYPE: extract_text_from_pdf,
    DOCX_MEDIA_TYPE: extract_text_from_docx,
}


def extract_document_text(data: bytes, media_type: str) -> str:
    """Decode a binary document. A document without a text layer yields ""."""
    extractor = EXTRACTORS.get(media_type)
    if not extractor:
        raise ExtractionError(f"Unsupported file type: {media_type}. Only PDF and DOCX are allowed")
    return extractor(data)


def html_to_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(NON_CONTENT_TAGS):
        tag.decompose()
    root = soup.body or soup
    return _WHITESPACE_RE.sub(" ", root.get_text(" ")).strip()


def _check_url(url: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ExtractionError(f"Invalid job page URL: {url!r}")


class TextExtractor:
    """Turns a document or a web page into plain text."""

    def __init__(
        self,
        renderer: PageRenderer,
        *,
        render_timeout_ms: int = 60_000,
        decode_timeout_seconds: float = 30.0,
    ) -> None:
        self._renderer = renderer
        self._render_timeout_ms = render_timeout_ms
        self._decode_timeout_seconds = decode_timeout_seconds

    async def extract(self, source: DocumentSource | PageSource, min_length: int) -> str:
        if isinstance(source, DocumentSource):
            text = await self._extract_document(source)
            too_short = "Could not extract meaningful text from the resume"
        elif isinstance(source, PageSource):
            text = await self._extract_page(source)
            too_short = "Job page contains no extractable text"
        else:
            raise TypeError(f"Unsupported source: {type(source).__name__}")

        if len(text) < min_length:
            logger.info("Extracted text too short (%d < %d chars)", len(text), min_length)
            raise ExtractionError(too_short)
        return text

    async def _extract_document(self, source: DocumentSource) -> str:
        try:
            text = await asyncio.wait_for(
                asyncio.to_thread(extract_document_text, source.data, source.media_type),
                timeout=self._decode_timeout_seconds,
            )
        except TimeoutError as e:
            raise UpstreamTimeoutError(
                f"Decoding {source.filename or source.media_type} exceeded "
                f"{self._decode_timeout_seconds}s",
                public_message="The document took too long to read",
            ) from e
        logger.info(
            "Extracted %d chars from %s (%s)", len(text), source.filename, source.media_type
        )
        return text.strip()

    async def _extract_page(self, source: PageSource) -> str:
        _check_url(source.url)
        html = await self._renderer.render(source.url, self._render_timeout_ms)
        text = html_to_text(html)
        logger.info("Extracted %d chars from %s", len(text), source.url)
        return text
