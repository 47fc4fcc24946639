"""Resume and job-posting pipelines.

Every operation is a strict sequence: extract text, build the prompt, call the
model, sanitize, validate, check the change log (rewrite tasks), resolve the
title, persist. Each stage depends on the previous one, so nothing runs
concurrently inside one invocation.
"""

import logging
import uuid

from joblands.core.config import Settings
from joblands.core.exceptions import (
    ExtractionError,
    InvalidTitleError,
    ResumeNotFoundError,
    SanitizationError,
)
from joblands.models.resume import StoredResume
from joblands.schemas.document import StructuredDocument
from joblands.schemas.job_posting import JobPosting
from joblands.schemas.tailoring import (
    DEFAULT_CHANGE_SUMMARY,
    TailoredResult,
    TailoringPreview,
)
from joblands.services.identity_resolver import resolve_title
from joblands.services.model_invoker import ModelInvoker
from joblands.services.prompt_builder import PromptPair, TaskKind, build_prompt, default_options
from joblands.services.response_sanitizer import sanitize
from joblands.services.schema_validator import SchemaKind, validate
from joblands.services.tailoring_differ import produce_changes
from joblands.services.text_extraction import DocumentSource, PageSource, TextExtractor
from joblands.storage.base import ResumeRepository

logger = logging.getLogger(__name__)

RAW_LOG_LIMIT = 2000


async def _complete_json(
    task: TaskKind, prompt: PromptPair, invoker: ModelInvoker, settings: Settings
) -> dict:
    raw = await invoker.invoke(prompt, default_options(task, settings))
    try:
        return sanitize(raw)
    except SanitizationError as e:
        logger.error("%s: %s. Raw output: %s", task, e, e.raw_text[:RAW_LOG_LIMIT])
        raise


def _check_job_description(job_description: str, settings: Settings) -> str:
    text = (job_description or "").strip()
    if len(text) < settings.min_job_description_length:
        raise ExtractionError(
            f"Meaningful job description required "
            f"(min {settings.min_job_description_length} chars)"
        )
    return text


async def ingest_resume(
    document: DocumentSource,
    title: str,
    user_id: uuid.UUID,
    extractor: TextExtractor,
    invoker: ModelInvoker,
    repository: ResumeRepository,
    settings: Settings,
) -> StoredResume:
    """Upload flow: document -> StructuredDocument -> stored resume."""
    text = await extractor.extract(document, settings.min_resume_text_length)
    logger.info("Parsing resume for user %s (%d chars)", user_id, len(text))

    parsed = await _complete_json(
        TaskKind.PARSE, build_prompt(TaskKind.PARSE, resume_text=text), invoker, settings
    )
    content = validate(parsed, SchemaKind.RESUME)

    final_title = await resolve_title(
        title, user_id, repository.title_exists, max_attempts=settings.title_max_attempts
    )
    resume = await repository.insert(
        user_id,
        final_title,
        content.to_storage(),
        original_file_name=document.filename,
        mime_type=document.media_type,
    )
    logger.info("Stored resume %s as %r", resume.id, final_title)
    return resume


async def extract_job_posting(
    source: PageSource | str,
    extractor: TextExtractor,
    invoker: ModelInvoker,
    settings: Settings,
) -> JobPosting:
    """Turn a job page URL or pasted job text into a JobPosting."""
    if isinstance(source, PageSource):
        text = await extractor.extract(source, settings.min_page_text_length)
    else:
        text = _check_job_description(source, settings)

    parsed = await _complete_json(
        TaskKind.EXTRACT_JOB,
        build_prompt(TaskKind.EXTRACT_JOB, page_text=text),
        invoker,
        settings,
    )
    return validate(parsed, SchemaKind.JOB_POSTING)


async def tailor_resume_with_changes(
    resume_title: str,
    job_description: str,
    target_title: str | None,
    user_id: uuid.UUID,
    invoker: ModelInvoker,
    repository: ResumeRepository,
    settings: Settings,
) -> TailoringPreview:
    """Rewrite a stored resume for a job and report every change.

    Nothing is persisted; the caller saves the preview as a new resume or
    replaces the original explicitly.
    """
    job_text = _check_job_description(job_description, settings)
    resume_title = resume_title.strip()

    stored = await repository.find_by_title_and_user(user_id, resume_title)
    if stored is None:
        raise ResumeNotFoundError(f"No resume titled {resume_title!r} for user {user_id}")
    original = StructuredDocument.model_validate(stored.extracted_content)

    prompt = build_prompt(
        TaskKind.TAILOR_WITH_CHANGES, original=original, job_description=job_text
    )
    parsed = await _complete_json(TaskKind.TAILOR_WITH_CHANGES, prompt, invoker, settings)
    proposal = validate(parsed, SchemaKind.TAILORED)
    changes = produce_changes(original, proposal.resume, proposal.changes or [])

    return TailoringPreview(
        original_resume_id=stored.id,
        target_title=(target_title or "").strip() or f"Tailored - {resume_title}",
        resume=proposal.resume,
        changes=changes,
        summary=proposal.summary or DEFAULT_CHANGE_SUMMARY,
    )


async def tailor_document(
    document: DocumentSource,
    job_description: str,
    extractor: TextExtractor,
    invoker: ModelInvoker,
    settings: Settings,
) -> TailoredResult:
    """One-shot tailoring of an uploaded resume file, with a cover letter."""
    job_text = (job_description or "").strip()
    if not job_text:
        raise ExtractionError("jobDescription is required")

    text = await extractor.extract(document, settings.min_tailor_resume_text_length)
    prompt = build_prompt(TaskKind.TAILOR, resume_text=text, job_description=job_text)
    parsed = await _complete_json(TaskKind.TAILOR, prompt, invoker, settings)
    proposal = validate(parsed, SchemaKind.TAILORED)

    return TailoredResult(
        resume=proposal.resume,
        changes=produce_changes(None, proposal.resume, None),
        summary=proposal.summary or DEFAULT_CHANGE_SUMMARY,
        cover_letter=proposal.cover_letter,
    )


async def save_resume(
    title: str,
    content: StructuredDocument,
    user_id: uuid.UUID,
    repository: ResumeRepository,
    settings: Settings,
) -> StoredResume:
    """Store a resume (usually a tailored preview) as a new sibling document."""
    final_title = await resolve_title(
        title, user_id, repository.title_exists, max_attempts=settings.title_max_attempts
    )
    return await repository.insert(user_id, final_title, content.to_storage())


async def replace_resume(
    resume_id: uuid.UUID,
    title: str,
    content: StructuredDocument,
    user_id: uuid.UUID,
    repository: ResumeRepository,
) -> StoredResume:
    """Replace title and content of an existing resume together."""
    title = title.strip()
    if not title:
        raise InvalidTitleError()
    resume = await repository.update_by_id_and_user(
        resume_id, user_id, title, content.to_storage()
    )
    if resume is None:
        raise ResumeNotFoundError(f"Resume {resume_id} not found for user {user_id}")
    return resume
