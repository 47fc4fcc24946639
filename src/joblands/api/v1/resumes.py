import logging
import uuid

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from joblands.api.deps import (
    get_current_user_id,
    get_model_invoker,
    get_resume_repository,
    get_text_extractor,
)
from joblands.core.config import get_settings
from joblands.core.exceptions import FileValidationError, NotFoundError, PreconditionError
from joblands.schemas.job_posting import JobExtractRequest, JobPosting
from joblands.schemas.resume import (
    ResumeDeleteResponse,
    ResumeIdResponse,
    ResumeRead,
    ResumeSummary,
    ResumeUploadResponse,
    ResumeWriteRequest,
)
from joblands.schemas.tailoring import TailoredResult, TailoringPreview, TailorRequest
from joblands.services import pipeline
from joblands.services.model_invoker import ModelInvoker
from joblands.services.text_extraction import DocumentSource, PageSource, TextExtractor
from joblands.storage.base import ResumeRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resumes", tags=["resumes"])


async def _read_upload(file: UploadFile | None) -> DocumentSource:
    settings = get_settings()
    if file is None or not file.filename:
        raise FileValidationError("Resume file is required")
    if file.content_type not in settings.allowed_media_types:
        raise FileValidationError("Only PDF and DOCX files are allowed")

    content = await file.read()
    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise FileValidationError(f"File size exceeds maximum of {settings.max_upload_size_mb}MB")
    return DocumentSource(data=content, media_type=file.content_type, filename=file.filename)


@router.post(
    "/upload-resume",
    response_model=ResumeUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_resume(
    resume: UploadFile | None = File(None),
    title: str = Form(""),
    user_id: uuid.UUID = Depends(get_current_user_id),
    extractor: TextExtractor = Depends(get_text_extractor),
    invoker: ModelInvoker = Depends(get_model_invoker),
    repository: ResumeRepository = Depends(get_resume_repository),
) -> ResumeUploadResponse:
    if not title.strip():
        raise FileValidationError("Resume title is required")
    document = await _read_upload(resume)

    stored = await pipeline.ingest_resume(
        document, title, user_id, extractor, invoker, repository, get_settings()
    )
    full_name = stored.extracted_content.get("personalInfo", {}).get("fullName")
    return ResumeUploadResponse(
        id=stored.id,
        title=stored.title,
        original_file_name=stored.original_file_name,
        parsed_name=full_name or "Not detected",
        created_at=stored.created_at,
    )


@router.get("/get-resumes", response_model=list[ResumeSummary])
async def list_resumes(
    user_id: uuid.UUID = Depends(get_current_user_id),
    repository: ResumeRepository = Depends(get_resume_repository),
) -> list[ResumeSummary]:
    resumes = await repository.list_by_user(user_id)
    return [ResumeSummary.model_validate(r) for r in resumes]


@router.get("/get-resume/{resume_id}", response_model=ResumeRead)
async def get_resume(
    resume_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repository: ResumeRepository = Depends(get_resume_repository),
) -> ResumeRead:
    resume = await repository.get_by_id_and_user(resume_id, user_id)
    if not resume:
        raise NotFoundError("Resume", str(resume_id))
    return ResumeRead.model_validate(resume)


@router.put("/update-resume/{resume_id}", response_model=ResumeIdResponse)
async def replace_resume(
    resume_id: uuid.UUID,
    data: ResumeWriteRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repository: ResumeRepository = Depends(get_resume_repository),
) -> ResumeIdResponse:
    resume = await pipeline.replace_resume(
        resume_id, data.title, data.extracted_content, user_id, repository
    )
    return ResumeIdResponse(resume_id=resume.id)


@router.post("/tailor-resume", response_model=TailoringPreview)
async def tailor_resume(
    data: TailorRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    invoker: ModelInvoker = Depends(get_model_invoker),
    repository: ResumeRepository = Depends(get_resume_repository),
) -> TailoringPreview:
    """Preview a tailored rewrite of a stored resume with its change log."""
    return await pipeline.tailor_resume_with_changes(
        data.resume_title,
        data.job_description,
        data.target_title,
        user_id,
        invoker,
        repository,
        get_settings(),
    )


@router.post(
    "/save-resume",
    response_model=ResumeRead,
    status_code=status.HTTP_201_CREATED,
)
async def save_resume(
    data: ResumeWriteRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repository: ResumeRepository = Depends(get_resume_repository),
) -> ResumeRead:
    resume = await pipeline.save_resume(
        data.title, data.extracted_content, user_id, repository, get_settings()
    )
    return ResumeRead.model_validate(resume)


@router.delete("/delete-resume/{resume_id}", response_model=ResumeDeleteResponse)
async def delete_resume(
    resume_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repository: ResumeRepository = Depends(get_resume_repository),
) -> ResumeDeleteResponse:
    if not await repository.delete_by_id_and_user(resume_id, user_id):
        raise NotFoundError("Resume", str(resume_id))
    return ResumeDeleteResponse(deleted_resume_id=resume_id)


@router.post("/extract", response_model=JobPosting)
async def extract_job(
    data: JobExtractRequest,
    extractor: TextExtractor = Depends(get_text_extractor),
    invoker: ModelInvoker = Depends(get_model_invoker),
) -> JobPosting:
    """Extract a structured job posting from a URL or from pasted text."""
    if data.url and data.url.strip():
        source: PageSource | str = PageSource(url=data.url.strip())
    elif data.text and data.text.strip():
        source = data.text
    else:
        raise PreconditionError("url is required")
    return await pipeline.extract_job_posting(source, extractor, invoker, get_settings())


@router.post("/tailor", response_model=TailoredResult)
async def tailor_uploaded_resume(
    resume: UploadFile | None = File(None),
    job_description: str = Form("", alias="jobDescription"),
    extractor: TextExtractor = Depends(get_text_extractor),
    invoker: ModelInvoker = Depends(get_model_invoker),
) -> TailoredResult:
    """Tailor an uploaded resume file to a job description and draft a cover letter."""
    document = await _read_upload(resume)
    if not job_description.strip():
        raise FileValidationError("jobDescription is required")
    return await pipeline.tailor_document(
        document, job_description, extractor, invoker, get_settings()
    )
