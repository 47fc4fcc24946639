import uuid
from datetime import datetime

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from joblands.models.resume import TITLE_MAX_LENGTH
from joblands.schemas.base import CamelModel
from joblands.schemas.document import StructuredDocument


class ResumeRead(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: uuid.UUID
    title: str
    original_file_name: str | None
    mime_type: str | None
    file_url: str | None
    extracted_content: StructuredDocument
    created_at: datetime
    updated_at: datetime


class ResumeSummary(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: uuid.UUID
    title: str
    original_file_name: str | None
    created_at: datetime


class ResumeUploadResponse(CamelModel):
    id: uuid.UUID
    title: str
    original_file_name: str | None
    parsed_name: str
    created_at: datetime


class ResumeWriteRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    extracted_content: StructuredDocument


class ResumeIdResponse(CamelModel):
    resume_id: uuid.UUID


class ResumeDeleteResponse(CamelModel):
    deleted_resume_id: uuid.UUID
