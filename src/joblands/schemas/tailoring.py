import uuid
from enum import StrEnum
from typing import Any, Self

from pydantic import Field, field_validator, model_validator

from joblands.schemas.base import CamelModel, StrictShapeModel
from joblands.schemas.document import StructuredDocument

DEFAULT_CHANGE_SUMMARY = "AI improvements applied"


class ChangeSection(StrEnum):
    SUMMARY = "summary"
    EXPERIENCE = "experience"
    SKILLS = "skills"
    EDUCATION = "education"
    CERTIFICATIONS = "certifications"
    PROJECTS = "projects"
    LANGUAGES = "languages"


class ChangeType(StrEnum):
    ADDED = "added"
    REPHRASED = "rephrased"
    REORDERED = "reordered"


class ChangeRecord(StrictShapeModel):
    """One atomic edit made while tailoring a resume."""

    id: str = Field(min_length=1)
    section: ChangeSection
    type: ChangeType
    experience_index: int | None = Field(default=None, ge=0)
    bullet_index: int | None = Field(default=None, ge=0)
    original: str | None = None
    new: str
    reason: str

    @field_validator("section", mode="before")
    @classmethod
    def _normalize_section(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip() == "professionalSummary":
            return ChangeSection.SUMMARY
        return value

    @model_validator(mode="after")
    def _check_invariants(self) -> Self:
        if self.type is ChangeType.REPHRASED and self.original is None:
            raise ValueError("a rephrased change must carry the original text")
        if self.section is ChangeSection.EXPERIENCE and self.experience_index is None:
            raise ValueError("an experience change must carry experienceIndex")
        if self.section is not ChangeSection.EXPERIENCE and self.experience_index is not None:
            raise ValueError(f"experienceIndex is not addressable in section '{self.section}'")
        if self.section is ChangeSection.SUMMARY and self.bullet_index is not None:
            raise ValueError("the summary section has no bullets")
        return self


class CoverLetter(StrictShapeModel):
    opening: str = ""
    body: list[str] = Field(default_factory=list)
    closing: str = ""


class TailoringProposal(StrictShapeModel):
    """Model output for the tailoring tasks, before the change log is checked."""

    resume: StructuredDocument
    changes: list[Any] | None = None
    summary: str | None = None
    cover_letter: CoverLetter | None = None


class TailoredResult(CamelModel):
    resume: StructuredDocument
    changes: list[ChangeRecord] = Field(default_factory=list)
    summary: str = DEFAULT_CHANGE_SUMMARY
    cover_letter: CoverLetter | None = None


class TailorRequest(CamelModel):
    resume_title: str = Field(..., min_length=1)
    job_description: str
    target_title: str | None = None


class TailoringPreview(CamelModel):
    original_resume_id: uuid.UUID
    target_title: str
    resume: StructuredDocument
    changes: list[ChangeRecord]
    summary: str
