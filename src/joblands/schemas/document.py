from pydantic import Field

from joblands.schemas.base import StrictShapeModel


class PersonalInfo(StrictShapeModel):
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    linkedin: str | None = None
    github: str | None = None
    portfolio: str | None = None
    other: dict[str, str] = Field(default_factory=dict)


class ExperienceEntry(StrictShapeModel):
    position: str
    company: str
    location: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    description: list[str] = Field(default_factory=list)


class EducationEntry(StrictShapeModel):
    degree: str
    institution: str
    field: str | None = None
    location: str | None = None
    start_year: str | None = None
    end_year: str | None = None
    description: list[str] | None = None


class Certification(StrictShapeModel):
    name: str
    issuer: str | None = None
    date: str | None = None
    url: str | None = None


class Project(StrictShapeModel):
    name: str
    description: list[str] = Field(default_factory=list)
    technologies: list[str] | None = None
    url: str | None = None


class Language(StrictShapeModel):
    name: str
    proficiency: str | None = None


class StructuredDocument(StrictShapeModel):
    """Canonical parsed representation of a resume."""

    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    professional_summary: str | None = None
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    certifications: list[Certification] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)
    languages: list[Language] = Field(default_factory=list)

    def has_useful_data(self) -> bool:
        return bool(self.personal_info.full_name or self.experience or self.skills)

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
