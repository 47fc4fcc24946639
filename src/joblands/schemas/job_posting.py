from pydantic import Field

from joblands.schemas.base import CamelModel, StrictShapeModel


class JobPosting(StrictShapeModel):
    job_title: str | None = None
    company: str | None = None
    job_description: str | None = None
    required_skills: list[str] = Field(default_factory=list)

    def missing_fields(self) -> list[str]:
        missing = [
            alias
            for alias, value in (
                ("jobTitle", self.job_title),
                ("company", self.company),
                ("jobDescription", self.job_description),
            )
            if not (value or "").strip()
        ]
        if not any(skill.strip() for skill in self.required_skills):
            missing.append("requiredSkills")
        return missing


class JobExtractRequest(CamelModel):
    url: str | None = None
    text: str | None = None
