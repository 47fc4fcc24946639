"""Deterministic prompt construction for every model task.

Each task kind is bound to one schema text, embedded verbatim in the system
prompt. The schema text is the contract the sanitizer and validator enforce,
so changing a schema here means changing the matching pydantic models in
``joblands.schemas`` as well.
"""

import json
from dataclasses import dataclass
from enum import StrEnum

from joblands.core.config import Settings
from joblands.schemas.document import StructuredDocument


class TaskKind(StrEnum):
    PARSE = "parse"
    EXTRACT_JOB = "extract-job"
    TAILOR = "tailor"
    TAILOR_WITH_CHANGES = "tailor-with-changes"


@dataclass(frozen=True)
class PromptPair:
    system: str
    user: str


@dataclass(frozen=True)
class InvocationOptions:
    temperature: float
    max_tokens: int
    timeout_seconds: float


JSON_ONLY_DIRECTIVE = (
    "Output ONLY valid JSON: no prose, no markdown, no code fences, nothing before "
    "or after the JSON object."
)

RESUME_SCHEMA = """{
  "personalInfo": {
    "fullName": string,
    "email": string | null,
    "phone": string | null,
    "location": string | null,
    "linkedin": string | null,
    "github": string | null,
    "portfolio": string | null,
    "other": object
  },
  "professionalSummary": string | null,
  "experience": [
    {
      "position": string,
      "company": string,
      "location": string | null,
      "startDate": string | null,
      "endDate": string | null,
      "description": string[]
    }
  ],
  "education": [
    {
      "degree": string,
      "field": string | null,
      "institution": string,
      "location": string | null,
      "startYear": string | null,
      "endYear": string | null,
      "description": string[] | null
    }
  ],
  "skills": string[],
  "certifications": [
    {
      "name": string,
      "issuer": string | null,
      "date": string | null,
      "url": string | null
    }
  ],
  "projects": [
    {
      "name": string,
      "description": string[],
      "technologies": string[] | null,
      "url": string | null
    }
  ],
  "languages": [
    {
      "name": string,
      "proficiency": string | null
    }
  ]
}"""

JOB_POSTING_SCHEMA = """{
  "jobTitle": string,
  "company": string,
  "jobDescription": string,
  "requiredSkills": string[]
}"""

TAILOR_SCHEMA = f"""{{
  "resume": {RESUME_SCHEMA},
  "coverLetter": {{
    "opening": string,
    "body": string[],
    "closing": string
  }}
}}"""

CHANGE_RECORD_SCHEMA = """{
  "id": "string, unique, e.g. sum-1, exp-0-rephrase-2, exp-0-add-3, skills-reorder-1",
  "section": "summary | experience | skills | education | certifications | projects | languages",
  "type": "added | rephrased | reordered",
  "experienceIndex": "number, required when section is experience, otherwise null",
  "bulletIndex": "number | null (null for the summary section)",
  "original": "string | null (required when type is rephrased, null for added)",
  "new": "string, the resulting text",
  "reason": "short reason quoting the job description keyword or phrase"
}"""

TAILOR_WITH_CHANGES_SCHEMA = f"""{{
  "resume": {RESUME_SCHEMA},
  "changes": [
    {CHANGE_RECORD_SCHEMA}
  ],
  "summary": "One sentence overview of the changes"
}}"""

TASK_SCHEMAS: dict[TaskKind, str] = {
    TaskKind.PARSE: RESUME_SCHEMA,
    TaskKind.EXTRACT_JOB: JOB_POSTING_SCHEMA,
    TaskKind.TAILOR: TAILOR_SCHEMA,
    TaskKind.TAILOR_WITH_CHANGES: TAILOR_WITH_CHANGES_SCHEMA,
}

PARSE_INSTRUCTIONS = """You are an expert resume parser. Extract and organize all relevant information from the resume text into clean, consistent JSON.

Rules:
- Follow the exact schema structure; do not add or remove keys.
- Missing sections: empty array [] or null / empty object.
- Dates: preserve the original format as a string.
- Descriptions and bullet points: array of strings.
- Skills: flat array of strings.
- Be accurate. Do NOT hallucinate or invent data."""

EXTRACT_JOB_INSTRUCTIONS = """You extract structured job posting data from scraped job pages.

Rules:
- jobTitle: the advertised role.
- company: the hiring company.
- jobDescription: the full description of the role, responsibilities and requirements.
- requiredSkills: hard skills only, as a flat array of strings."""

TAILOR_INSTRUCTIONS = """You are an ATS-grade resume tailoring engine.

Rules:
- Tailor the resume to the job description.
- Write a cover letter based on the resume and the job description.
- Do not invent facts: no new employers, dates, degrees or achievements."""

TAILOR_WITH_CHANGES_INSTRUCTIONS = """You are an expert professional resume writer and ATS optimization specialist.

Produce an improved version of the resume that is strongly aligned with the job description, especially the professional summary, skills and experience bullet points.

Rules you MUST follow:
- Return ONE complete, improved resume object using the exact schema.
- Skills: put the skills matching the job description first, rephrase skill names to match its terminology, and add skills that are explicitly required and clearly implied by the experience.
- Experience: rephrase bullets to be achievement-oriented and keyword-rich, reorder bullets inside each role so the most relevant come first, and add at most a few bullets per role that logically extend existing achievements.
- Strengthen the professional summary so it targets the role.
- Do NOT fabricate employers, roles, companies, dates, degrees or achievements. Reorder and rephrase only.
- Preserve all original dates, titles and companies exactly as strings.
- Do not remove bullets or skills; prefer rephrasing.
- Produce a "changes" array listing EVERY meaningful modification. Every entry must have all of these fields: id, section, type, experienceIndex, bulletIndex, original, new, reason. The reason must reference a specific keyword or phrase from the job description."""

TASK_INSTRUCTIONS: dict[TaskKind, str] = {
    TaskKind.PARSE: PARSE_INSTRUCTIONS,
    TaskKind.EXTRACT_JOB: EXTRACT_JOB_INSTRUCTIONS,
    TaskKind.TAILOR: TAILOR_INSTRUCTIONS,
    TaskKind.TAILOR_WITH_CHANGES: TAILOR_WITH_CHANGES_INSTRUCTIONS,
}


def build_system_prompt(task: TaskKind) -> str:
    return (
        f"{TASK_INSTRUCTIONS[task]}\n\n"
        f"{JSON_ONLY_DIRECTIVE}\n\n"
        f"Return EXACTLY this JSON structure:\n{TASK_SCHEMAS[task]}\n"
    )


def _require(name: str, value: object) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"Prompt input '{name}' is required")


def build_prompt(
    task: TaskKind,
    *,
    resume_text: str | None = None,
    page_text: str | None = None,
    job_description: str | None = None,
    original: StructuredDocument | None = None,
) -> PromptPair:
    """Build the (system, user) prompt pair for ``task``. Pure: no I/O."""
    if task is TaskKind.PARSE:
        _require("resume_text", resume_text)
        user = f'Extract this resume:\n\n"""\n{resume_text}\n"""'
    elif task is TaskKind.EXTRACT_JOB:
        _require("page_text", page_text)
        user = f'Job posting:\n\n"""\n{page_text}\n"""'
    elif task is TaskKind.TAILOR:
        _require("resume_text", resume_text)
        _require("job_description", job_description)
        user = (
            f'Resume:\n"""\n{resume_text}\n"""\n\n'
            f'Job description:\n"""\n{job_description}\n"""'
        )
    elif task is TaskKind.TAILOR_WITH_CHANGES:
        _require("original", original)
        _require("job_description", job_description)
        original_json = json.dumps(original.to_storage(), indent=2, ensure_ascii=False)
        user = (
            f"Original resume JSON:\n{original_json}\n\n"
            f'Job description:\n"""\n{job_description}\n"""\n\n'
            "Return improved resume + changes log as JSON."
        )
    else:
        raise ValueError(f"Unknown task kind: {task}")

    return PromptPair(system=build_system_prompt(task), user=user)


def default_options(task: TaskKind, settings: Settings) -> InvocationOptions:
    if task is TaskKind.PARSE:
        return InvocationOptions(0.15, 4000, settings.parse_timeout_seconds)
    if task is TaskKind.EXTRACT_JOB:
        return InvocationOptions(0.0, 2000, settings.extract_job_timeout_seconds)
    if task is TaskKind.TAILOR:
        return InvocationOptions(0.2, 4000, settings.tailor_timeout_seconds)
    return InvocationOptions(0.15, 4000, settings.tailor_timeout_seconds)
