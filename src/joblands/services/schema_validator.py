import logging
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from joblands.core.exceptions import EmptyExtractionError, SchemaValidationError
from joblands.schemas.document import StructuredDocument
from joblands.schemas.job_posting import JobPosting
from joblands.schemas.tailoring import TailoringProposal

logger = logging.getLogger(__name__)


class SchemaKind(StrEnum):
    RESUME = "resume"
    JOB_POSTING = "job_posting"
    TAILORED = "tailored"


SCHEMA_MODELS = {
    SchemaKind.RESUME: StructuredDocument,
    SchemaKind.JOB_POSTING: JobPosting,
    SchemaKind.TAILORED: TailoringProposal,
}


def validate(
    parsed: dict[str, Any], kind: SchemaKind
) -> StructuredDocument | JobPosting | TailoringProposal:
    """Check a sanitized object against the schema for ``kind``.

    Missing arrays come back as ``[]`` and missing nullable scalars as ``None``.
    Unknown keys and wrong container types are rejected, not repaired.
    """
    model = SCHEMA_MODELS[kind]
    try:
        result = model.model_validate(parsed)
    except ValidationError as e:
        errors = e.errors(include_url=False, include_input=False)
        logger.warning("Model output failed %s schema: %s", kind, errors)
        raise SchemaValidationError(
            f"Model output does not match the {kind} schema ({e.error_count()} errors)",
            errors,
        ) from e

    if isinstance(result, StructuredDocument) and not result.has_useful_data():
        raise EmptyExtractionError("Could not extract usable resume data.")
    if isinstance(result, JobPosting):
        missing = result.missing_fields()
        if missing:
            raise EmptyExtractionError(
                f"Job posting is missing required data: {', '.join(missing)}"
            )
    return result
