import logging
from enum import StrEnum

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class NotFoundError(HTTPException):
    def __init__(self, resource: str, resource_id: str) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} with id '{resource_id}' not found",
        )


class FileValidationError(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class PreconditionError(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )


class ErrorCategory(StrEnum):
    CLIENT_INPUT = "client_input"
    UNPROCESSABLE = "unprocessable"
    UPSTREAM = "upstream"
    UPSTREAM_TIMEOUT = "upstream_timeout"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"


class PipelineError(Exception):
    """Base class for failures raised while turning source material into records.

    ``public_message`` is safe to show to end users; ``str(exc)`` may contain
    diagnostics (upstream bodies, raw model output) and is only logged.
    """

    error_code = "pipeline_error"
    category = ErrorCategory.UNPROCESSABLE
    public_message = "Processing failed"

    def __init__(self, message: str | None = None, *, public_message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        if public_message is not None:
            self.public_message = public_message


class ExtractionError(PipelineError):
    """Raised when text extraction from a document or page fails."""

    error_code = "extraction_failed"
    category = ErrorCategory.CLIENT_INPUT
    public_message = "Could not extract meaningful text from the source"

    def __init__(self, message: str | None = None, *, public_message: str | None = None) -> None:
        # extraction messages never contain upstream payloads
        super().__init__(message, public_message=public_message or message)


class UpstreamTimeoutError(PipelineError):
    error_code = "upstream_timeout"
    category = ErrorCategory.UPSTREAM_TIMEOUT
    public_message = "The AI service took too long to respond"


class UpstreamError(PipelineError):
    """The model or rendering provider rejected the request."""

    error_code = "upstream_error"
    category = ErrorCategory.UPSTREAM
    public_message = "AI parsing failed, please try again"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        body: str | None = None,
        public_message: str | None = None,
    ) -> None:
        super().__init__(message, public_message=public_message)
        self.status_code = status_code
        self.body = body


class UpstreamUnavailableError(UpstreamError):
    error_code = "upstream_unavailable"
    public_message = "The AI service is unreachable, please try again later"


class SanitizationError(PipelineError):
    category = ErrorCategory.UPSTREAM
    public_message = "AI failed to produce valid output. Please try again."

    def __init__(self, message: str, raw_text: str) -> None:
        super().__init__(message)
        self.raw_text = raw_text


class NoJsonFoundError(SanitizationError):
    error_code = "no_json_found"


class MalformedJsonError(SanitizationError):
    error_code = "malformed_json"


class SchemaValidationError(PipelineError):
    error_code = "schema_mismatch"
    category = ErrorCategory.UNPROCESSABLE
    public_message = "AI output did not match the expected structure"

    def __init__(self, message: str, errors: list | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class EmptyExtractionError(PipelineError):
    error_code = "empty_extraction"
    category = ErrorCategory.UNPROCESSABLE
    public_message = "Could not extract usable data from the source"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, public_message=message)


class InvalidChangeRecordError(PipelineError):
    """A single tailoring change entry broke an invariant; callers drop it."""

    error_code = "invalid_change_record"

    def __init__(self, message: str, entry: object = None) -> None:
        super().__init__(message)
        self.entry = entry


class InvalidTitleError(PipelineError):
    error_code = "invalid_title"
    category = ErrorCategory.CLIENT_INPUT
    public_message = "Resume title is required"


class TitleResolutionExhaustedError(PipelineError):
    error_code = "title_exhausted"
    category = ErrorCategory.CONFLICT
    public_message = "Too many resumes share this title, please choose another one"


class ConflictError(PipelineError):
    error_code = "conflict"
    category = ErrorCategory.CONFLICT
    public_message = "A resume with this title already exists, please use another title."


class ResumeNotFoundError(PipelineError):
    error_code = "resume_not_found"
    category = ErrorCategory.NOT_FOUND
    public_message = "Resume not found"


STATUS_BY_CATEGORY = {
    ErrorCategory.CLIENT_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorCategory.UNPROCESSABLE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCategory.UPSTREAM: status.HTTP_502_BAD_GATEWAY,
    ErrorCategory.UPSTREAM_TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
    ErrorCategory.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCategory.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    """Map pipeline failures to a stable status code and a client-safe message."""
    status_code = STATUS_BY_CATEGORY.get(exc.category, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    else:
        logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.public_message, "code": exc.error_code},
    )


def _describe_validation_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f"{location}: {error.get('msg', 'invalid value')}" if location else error.get("msg", "")


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Reject malformed request input as client input, distinct from unprocessable output."""
    errors = exc.errors()
    logger.info("Invalid request on %s: %s", request.url.path, errors)
    message = "Invalid request"
    if errors:
        message = f"Invalid request: {_describe_validation_error(errors[0])}"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message, "code": "invalid_request"},
    )
