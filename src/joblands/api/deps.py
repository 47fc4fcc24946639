import uuid

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from joblands.core.config import get_settings
from joblands.core.database import get_db
from joblands.core.exceptions import AuthenticationError
from joblands.services.model_invoker import ModelInvoker
from joblands.services.page_renderer import PageRenderer, PlaywrightPageRenderer
from joblands.services.text_extraction import TextExtractor
from joblands.storage.base import ResumeRepository
from joblands.storage.sql import SqlAlchemyResumeRepository

__all__ = [
    "get_current_user_id",
    "get_db",
    "get_model_invoker",
    "get_page_renderer",
    "get_resume_repository",
    "get_text_extractor",
]


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> uuid.UUID:
    if not x_user_id:
        raise AuthenticationError()
    try:
        return uuid.UUID(x_user_id)
    except ValueError as e:
        raise AuthenticationError("Invalid user identity") from e


def get_model_invoker() -> ModelInvoker:
    return ModelInvoker.from_settings(get_settings())


def get_page_renderer() -> PageRenderer:
    return PlaywrightPageRenderer()


def get_text_extractor(renderer: PageRenderer = Depends(get_page_renderer)) -> TextExtractor:
    settings = get_settings()
    return TextExtractor(
        renderer,
        render_timeout_ms=settings.render_timeout_ms,
        decode_timeout_seconds=settings.extraction_timeout_seconds,
    )


def get_resume_repository(db: AsyncSession = Depends(get_db)) -> ResumeRepository:
    return SqlAlchemyResumeRepository(db)
