import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from joblands.core.exceptions import ConflictError
from joblands.models.resume import StoredResume
from joblands.storage.base import ResumeRepository

logger = logging.getLogger(__name__)


class SqlAlchemyResumeRepository(ResumeRepository):
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def find_by_title_and_user(self, user_id: uuid.UUID, title: str) -> StoredResume | None:
        result = await self._db.execute(
            select(StoredResume).where(
                StoredResume.user_id == user_id,
                StoredResume.title == title,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_id_and_user(
        self, resume_id: uuid.UUID, user_id: uuid.UUID
    ) -> StoredResume | None:
        result = await self._db.execute(
            select(StoredResume).where(
                StoredResume.id == resume_id,
                StoredResume.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def insert(
        self,
        user_id: uuid.UUID,
        title: str,
        content: dict,
        *,
        original_file_name: str | None = None,
        mime_type: str | None = None,
    ) -> StoredResume:
        resume = StoredResume(
            user_id=user_id,
            title=title,
            original_file_name=original_file_name,
            mime_type=mime_type,
            file_url=None,
            extracted_content=content,
        )
        self._db.add(resume)
        await self._flush_or_conflict(title)
        await self._db.refresh(resume)
        return resume

    async def update_by_id_and_user(
        self,
        resume_id: uuid.UUID,
        user_id: uuid.UUID,
        title: str,
        content: dict,
    ) -> StoredResume | None:
        resume = await self.get_by_id_and_user(resume_id, user_id)
        if resume is None:
            return None
        resume.title = title
        resume.extracted_content = content
        await self._flush_or_conflict(title)
        await self._db.refresh(resume)
        return resume

    async def delete_by_id_and_user(self, resume_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        resume = await self.get_by_id_and_user(resume_id, user_id)
        if resume is None:
            return False
        await self._db.delete(resume)
        await self._db.flush()
        return True

    async def list_by_user(self, user_id: uuid.UUID) -> list[StoredResume]:
        result = await self._db.execute(
            select(StoredResume)
            .where(StoredResume.user_id == user_id)
            .order_by(StoredResume.created_at.desc())
        )
        return list(result.scalars().all())

    async def _flush_or_conflict(self, title: str) -> None:
        try:
            await self._db.flush()
        except IntegrityError as e:
            await self._db.rollback()
            logger.info("Title collision on write for %r: %s", title, e.orig)
            raise ConflictError(f"Resume title {title!r} already exists for this user") from e
