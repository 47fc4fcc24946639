import uuid
from abc import ABC, abstractmethod

from joblands.models.resume import StoredResume


class ResumeRepository(ABC):
    """Per-user resume storage.

    Implementations must enforce uniqueness of ``(user_id, title)`` and raise
    ``ConflictError`` when a write would break it.
    """

    @abstractmethod
    async def find_by_title_and_user(self, user_id: uuid.UUID, title: str) -> StoredResume | None:
        """Return the user's resume with this exact title, if any."""
        ...

    @abstractmethod
    async def get_by_id_and_user(
        self, resume_id: uuid.UUID, user_id: uuid.UUID
    ) -> StoredResume | None:
        """Return the resume if it exists and belongs to the user."""
        ...

    @abstractmethod
    async def insert(
        self,
        user_id: uuid.UUID,
        title: str,
        content: dict,
        *,
        original_file_name: str | None = None,
        mime_type: str | None = None,
    ) -> StoredResume:
        """Create a resume and return it."""
        ...

    @abstractmethod
    async def update_by_id_and_user(
        self,
        resume_id: uuid.UUID,
        user_id: uuid.UUID,
        title: str,
        content: dict,
    ) -> StoredResume | None:
        """Replace title and content together. Returns None when not found."""
        ...

    @abstractmethod
    async def delete_by_id_and_user(self, resume_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """Delete the resume. Returns False when it did not exist for the user."""
        ...

    @abstractmethod
    async def list_by_user(self, user_id: uuid.UUID) -> list[StoredResume]:
        """List the user's resumes, newest first."""
        ...

    async def title_exists(self, user_id: uuid.UUID, title: str) -> bool:
        return await self.find_by_title_and_user(user_id, title) is not None
