from sqlalchemy import JSON, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from joblands.models.base import Base, TimestampMixin, UserOwnedMixin, UUIDPrimaryKeyMixin

TITLE_MAX_LENGTH = 120


class StoredResume(UUIDPrimaryKeyMixin, UserOwnedMixin, TimestampMixin, Base):
    __tablename__ = "resumes"
    __table_args__ = (UniqueConstraint("user_id", "title", name="uq_resumes_user_id_title"),)

    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    original_file_name: Mapped[str | None] = mapped_column(String(500), nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    # object storage is not wired up; always null for now
    file_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    extracted_content: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False
    )

    def __repr__(self) -> str:
        return f"<StoredResume {self.title!r} (user {self.user_id})>"
