"""Project model — a named folder of snippets owned by one user."""

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

DEFAULT_PROJECT_COLOR = "#3B82F6"


class Project(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A project grouping a user's snippets."""

    __tablename__ = "projects"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    color: Mapped[str] = mapped_column(String(20), nullable=False, default=DEFAULT_PROJECT_COLOR)

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name={self.name!r}, user_id={self.user_id!r})>"
