"""Community models — public feed copies of snippets and their likes."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin, utcnow


class CommunityPost(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Snapshot of a public snippet, taken at publish time.

    Exists iff the source snippet has ``is_public = True``. Fields are copied,
    so later edits to the snippet do not show up here.
    """

    __tablename__ = "community"

    snippet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("snippets.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    project_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    language: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    likes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    views_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    # Relationships
    author: Mapped["User"] = relationship(lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    def __repr__(self) -> str:
        return f"<CommunityPost(id={self.id}, snippet_id={self.snippet_id}, likes={self.likes_count})>"


class CommunityLike(UUIDPrimaryKeyMixin, Base):
    """One user's like on one community post."""

    __tablename__ = "community_likes"

    community_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("community.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    __table_args__ = (
        UniqueConstraint("community_id", "user_id", name="uq_community_likes_post_user"),
    )

    def __repr__(self) -> str:
        return f"<CommunityLike(community_id={self.community_id}, user_id={self.user_id!r})>"
