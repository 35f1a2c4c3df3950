"""SQLAlchemy models for SnipVault.

All models are imported here so that Alembic's autogenerate can discover
them via Base.metadata. If you add a new model, import it in this file.
"""

from app.models.community import CommunityLike, CommunityPost
from app.models.project import Project
from app.models.snippet import Snippet
from app.models.subscription import UserSubscription
from app.models.user import User

__all__ = [
    "CommunityLike",
    "CommunityPost",
    "Project",
    "Snippet",
    "User",
    "UserSubscription",
]
