"""SQLAlchemy mixins for common model patterns (DRY).

Provides: UuidMixin, OwnerMixin, CreatedAtMixin and the combined
OwnedModel used by every user-owned searchable entity.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func


class UuidMixin:
    """Mixin for models keyed by a UUID primary key (exposed as str)."""

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(
            Uuid(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4())
        )


class OwnerMixin:
    """Mixin for user-owned rows. parent_id is the owning profile (search scoping key)."""

    @declared_attr
    def parent_id(cls) -> Mapped[str]:
        return mapped_column(Uuid(as_uuid=False), nullable=False, index=True)


class CreatedAtMixin:
    """Mixin for created_at (server default, timezone-aware). Part of the keyset sort key."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )


class OwnedModel(UuidMixin, OwnerMixin, CreatedAtMixin):
    """Combined mixin: UUID id + parent_id + created_at."""

    __abstract__ = True
