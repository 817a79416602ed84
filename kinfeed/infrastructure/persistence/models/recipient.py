"""Recipient and recipient group ORM models. Searched by name (and email for recipients)."""

from sqlalchemy import Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from kinfeed.infrastructure.persistence.database import Base
from kinfeed.infrastructure.persistence.models.mixins import OwnedModel


class Recipient(OwnedModel, Base):
    """Person receiving updates. Table: recipients. Inactive recipients are not searchable."""

    __tablename__ = "recipients"

    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    relationship: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("ix_recipients_parent_created", "parent_id", "created_at", "id"),
    )


class RecipientGroup(OwnedModel, Base):
    """Named group of recipients with a default digest frequency. Table: recipient_groups."""

    __tablename__ = "recipient_groups"

    name: Mapped[str] = mapped_column(String, nullable=False)
    default_frequency: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        Index("ix_recipient_groups_parent_created", "parent_id", "created_at", "id"),
    )
