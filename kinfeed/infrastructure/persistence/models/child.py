"""Child ORM model. Searched by name."""

from datetime import date

from sqlalchemy import Date, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from kinfeed.infrastructure.persistence.database import Base
from kinfeed.infrastructure.persistence.models.mixins import OwnedModel


class Child(OwnedModel, Base):
    """Child profile. Table: children."""

    __tablename__ = "children"

    name: Mapped[str] = mapped_column(String, nullable=False)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        Index("ix_children_parent_created", "parent_id", "created_at", "id"),
    )
