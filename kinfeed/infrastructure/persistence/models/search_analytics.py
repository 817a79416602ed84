"""Search analytics ORM model. One row per client-reported search or click."""

import uuid
from datetime import datetime

from sqlalchemy import ARRAY, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from kinfeed.infrastructure.persistence.database import Base


class SearchAnalytics(Base):
    """Table: search_analytics. Written only by the analytics sink."""

    __tablename__ = "search_analytics"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(Uuid(as_uuid=False), nullable=False, index=True)
    query: Mapped[str] = mapped_column(Text, nullable=False)
    results_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    execution_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    search_types: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=list
    )
    clicked_result_id: Mapped[str | None] = mapped_column(
        Uuid(as_uuid=False), nullable=True
    )
    clicked_result_type: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("ix_search_analytics_created_at", "created_at"),)
