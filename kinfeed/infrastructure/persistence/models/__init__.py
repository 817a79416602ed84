"""Persistence models: ORM entities and mixins."""

from kinfeed.infrastructure.persistence.models.child import Child
from kinfeed.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    OwnedModel,
    OwnerMixin,
    UuidMixin,
)
from kinfeed.infrastructure.persistence.models.recipient import (
    Recipient,
    RecipientGroup,
)
from kinfeed.infrastructure.persistence.models.search_analytics import SearchAnalytics

__all__ = [
    "Child",
    "CreatedAtMixin",
    "OwnedModel",
    "OwnerMixin",
    "Recipient",
    "RecipientGroup",
    "SearchAnalytics",
    "UuidMixin",
]
