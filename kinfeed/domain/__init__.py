"""Domain layer: enums and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from kinfeed.domain.enums import DistributionStatus, PaginationMode, SearchResultType
from kinfeed.domain.exceptions import (
    AnalyticsWriteException,
    AuthenticationException,
    KinfeedException,
    SourceFetchException,
    ValidationException,
)

__all__ = [
    "AnalyticsWriteException",
    "AuthenticationException",
    "DistributionStatus",
    "KinfeedException",
    "PaginationMode",
    "SearchResultType",
    "SourceFetchException",
    "ValidationException",
]
