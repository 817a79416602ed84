"""Application interfaces (ports): repository and cache protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from kinfeed.infrastructure or kinfeed.api.
"""

from kinfeed.application.interfaces.repositories import (
    ISearchAnalyticsRepository,
    ISearchRepository,
)
from kinfeed.application.interfaces.services import ISearchCache

__all__ = [
    "ISearchAnalyticsRepository",
    "ISearchCache",
    "ISearchRepository",
]
