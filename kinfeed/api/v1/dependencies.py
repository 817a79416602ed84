"""Presentation-layer dependency injection (composition root).

Builds repositories and use cases from infrastructure implementations;
routes depend only on these providers. Tests replace them through
app.dependency_overrides.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from kinfeed.application.interfaces.repositories import (
    ISearchAnalyticsRepository,
    ISearchRepository,
)
from kinfeed.application.interfaces.services import ISearchCache
from kinfeed.application.services.result_normalizer import ResultNormalizer
from kinfeed.application.use_cases.search import SearchService
from kinfeed.application.use_cases.search_analytics import SearchAnalyticsService
from kinfeed.core.config import get_settings
from kinfeed.domain.exceptions import AuthenticationException
from kinfeed.infrastructure.persistence.database import get_session_factory
from kinfeed.infrastructure.persistence.repositories import (
    SearchAnalyticsRepository,
    SearchRepository,
)
from kinfeed.infrastructure.security.jwt import verify_token

_http_bearer = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
) -> str:
    """Authenticated user id (JWT "sub"); 401 when the bearer token is missing or invalid."""
    if credentials is None:
        raise AuthenticationException()
    try:
        payload = verify_token(credentials.credentials)
    except ValueError as e:
        raise AuthenticationException() from e
    return str(payload["sub"])


def get_search_repo() -> ISearchRepository:
    """Per-source fetchers over the shared session factory."""
    return SearchRepository(get_session_factory())


def get_search_analytics_repo() -> ISearchAnalyticsRepository:
    return SearchAnalyticsRepository(get_session_factory())


def get_search_cache(request: Request) -> ISearchCache | None:
    """Redis search cache created at startup, or None when disabled."""
    return getattr(request.app.state, "cache", None)


def get_search_service(
    search_repo: Annotated[ISearchRepository, Depends(get_search_repo)],
    cache: Annotated[ISearchCache | None, Depends(get_search_cache)],
) -> SearchService:
    """Federated search use case configured from settings."""
    settings = get_settings()
    return SearchService(
        search_repo,
        normalizer=ResultNormalizer(
            excerpt_length=settings.search_excerpt_length,
            structured_match_rank=settings.structured_match_rank,
        ),
        cache=cache,
        cache_ttl=settings.cache_ttl_search,
        default_limit=settings.search_default_limit,
        max_limit=settings.search_max_limit,
    )


def get_search_analytics_service(
    analytics_repo: Annotated[
        ISearchAnalyticsRepository, Depends(get_search_analytics_repo)
    ],
) -> SearchAnalyticsService:
    return SearchAnalyticsService(analytics_repo)
