"""Application services: query normalization, pagination codec, excerpts, result mapping.

Pure functions and classes with no I/O; used by the search use case.
"""

from kinfeed.application.services.excerpt import generate_excerpt, highlight_matches
from kinfeed.application.services.pagination import (
    decode_cursor,
    encode_cursor,
    normalize_pagination,
)
from kinfeed.application.services.query_normalizer import normalize_query
from kinfeed.application.services.result_normalizer import ResultNormalizer

__all__ = [
    "ResultNormalizer",
    "decode_cursor",
    "encode_cursor",
    "generate_excerpt",
    "highlight_matches",
    "normalize_pagination",
    "normalize_query",
]
