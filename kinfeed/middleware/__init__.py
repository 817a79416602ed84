"""HTTP middleware: request timeout and request id.

Applied in kinfeed.main; order matters (last added = outermost).
"""

from kinfeed.middleware.request_id import RequestIDMiddleware, get_request_id
from kinfeed.middleware.timeout import TimeoutMiddleware

__all__ = ["RequestIDMiddleware", "TimeoutMiddleware", "get_request_id"]
