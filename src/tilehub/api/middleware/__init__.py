"""HTTP middleware and exception handlers."""

from tilehub.api.middleware.request_id import RequestIDMiddleware
from tilehub.api.middleware.timing import TimingMiddleware

__all__ = ["RequestIDMiddleware", "TimingMiddleware"]
