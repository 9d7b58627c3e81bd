"""HTTP middleware. Applied in main app; first added = outermost."""

from app.middleware.request_id import RequestIDMiddleware

__all__ = [
    "RequestIDMiddleware",
]
