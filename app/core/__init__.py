"""Core: config, exception handlers, rate limiter and application lifespan."""

from app.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
