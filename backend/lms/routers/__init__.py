"""API routers."""

from lms.routers import health, review

__all__ = ["health", "review"]
