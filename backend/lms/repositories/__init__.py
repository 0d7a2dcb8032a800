"""Repositories: the only layer that talks SQL."""

from lms.repositories.modules import ModuleRepository
from lms.repositories.review_items import ReviewCounts, ReviewItemRepository

__all__ = ["ModuleRepository", "ReviewCounts", "ReviewItemRepository"]
