"""
Pydantic models package.

- base.py: Strict request/response base classes
- content.py: Typed view over module content documents
- review.py: Review API schemas
"""

from lms.models.base import ErrorDetail, StrictRequest, StrictResponse

__all__ = [
    "ErrorDetail",
    "StrictRequest",
    "StrictResponse",
]
