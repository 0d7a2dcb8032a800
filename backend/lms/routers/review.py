"""
Review API Router

Endpoints for the spaced repetition review queue. The caller's identity comes
from gateway headers (see lms.dependencies.get_current_student).

Endpoints:
- POST /api/review/generate - Create review items from a completed module
- GET /api/review/due - Get items due for review
- POST /api/review/submit - Submit a recall quality rating
- GET /api/review/stats - Get review statistics
- GET /api/review/schedule - Get upcoming reviews per day
- GET /api/review/items/{id} - Get one review item
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from lms.config import settings
from lms.db.base import get_db
from lms.dependencies import CurrentStudent, RequireAPIKey
from lms.models.base import ErrorDetail
from lms.models.review import (
    DueItemsResponse,
    ReviewGenerateRequest,
    ReviewGenerateResponse,
    ReviewItemResponse,
    ReviewScheduleResponse,
    ReviewStats,
    ReviewSubmitRequest,
    ReviewSubmitResponse,
)
from lms.repositories.modules import ModuleRepository
from lms.repositories.review_items import ReviewItemRepository
from lms.services.review.cleanup import purge_orphaned_review_items
from lms.services.review.review_service import ReviewService

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/review",
    tags=["review"],
    dependencies=[RequireAPIKey],
    responses={
        401: {"model": ErrorDetail, "description": "Missing student identity"},
        403: {"model": ErrorDetail, "description": "Caller is not allowed"},
        404: {"model": ErrorDetail, "description": "Module or item not found"},
        409: {"model": ErrorDetail, "description": "Item changed concurrently"},
        503: {"model": ErrorDetail, "description": "Review store unavailable"},
    },
)


# ===========================================
# Dependency Injection
# ===========================================


async def get_review_service(
    db: AsyncSession = Depends(get_db),
) -> ReviewService:
    """Get review service bound to the request's session."""
    return ReviewService(
        items=ReviewItemRepository(db),
        modules=ModuleRepository(db),
    )


# ===========================================
# Generation
# ===========================================


@router.post("/generate", response_model=ReviewGenerateResponse)
async def generate_review_items(
    request: ReviewGenerateRequest,
    student_id: str = CurrentStudent,
    service: ReviewService = Depends(get_review_service),
) -> ReviewGenerateResponse:
    """
    Create review items from a module the student completed.

    Existing items are never overwritten, so calling this again for the same
    module only adds items for new content. A module with nothing reviewable
    returns created=0.
    """
    result = await service.generate_for_module(
        student_id,
        request.course_id,
        request.module_id,
        completed_block_ids=request.completed_block_ids,
    )
    return ReviewGenerateResponse(
        created=len(result.created),
        total=result.total,
        message=result.message,
        items=[ReviewItemResponse.model_validate(item) for item in result.created],
    )


# ===========================================
# Review Endpoints
# ===========================================


@router.get("/due", response_model=DueItemsResponse)
async def get_due_items(
    http_request: Request,
    background_tasks: BackgroundTasks,
    course_id: Optional[str] = Query(None, description="Filter by course"),
    limit: int = Query(
        settings.REVIEW_DEFAULT_LIMIT,
        ge=1,
        le=settings.REVIEW_MAX_LIMIT,
        description="Maximum items to return",
    ),
    student_id: str = CurrentStudent,
    service: ReviewService = Depends(get_review_service),
) -> DueItemsResponse:
    """
    Get items due for review, most overdue first.

    An empty list means nothing is due. Items left behind by deleted modules
    are skipped and removed in the background.
    """
    due = await service.get_due_items(student_id, course_id=course_id, limit=limit)

    if due.orphaned_module_ids:
        background_tasks.add_task(
            purge_orphaned_review_items,
            http_request.app.state.session_maker,
            student_id,
            due.orphaned_module_ids,
        )

    return DueItemsResponse(
        items=[ReviewItemResponse.model_validate(item) for item in due.items],
        total=len(due.items),
    )


@router.post("/submit", response_model=ReviewSubmitResponse)
async def submit_review(
    request: ReviewSubmitRequest,
    student_id: str = CurrentStudent,
    service: ReviewService = Depends(get_review_service),
) -> ReviewSubmitResponse:
    """
    Submit a recall quality rating (0-5) for a review item.

    Ratings of 3 and above count as remembered and grow the interval;
    lower ratings bring the item back tomorrow.
    """
    submission = await service.submit_review(
        student_id,
        request.item_id,
        request.quality,
        time_spent_seconds=request.time_spent_seconds,
        expected_version=request.expected_version,
    )
    return ReviewSubmitResponse(
        item=ReviewItemResponse.model_validate(submission.item),
        was_correct=submission.was_correct,
        message=submission.message,
    )


@router.get("/items/{item_id}", response_model=ReviewItemResponse)
async def get_review_item(
    item_id: int,
    student_id: str = CurrentStudent,
    service: ReviewService = Depends(get_review_service),
) -> ReviewItemResponse:
    """Get one of the caller's review items by ID."""
    item = await service.get_item(student_id, item_id)
    return ReviewItemResponse.model_validate(item)


# ===========================================
# Statistics
# ===========================================


@router.get("/stats", response_model=ReviewStats)
async def get_review_stats(
    course_id: Optional[str] = Query(None, description="Filter by course"),
    student_id: str = CurrentStudent,
    service: ReviewService = Depends(get_review_service),
) -> ReviewStats:
    """Get review queue statistics for the caller."""
    return await service.get_review_stats(student_id, course_id=course_id)


@router.get("/schedule", response_model=ReviewScheduleResponse)
async def get_review_schedule(
    days: int = Query(
        settings.REVIEW_SCHEDULE_DAYS, ge=1, le=90, description="Days to look ahead"
    ),
    course_id: Optional[str] = Query(None, description="Filter by course"),
    student_id: str = CurrentStudent,
    service: ReviewService = Depends(get_review_service),
) -> ReviewScheduleResponse:
    """Get the number of items coming due on each of the next days."""
    return await service.get_review_schedule(
        student_id, days=days, course_id=course_id
    )
