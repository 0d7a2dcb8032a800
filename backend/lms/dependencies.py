"""
FastAPI Dependencies

Common dependencies for caller identity and service authentication.

Authentication itself happens upstream: the gateway validates the session
and forwards the student's identity in headers. This service trusts those
headers and only checks that they are present and describe a student.
"""

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import APIKeyHeader

from lms.config import settings
from lms.middleware.error_handling import AuthorizationError, UnauthorizedError

# API Key header scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

STUDENT_ROLE = "student"


async def verify_api_key(
    api_key: str | None = Depends(api_key_header),
) -> str:
    """
    Verify the service API key from the X-API-Key header.

    If API_KEY is not configured in settings (empty string), authentication
    is disabled (development mode).

    Returns:
        str: The validated API key

    Raises:
        HTTPException: 401 if API key is missing or invalid
    """
    if not settings.API_KEY:
        return "dev-mode"

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Provide X-API-Key header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if api_key != settings.API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


async def get_current_student(
    student_id: str | None = Header(None, alias="X-Student-Id"),
    role: str | None = Header(None, alias="X-User-Role"),
) -> str:
    """
    Resolve the calling student's id from gateway headers.

    Raises:
        UnauthorizedError: No student identity was forwarded
        AuthorizationError: The caller is not a student
    """
    if not student_id or not student_id.strip():
        raise UnauthorizedError("Missing student identity")

    if role is not None and role.strip().lower() != STUDENT_ROLE:
        raise AuthorizationError("Only students can use the review queue")

    return student_id.strip()


# Dependencies that can be used in routers
RequireAPIKey = Depends(verify_api_key)
CurrentStudent = Depends(get_current_student)
