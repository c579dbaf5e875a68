"""
User API endpoints.
"""

from fastapi import APIRouter, Depends, status
from uuid import UUID

from rentalhub.schemas.user import UserView
from rentalhub.services.user import UserService
from rentalhub.utils.dependencies import get_user_service, require_identity


router = APIRouter(prefix="/user", tags=["Users"])


@router.get(
    "/me",
    response_model=UserView,
    status_code=status.HTTP_200_OK,
    summary="Current user",
    description="The authenticated user with owned listing ids. Never includes the password."
)
async def get_current_user(
    user_id: UUID = Depends(require_identity),
    user_service: UserService = Depends(get_user_service)
) -> UserView:
    """
    Get the user behind the session cookie.

    Raises:
        APIException (UNAUTHENTICATED): Missing or invalid session
        APIException (NOT_FOUND): The user record no longer exists
    """
    result = await user_service.get_current_user(user_id)
    return result.unwrap()
