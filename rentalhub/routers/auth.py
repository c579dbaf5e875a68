"""
Account API endpoints: sign-up, login and logout.
The session token is delivered as an HTTP-only cookie.
"""

from fastapi import APIRouter, Depends, Response, status

from rentalhub.config import settings
from rentalhub.schemas.auth import LoginRequest, SignUpRequest
from rentalhub.schemas.user import UserView
from rentalhub.services.auth import AccountService
from rentalhub.utils.dependencies import get_account_service


router = APIRouter(prefix="/auth", tags=["Authentication"])


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
    )


@router.post(
    "/signup",
    response_model=UserView,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up",
    description="Register a new account and start a session"
)
async def signup(
    data: SignUpRequest,
    response: Response,
    account_service: AccountService = Depends(get_account_service)
) -> UserView:
    """
    Register a new user and set the session cookie.

    Raises:
        APIException (CONFLICT): Email already registered
        APIException (VALIDATION): Invalid sign-up data
    """
    user = (await account_service.sign_up(data)).unwrap()
    set_session_cookie(response, account_service.issue_token(user.id))
    return user


@router.post(
    "/login",
    response_model=UserView,
    status_code=status.HTTP_200_OK,
    summary="Log in",
    description="Authenticate with email and password and start a session"
)
async def login(
    data: LoginRequest,
    response: Response,
    account_service: AccountService = Depends(get_account_service)
) -> UserView:
    """
    Check credentials and set the session cookie.

    Raises:
        APIException (UNAUTHENTICATED): Unknown email or wrong password
    """
    user = (await account_service.login(data)).unwrap()
    set_session_cookie(response, account_service.issue_token(user.id))
    return user


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Log out",
    description="Clear the session cookie"
)
async def logout(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
    )
