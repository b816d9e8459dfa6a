"""
Login, logout and the session dependencies shared by every page.

The browser is identified by the `portal_id` cookie. Its bearer token and
user identity live in the local storage table under that id, so pages never
read the token themselves: they ask for a JobBoardAPI and get one that
already carries it.
"""
import logging
from typing import Optional
from uuid import uuid4

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.config import settings
from jobboard.database import get_db
from jobboard.schemas.auth import (
    HOME_PAGES,
    LoginRequest,
    SessionResponse,
    SessionUser,
    UserType,
)
from jobboard.services.api_client import APIError, JobBoardAPI
from jobboard.services.session import PageRedirect, SessionStore

logger = logging.getLogger(__name__)
router = APIRouter()

# Where a user lands when they open a page meant for another account type
WRONG_AREA_REDIRECTS = {
    UserType.JOBSEEKER: "/user/home",
    UserType.EMPLOYER: "/employer/home",
    UserType.ADMIN: "/admin",
}


# Dependencies
def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared backend HTTP client created by the app lifespan."""
    return request.app.state.http_client


async def get_session_store(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db)
) -> SessionStore:
    """
    Session store for the calling browser.

    A browser without a `portal_id` cookie is given one.
    """
    namespace = request.cookies.get(settings.session_cookie_name)
    if not namespace:
        namespace = uuid4().hex
        # Redirect responses are built by the exception handler, which reads it from here
        request.state.new_portal_id = namespace
        response.set_cookie(
            key=settings.session_cookie_name,
            value=namespace,
            httponly=True,
            samesite="lax",
            max_age=86400 * 30,  # 30 days
        )
    return SessionStore(db, namespace)


def get_api(
    http: httpx.AsyncClient = Depends(get_http_client),
    session: SessionStore = Depends(get_session_store)
) -> JobBoardAPI:
    return JobBoardAPI(http, session)


async def get_optional_user(
    session: SessionStore = Depends(get_session_store)
) -> Optional[SessionUser]:
    return await session.get_user()


async def get_current_user(
    user: Optional[SessionUser] = Depends(get_optional_user)
) -> SessionUser:
    """
    Logged-in user, or a redirect to the login page.

    Raises:
        PageRedirect: No stored user
    """
    if user is None:
        raise PageRedirect("/login", "Please log in to continue")
    return user


def require_user_type(user_type: UserType):
    """
    Dependency factory restricting a page to one account type.

    Example:
        @router.get("/employer/applications")
        async def page(user: SessionUser = Depends(require_user_type(UserType.EMPLOYER))):
            ...
    """
    async def dependency(user: SessionUser = Depends(get_current_user)) -> SessionUser:
        if user.type != user_type:
            logger.warning(
                f"User {user.email} (type={user.type.value}) "
                f"attempted to open a {user_type.value} page"
            )
            raise PageRedirect(
                WRONG_AREA_REDIRECTS[user.type],
                f"This page is only available to {user_type.value} accounts",
            )
        return user

    return dependency


# Endpoints
@router.post("/login")
async def login(
    credentials: LoginRequest,
    api: JobBoardAPI = Depends(get_api),
    session: SessionStore = Depends(get_session_store)
):
    """
    Log in against the backend and start a portal session.

    Redirects to the page remembered before login, or to the user's home.

    Returns:
        303: Logged in
        401: Backend refused the credentials
        502: Backend error
    """
    try:
        body = await api.login(credentials.email, credentials.password)
    except APIError as e:
        status_code = 401 if e.status_code in (400, 401) else 502
        logger.warning(f"Login failed for {credentials.email}: {e.message}")
        raise HTTPException(status_code=status_code, detail=e.message)

    token = body.get("token")
    raw_user = body.get("user")
    if not token or not raw_user:
        raise HTTPException(status_code=502, detail="Login failed. Please try again.")

    user = SessionUser.model_validate(raw_user)
    await session.login(token, user)

    location = await session.pop_redirect() or HOME_PAGES[user.type]
    raise PageRedirect(location, f"Welcome back, {user.name or user.email}")


@router.post("/logout")
async def logout(
    api: JobBoardAPI = Depends(get_api),
    session: SessionStore = Depends(get_session_store)
):
    """
    End the portal session.

    The local session is cleared even when the backend call fails.
    """
    try:
        await api.logout()
    except APIError as e:
        logger.warning(f"Backend logout failed: {e.message}")
    await session.logout()
    raise PageRedirect("/login", "You have been logged out")


@router.get("/session", response_model=SessionResponse)
async def current_session(
    user: Optional[SessionUser] = Depends(get_optional_user)
):
    """Who is logged in, and where their home page is."""
    if user is None:
        return SessionResponse(authenticated=False)
    return SessionResponse(authenticated=True, user=user, home=HOME_PAGES[user.type])
