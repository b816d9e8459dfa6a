"""
Board dependencies for the employer and admin pages.

Each board lives exactly as long as the request that opened it: the yield
dependency closes it when the page is done, cancelling any backend request
still in flight.
"""
import logging
from contextlib import contextmanager
from typing import AsyncGenerator

from fastapi import Depends, HTTPException

from jobboard.api.auth import get_api, require_user_type
from jobboard.schemas.auth import SessionUser, UserType
from jobboard.services.api_client import APIError, JobBoardAPI, RequestTimeoutError
from jobboard.services.employer_applications import EmployerApplicationBoard
from jobboard.services.job_boards import (
    AdminJobsBoard,
    ApprovalBlockedError,
    ConfirmationRequiredError,
    JobManagementBoard,
    JobModerationBoard,
    MODERATION_FILTERS,
)
from jobboard.services.state_machine import InvalidTransitionError, MissingReasonError
from jobboard.services.status_board import ItemNotFoundError

logger = logging.getLogger(__name__)

require_employer = require_user_type(UserType.EMPLOYER)
require_admin = require_user_type(UserType.ADMIN)


async def get_application_board(
    user: SessionUser = Depends(require_employer),
    api: JobBoardAPI = Depends(get_api)
) -> AsyncGenerator[EmployerApplicationBoard, None]:
    board = EmployerApplicationBoard(api, user.id)
    try:
        yield board
    finally:
        await board.close()


async def get_job_management_board(
    user: SessionUser = Depends(require_employer),
    api: JobBoardAPI = Depends(get_api)
) -> AsyncGenerator[JobManagementBoard, None]:
    board = JobManagementBoard(api, user.id)
    try:
        yield board
    finally:
        await board.close()


async def get_moderation_board(
    status: str = "pending",
    admin: SessionUser = Depends(require_admin),
    api: JobBoardAPI = Depends(get_api)
) -> AsyncGenerator[JobModerationBoard, None]:
    if status not in MODERATION_FILTERS:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown status filter '{status}'. Use one of: {', '.join(MODERATION_FILTERS)}"
        )
    board = JobModerationBoard(api, status)
    try:
        yield board
    finally:
        await board.close()


async def get_admin_jobs_board(
    admin: SessionUser = Depends(require_admin),
    api: JobBoardAPI = Depends(get_api)
) -> AsyncGenerator[AdminJobsBoard, None]:
    board = AdminJobsBoard(api)
    try:
        yield board
    finally:
        await board.close()


@contextmanager
def board_errors():
    """Translate board failures into HTTP errors for the page."""
    try:
        yield
    except ItemNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MissingReasonError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (ApprovalBlockedError, ConfirmationRequiredError) as e:
        raise HTTPException(status_code=409, detail=e.message)
    except RequestTimeoutError as e:
        raise HTTPException(status_code=504, detail=e.message)
    except APIError as e:
        logger.error(f"Backend error: {e.message} (status={e.status_code})")
        raise HTTPException(status_code=502, detail=e.message)
