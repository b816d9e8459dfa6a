"""
Client for the job board REST backend.

Every call goes through JobBoardAPI._send, which:
- attaches the stored bearer token
- applies the fixed client timeout (no per-request override, no retry)
- on 401 clears the stored token and raises AuthenticationRequired
"""
import logging
from typing import Any, Optional

import httpx

from jobboard.config import settings
from jobboard.schemas.application import CVFile
from jobboard.schemas.job import PaymentStatus
from jobboard.services.session import AuthenticationRequired, SessionStore

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Request timeout. Please check your connection and try again."
UNAVAILABLE_MESSAGE = "Unable to reach the job board. Please check your connection and try again."


class APIError(Exception):
    """The backend answered with an error, or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[list] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class RequestTimeoutError(APIError):
    """No answer within the client timeout."""
    pass


class BackendUnavailableError(APIError):
    """Connection-level failure (DNS, refused, reset)."""
    pass


def create_http_client() -> httpx.AsyncClient:
    """Shared HTTP client for the backend; owned by the app lifespan."""
    return httpx.AsyncClient(
        base_url=settings.api_base_url,
        timeout=settings.api_timeout_seconds,
        headers={"Accept": "application/json"},
    )


class JobBoardAPI:
    """Backend operations used by the portal pages."""

    def __init__(self, http: httpx.AsyncClient, session: SessionStore):
        self.http = http
        self.session = session

    async def _send(
        self,
        method: str,
        path: str,
        redirect_on_401: bool = True,
        headers: Optional[dict] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        headers = dict(headers or {})
        token = await self.session.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self.http.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"{method} {path} timed out after {settings.api_timeout_seconds}s")
            raise RequestTimeoutError(TIMEOUT_MESSAGE) from e
        except httpx.TransportError as e:
            logger.error(f"{method} {path} failed: {type(e).__name__}: {str(e)}", exc_info=True)
            raise BackendUnavailableError(UNAVAILABLE_MESSAGE) from e

        if response.status_code == 401 and redirect_on_401:
            logger.warning(f"{method} {path} returned 401, clearing stored token")
            await self.session.clear_token()
            raise AuthenticationRequired()

        return response

    @staticmethod
    def _payload(
        response: httpx.Response,
        default_error: str,
        require_success: bool = True,
    ) -> dict:
        """
        Decode the `{success, ...}` envelope.

        Raises:
            APIError: On a non-2xx status, or `success: false` when required
        """
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if response.is_error:
            message = body.get("error") or body.get("message") or f"HTTP error! status: {response.status_code}"
            raise APIError(message, status_code=response.status_code, details=body.get("details"))

        if require_success and body.get("success") is False:
            raise APIError(
                body.get("error") or body.get("message") or default_error,
                status_code=response.status_code,
                details=body.get("details"),
            )
        return body

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> dict:
        # A 401 here means bad credentials, not an expired session
        response = await self._send(
            "POST", "/auth/login",
            redirect_on_401=False,
            json={"email": email, "password": password},
        )
        return self._payload(response, "Login failed. Please try again.")

    async def logout(self) -> dict:
        response = await self._send("POST", "/auth/logout", redirect_on_401=False)
        return self._payload(response, "Logout failed")

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    async def fetch_job(self, job_id: int | str) -> dict:
        response = await self._send("GET", f"/jobs/{job_id}")
        body = self._payload(response, "Failed to fetch job", require_success=False)
        return body.get("job", body)

    async def list_jobs(self, **params: Any) -> list[dict]:
        response = await self._send("GET", "/jobs", params=params)
        return self._payload(response, "Failed to fetch jobs").get("jobs", [])

    async def get_employer_jobs(self, employer_id: int | str) -> list[dict]:
        response = await self._send("GET", f"/jobs/employer/{employer_id}")
        return self._payload(response, "Failed to fetch jobs").get("jobs") or []

    async def update_job(self, job_id: int | str, data: dict) -> dict:
        response = await self._send("PUT", f"/jobs/{job_id}", json=data)
        return self._payload(response, "Failed to update job")

    async def delete_job(self, job_id: int | str) -> dict:
        response = await self._send("DELETE", f"/jobs/{job_id}")
        return self._payload(response, "Failed to delete job")

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    async def submit_application(self, fields: dict[str, str], cv: CVFile) -> dict:
        """Post the multipart application form with the CV attached as `cvFile`."""
        response = await self._send(
            "POST", "/applications/submit",
            data=fields,
            files={"cvFile": (cv.filename, cv.content, cv.content_type)},
        )
        return self._payload(response, "Failed to submit application")

    async def get_user_applications(self, email: str) -> list[dict]:
        response = await self._send("GET", f"/applications/user/{email}")
        return self._payload(response, "Failed to fetch applications").get("applications") or []

    async def get_employer_applications(self, employer_id: int | str) -> list[dict]:
        response = await self._send("GET", f"/applications/employer/{employer_id}")
        return self._payload(response, "Failed to fetch applications").get("applications") or []

    async def update_application_status(
        self,
        application_id: int | str,
        status: str,
        message: Optional[str] = None,
    ) -> dict:
        response = await self._send(
            "PUT", f"/applications/{application_id}/status",
            json={"status": status, "message": message or ""},
        )
        return self._payload(response, "Failed to update application status")

    async def download_cv(self, filename: str) -> httpx.Response:
        """
        Fetch a stored CV as raw bytes.

        The raw response is returned so the caller can report 401/403/404
        with their own messages; a 401 here does not end the session.
        """
        return await self._send(
            "GET", f"/applications/download-cv/{filename}",
            redirect_on_401=False,
            headers={
                "Accept": "application/pdf,application/msword,"
                          "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
            },
        )

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def get_jobs_for_moderation(self, status: str = "pending") -> list[dict]:
        response = await self._send("GET", "/admin/jobs/moderation", params={"status": status})
        return self._payload(response, "Failed to fetch jobs for moderation").get("jobs") or []

    async def get_all_jobs(
        self,
        status: Optional[str] = None,
        category: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> list[dict]:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if status:
            params["status"] = status
        if category:
            params["category"] = category
        response = await self._send("GET", "/admin/jobs/all", params=params)
        return self._payload(response, "Failed to fetch jobs").get("jobs") or []

    async def update_job_status(
        self,
        job_id: int | str,
        status: str,
        reason: Optional[str] = None,
    ) -> dict:
        response = await self._send(
            "PUT", f"/admin/jobs/{job_id}/status",
            json={"status": status, "reason": reason or ""},
        )
        return self._payload(response, "Failed to update job status")

    async def check_job_payment_status(self, job_id: int | str) -> PaymentStatus:
        """`success: false` is a normal answer here, not an error."""
        response = await self._send("GET", f"/admin/jobs/{job_id}/payment-status")
        body = self._payload(response, "Failed to check payment status", require_success=False)
        return PaymentStatus.model_validate(body)
