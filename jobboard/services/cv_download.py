"""CV download for employers reviewing applications."""
import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from jobboard.services.api_client import JobBoardAPI

logger = logging.getLogger(__name__)


class CVDownloadError(Exception):
    """The CV could not be retrieved; message is shown to the employer."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class DownloadedCV:
    filename: str
    content: bytes
    content_type: str


def stored_filename(cv_path: str) -> str:
    """Last path segment of the stored CV path, for either separator style."""
    return re.split(r"[/\\]", cv_path)[-1]


def download_filename(applicant_name: str, stored: str) -> str:
    """`{applicantName}_CV.{originalExtension}`"""
    extension = stored.rsplit(".", 1)[-1]
    return f"{applicant_name}_CV.{extension}"


def content_disposition(filename: str) -> str:
    """
    Attachment header for a download filename.

    Header values are sent as latin-1, so names outside plain ASCII go in
    `filename*` (RFC 6266) with an ASCII `filename` for older clients.
    """
    if filename.isascii() and '"' not in filename and "\\" not in filename:
        return f'attachment; filename="{filename}"'

    fallback = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    fallback = fallback.replace('"', "").replace("\\", "").strip() or "CV"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


async def fetch_cv(api: JobBoardAPI, cv_path: Optional[str], applicant_name: str) -> DownloadedCV:
    """
    Download an applicant's CV through an authenticated request.

    Raises:
        CVDownloadError: With a message specific to the failure
    """
    if not cv_path:
        raise CVDownloadError("CV file not found", status_code=404)

    if not await api.session.get_token():
        raise CVDownloadError("Authentication required", status_code=401)

    filename = stored_filename(cv_path)
    logger.info(f"Downloading CV: {filename}")

    response = await api.download_cv(filename)
    if response.status_code == 404:
        raise CVDownloadError("CV file not found", status_code=404)
    if response.status_code == 401:
        raise CVDownloadError("Authentication failed", status_code=401)
    if response.status_code == 403:
        raise CVDownloadError("You do not have permission to access this CV", status_code=403)
    if response.is_error:
        raise CVDownloadError(f"HTTP error! status: {response.status_code}", status_code=response.status_code)

    content = response.content
    if len(content) == 0:
        raise CVDownloadError("CV file is empty")

    return DownloadedCV(
        filename=download_filename(applicant_name, filename),
        content=content,
        content_type=response.headers.get("content-type", "application/octet-stream"),
    )

