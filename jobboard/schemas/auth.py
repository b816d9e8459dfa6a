"""Session and login Pydantic schemas."""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr


class UserType(str, Enum):
    """Account type returned by the backend at login."""
    JOBSEEKER = "jobseeker"
    EMPLOYER = "employer"
    ADMIN = "admin"


# Landing page per account type after login
HOME_PAGES = {
    UserType.JOBSEEKER: "/user/home",
    UserType.EMPLOYER: "/employer/home",
    UserType.ADMIN: "/admin/dashboard",
}


class SessionUser(BaseModel):
    """Identity of the logged-in user as kept in local storage."""
    id: int | str
    email: str
    name: Optional[str] = None
    type: UserType
    phone: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class LoginRequest(BaseModel):
    """Credentials posted to the portal login page."""
    email: EmailStr
    password: str


class SessionResponse(BaseModel):
    """Current session as seen by the portal."""
    authenticated: bool
    user: Optional[SessionUser] = None
    home: Optional[str] = None
