"""
Session store backed by the portal's local storage table.

Holds the bearer token, the logged-in user's identity and the page to return
to after login. Pages receive a SessionStore through dependency injection;
nothing else reads the storage table.
"""
import logging
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.models.stored_item import StoredItem
from jobboard.schemas.auth import SessionUser

logger = logging.getLogger(__name__)

TOKEN_KEY = "authToken"
USER_KEY = "user"
REDIRECT_KEY = "redirectAfterLogin"


class PageRedirect(Exception):
    """Raised by a page to send the browser somewhere else."""

    def __init__(self, location: str, message: Optional[str] = None):
        super().__init__(message or f"Redirect to {location}")
        self.location = location
        self.message = message


class AuthenticationRequired(PageRedirect):
    """The backend rejected our credentials; the user must log in again."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__("/login", message)


class SessionStore:
    """Typed access to one browser's stored session."""

    def __init__(self, db: AsyncSession, namespace: str):
        self.db = db
        self.namespace = namespace

    async def _get(self, key: str) -> Any:
        result = await self.db.execute(
            select(StoredItem).where(
                StoredItem.namespace == self.namespace,
                StoredItem.key == key,
            )
        )
        item = result.scalar_one_or_none()
        return item.value if item else None

    async def _set(self, key: str, value: Any) -> None:
        result = await self.db.execute(
            select(StoredItem).where(
                StoredItem.namespace == self.namespace,
                StoredItem.key == key,
            )
        )
        item = result.scalar_one_or_none()
        if item is None:
            self.db.add(StoredItem(namespace=self.namespace, key=key, value=value))
        else:
            item.value = value
        await self.db.commit()

    async def _remove(self, *keys: str) -> None:
        await self.db.execute(
            delete(StoredItem).where(
                StoredItem.namespace == self.namespace,
                StoredItem.key.in_(keys),
            )
        )
        await self.db.commit()

    async def get_token(self) -> Optional[str]:
        return await self._get(TOKEN_KEY)

    async def get_user(self) -> Optional[SessionUser]:
        """Stored user, or None when absent or unreadable."""
        raw = await self._get(USER_KEY)
        if not raw:
            return None
        try:
            return SessionUser.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Error parsing stored user data: {str(e)}")
            return None

    async def login(self, token: str, user: SessionUser) -> None:
        await self._set(TOKEN_KEY, token)
        await self._set(USER_KEY, user.model_dump(mode="json"))
        logger.info(f"Session started for {user.email} ({user.type.value})")

    async def logout(self) -> None:
        await self._remove(TOKEN_KEY, USER_KEY, REDIRECT_KEY)
        logger.info(f"Session cleared for namespace {self.namespace}")

    async def clear_token(self) -> None:
        """Forget the bearer token only; used when the backend answers 401."""
        await self._remove(TOKEN_KEY)

    async def remember_redirect(self, path: str) -> None:
        await self._set(REDIRECT_KEY, path)

    async def pop_redirect(self) -> Optional[str]:
        path = await self._get(REDIRECT_KEY)
        if path:
            await self._remove(REDIRECT_KEY)
        return path
