"""
Generic list-of-entities board with status transitions.

A board is created per page request and closed when the request ends.
Closing cancels requests still in flight, and a response that arrives after
close never touches the board's items.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Hashable, Iterable, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from jobboard.services.api_client import APIError, JobBoardAPI
from jobboard.services.state_machine import TransitionTable

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)
R = TypeVar("R")


class ItemNotFoundError(LookupError):
    """The id is not on this board."""
    pass


class BoardClosedError(RuntimeError):
    """The board was closed while a request was in flight."""
    pass


def group_by(
    items: Iterable[T],
    key: Callable[[T], Optional[str]],
    default: str,
) -> dict[str, list[T]]:
    """Group items by key, keeping the order in which keys first appear."""
    groups: dict[str, list[T]] = {}
    for item in items:
        groups.setdefault(key(item) or default, []).append(item)
    return groups


class StatusBoard(Generic[T]):
    """
    Items of one entity type plus the workflow that moves them between statuses.

    Subclasses provide `_fetch`, `_parse` and `_send_transition`.
    """

    entity = "item"
    reason_field: Optional[str] = None  # field that records the transition note

    def __init__(self, api: JobBoardAPI, workflow: TransitionTable):
        self.api = api
        self.workflow = workflow
        self.items: list[T] = []
        self.loading = False
        self.error: Optional[str] = None
        self.closed = False
        self._inflight: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _track(self, coro: Awaitable[R]) -> R:
        """Run a request as a task owned by the board."""
        if self.closed:
            if asyncio.iscoroutine(coro):
                coro.close()
            raise BoardClosedError(f"{self.entity} board is closed")
        task = asyncio.ensure_future(coro)
        self._inflight.add(task)
        try:
            return await task
        except asyncio.CancelledError:
            if self.closed:
                raise BoardClosedError(f"{self.entity} board closed during request")
            raise
        finally:
            self._inflight.discard(task)

    async def close(self) -> None:
        """Cancel outstanding requests and stop accepting responses."""
        if self.closed:
            return
        self.closed = True
        pending = [task for task in self._inflight if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.debug(f"{self.entity} board closed, cancelled {len(pending)} request(s)")

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def _fetch(self) -> list[dict]:
        raise NotImplementedError

    def _parse(self, raw: dict) -> T:
        raise NotImplementedError

    async def load(self) -> list[T]:
        """
        Replace the board's items with a fresh fetch.

        Any backend failure leaves the board empty with `error` set.
        """
        self.loading = True
        try:
            raw_items = await self._track(self._fetch())
            if self.closed:
                return self.items
            self.items = self._parse_all(raw_items)
            self.error = None
        except APIError as e:
            logger.error(f"Error fetching {self.entity} list: {e.message}")
            self.items = []
            self.error = e.message
        finally:
            self.loading = False
        return self.items

    def _parse_all(self, raw_items: Iterable[Any]) -> list[T]:
        """Parse records one by one; a malformed record is skipped, not the list."""
        items = []
        for raw in raw_items:
            try:
                items.append(self._parse(raw))
            except ValidationError as e:
                record_id = raw.get("id") if isinstance(raw, dict) else None
                logger.warning(f"Skipping malformed {self.entity} record {record_id!r}: {str(e)}")
        return items

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def get(self, item_id: Hashable) -> T:
        for item in self.items:
            if str(item.id) == str(item_id):
                return item
        raise ItemNotFoundError(f"{self.entity.capitalize()} {item_id} not found")

    def actions_for(self, item: T) -> list[str]:
        return [rule.action.value for rule in self.workflow.available(item.status)]

    async def _send_transition(self, item: T, status: Enum, reason: Optional[str]) -> Any:
        raise NotImplementedError

    def _apply(self, item_id: Hashable, changes: dict) -> T:
        """Replace one item with an updated copy; other items are untouched."""
        for index, item in enumerate(self.items):
            if str(item.id) == str(item_id):
                updated = item.model_copy(update=changes)
                self.items[index] = updated
                return updated
        raise ItemNotFoundError(f"{self.entity.capitalize()} {item_id} not found")

    async def transition(self, item_id: Hashable, action: Enum, reason: Optional[str] = None) -> T:
        """
        Move one item to the status its action leads to.

        The local item changes only after the backend confirms.

        Raises:
            ItemNotFoundError: Unknown id
            InvalidTransitionError: Action not offered for the item's status
            APIError: Backend refused the update
            BoardClosedError: Board closed before the answer arrived
        """
        item = self.get(item_id)
        rule = self.workflow.rule_for(item.status, action)
        reason = reason if reason is not None else rule.default_reason
        new_status = self.workflow.next_state(item.status, action, reason)

        await self._track(self._send_transition(item, new_status, reason))
        if self.closed:
            raise BoardClosedError(f"{self.entity} board closed during request")

        changes: dict[str, Any] = {"status": new_status}
        if self.reason_field:
            changes[self.reason_field] = reason or None
        updated = self._apply(item_id, changes)
        logger.info(
            f"{self.entity.capitalize()} {item_id} status: {item.status.value} → {new_status.value}"
        )
        return updated
