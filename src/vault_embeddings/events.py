"""Document change events and the bus that routes them to embedding updates."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from vault_embeddings.utils import normalize_path

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    DocumentHandler = Callable[["DocumentEvent"], Any]

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Changes a vault host reports for its documents."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


@dataclass(frozen=True, slots=True)
class DocumentEvent:
    """One change to one vault document.

    Paths are normalized on construction, so ``notes\\a.md`` and
    ``/notes/a.md`` describe the same document.  A rename carries both
    ends: *path* is where the document lives now, *old_path* where its
    embedding was stored.

    Attributes:
        event_type: The kind of change.
        path: Current vault path of the document.
        old_path: Path before a rename; required for renames, rejected otherwise.
    """

    event_type: EventType
    path: str
    old_path: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", normalize_path(self.path))
        if self.event_type is EventType.RENAMED:
            if not self.old_path:
                msg = f"Rename of {self.path} needs old_path"
                raise ValueError(msg)
            object.__setattr__(self, "old_path", normalize_path(self.old_path))
        elif self.old_path is not None:
            msg = f"old_path only applies to renames, not {self.event_type.value}"
            raise ValueError(msg)

    @property
    def affected_paths(self) -> tuple[str, ...]:
        """Paths whose embeddings this event touches (old path first on renames)."""
        if self.old_path is not None:
            return (self.old_path, self.path)
        return (self.path,)


class EventBus:
    """Routes document events to the handlers that keep embeddings current.

    A handler may be a plain function or a coroutine function; handlers
    for one event run one after another in the order they were
    registered.  A handler that raises is logged at WARNING and the
    remaining handlers still run, so one bad update leaves a single
    embedding stale instead of stopping the host's event stream.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[DocumentHandler]] = {et: [] for et in EventType}

    def register(
        self, event_types: EventType | Iterable[EventType], handler: DocumentHandler
    ) -> None:
        """Subscribe *handler* to one event type or to each of several."""
        if isinstance(event_types, EventType):
            event_types = (event_types,)
        for event_type in event_types:
            self._handlers[event_type].append(handler)

    def unregister(self, event_type: EventType, handler: DocumentHandler) -> bool:
        """Drop the earliest subscription of *handler* to *event_type*.

        Returns False when *handler* was not subscribed.
        """
        handlers = self._handlers[event_type]
        if handler not in handlers:
            return False
        handlers.remove(handler)
        return True

    async def emit(self, event: DocumentEvent) -> int:
        """Deliver *event* to its subscribers; return how many ran without error."""
        delivered = 0
        for handler in list(self._handlers[event.event_type]):
            try:
                outcome = handler(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.warning(
                    "Embedding update for %s %s failed in %r",
                    event.event_type.value,
                    event.path,
                    handler,
                    exc_info=True,
                )
                continue
            delivered += 1
        return delivered

    @property
    def handler_count(self) -> int:
        """Subscriptions across all event types."""
        return sum(len(handlers) for handlers in self._handlers.values())

    def clear(self) -> None:
        """Drop every subscription, e.g. before the owning vault closes."""
        for handlers in self._handlers.values():
            handlers.clear()
