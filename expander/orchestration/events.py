"""Event sinks: where a running job reports its progress."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, List, Protocol, Union, runtime_checkable

from expander.models import ExpansionEvent

logger = logging.getLogger(__name__)

EventCallback = Callable[[Any], Union[None, Awaitable[None]]]


@runtime_checkable
class EventSink(Protocol):
    async def emit(self, event: ExpansionEvent) -> None:
        ...


class NullSink:
    """Discards every event."""

    async def emit(self, event: ExpansionEvent) -> None:
        return None


class CallbackSink:
    """Forwards each event to a plain or async callback.

    A failing callback is logged and ignored; a consumer going away must not
    abort the job.
    """

    def __init__(self, callback: EventCallback):
        self._callback = callback

    async def emit(self, event: ExpansionEvent) -> None:
        try:
            outcome = self._callback(event)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as exc:
            logger.warning("Event callback failed for %s event: %s", event.kind, exc)


class RecordingSink:
    """Keeps every event in order for later inspection."""

    def __init__(self) -> None:
        self.events: List[ExpansionEvent] = []

    async def emit(self, event: ExpansionEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: str) -> List[ExpansionEvent]:
        return [e for e in self.events if e.kind == kind]
