import asyncio
import inspect
import logging
from typing import Any, Callable, Optional

from .config import SEARCH_DEBOUNCE_MS

logger = logging.getLogger(__name__)


class Debouncer:
    """Publishes the last input once no new input arrived for ``delay_ms``.

    ``call_later(delay_seconds, callback)`` must return a handle with
    ``cancel()``; it defaults to the running event loop's ``call_later``.
    A coroutine-function subscriber is scheduled as a task on publication.
    """

    def __init__(self, on_publish: Callable[[str], Any], delay_ms: int = SEARCH_DEBOUNCE_MS,
                 call_later: Optional[Callable[[float, Callable[[], None]], Any]] = None):
        self.on_publish = on_publish
        self.delay_ms = delay_ms
        self.value = ""
        self._call_later = call_later
        self._handle = None
        self._pending: Optional[str] = None
        self._closed = False
        self._tasks = set()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def on_input_change(self, raw: str) -> None:
        if self._closed:
            return
        self.cancel()
        self._pending = raw
        schedule = self._call_later or asyncio.get_running_loop().call_later
        self._handle = schedule(self.delay_ms / 1000.0, self._fire)

    def _fire(self) -> None:
        self._handle = None
        if self._closed or self._pending is None:
            return
        raw, self._pending = self._pending, None
        self.value = raw
        logger.debug("Publishing debounced input %r", raw)
        result = self.on_publish(raw)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = None

    def close(self) -> None:
        self.cancel()
        self._closed = True
        # a publication already under way stops with the view too
        for task in list(self._tasks):
            task.cancel()
