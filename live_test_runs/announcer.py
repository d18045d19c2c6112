"""Self-clearing announcement channel for assistive technology."""

import asyncio
import logging
from collections.abc import Callable
from typing import Literal

log = logging.getLogger(__name__)

type Priority = Literal["polite", "assertive"]
type Listener = Callable[[str], None]


class Announcer:
    """A single live region holding at most one message at a time.

    Each announcement replaces the current text and restarts the clear timer,
    so a message announced shortly after another never lets the older one
    clear it early. Listeners are notified on every change, including the
    transition back to the empty string.
    """

    def __init__(self, clear_delay: float = 1.0) -> None:
        self.clear_delay = clear_delay
        self._text = ""
        self._priority: Priority = "polite"
        self._timer: asyncio.TimerHandle | None = None
        self._listeners: list[Listener] = []

    @property
    def text(self) -> str:
        """The currently live announcement, empty when nothing is live."""
        return self._text

    @property
    def priority(self) -> Priority:
        return self._priority

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def announce(self, message: str, priority: Priority = "polite") -> None:
        """Make ``message`` the live text and schedule it to be cleared.

        Must be called from within a running event loop.
        """
        self._cancel_timer()
        self._priority = priority
        self._set_text(message)
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.clear_delay, self._expire)

    def close(self) -> None:
        """Cancel any pending clear and empty the live region."""
        self._cancel_timer()
        if self._text:
            self._set_text("")

    def _expire(self) -> None:
        self._timer = None
        self._set_text("")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _set_text(self, text: str) -> None:
        self._text = text
        log.debug("Live region text: %r", text)
        for listener in list(self._listeners):
            listener(text)
