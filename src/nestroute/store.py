"""Navigation store: owns the current url source and its subscribers.

Writing a url and notifying subscribers is the only trigger for re-matching
during normal operation. Everything runs on one event loop thread, so there
is no locking.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol, Self

logger = logging.getLogger(__name__)

type Subscriber = Callable[[], None]


class Source(Protocol):
    """Pluggable url source supplied by the host environment."""

    def read(self) -> str: ...

    def write(self, url: str, replace: bool = False) -> None: ...


class MemorySource:
    """In-memory history stack.

    With a `base`, entries are stored with the base prefixed (as a browser
    would show them) and `read()` strips it again.
    """

    __slots__ = ("_base", "entries", "index")

    def __init__(self, initial: str = "/", *, base: str = "") -> None:
        self._base = base.rstrip("/")
        self.entries: list[str] = [self._base + initial]
        self.index = 0

    def read(self) -> str:
        url = self.entries[self.index]
        if self._base and url.startswith(self._base):
            return url[len(self._base) :] or "/"
        return url

    def write(self, url: str, replace: bool = False) -> None:
        full = self._base + url
        if replace:
            self.entries[self.index] = full
            return
        del self.entries[self.index + 1 :]  # a push drops the forward history
        self.entries.append(full)
        self.index += 1

    def back(self) -> None:
        if self.index > 0:
            self.index -= 1

    def forward(self) -> None:
        if self.index < len(self.entries) - 1:
            self.index += 1


class NavigationStore:
    """Current url plus the set of callbacks interested in it.

    Lifecycle: `init()` (optionally swapping the source) and `teardown()`,
    which drops every subscriber. Can be used as a context manager that tears
    down on exit.
    """

    __slots__ = ("_source", "_subscribers")

    def __init__(self, source: Source | None = None) -> None:
        self._source: Source = source if source is not None else MemorySource()
        self._subscribers: set[Subscriber] = set()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.teardown()

    def init(self, *, source: Source | None = None) -> None:
        if source is not None:
            self._source = source

    def teardown(self) -> None:
        self._subscribers.clear()

    @property
    def source(self) -> Source:
        return self._source

    @property
    def url(self) -> str:
        return self._source.read()

    def read(self) -> str:
        return self._source.read()

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.add(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        self._subscribers.discard(callback)

    def navigate(self, to: str, *, replace: bool = False) -> None:
        """Write `to` to the source, then notify every subscriber once."""
        self._source.write(to, replace)
        logger.debug("store.navigate: %s (replace=%s)", to, replace)
        self.notify()

    def notify(self) -> None:
        """Run one notification pass, e.g. after the host moved through history."""
        for callback in tuple(self._subscribers):  # callbacks may unsubscribe
            callback()
