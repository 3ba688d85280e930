"""Render integration surface.

A host UI library mounts a Router, calls `render()` to get one Slot per
matched node (root to leaf) and re-renders whenever `on_update` fires: after a
navigation, or after a lazy node on the current path settles.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextvars import ContextVar, Token
from dataclasses import dataclass
from typing import Any

from nestroute.resolve import Resolver
from nestroute.store import NavigationStore
from nestroute.tree import (
    LoadStatus,
    RouteNode,
    match_url,
    merge_params,
    parse_query,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RouterContext:
    """What a router exposes to its descendants."""

    preload: Callable[[str], Any]
    navigate: Callable[..., None]


router_context: ContextVar[RouterContext] = ContextVar("router_context")


@dataclass(slots=True, frozen=True)
class Slot:
    node: RouteNode
    status: LoadStatus
    params: dict[str, str]  # merged root to leaf
    query: dict[str, str]
    error: BaseException | None = None

    @property
    def handle(self) -> Any:
        """The renderable while resolved, the fallback while loading, the error once failed."""
        if self.status is LoadStatus.FAILED:
            return self.error
        if self.status is LoadStatus.RESOLVED:
            return self.node.renderable
        return self.node.fallback


class Router:
    __slots__ = ("_ctx", "_on_update", "_resolver", "_root", "_store", "_url")

    def __init__(
        self,
        root: RouteNode,
        *,
        store: NavigationStore | None = None,
        url: str | None = None,
        resolver: Resolver | None = None,
        on_update: Callable[[], None] | None = None,
    ) -> None:
        """
        Args:
            root: Root of the route tree.
            store: Navigation store to read the url from and subscribe to.
                A fresh store on "/" is used when omitted.
            url: Pin the router to a fixed url (e.g. when rendering on a
                server); the store is then neither read nor subscribed to.
            resolver: Resolver used for lazy nodes, e.g. one with loader
                middleware. A plain Resolver when omitted.
            on_update: Called when the host should call `render()` again.
        """
        self._root = root
        self._store = store if store is not None else NavigationStore()
        self._url = url
        self._resolver = resolver if resolver is not None else Resolver()
        self._on_update = on_update if on_update is not None else _noop
        self._ctx = RouterContext(preload=self.preload, navigate=self._store.navigate)

    @property
    def context(self) -> RouterContext:
        return self._ctx

    @property
    def url(self) -> str:
        return self._url if self._url is not None else self._store.read()

    def mount(self) -> None:
        if self._url is None:
            self._store.subscribe(self._on_update)

    def unmount(self) -> None:
        self._store.unsubscribe(self._on_update)

    def provide(self) -> Token[RouterContext]:
        """Expose this router's context to descendants.

        Use as `with router.provide(): ...` around rendering the slots.
        """
        return router_context.set(self._ctx)

    async def preload(self, path: str) -> None:
        await self._resolver.preload(self._root, path)

    def render(self) -> list[Slot]:
        """Match the current url and describe what to render.

        Lazy nodes on the path that have not settled yet start loading, or are
        joined when another caller already started them; `on_update` fires once
        they have all settled. Loads need a running event loop: without one,
        nodes stay unresolved and their slots show the fallback. Returns []
        when nothing matches.
        """
        url = self.url
        chain = match_url([self._root], url)
        if not chain:
            logger.debug("router.render: no match for %s", url)
            return []

        pending = self._resolver.pending(chain)
        if pending:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("router.render: no running loop, not loading %s", url)
            else:
                loads = [self._resolver.load(node) for node in pending]
                asyncio.gather(*loads).add_done_callback(self._settled)

        params = merge_params(chain)
        query = parse_query(url)
        return [
            Slot(
                node=m.node,
                status=m.node.status,
                params=dict(params),
                query=dict(query),
                error=m.node.error,
            )
            for m in chain
        ]

    def _settled(self, _done: object) -> None:
        self._on_update()


def _noop() -> None:
    pass
