"""Lazy resolution engine.

Each lazy node moves through Unresolved -> Resolving -> Resolved | Failed.
The loader is invoked at most once per node: every caller that finds the node
Resolving joins the same in-flight task. Loads found together on one matched
path are started before any of them is awaited, so they are in flight
concurrently; levels of nested boundaries are necessarily sequential, as a
boundary's children are unknown until it settles.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from contextvars import ContextVar
from functools import reduce
from typing import Any

from nestroute.tree import (
    Failed,
    Loader,
    MatchChain,
    Resolved,
    Resolving,
    RouteNode,
    Unresolved,
    match,
    split_path,
)

logger = logging.getLogger(__name__)

loading_node: ContextVar[RouteNode] = ContextVar("loading_node")

type Middleware[T] = Callable[[T], T]


class Resolver:
    """Starts, memoizes and joins node loads.

    Middleware wraps every loader before it is invoked, first middleware
    outermost. While a wrapped loader runs, `loading_node` holds the node
    being loaded.
    """

    __slots__ = ("_middleware",)

    def __init__(self, *, middleware: tuple[Middleware[Loader], ...] = ()) -> None:
        self._middleware = middleware

    def load(self, node: RouteNode) -> asyncio.Future[None]:
        """Start loading node, or join the load already in flight.

        The returned future completes once the node has settled and never
        raises; a failure is stored on the node. Must be called with a running
        event loop.
        """
        loop = asyncio.get_running_loop()
        state = node.state
        if isinstance(state, Resolving):
            return state.done
        if not isinstance(state, Unresolved):  # static or already settled
            done = loop.create_future()
            done.set_result(None)
            return done

        wrapped = reduce(lambda ld, m: m(ld), reversed(self._middleware), state.loader)
        logger.debug("resolve.load: start %s", _describe(node))
        with loading_node.set(node):
            try:
                awaitable = wrapped()
            except Exception as e:  # noqa: BLE001  - kept on the node like an async failure
                _fail(node, state.loader, e)
                done = loop.create_future()
                done.set_result(None)
                return done
            task = loop.create_task(_settle(node, state.loader, awaitable))
        node.state = Resolving(state.loader, task)
        return task

    async def load_all(self, nodes: Iterable[RouteNode]) -> None:
        """Load nodes concurrently and wait until every one has settled."""
        pending = [self.load(node) for node in nodes]
        if not pending:
            return
        # shared loads outlive a cancelled waiter
        await asyncio.gather(*(asyncio.shield(f) for f in pending))

    def pending(self, chain: MatchChain) -> list[RouteNode]:
        """Nodes of chain that still need a load to settle."""
        return [
            m.node for m in chain if isinstance(m.node.state, (Unresolved, Resolving))
        ]

    async def preload(self, root: RouteNode, url: str) -> None:
        """Resolve every lazy node along url, boundary level by boundary level.

        Idempotent: settled nodes are not loaded again, in-flight loads are
        joined. A failed boundary ends the walk; its error stays on the node.
        """
        segments = split_path(url)
        level = 0
        while True:
            nodes = self.pending(match([root], segments))
            if not nodes:
                return
            logger.debug(
                "resolve.preload: %s level %d, %d load(s)", url, level, len(nodes)
            )
            await self.load_all(nodes)
            level += 1


async def _settle(node: RouteNode, loader: Loader, awaitable: Awaitable[Any]) -> None:
    try:
        value = await awaitable
    except Exception as e:  # noqa: BLE001  - contained at the node
        _fail(node, loader, e)
        return
    node.state = Resolved(value)
    if _is_children(value):
        node.children = tuple(value)
    else:
        node.renderable = value
    logger.debug("resolve.load: resolved %s", _describe(node))


def _fail(node: RouteNode, loader: Loader, error: Exception) -> None:
    node.state = Failed(loader, error)
    logger.warning("resolve.load: %s failed: %r", _describe(node), error)


def _is_children(value: object) -> bool:
    return isinstance(value, (list, tuple)) and all(
        isinstance(child, RouteNode) for child in value
    )


def _describe(node: RouteNode) -> str:
    return node.path or "(pathless)"


_default = Resolver()


def load(node: RouteNode) -> asyncio.Future[None]:
    return _default.load(node)


async def preload(root: RouteNode, url: str) -> None:
    """Preload url with the default resolver (no middleware)."""
    await _default.preload(root, url)
