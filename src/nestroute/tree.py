"""Zero dependency route tree with nested matching and lazy nodes.

Nesting carries routing meaning: siblings are tried in declaration order and
the first match wins.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import parse_qsl

type Loader = Callable[[], Awaitable[Any]]
type MatchChain = list[Match]


class LoadStatus(Enum):
    """Load status tag exposed to render integrations."""

    UNRESOLVED = "UNRESOLVED"  # Loader not invoked yet.
    RESOLVING = "RESOLVING"  # Loader invoked, result pending.
    RESOLVED = "RESOLVED"  # Static node, or loader settled successfully.
    FAILED = "FAILED"  # Loader settled with an error.

    def __repr__(self) -> str:
        return str(self.value)


@dataclass(slots=True, frozen=True)
class Unresolved:
    loader: Loader


@dataclass(slots=True, frozen=True)
class Resolving:
    loader: Loader
    done: asyncio.Future[None]  # shared by every waiter, never raises


@dataclass(slots=True, frozen=True)
class Resolved:
    value: Any


@dataclass(slots=True, frozen=True)
class Failed:
    loader: Loader  # kept so a caller can retry explicitly
    error: BaseException


type LoadState = Unresolved | Resolving | Resolved | Failed


@dataclass(slots=True, eq=False)
class RouteNode:
    """Node in the static route tree.

    Nodes are compared by identity: a match borrows references into the tree,
    it never copies nodes.
    """

    path: str | None
    renderable: Any
    fallback: Any = None
    children: tuple[RouteNode, ...] = field(default=())
    state: LoadState | None = None  # None for static nodes
    index: bool = False  # matches only when no segments remain
    _pieces: tuple[str, ...] = field(default=(), init=False, repr=False)

    def __post_init__(self) -> None:
        self._pieces = _split_pattern(self.path)

    @property
    def status(self) -> LoadStatus:
        if isinstance(self.state, Unresolved):
            return LoadStatus.UNRESOLVED
        if isinstance(self.state, Resolving):
            return LoadStatus.RESOLVING
        if isinstance(self.state, Failed):
            return LoadStatus.FAILED
        return LoadStatus.RESOLVED

    @property
    def error(self) -> BaseException | None:
        return self.state.error if isinstance(self.state, Failed) else None

    @property
    def is_boundary(self) -> bool:
        """True when matching cannot proceed past this node yet.

        A lazy node whose loader has not produced children (still loading, or
        failed) hides whatever lies beneath it.
        """
        return (
            not self.index
            and isinstance(self.state, (Unresolved, Resolving, Failed))
            and not self.children
        )


@dataclass(slots=True, frozen=True)
class Match:
    node: RouteNode
    params: dict[str, str]


def route(
    path: str | None = None,
    /,
    *,
    renderable: Any,
    fallback: Any = None,
    loader: Loader | None = None,
    children: Sequence[RouteNode] = (),
) -> RouteNode:
    """Construct a route node.

    Without a path the node is an index node: it only matches when no
    segments remain at its depth, so any children are dropped.
    """
    if not path:
        return RouteNode(
            path=None,
            renderable=renderable,
            fallback=fallback,
            state=Unresolved(loader) if loader is not None else None,
            index=True,
        )
    return RouteNode(
        path=path,
        renderable=renderable,
        fallback=fallback,
        children=tuple(children),
        state=Unresolved(loader) if loader is not None else None,
    )


def layout(
    *,
    renderable: Any,
    children: Sequence[RouteNode],
    fallback: Any = None,
    loader: Loader | None = None,
) -> RouteNode:
    """Construct a layout node: matches zero segments and wraps its children."""
    if not children and loader is None:
        msg = "layout requires children or a loader"
        raise ValueError(msg)
    return RouteNode(
        path=None,
        renderable=renderable,
        fallback=fallback,
        children=tuple(children),
        state=Unresolved(loader) if loader is not None else None,
    )


def _split_pattern(path: str | None) -> tuple[str, ...]:
    if not path:
        return ()
    pieces = tuple(p for p in path.split("/") if p)
    for piece in pieces:
        if piece == ":":
            msg = f"parameter marker without a name in {path=}"
            raise ValueError(msg)
    return pieces


def split_path(url: str) -> list[str]:
    """Tokenize the path part of a url permissively.

    Query string and fragment are dropped, as are empty segments, so leading,
    trailing and doubled separators are all ignored.
    """
    path = url.split("#", 1)[0].split("?", 1)[0]
    return [seg for seg in path.split("/") if seg]


def parse_query(url: str) -> dict[str, str]:
    """Percent-decoded query mapping; the last occurrence of a key wins."""
    _, sep, rest = url.split("#", 1)[0].partition("?")
    if not sep:
        return {}
    return dict(parse_qsl(rest, keep_blank_values=True))


def match(
    nodes: Sequence[RouteNode], segments: Sequence[str], start: int = 0
) -> MatchChain:
    """Find the chain of nodes matching segments[start:].

    Depth first, siblings in declaration order, first match wins. A failed
    child recursion lets the next sibling try, but a node is never split over
    the segments in a different way. Matching stops early at a lazy boundary,
    since what lies beneath it is not known yet.

    A node with children only matches through one of them: with no segments
    left, `/posts` needs an index child under `posts`, the parent alone is not
    a match. An index node, lazy or not, only matches when no segments remain.

    Returns [] when nothing matches.
    """
    total = len(segments)
    for node in nodes:
        pieces = node._pieces
        if len(pieces) > total - start:  # pattern longer than what's left
            continue

        params: dict[str, str] = {}
        for i, piece in enumerate(pieces):
            seg = segments[start + i]
            if piece.startswith(":"):
                params[piece[1:]] = seg
            elif piece != seg:
                break
        else:
            following = start + len(pieces)

            if node.is_boundary:
                if following <= total:
                    return [Match(node, params)]
            elif node.children:
                chain = match(node.children, segments, following)
                if chain:
                    return [Match(node, params), *chain]
            elif following == total:
                return [Match(node, params)]

    return []


def match_url(nodes: Sequence[RouteNode], url: str) -> MatchChain:
    return match(nodes, split_path(url))


def merge_params(chain: MatchChain) -> dict[str, str]:
    """Merge params root to leaf; a descendant overwrites a same-named ancestor param."""
    params: dict[str, str] = {}
    for m in chain:
        params.update(m.params)
    return params


def format_routes(root: RouteNode, *, tree: bool = False) -> str:
    """Format a route tree as a human-readable string.

    By default produces a column-aligned flat list of every node, with its
    full pattern, renderable and load status:

        /                  Shell
        /                  Home
        /about             About
        /settings          Settings      UNRESOLVED
        /posts/:id         Post

    With `tree=True`, produces a visual tree instead:

        Shell
        ├── (index) Home
        ├── about About
        ├── settings Settings [UNRESOLVED]
        └── posts Posts
            └── :id Post
    """
    if tree:
        return _format_tree(root)
    return _format_route_list(root)


type _Row = tuple[str, str, str]


def _format_route_list(root: RouteNode) -> str:
    rows = _collect_rows(root, [])
    path_w = max(len(r[0]) for r in rows)
    handler_w = max(len(r[1]) for r in rows)

    lines: list[str] = []
    for path, handler, status in rows:
        if status:
            lines.append(f"{path:<{path_w}}   {handler:<{handler_w}}   {status}")
        else:
            lines.append(f"{path:<{path_w}}   {handler}")
    return "\n".join(line.rstrip() for line in lines)


def _collect_rows(node: RouteNode, parts: list[str]) -> list[_Row]:
    parts = [*parts, *node._pieces]
    status = "" if node.state is None else node.status.value
    rows: list[_Row] = [("/" + "/".join(parts), _qualname(node.renderable), status)]
    for child in node.children:
        rows.extend(_collect_rows(child, parts))
    return rows


def _format_tree(root: RouteNode) -> str:
    lines: list[str] = [_node_label(root, top=True)]
    _render_tree(root, "", lines=lines)
    return "\n".join(lines)


def _render_tree(node: RouteNode, prefix: str, *, lines: list[str]) -> None:
    for i, child in enumerate(node.children):
        is_last = i == len(node.children) - 1
        connector = "└── " if is_last else "├── "
        lines.append(f"{prefix}{connector}{_node_label(child)}")
        extension = "    " if is_last else "│   "
        _render_tree(child, prefix + extension, lines=lines)


def _node_label(node: RouteNode, *, top: bool = False) -> str:
    label = _qualname(node.renderable)
    if node.path:
        label = f"{node.path} {label}"
    elif node.index and not top:
        label = f"(index) {label}"
    if node.state is not None:
        label += f" [{node.status.value}]"
    return label


def _qualname(obj: object) -> str:
    """Extract __qualname__ from a callable, falling back to repr."""
    return str(obj.__qualname__) if hasattr(obj, "__qualname__") else repr(obj)
