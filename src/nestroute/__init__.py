from importlib.metadata import version

from .resolve import Resolver, load, preload
from .router import Router, RouterContext, Slot, router_context
from .store import MemorySource, NavigationStore
from .tree import LoadStatus, format_routes, layout, match, match_url, route

__all__ = [
    "LoadStatus",
    "MemorySource",
    "NavigationStore",
    "Resolver",
    "Router",
    "RouterContext",
    "Slot",
    "__version__",
    "format_routes",
    "layout",
    "load",
    "match",
    "match_url",
    "preload",
    "route",
    "router_context",
]

__version__ = version("nestroute")
