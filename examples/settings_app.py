# /// script
# requires-python = ">=3.14"
# dependencies = [
#     "nestroute @ file:///${PROJECT_ROOT}/../nestroute",
# ]
# ///
"""Lazy settings section demo.

A text "renderer" stands in for the host UI library: it nests each slot's
handle inside its parent's, and re-renders whenever the router asks.
"""

import asyncio
import logging

from nestroute import MemorySource, NavigationStore, Router, Slot, layout, route


def Shell() -> None: ...
def Home() -> None: ...
def Settings() -> None: ...
def Profile() -> None: ...
def Billing() -> None: ...
def Spinner() -> None: ...


async def lazy_settings() -> list:
    await asyncio.sleep(0.5)  # e.g. fetching a code chunk
    return [
        route("profile", renderable=Profile),
        route("billing", renderable=Billing),
    ]


root = layout(
    renderable=Shell,
    children=[
        route(renderable=Home),
        route("settings", renderable=Settings, fallback=Spinner, loader=lazy_settings),
    ],
)


def draw(slots: list[Slot]) -> str:
    out = ""
    for slot in reversed(slots):
        name = getattr(slot.handle, "__qualname__", repr(slot.handle))
        out = f"{name}({out})"
    return out or "(nothing)"


async def main() -> None:
    logging.basicConfig(level=logging.DEBUG)

    store = NavigationStore(MemorySource("/", base="/app"))

    def rerender() -> None:
        print(f"{store.url:<20} {draw(router.render())}")

    router = Router(root, store=store, on_update=rerender)
    router.mount()

    rerender()
    store.navigate("/settings/profile")  # Shell(Spinner()) until loaded
    await asyncio.sleep(1)

    store.navigate("/settings/billing")  # already loaded, no second fetch
    store.navigate("/nope")

    await router.context.preload("/settings")  # no-op, settled
    router.unmount()


if __name__ == "__main__":
    asyncio.run(main())
