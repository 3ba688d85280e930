import asyncio
from collections.abc import Coroutine
from typing import Any


# --- Components ---------------------------------------------------------------
# The core never inspects renderables, plain functions stand in for components.
def Shell() -> str:
    return "shell"


def Home() -> str:
    return "home"


def About() -> str:
    return "about"


def Posts() -> str:
    return "posts"


def Post() -> str:
    return "post"


def Settings() -> str:
    return "settings"


def Profile() -> str:
    return "profile"


def Spinner() -> str:
    return "loading"


# --- Loaders ------------------------------------------------------------------
class GatedLoader:
    """Loader that settles only once the test releases it.

    `calls` counts invocations of the loader itself, not awaits of its result.
    """

    def __init__(self, result: Any = None, *, error: Exception | None = None) -> None:
        self.calls = 0
        self.result = result
        self.error = error
        self._gate = asyncio.Event()

    def __call__(self) -> Coroutine[Any, Any, Any]:
        self.calls += 1
        return self._run()

    async def _run(self) -> Any:
        await self._gate.wait()
        if self.error is not None:
            raise self.error
        return self.result

    def release(self) -> None:
        self._gate.set()


class ImmediateLoader(GatedLoader):
    """Loader that settles on the next loop iteration."""

    def __init__(self, result: Any = None, *, error: Exception | None = None) -> None:
        super().__init__(result, error=error)
        self.release()


async def settle() -> None:
    """Let every ready task run a few steps."""
    for _ in range(10):
        await asyncio.sleep(0)


# --- Sources ------------------------------------------------------------------
class RecordingSource:
    """Source that records every write."""

    def __init__(self, url: str = "/") -> None:
        self.url = url
        self.writes: list[tuple[str, bool]] = []

    def read(self) -> str:
        return self.url

    def write(self, url: str, replace: bool = False) -> None:
        self.writes.append((url, replace))
        self.url = url
