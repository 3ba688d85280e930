from conftest import RecordingSource

from nestroute.store import MemorySource, NavigationStore


# --- MemorySource -------------------------------------------------------------
def test_memory_source_push_and_replace() -> None:
    source = MemorySource()
    source.write("/about")
    source.write("/posts/1")
    assert source.read() == "/posts/1"
    assert source.entries == ["/", "/about", "/posts/1"]

    source.write("/posts/2", replace=True)
    assert source.entries == ["/", "/about", "/posts/2"]
    assert source.index == 2


def test_memory_source_back_forward() -> None:
    source = MemorySource("/a")
    source.write("/b")
    source.back()
    assert source.read() == "/a"
    source.back()  # already at the start
    assert source.read() == "/a"
    source.forward()
    assert source.read() == "/b"
    source.forward()  # already at the end
    assert source.read() == "/b"


def test_memory_source_push_drops_forward_history() -> None:
    source = MemorySource("/a")
    source.write("/b")
    source.back()
    source.write("/c")
    assert source.entries == ["/a", "/c"]


def test_memory_source_base() -> None:
    source = MemorySource("/", base="/app/")
    assert source.entries == ["/app/"]
    assert source.read() == "/"

    source.write("/about")
    assert source.entries[-1] == "/app/about"
    assert source.read() == "/about"


# --- NavigationStore ----------------------------------------------------------
def test_navigate_replace_notifies_each_subscriber_once() -> None:
    source = RecordingSource("/")
    store = NavigationStore(source)
    calls: list[str] = []
    store.subscribe(lambda: calls.append("a"))
    store.subscribe(lambda: calls.append("b"))

    store.navigate("/about", replace=True)

    assert source.writes == [("/about", True)]
    assert store.url == "/about"
    assert sorted(calls) == ["a", "b"]


def test_navigate_push() -> None:
    store = NavigationStore()
    store.navigate("/about")
    assert store.read() == "/about"
    assert isinstance(store.source, MemorySource)
    assert store.source.entries == ["/", "/about"]


def test_navigate_is_not_coalesced() -> None:
    store = NavigationStore()
    calls: list[str] = []
    store.subscribe(lambda: calls.append(store.url))

    store.navigate("/a")
    store.navigate("/b")

    assert calls == ["/a", "/b"]


def test_subscribe_is_idempotent() -> None:
    store = NavigationStore()
    calls: list[int] = []

    def callback() -> None:
        calls.append(1)

    store.subscribe(callback)
    store.subscribe(callback)
    store.navigate("/")
    assert calls == [1]


def test_unsubscribe() -> None:
    store = NavigationStore()
    calls: list[int] = []

    def callback() -> None:
        calls.append(1)

    store.unsubscribe(callback)  # absent, no-op
    store.subscribe(callback)
    store.unsubscribe(callback)
    store.unsubscribe(callback)
    store.navigate("/about")
    assert calls == []


def test_subscriber_may_unsubscribe_during_notify() -> None:
    store = NavigationStore()
    calls: list[str] = []

    def once() -> None:
        calls.append("once")
        store.unsubscribe(once)

    store.subscribe(once)
    store.navigate("/a")
    store.navigate("/b")
    assert calls == ["once"]


def test_notify_without_write() -> None:
    source = MemorySource("/a")
    source.write("/b")
    store = NavigationStore(source)
    calls: list[str] = []
    store.subscribe(lambda: calls.append(store.url))

    source.back()
    store.notify()

    assert calls == ["/a"]


def test_init_swaps_source() -> None:
    store = NavigationStore()
    replacement = RecordingSource("/elsewhere")
    store.init(source=replacement)
    assert store.url == "/elsewhere"

    store.init()  # keeps the current source
    assert store.source is replacement


def test_teardown_drops_subscribers() -> None:
    calls: list[int] = []
    with NavigationStore() as store:
        store.subscribe(lambda: calls.append(1))
        store.navigate("/a")
    store.navigate("/b")
    assert calls == [1]
