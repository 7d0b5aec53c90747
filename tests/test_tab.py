import pytest

from tbrowser.errors import FetchError, ResolutionError
from tbrowser.resolver import BACK, FORWARD, RELOAD, resolve_target
from tbrowser.tab import Tab

from .conftest import FakeLoader

A, B, C, D = (f"https://{h}.test/" for h in "abcd")


def resolver(raw, current):
    return resolve_target(raw, current, None, resolve_host=lambda host: True)


@pytest.fixture
def tab(loader):
    return Tab(loader, resolve=resolver)


def visit(tab, *urls):
    for url in urls:
        tab.navigate(url)


def test_navigate_loads_and_records(tab, loader):
    result = tab.navigate(A)
    assert result.url == A
    assert result.title == A
    assert result.history_index == 0
    assert result.history_length == 1
    assert not result.from_cache
    assert tab.current_url == A
    assert tab.current_document is result.document
    assert loader.calls == [A]


def test_navigate_after_back_truncates_forward(tab):
    visit(tab, A, B, C)
    tab.navigate(BACK)
    assert tab.current_index == 1
    tab.navigate(D)
    assert tab.history == [A, B, D]
    assert tab.current_index == 2


def test_preserve_history_keeps_forward_entries(tab):
    visit(tab, A, B, C)
    tab.navigate(BACK)
    tab.navigate(D, preserve_history=True)
    assert tab.history == [A, B, C, D]


def test_replace_history_overwrites_current(tab):
    visit(tab, A, B)
    tab.navigate(C, replace_history=True)
    assert tab.history == [A, C]
    assert tab.current_index == 1


def test_same_url_is_noop(tab, loader):
    tab.navigate(A)
    assert tab.navigate(A) is None
    assert loader.calls == [A]
    assert tab.history == [A]


def test_fragment_jump_does_not_fetch(tab, loader):
    first = tab.navigate(A)
    result = tab.navigate("#section")
    assert result.from_cache
    assert result.fragment == "section"
    assert result.document is first.document
    assert loader.calls == [A]
    assert tab.history == [A]


def test_back_and_forward(tab, loader):
    visit(tab, A, B)
    assert tab.navigate(BACK).url == A
    assert tab.navigate(FORWARD).url == B
    assert loader.calls == [A, B, A, B]


def test_back_and_forward_at_edges_are_noops(tab):
    tab.navigate(A)
    assert tab.navigate(BACK) is None
    assert tab.navigate(FORWARD) is None
    assert tab.current_index == 0


def test_reload_refetches(tab, loader):
    tab.navigate(A)
    result = tab.navigate(RELOAD)
    assert result.url == A
    assert loader.calls == [A, A]
    assert tab.history == [A]


def test_reload_without_page(tab):
    with pytest.raises(ResolutionError):
        tab.navigate(RELOAD)


def test_history_index(tab):
    visit(tab, A, B, C)
    result = tab.navigate("", history_index=0)
    assert result.url == A
    assert tab.history == [A, B, C]
    assert tab.history_state()["can_go_forward"]


def test_history_index_out_of_range(tab):
    tab.navigate(A)
    with pytest.raises(ResolutionError):
        tab.navigate("", history_index=5)
    assert tab.current_index == 0


def test_invalid_target(tab):
    with pytest.raises(ResolutionError):
        tab.navigate("")
    with pytest.raises(ResolutionError):
        tab.navigate(None)


def test_history_cap_evicts_oldest(loader):
    tab = Tab(loader, resolve=resolver, max_history=3)
    urls = [f"https://p{i}.test/" for i in range(5)]
    visit(tab, *urls)
    assert tab.history == urls[2:]
    assert tab.current_index == 2
    assert tab.history[tab.current_index] == tab.current_url == urls[-1]


def test_failed_fetch_rolls_back_history():
    loader = FakeLoader(fail={B})
    tab = Tab(loader, resolve=resolver)
    tab.navigate(A)
    with pytest.raises(FetchError):
        tab.navigate(B)
    assert tab.history == [A]
    assert tab.current_index == 0
    assert tab.current_url == A


def test_failed_back_restores_index():
    loader = FakeLoader()
    tab = Tab(loader, resolve=resolver)
    visit(tab, A, B)
    loader.fail.add(A)
    with pytest.raises(FetchError):
        tab.navigate(BACK)
    assert tab.current_index == 1


def test_loader_crash_wrapped_as_fetch_error():
    def broken(url):
        raise RuntimeError("parser exploded")

    tab = Tab(broken, resolve=resolver)
    with pytest.raises(FetchError) as exc:
        tab.navigate(A)
    assert exc.value.url == A
    assert tab.history == []


def test_stale_response_discarded():
    tab = None
    inner = FakeLoader()

    def loader(url):
        if url == A:
            # a newer navigation starts and finishes while A is loading
            tab.navigate(B)
        return inner(url)

    tab = Tab(loader, resolve=resolver)
    assert tab.navigate(A) is None
    assert tab.current_url == B
    assert tab.current_document.url == B


def test_failure_after_newer_navigation_keeps_history():
    tab = None
    inner = FakeLoader()

    def loader(url):
        if url == A:
            tab.navigate(B)
            raise FetchError(url, "timed out")
        return inner(url)

    tab = Tab(loader, resolve=resolver)
    with pytest.raises(FetchError):
        tab.navigate(A)
    assert tab.history == [A, B]
    assert tab.current_url == B


def test_title_falls_back_to_url(loader):
    tab = Tab(loader, resolve=resolver)
    assert tab.title == "New Tab"
    tab.navigate(A)
    assert tab.title == A
