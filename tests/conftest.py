import pytest

from tbrowser import style
from tbrowser.bookmarks import BookmarkStore
from tbrowser.errors import FetchError
from tbrowser.fetch import parse
from tbrowser.session import Session
from tbrowser.walker import render


@pytest.fixture(autouse=True)
def config_home(tmp_path, monkeypatch):
    """Keep config, bookmarks and logs out of the real home directory."""
    home = tmp_path / "config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home))
    style.apply_color_theme("default")
    return home / "tbrowser"


def render_html(html, url="https://example.com/", **settings):
    cfg = {"columns": 80}
    cfg.update(settings)
    return render(parse(html), url, cfg)


class FakeLoader:
    """Renders canned pages by URL and records every load."""

    def __init__(self, pages=None, fail=()):
        self.pages = pages or {}
        self.fail = set(fail)
        self.calls = []

    def __call__(self, url):
        self.calls.append(url)
        if url in self.fail:
            raise FetchError(url, "connection refused")
        html = self.pages.get(url, f"<title>{url}</title><p>Page at {url}</p>")
        return render_html(html, url)


@pytest.fixture
def loader():
    return FakeLoader()


@pytest.fixture
def resolves():
    """Host resolver that knows a fixed set of names."""
    known = {"example.com", "a.test", "b.test", "c.test", "d.test", "localhost"}
    return lambda host: host in known


@pytest.fixture
def bookmarks(config_home):
    return BookmarkStore(str(config_home / "bookmarks.json"))


@pytest.fixture
def session(loader, resolves, bookmarks):
    return Session({"columns": 80}, loader=loader, bookmarks=bookmarks, host_resolver=resolves)
