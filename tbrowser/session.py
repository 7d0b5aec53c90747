"""A browsing session: the tabs, which one is active, settings, bookmarks."""
import logging

from .bookmarks import BookmarkStore
from .config import DEFAULT_CONFIG
from .errors import NavigationError
from .fetch import fetch_and_sanitize, parse, resolve_host
from .images import resolve_deferred
from .resolver import BACK, FORWARD, resolve_target, search_url
from .tab import Tab
from .walker import render

logger = logging.getLogger(__name__)

HOME_URL = "https://lite.duckduckgo.com/lite/"


def load_document(url, settings=None):
    """fetch -> sanitize -> parse -> render -> deferred images."""
    cfg = dict(DEFAULT_CONFIG)
    cfg.update(settings or {})

    markup = fetch_and_sanitize(url, cfg["user_agent"], cfg["timeout"] / 1000.0)
    tree = parse(markup)
    document = render(tree, url, cfg)
    return resolve_deferred(document, settings=cfg)


class Session:
    def __init__(self, settings=None, loader=None, bookmarks=None, host_resolver=resolve_host):
        self.settings = dict(DEFAULT_CONFIG)
        self.settings.update(settings or {})
        self.loader = loader
        self.host_resolver = host_resolver
        self.bookmarks = bookmarks if bookmarks is not None else BookmarkStore()

        self.tabs = []
        self.active_index = -1

    @property
    def active_tab(self):
        if 0 <= self.active_index < len(self.tabs):
            return self.tabs[self.active_index]
        return None

    def _load(self, url):
        if self.loader is not None:
            return self.loader(url)
        return load_document(url, self.settings)

    def _resolve(self, raw, current_url):
        return resolve_target(
            raw,
            current_url,
            search_template=self.settings["search_engine"],
            resolve_host=self.host_resolver,
        )

    def make_tab(self):
        return Tab(loader=self._load, resolve=self._resolve)

    def _activate(self, index):
        for tab in self.tabs:
            tab.active = False
        self.active_index = index
        if self.active_tab is not None:
            self.active_tab.active = True

    # ========= TABS =========
    def new_tab(self, url=None):
        """Open ``url`` in a new, active tab.  On failure the tab is discarded
        and the previously active one restored.  Returns ``(ok, hint)``."""
        previous = self.active_index
        tab = self.make_tab()
        self.tabs.append(tab)
        self._activate(len(self.tabs) - 1)

        try:
            tab.navigate(url or HOME_URL)
        except NavigationError as e:
            logger.error("Failed to create new tab: %s", e)
            self.tabs.pop()
            self._activate(previous if previous < len(self.tabs) else len(self.tabs) - 1)
            return False, "Failed to create new tab"

        logger.info("New tab loaded: %s", tab.current_url)
        return True, None

    def close_tab(self):
        if len(self.tabs) <= 1:
            logger.warning("Attempted to close the last tab")
            return False, "Can't close the last tab"

        closed = self.tabs.pop(self.active_index)
        self._activate(min(self.active_index, len(self.tabs) - 1))
        logger.info("Closed tab: %s", closed.current_url or "New Tab")
        return True, None

    def switch_tab(self, index):
        if 0 <= index < len(self.tabs):
            self._activate(index)
            return True
        logger.warning("Invalid tab index: %s", index)
        return False

    def next_tab(self):
        if len(self.tabs) > 1:
            return self.switch_tab((self.active_index + 1) % len(self.tabs))
        return False

    # ========= NAVIGATION =========
    def navigate(self, target, **options):
        """Navigate the active tab.  Returns ``(result, hint)``; ``hint`` is a
        short message for the status line when nothing happened."""
        tab = self.active_tab
        if tab is None:
            logger.warning("No active tab for navigation")
            return None, "No active tab"

        was_url = tab.current_url
        try:
            result = tab.navigate(target, **options)
        except NavigationError as e:
            logger.error("Navigation error: %s", e)
            return None, f"Navigation error: {e}"

        if result is not None:
            return result, None

        if target == BACK:
            return None, "Can't go back further!"
        if target == FORWARD:
            return None, "Can't go forward further!"
        if tab.current_url == was_url:
            return None, "You're already on this page!"
        return None, "Navigation failed"

    def search(self, query):
        return self.navigate(search_url(query, self.settings["search_engine"]))

    def add_bookmark(self):
        tab = self.active_tab
        if tab is None or not tab.current_url:
            return False, "No page to bookmark"
        if self.bookmarks.add(tab.current_url, tab.title):
            return True, f"Bookmark added: {tab.title}"
        return False, "Already bookmarked"


def open_session(settings, url=None, **kwargs):
    session = Session(settings, **kwargs)
    ok, hint = session.new_tab(url)
    if not ok:
        # keep one empty tab so the pager has something to show
        session.tabs.append(session.make_tab())
        session._activate(0)
    return session, hint
