import logging
from dataclasses import dataclass
from typing import Optional

from .document import RenderedDocument
from .errors import FetchError, NavigationError, ResolutionError
from .resolver import BACK, FORWARD, RELOAD, resolve_target, same_document, split_fragment

logger = logging.getLogger(__name__)

MAX_HISTORY = 100


@dataclass(frozen=True)
class NavigationResult:
    document: RenderedDocument
    url: str
    title: str
    fragment: Optional[str]
    history_index: int
    history_length: int
    from_cache: bool = False


class Tab:
    """One browsing context: its history stack and the page on display.

    ``loader(url) -> RenderedDocument`` fetches, parses and renders; it is
    the only place the tab does I/O.  ``resolve(raw, current_url) -> url``
    turns user input into a URL.
    """

    def __init__(self, loader, resolve=None, max_history=MAX_HISTORY):
        self.loader = loader
        self.resolve = resolve or resolve_target
        self.max_history = max_history

        self.history = []
        self.current_index = -1
        self.current_url = ""
        self.current_document = None
        self.active = False

        # last navigation started / last one whose response was applied
        self._nav_seq = 0
        self._accepted_seq = 0

    @property
    def title(self):
        if self.current_document is not None and self.current_document.title:
            return self.current_document.title
        return self.current_url or "New Tab"

    def history_state(self):
        return {
            "can_go_back": self.current_index > 0,
            "can_go_forward": self.current_index < len(self.history) - 1,
            "current_index": self.current_index,
            "history": list(self.history),
        }

    def _result(self, document, url, from_cache=False):
        return NavigationResult(
            document=document,
            url=url,
            title=(document.title if document is not None else None) or url,
            fragment=split_fragment(url)[1],
            history_index=self.current_index,
            history_length=len(self.history),
            from_cache=from_cache,
        )

    def _push(self, url, preserve_history, replace_history):
        if not preserve_history and self.current_index < len(self.history) - 1:
            del self.history[self.current_index + 1:]

        if replace_history:
            if self.current_index >= 0:
                self.history[self.current_index] = url
            else:
                self.history.append(url)
                self.current_index = 0
            return

        self.history.append(url)
        self.current_index = len(self.history) - 1
        if len(self.history) > self.max_history:
            self.history.pop(0)
            self.current_index -= 1

    def navigate(self, target, history_index=None, preserve_history=False, replace_history=False):
        """Go to ``target``: a URL or user text, or ``back``/``forward``/``reload``.

        Returns a NavigationResult, or None when there is nothing to do
        (start/end of history, already on the page, stale response).
        Raises ResolutionError or FetchError.
        """
        if not isinstance(target, str) or (not target.strip() and history_index is None):
            raise ResolutionError("Invalid URL")

        self._nav_seq += 1
        seq = self._nav_seq
        snapshot = (list(self.history), self.current_index)

        if history_index is not None:
            if not 0 <= history_index < len(self.history):
                raise ResolutionError(f"Invalid history index: {history_index}")
            self.current_index = history_index
            url = self.history[history_index]
        elif target == BACK:
            if self.current_index <= 0:
                return None
            self.current_index -= 1
            url = self.history[self.current_index]
        elif target == FORWARD:
            if self.current_index >= len(self.history) - 1:
                return None
            self.current_index += 1
            url = self.history[self.current_index]
        elif target == RELOAD:
            if not self.current_url:
                raise ResolutionError("No page to reload")
            url = self.current_url
        else:
            url = self.resolve(target, self.current_url)
            if self.current_url and same_document(url, self.current_url):
                if url == self.current_url:
                    logger.debug("Already on %s", url)
                    return None
                logger.debug("Fragment jump to %s", url)
                return self._result(self.current_document, url, from_cache=True)
            self._push(url, preserve_history, replace_history)

        try:
            document = self.loader(url)
        except Exception as e:
            if seq == self._nav_seq:
                self.history, self.current_index = snapshot
            logger.error("Navigation to %s failed: %s", url, e)
            if isinstance(e, NavigationError):
                raise
            raise FetchError(url, e) from e

        if seq < self._accepted_seq:
            logger.info("Discarding stale response for %s", url)
            return None

        self._accepted_seq = seq
        self.current_url = url
        self.current_document = document
        logger.info("Loaded %s", url)
        return self._result(document, url)
