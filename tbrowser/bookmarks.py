import os
import json
import logging

from .config import config_dir

logger = logging.getLogger(__name__)


def bookmarks_path():
    return os.path.join(config_dir(), "bookmarks.json")


class BookmarkStore:
    """Bookmarks as a JSON list of ``{"url": ..., "title": ...}``."""

    def __init__(self, path=None):
        self.path = path or bookmarks_path()
        self.bookmarks = self.load()

    def load(self):
        if not os.path.exists(self.path):
            return []

        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Error loading bookmarks from %s: %s", self.path, e)
            return []

        bookmarks = []
        for entry in data if isinstance(data, list) else []:
            # corrupted entries are skipped
            if not isinstance(entry, dict) or not entry.get("url"):
                continue
            bookmarks.append({"url": entry["url"], "title": entry.get("title") or entry["url"]})
        return bookmarks

    def save(self):
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self.bookmarks, f, indent=2)

    def __len__(self):
        return len(self.bookmarks)

    def __iter__(self):
        return iter(self.bookmarks)

    def __getitem__(self, i):
        return self.bookmarks[i]

    def __contains__(self, url):
        return any(b["url"] == url for b in self.bookmarks)

    def add(self, url, title=None):
        if not url or url in self:
            return False
        self.bookmarks.append({"url": url, "title": title or url})
        self.save()
        logger.info("Bookmark added: %s (%s)", title or url, url)
        return True

    def remove(self, url):
        for i, b in enumerate(self.bookmarks):
            if b["url"] == url:
                return self.delete(i)
        return None

    def delete(self, i):
        if 0 <= i < len(self.bookmarks):
            removed = self.bookmarks.pop(i)
            self.save()
            logger.info("Bookmark removed: %s", removed["title"])
            return removed
        return None
