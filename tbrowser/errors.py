class BrowserError(Exception):
    pass


class NavigationError(BrowserError):
    """A navigation that could not be carried out."""


class ResolutionError(NavigationError):
    """The target could not be turned into something to load
    (bad history index, nothing to reload, unsupported scheme)."""


class FetchError(NavigationError):
    def __init__(self, url, reason):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class SettingsError(BrowserError):
    pass
