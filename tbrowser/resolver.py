"""Turn what the user typed into a URL (or a search), and classify it."""
import logging
from urllib.parse import urljoin, urlparse, urldefrag, quote

from .errors import ResolutionError
from .fetch import resolve_host as dns_resolve_host

logger = logging.getLogger(__name__)

BACK = "back"
FORWARD = "forward"
RELOAD = "reload"
PSEUDO_TARGETS = (BACK, FORWARD, RELOAD)

NAVIGABLE_SCHEMES = ("http", "https")
RELATIVE_PREFIXES = ("/", "./", "../", "?", "#")


def is_pseudo_target(target):
    return target in PSEUDO_TARGETS


def has_scheme(text):
    p = urlparse(text)
    return bool(p.scheme) and "://" in text


def is_relative(text):
    return text.startswith(RELATIVE_PREFIXES) and not text.startswith("//")


def split_fragment(url):
    """``(url without fragment, fragment or None)``"""
    base, frag = urldefrag(url)
    return base, (frag or None)


def same_document(a, b):
    return bool(a) and bool(b) and split_fragment(a)[0] == split_fragment(b)[0]


def search_url(query, search_template):
    return search_template.replace("{query}", quote(query, safe=""))


def check_navigable(url):
    p = urlparse(url)
    if p.scheme not in NAVIGABLE_SCHEMES:
        raise ResolutionError(f"Unsupported URL scheme: {p.scheme or url}")
    if not p.netloc:
        raise ResolutionError(f"Invalid URL: {url}")
    return url


def resolve_url(raw, current_url=""):
    """Relative notation against ``current_url``; ``https://`` when no scheme."""
    url = raw.strip()
    if not url:
        raise ResolutionError("Empty URL")

    if current_url and is_relative(url):
        return urljoin(current_url, url)
    if url.startswith("//"):
        scheme = urlparse(current_url).scheme if current_url else "https"
        return f"{scheme}:{url}"
    if has_scheme(url):
        return url
    return "https://" + url


def looks_like_host(text):
    if any(c.isspace() for c in text):
        return False
    host = urlparse("https://" + text).hostname or ""
    return "." in host or host == "localhost"


def resolve_target(raw, current_url="", search_template=None, resolve_host=dns_resolve_host):
    """The URL to load for ``raw``.

    Explicit ``scheme://`` URLs and relative references are taken as URLs.
    Anything else is a URL only if it looks like a host name and that host
    resolves; otherwise it becomes a search with ``search_template``.
    """
    text = (raw or "").strip()
    if not text:
        raise ResolutionError("Empty URL")

    if has_scheme(text) or (current_url and is_relative(text)) or text.startswith("//"):
        return check_navigable(resolve_url(text, current_url))

    if search_template and not looks_like_host(text):
        logger.debug("%r does not look like a host, searching", text)
        return search_url(text, search_template)

    url = resolve_url(text, current_url)
    if search_template and not resolve_host(urlparse(url).hostname):
        logger.debug("%s does not resolve, searching for %r", url, text)
        return search_url(text, search_template)

    return check_navigable(url)
