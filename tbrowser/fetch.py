import socket
import logging

import requests
from bs4 import BeautifulSoup, Comment

from .errors import FetchError
from .style import clean_control

logger = logging.getLogger(__name__)

# ========= HTTP SESSION =========
session = requests.Session()

ALLOWED_TAGS = {
    "html", "head", "title", "body",
    "h1", "h2", "h3", "h4", "h5", "h6", "p", "br", "hr",
    "a", "ul", "ol", "li", "dl", "dt", "dd",
    "strong", "em", "b", "i", "u", "s", "q", "small", "mark", "del", "ins",
    "sup", "sub", "code", "pre", "kbd", "samp", "var", "time", "data",
    "cite", "abbr", "dfn", "address", "blockquote",
    "div", "span", "header", "footer", "main", "section", "article", "nav", "aside",
    "table", "thead", "tbody", "tfoot", "tr", "th", "td",
    "img", "picture", "source",
}

# removed together with everything inside them
DROPPED_TAGS = {
    "script", "style", "noscript", "template", "iframe", "svg", "math",
    "object", "embed", "canvas", "textarea", "select", "button",
}

ALLOWED_ATTRIBUTES = {
    "*": {"id", "name"},
    "a": {"href", "title"},
    "abbr": {"title"},
    "img": {"src", "alt", "width", "height"},
    "source": {"src", "srcset"},
    "time": {"datetime"},
    "data": {"value"},
    "ol": {"start"},
}

HTML_TYPES = ("text/html", "application/xhtml+xml", "text/plain")


def sanitize(html):
    """Allow-list the markup: unknown tags are unwrapped, scripts and the
    like dropped with their content, attributes reduced to the listed ones."""
    soup = BeautifulSoup(html, "html.parser")

    for c in soup.find_all(string=lambda s: isinstance(s, Comment)):
        c.extract()

    for tag in soup.find_all(True):
        if tag.decomposed:
            continue
        name = tag.name.lower()
        if name in DROPPED_TAGS:
            tag.decompose()
            continue
        if name not in ALLOWED_TAGS:
            tag.unwrap()
            continue
        allowed = ALLOWED_ATTRIBUTES["*"] | ALLOWED_ATTRIBUTES.get(name, set())
        tag.attrs = {
            k: clean_control(v if isinstance(v, str) else " ".join(v))
            for k, v in tag.attrs.items()
            if k in allowed
        }

    return str(soup)


def parse(raw_markup):
    """Markup -> tree.  ``html.parser`` is lenient and does not raise on
    malformed input."""
    return BeautifulSoup(raw_markup or "", "html.parser")


def _get(url, user_agent, timeout, stream=False):
    try:
        r = session.get(
            url,
            headers={"User-Agent": user_agent},
            timeout=timeout,
            stream=stream,
        )
        r.raise_for_status()
    except requests.RequestException as e:
        raise FetchError(url, e) from e
    return r


def fetch_and_sanitize(url, user_agent, timeout):
    logger.info("Fetching %s", url)
    r = _get(url, user_agent, timeout)

    ctype = r.headers.get("Content-Type", "text/html").split(";")[0].strip().lower()
    if ctype and ctype not in HTML_TYPES:
        raise FetchError(url, f"unsupported content type {ctype}")

    html = r.text
    if ctype == "text/plain":
        html = "<pre>" + html.replace("&", "&amp;").replace("<", "&lt;") + "</pre>"

    logger.debug("Fetched %d bytes from %s", len(html), url)
    return sanitize(html)


def fetch_bytes(url, user_agent, timeout):
    r = _get(url, user_agent, timeout)
    return r.content


def resolve_host(hostname):
    """True when ``hostname`` resolves to an address."""
    if not hostname:
        return False
    try:
        socket.getaddrinfo(hostname, None)
    except (socket.gaierror, UnicodeError, OSError):
        logger.debug("Host %s does not resolve", hostname)
        return False
    return True
