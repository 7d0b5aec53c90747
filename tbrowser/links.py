import re
from dataclasses import dataclass

from .style import (
    LINK_START, LINK_SEP, LINK_END, LINK_OFF, LABEL_MARK,
    link_on, focus_on, plain_text,
)

LINK_MARKER_RE = re.compile(
    re.escape(LINK_START) + r"([^" + LINK_SEP + r"]*)" + re.escape(LINK_SEP)
    + r"(.*?)" + re.escape(LINK_END),
    re.DOTALL,
)

NEXT = "next"
PREV = "prev"


@dataclass(frozen=True)
class Link:
    index: int  # 0-based
    text: str
    url: str

    @property
    def number(self):
        """The 1-based number shown in front of the link."""
        return self.index + 1

    @property
    def label(self):
        return f"[{self.number}]"


def link_for_number(links, number):
    """Look up a link by the number the user sees; None if out of range."""
    index = number - 1
    if 0 <= index < len(links):
        return links[index]
    return None


def link_marker(url, text):
    return f"{LINK_START}{url}{LINK_SEP}{text}{LINK_END}"


def extract_links(marked_text):
    """Replace link markers by visible ``[n] text`` and collect the links.

    Returns ``(text, links)``; indices follow the order the markers appear.
    """
    links = []

    def bake(m):
        url, text = m.group(1), m.group(2)
        link = Link(len(links), " ".join(plain_text(text).split()), url)
        links.append(link)
        return f"{LABEL_MARK}{link_on()}{link.label} {text}{LINK_OFF}"

    return LINK_MARKER_RE.sub(bake, marked_text), tuple(links)


def strip_link_markers(text):
    """Keep only the text of any link markers (links cannot nest)."""
    text = LINK_MARKER_RE.sub(lambda m: m.group(2), text)
    return text.replace(LINK_START, "").replace(LINK_SEP, "").replace(LINK_END, "")


def focus_link(direction, current_index, link_count):
    if link_count <= 0:
        return current_index
    if direction == NEXT:
        return (current_index + 1) % link_count
    if direction == PREV:
        if current_index < 0:
            return link_count - 1
        return (current_index - 1) % link_count
    raise ValueError(f"Unknown direction: {direction}")


def focus_next_link(links, current):
    return focus_link(NEXT, current, len(links))


def focus_prev_link(links, current):
    return focus_link(PREV, current, len(links))


def link_label_re(index):
    """Matches the baked label of link ``index`` (0-based) in rendered text.

    Only labels behind ``LABEL_MARK`` count; page text that merely looks
    like ``[n] `` never matches.
    """
    return re.compile(re.escape(LABEL_MARK) + r"\x1b\[[0-9;]*m(\[" + str(index + 1) + r"\] )")


_LABEL_STYLE_RE = re.compile(re.escape(LABEL_MARK) + r"\x1b\[[0-9;]*m")


def highlight_link(text, index):
    """Draw link ``index`` in the focus style, every other link normally."""
    text = _LABEL_STYLE_RE.sub(lambda _m: LABEL_MARK + link_on(), text)
    if index < 0:
        return text

    m = link_label_re(index).search(text)
    if not m:
        return text
    return text[:m.start()] + LABEL_MARK + focus_on() + text[m.start(1):]
