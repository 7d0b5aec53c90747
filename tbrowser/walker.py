"""Document tree -> annotated terminal text.

The walk is depth-first and post-order: children are rendered first, then
the element is formatted by :func:`tbrowser.formatter.format_node`.  It is
bounded by a depth limit, a node budget and a wall-clock deadline; hitting
any of them leaves a placeholder in the text instead of raising.
"""
import re
import time
import shutil
import logging
from dataclasses import dataclass
from urllib.parse import urljoin, urldefrag

from bs4.element import NavigableString, PreformattedString, Tag

from .config import DEFAULT_CONFIG
from .document import RenderedDocument, index_fragments
from .formatter import TagKind, classify, format_node
from .links import extract_links
from .style import clean_control

logger = logging.getLogger(__name__)

MAX_DEPTH_TEXT = "[max depth reached]"
MAX_NODES_TEXT = "[max nodes reached]"
TIMEOUT_TEXT = "[processing timeout]"


@dataclass(frozen=True)
class DeferredImage:
    index: int
    src: str
    alt: str
    width: int


class RenderContext:
    """State of one walk.  Not shared between documents."""

    def __init__(self, base_url="", max_depth=30, max_nodes=10000, timeout=5.0,
                 columns=80, render_images=False, image_width=40,
                 clock=time.monotonic):
        self.base_url = base_url or ""
        self.max_depth = max_depth
        self.max_nodes = max_nodes
        self.clock = clock
        self.deadline = clock() + timeout
        self.columns = columns
        self.render_images = render_images
        self.image_width = image_width

        self.seen = set()
        self.cache = {}
        self.inner = {}
        self.node_count = 0
        self.nodes_exhausted = False
        self.timed_out = False
        self.fragment_targets = set()
        self.deferred = []
        self.link_count = 0

    @classmethod
    def from_settings(cls, base_url, settings=None, **overrides):
        cfg = dict(DEFAULT_CONFIG)
        cfg.update(settings or {})
        columns = cfg["columns"] or shutil.get_terminal_size().columns
        kwargs = dict(
            max_depth=cfg["max_depth"],
            max_nodes=cfg["max_nodes"],
            timeout=cfg["render_timeout"] / 1000.0,
            columns=columns,
            render_images=cfg["render_images"],
            image_width=cfg["image_width"],
        )
        kwargs.update(overrides)
        return cls(base_url, **kwargs)

    def rewalk(self, node, depth):
        return render_node(node, self, depth)

    def defer_image(self, src, alt, width):
        unit = DeferredImage(len(self.deferred), src, alt, width)
        self.deferred.append(unit)
        return unit


def collect_fragments(root, base_url=""):
    """Names that some in-document link points at (``#name``)."""
    fragments = set()
    base = urldefrag(base_url)[0] if base_url else ""
    for a in root.find_all("a", href=True):
        href = a["href"].strip()
        if href.startswith("#"):
            if len(href) > 1:
                fragments.add(href[1:])
            continue
        if not base:
            continue
        try:
            target, frag = urldefrag(urljoin(base_url, href))
        except ValueError:
            continue
        if frag and target == base:
            fragments.add(frag)
    return fragments


def format_text(node, pre):
    text = clean_control(str(node))
    if pre:
        return text
    return re.sub(r"\s+", " ", text)


def render_node(node, ctx, depth=0, pre=False):
    if isinstance(node, PreformattedString):
        # comments, doctypes, CDATA, processing instructions
        return ""

    fp = id(node)
    if fp in ctx.cache:
        return ctx.cache[fp]
    if fp in ctx.seen:
        logger.debug("Cycle at <%s>, skipping", getattr(node, "name", "?"))
        return ""

    if depth > ctx.max_depth:
        return MAX_DEPTH_TEXT
    if ctx.nodes_exhausted or ctx.timed_out:
        return ""
    if ctx.clock() > ctx.deadline:
        ctx.timed_out = True
        logger.warning("Rendering timed out after %d nodes", ctx.node_count)
        return TIMEOUT_TEXT
    ctx.node_count += 1
    if ctx.node_count > ctx.max_nodes:
        ctx.nodes_exhausted = True
        logger.warning("Node budget of %d exhausted", ctx.max_nodes)
        return MAX_NODES_TEXT

    if isinstance(node, NavigableString):
        out = format_text(node, pre)
        ctx.cache[fp] = out
        return out
    if not isinstance(node, Tag):
        return ""

    ctx.seen.add(fp)
    try:
        kind = classify(node.name)
        if kind is TagKind.HIDDEN:
            children = ""
        else:
            child_pre = pre or node.name == "pre"
            children = "".join(
                render_node(child, ctx, depth + 1, child_pre) for child in node.contents
            )
        ctx.inner[fp] = children
        try:
            out = format_node(node, children, ctx, depth)
        except Exception:
            logger.warning("Failed to format <%s>, using raw text", node.name, exc_info=True)
            out = children
    finally:
        ctx.seen.discard(fp)

    ctx.cache[fp] = out
    return out


def extract_title(root):
    title = root.find("title") if isinstance(root, Tag) else None
    if title is not None and title.string:
        return " ".join(title.string.split()) or None
    return None


def tidy(text):
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip("\n ")


def render(root, base_url="", settings=None, context=None):
    """Render a parsed tree into a :class:`RenderedDocument`.

    Pending image work is returned in ``deferred``; see
    :func:`tbrowser.images.resolve_deferred`.
    """
    ctx = context or RenderContext.from_settings(base_url, settings)
    ctx.fragment_targets |= collect_fragments(root, base_url)

    start = root
    if isinstance(root, Tag) and root.name != "body":
        body = root.find("body")
        if body is not None:
            start = body

    marked = tidy(render_node(start, ctx))
    text, links = extract_links(marked)
    logger.debug(
        "Rendered %s: %d nodes, %d links, %d fragment targets",
        base_url or "document", ctx.node_count, len(links), len(ctx.fragment_targets),
    )
    return RenderedDocument(
        text=text,
        links=links,
        fragment_markers=index_fragments(text),
        title=extract_title(root),
        url=base_url,
        deferred=tuple(ctx.deferred),
    )
