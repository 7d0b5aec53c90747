"""Per-tag formatting of already-rendered child text.

Every tag name maps onto a closed set of :class:`TagKind` categories and each
category has exactly one formatter.  Unknown tags fall into ``PASSTHROUGH``.
Lists and tables do not use the concatenated child text; they re-walk their
own rows/items through the walker (``ctx.rewalk``), which hits the walker's
per-node cache.
"""
import re
import enum
import logging
from urllib.parse import urljoin

from .links import link_marker, strip_link_markers
from .style import (
    styled, colored, fragment_open, FRAG_END, LINK_START, PLACEHOLDER,
    plain_text,
)

logger = logging.getLogger(__name__)

HEADING_RULE_MAX = 80
HR_MAX = 80
BOX_MAX = 60


class TagKind(enum.Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    INLINE = "inline"
    BLOCK = "block"
    LINK = "link"
    LIST = "list"
    TABLE = "table"
    TABLE_PART = "table_part"
    CELL = "cell"
    STRUCTURAL = "structural"
    VOID = "void"
    HIDDEN = "hidden"
    IMAGE = "image"
    PASSTHROUGH = "passthrough"


_KIND_TAGS = {
    TagKind.HEADING: ("h1", "h2", "h3", "h4", "h5", "h6"),
    TagKind.PARAGRAPH: ("p",),
    TagKind.INLINE: (
        "strong", "b", "em", "i", "u", "s", "small", "mark", "del", "ins",
        "var", "samp", "q", "cite", "dfn", "abbr", "kbd", "code", "sup",
        "sub", "time", "data",
    ),
    TagKind.BLOCK: ("pre", "blockquote", "address", "dt", "dd", "li"),
    TagKind.LINK: ("a",),
    TagKind.LIST: ("ul", "ol"),
    TagKind.TABLE: ("table",),
    TagKind.TABLE_PART: ("thead", "tbody", "tfoot", "tr"),
    TagKind.CELL: ("th", "td"),
    TagKind.STRUCTURAL: ("header", "main", "footer", "article", "section", "nav"),
    TagKind.VOID: ("br", "hr"),
    TagKind.HIDDEN: ("template", "script", "style", "head", "title", "noscript"),
    TagKind.IMAGE: ("img",),
}

TAG_KINDS = {tag: kind for kind, tags in _KIND_TAGS.items() for tag in tags}

# kinds that decide their output without looking at the child text
SELF_RENDERING = (TagKind.VOID, TagKind.HIDDEN, TagKind.IMAGE, TagKind.TABLE)


def classify(tag_name):
    return TAG_KINDS.get((tag_name or "").lower(), TagKind.PASSTHROUGH)


# ========= TEXT HELPERS =========
SUPERSCRIPT = str.maketrans("0123456789+-=()ni", "⁰¹²³⁴⁵⁶⁷⁸⁹⁺⁻⁼⁽⁾ⁿⁱ")
SUBSCRIPT = str.maketrans("0123456789+-=()aeox", "₀₁₂₃₄₅₆₇₈₉₊₋₌₍₎ₐₑₒₓ")

# escape codes and in-band markers; none of it is visible text
_HIDDEN_RE = re.compile(
    r"(\x1b\[[0-9;]*m|\x0e[^\x0e\x0f]*\x0f|\x01[^\x02]*\x02|\x03|\x1a\d+\x1a)"
)


def map_visible(text, fn):
    """Apply ``fn`` to the visible runs of ``text`` only."""
    parts = _HIDDEN_RE.split(text)
    parts[::2] = [fn(part) for part in parts[::2]]
    return "".join(parts)


def to_superscript(text):
    return map_visible(text, lambda s: s.translate(SUPERSCRIPT))


def to_subscript(text):
    return map_visible(text, lambda s: s.translate(SUBSCRIPT))


def label_width(number):
    return len(f"[{number}] ")


def first_link_number(ctx, text):
    """Number the first link marker in ``text`` will get once baked.

    Links are numbered in the order they are formatted, and ``text`` holds
    the most recently formatted ones.
    """
    return ctx.link_count - text.count(LINK_START) + 1


def display_len(text, first_number=1):
    """Visible length of not-yet-baked text.

    Link markers count as their text plus the ``[n] `` label they will get,
    numbered from ``first_number``.
    """
    links = text.count(LINK_START)
    labels = sum(label_width(first_number + i) for i in range(links))
    return len(plain_text(strip_link_markers(text))) + labels


def flatten(text):
    return re.sub(r"[ \t\r\n]+", " ", text).strip()


def rule(char, width):
    return char * max(0, width)


# ========= FORMATTERS =========
def format_heading(tag, text, node, ctx, depth):
    text = text.strip()
    width = min(display_len(text, first_link_number(ctx, text)), HEADING_RULE_MAX)
    if tag == "h1":
        underline = rule("=", width)
        return "\n" + styled(f"{text}\n{underline}", "bold", color="title") + "\n\n"
    if tag == "h2":
        underline = rule("-", width)
        return "\n" + styled(f"{text}\n{underline}", "bold", color="title") + "\n\n"
    if tag == "h3":
        return "\n" + styled(text, "bold", color="heading") + "\n\n"
    if tag == "h4":
        return "\n" + styled(text, "bold", color="dim") + "\n\n"
    return "\n" + styled(text, "bold") + "\n\n"


def format_paragraph(tag, text, node, ctx, depth):
    return f"{text.strip()}\n\n"


def format_inline(tag, text, node, ctx, depth):
    if tag in ("strong", "b"):
        return styled(text, "bold")
    if tag in ("em", "i", "var"):
        return styled(text, "italic")
    if tag == "u":
        return styled(text, "underline")
    if tag == "s":
        return styled(text, "strike")
    if tag == "del":
        return styled(text, "strike", color="err")
    if tag == "ins":
        return styled(text, "underline", color="cmd")
    if tag in ("small", "samp"):
        return styled(text, "dim")
    if tag == "mark":
        return colored(text, "mark")
    if tag == "code":
        return colored(f" {text} ", "code")
    if tag == "kbd":
        return styled(f"[{text}]", "bold")
    if tag == "q":
        return colored(f'"{text}"', "dim")
    if tag == "cite":
        return styled(f'"{text}"', "italic", color="title")
    if tag == "dfn":
        return styled(f'"{text}"', "italic", color="link")
    if tag == "abbr":
        title = node.get("title")
        return styled(text + (f"[{title}]" if title else ""), "dim")
    if tag == "sup":
        return styled(to_superscript(text), "bold")
    if tag == "sub":
        return styled(to_subscript(text), "dim")
    if LINK_START in text and tag in ("time", "data"):
        return text
    if tag == "time":
        return node.get("datetime") or text
    if tag == "data":
        return colored(f"[{node.get('value') or text}]", "dim")
    return text


def format_block(tag, text, node, ctx, depth):
    if tag == "pre":
        return "\n" + colored(f"```\n{text.strip(chr(10))}\n```", "dim") + "\n\n"
    if tag == "blockquote":
        body = text.strip().replace("\n", "\n│ ")
        return "\n" + styled(f"│ {body}", "italic", color="dim") + "\n\n"
    if tag == "address":
        return styled(text.strip(), "italic", color="dim") + "\n"
    if tag == "dt":
        return styled(text.strip(), "bold") + ": "
    if tag == "dd":
        return "  " + text.strip() + "\n"
    # li outside of ul/ol
    return "• " + text.strip() + "\n"


def format_link(tag, text, node, ctx, depth):
    href = (node.get("href") or "").strip()
    if not href or href.lower().startswith("javascript:"):
        return text

    if href.startswith("#") and len(href) > 1:
        ctx.fragment_targets.add(href[1:])

    try:
        url = urljoin(ctx.base_url, href) if ctx.base_url else href
    except ValueError:
        logger.debug("Could not resolve href %r against %s", href, ctx.base_url)
        url = href

    label = flatten(strip_link_markers(text)) or url
    ctx.link_count += 1
    return link_marker(url, label)


def _list_item_text(li, ctx, depth):
    inner = ctx.inner.get(id(li))
    if inner is None:
        ctx.rewalk(li, depth + 1)
        inner = ctx.inner.get(id(li), "")
    return inner.strip()


def format_list(tag, text, node, ctx, depth):
    items = node.find_all("li", recursive=False)
    if not items:
        return text

    try:
        number = int(node.get("start", 1))
    except ValueError:
        number = 1

    out = []
    for li in items:
        inner = _list_item_text(li, ctx, depth)
        if not inner:
            continue
        if tag == "ol":
            prefix = f"{number}. "
            number += 1
        else:
            prefix = "• "
        out.append(prefix + inner.replace("\n", "\n  ") + "\n")

    if not out:
        return ""
    return "\n" + "".join(out) + "\n"


def format_table(tag, text, node, ctx, depth):
    return format_table_rows(node, ctx, depth)


def format_passthrough(tag, text, node, ctx, depth):
    return text


def format_table_part(tag, text, node, ctx, depth):
    return ""


def format_structural(tag, text, node, ctx, depth):
    box_width = min(ctx.columns - 4, BOX_MAX)
    text = text.strip("\n")

    def box(label, color):
        label_text = f"── {label} "
        padding = rule("─", box_width - len(label_text) - 2)
        top = f"┌{label_text}{padding}┐"
        bottom = f"└{rule('─', box_width - 2)}┘"
        return "\n" + colored(top, color) + f"\n{text}\n" + colored(bottom, color) + "\n"

    def separator(label, color):
        return "\n" + colored(f"── {label} ──", color) + f"\n{text}\n"

    if tag == "header":
        return box("HEADER", "title")
    if tag == "main":
        return box("MAIN CONTENT", "heading")
    if tag == "footer":
        return box("FOOTER", "link")
    if tag == "article":
        return box("ARTICLE", "err")
    if tag == "section":
        return separator("Section", "cmd")
    return separator("Navigation", "link")


def format_void(tag, text, node, ctx, depth):
    if tag == "br":
        return "\n"
    return "\n" + colored(rule("─", min(ctx.columns - 4, HR_MAX)), "dim") + "\n\n"


def format_hidden(tag, text, node, ctx, depth):
    return ""


def format_image(tag, text, node, ctx, depth):
    alt = flatten(node.get("alt") or "") or "Image"
    src = node.get("src") or ""

    parent = node.parent
    if parent is not None and parent.name == "picture":
        for source in parent.find_all("source", recursive=False):
            srcset = source.get("srcset")
            if srcset:
                src = srcset.split(",")[0].strip().split(" ")[0]
                break
            if source.get("src"):
                src = source["src"]
                break

    # art cannot sit inside a one-line link label
    linked = node.find_parent("a", href=True) is not None
    if not ctx.render_images or not src or src.startswith("data:") or linked:
        return "\n" + colored(f"[Image: {alt}]", "dim") + "\n"

    try:
        src = urljoin(ctx.base_url, src) if ctx.base_url else src
    except ValueError:
        logger.warning("Failed to construct absolute URL for image %r", src)

    width = ctx.image_width
    try:
        if node.get("width"):
            width = min(int(node["width"]), ctx.image_width)
    except ValueError:
        pass

    unit = ctx.defer_image(src, alt, width)
    return f"\n{PLACEHOLDER}{unit.index}{PLACEHOLDER}\n"


FORMATTERS = {
    TagKind.HEADING: format_heading,
    TagKind.PARAGRAPH: format_paragraph,
    TagKind.INLINE: format_inline,
    TagKind.BLOCK: format_block,
    TagKind.LINK: format_link,
    TagKind.LIST: format_list,
    TagKind.TABLE: format_table,
    TagKind.TABLE_PART: format_table_part,
    TagKind.CELL: format_passthrough,
    TagKind.STRUCTURAL: format_structural,
    TagKind.VOID: format_void,
    TagKind.HIDDEN: format_hidden,
    TagKind.IMAGE: format_image,
    TagKind.PASSTHROUGH: format_passthrough,
}


def fragment_name(node, ctx):
    for attr in ("id", "name"):
        value = node.get(attr)
        if value and value in ctx.fragment_targets:
            return value
    return None


def format_node(node, text, ctx, depth=0):
    """Format one element given its rendered children text."""
    tag = node.name.lower()
    kind = classify(tag)

    if kind in SELF_RENDERING or text.strip():
        out = FORMATTERS[kind](tag, text, node, ctx, depth)
    else:
        out = ""

    name = fragment_name(node, ctx)
    if name is None:
        return out
    # empty anchors (<a name="x"></a>) still keep their marker
    return fragment_open(name) + out + FRAG_END


# ========= TABLES =========
def _own(node, table):
    return node.find_parent("table") is table


def table_rows(table):
    """``tr`` elements of this table, in order, nested tables excluded."""
    return [tr for tr in table.find_all("tr") if _own(tr, table)]


def row_anchors(tr, ctx):
    """Fragment markers for a row and, on its first row, its row group."""
    nodes = [tr]
    group = tr.parent
    if group is not None and group.name in ("thead", "tbody", "tfoot") and group.find("tr") is tr:
        nodes.insert(0, group)
    names = [fragment_name(n, ctx) for n in nodes]
    return "".join(fragment_open(name) + FRAG_END for name in names if name)


def cell_lengths(rows, first_number):
    lengths = []
    number = first_number
    for row in rows:
        out = []
        for cell in row:
            out.append(display_len(cell, number))
            number += cell.count(LINK_START)
        lengths.append(out)
    return lengths


def column_widths(lengths):
    widths = []
    for row in lengths:
        for i, length in enumerate(row):
            if i >= len(widths):
                widths.append(0)
            widths[i] = max(widths[i], length)
    return widths


def format_table_rows(table, ctx, depth):
    rows = []
    header_rows = []
    for tr in table_rows(table):
        cells = tr.find_all(["th", "td"], recursive=False)
        row = [flatten(ctx.rewalk(cell, depth + 2)) for cell in cells]
        if row:
            row[0] = row_anchors(tr, ctx) + row[0]
            rows.append(row)
            header_rows.append(any(c.name == "th" for c in cells))

    if not rows:
        return ""

    links = sum(cell.count(LINK_START) for row in rows for cell in row)
    lengths = cell_lengths(rows, ctx.link_count - links + 1)
    widths = column_widths(lengths)
    has_thead = any(_own(t, table) for t in table.find_all("thead"))

    def border(left, mid, right):
        return colored(left + mid.join(rule("─", w + 2) for w in widths) + right, "dim")

    lines = [border("┌", "┬", "┐")]
    for i, row in enumerate(rows):
        if i == 1 and has_thead:
            lines.append(border("├", "┼", "┤"))
        parts = []
        for col, width in enumerate(widths):
            cell = row[col] if col < len(row) else ""
            length = lengths[i][col] if col < len(row) else 0
            padded = cell + " " * (width - length)
            if header_rows[i]:
                padded = styled(padded, "bold", color="title")
            parts.append(f" {padded} ")
        sep = colored("│", "dim")
        lines.append(sep + sep.join(parts) + sep)
    lines.append(border("└", "┴", "┘"))

    return "\n" + "\n".join(lines) + "\n"
