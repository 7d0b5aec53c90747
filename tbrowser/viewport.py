"""Line counting and scroll decisions for wrapped, scrolled text.

Wrapping is approximated: a line breaks at every newline and whenever the
running column reaches the viewport width, character by character.
"""
import re

from .links import link_label_re
from .style import FRAG_OPEN, LABEL_MARK, RESET, SgrState, fragment_open, plain_text

SCROLL_PADDING = 2


def line_of_offset(plain, offset, width):
    line = 0
    col = 0
    width = max(1, width)
    for ch in plain[:offset]:
        if ch == "\n":
            line += 1
            col = 0
        else:
            col += 1
            if col >= width:
                line += 1
                col = 0
    return line


def count_lines(text, width):
    plain = plain_text(text)
    return line_of_offset(plain, len(plain), width) + 1


def wrap_lines(text, width):
    """Split ``text`` into the visual lines ``line_of_offset`` counts.

    Styling is dropped; the pager draws these lines as-is.
    """
    width = max(1, width)
    lines = []
    current = []
    for ch in plain_text(text):
        if ch == "\n":
            lines.append("".join(current))
            current = []
            continue
        current.append(ch)
        if len(current) >= width:
            lines.append("".join(current))
            current = []
    lines.append("".join(current))
    return lines


def max_scroll(total_lines, height):
    return max(0, total_lines - height)


def scroll_to_line(line, height, offset, total_lines, padding=SCROLL_PADDING):
    """Smallest scroll change that puts ``line`` inside the padded viewport."""
    height = max(1, height)
    padding = max(0, min(padding, (height - 1) // 2))

    if line < offset + padding:
        new = max(0, line - padding)
    elif line >= offset + height - padding:
        new = line - height + padding + 1
    else:
        return offset

    return max(0, min(new, max_scroll(total_lines, height)))


def _scroll_to_position(text, pos, width, height, offset):
    prefix = plain_text(text[:pos])
    line = line_of_offset(prefix, len(prefix), width)
    return scroll_to_line(line, height, offset, count_lines(text, width))


def scroll_to_link(index, rendered_text, viewport_width, viewport_height, current_scroll_offset):
    m = link_label_re(index).search(rendered_text)
    if m is None:
        return current_scroll_offset
    return _scroll_to_position(
        rendered_text, m.start(1), viewport_width, viewport_height, current_scroll_offset
    )


def scroll_to_fragment(fragment_name, rendered_text, viewport_width, viewport_height, current_scroll_offset):
    if not fragment_name:
        return current_scroll_offset
    pos = rendered_text.find(fragment_open(fragment_name))
    if pos == -1:
        return current_scroll_offset
    return _scroll_to_position(
        rendered_text, pos, viewport_width, viewport_height, current_scroll_offset
    )


_TOKEN_RE = re.compile(r"\x1b\[[0-9;]*m|\x0e[^\x0e\x0f]*\x0f|\x10|.", re.DOTALL)


def wrap_styled(text, width):
    """Like :func:`wrap_lines` but keeps styling.

    Every line is self-contained: it starts with whatever style was active
    where it begins and is reset at its end.
    """
    width = max(1, width)
    state = SgrState()
    lines = []
    current = []
    col = 0

    def finish():
        line = "".join(current)
        if state.attrs:
            line += RESET
        lines.append(line)
        current.clear()
        current.append(state.prefix())

    current.append("")
    for m in _TOKEN_RE.finditer(text):
        tok = m.group()
        if tok.startswith("\x1b["):
            state.feed(tok)
            current.append(tok)
            continue
        if tok.startswith(FRAG_OPEN) or tok == LABEL_MARK:
            continue
        if tok == "\n":
            finish()
            col = 0
            continue
        current.append(tok)
        col += 1
        if col >= width:
            finish()
            col = 0
    finish()
    return lines
