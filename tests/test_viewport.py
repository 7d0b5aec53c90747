from tbrowser.links import highlight_link
from tbrowser.style import RESET, fragment_open, plain_text, styled
from tbrowser.viewport import (
    count_lines, line_of_offset, max_scroll, scroll_to_fragment, scroll_to_line,
    scroll_to_link, wrap_lines, wrap_styled,
)

from .conftest import render_html


def long_page(links=40, target=None):
    parts = []
    for i in range(links):
        parts.append(f'<p><a href="/p{i}">page {i}</a></p>')
        if target is not None and i == target:
            parts.append('<h2 id="here">Here</h2>')
    head = '<a href="#here">jump</a>' if target is not None else ""
    return render_html(head + "".join(parts))


def test_line_counting():
    assert count_lines("", 10) == 1
    assert count_lines("abc\ndef", 10) == 2
    assert count_lines("a" * 25, 10) == 3
    assert line_of_offset("abc\ndef", 5, 10) == 1


def test_styling_does_not_count():
    assert count_lines(styled("a" * 10, "bold"), 10) == count_lines("a" * 10, 10)


def test_wrap_lines_matches_count():
    text = "one\n" + "x" * 23 + "\nend"
    lines = wrap_lines(text, 10)
    assert lines == ["one", "x" * 10, "x" * 10, "xxx", "end"]


def test_wrap_styled_lines_are_self_contained():
    text = styled("a" * 15, "bold") + "\nplain"
    lines = wrap_styled(text, 10)
    assert [plain_text(l) for l in lines] == ["a" * 10, "a" * 5, "plain"]
    assert lines[0].endswith(RESET)
    assert lines[1].startswith("\x1b[1m")
    assert lines[2] == "plain"


def test_scroll_to_line_keeps_visible_line():
    assert scroll_to_line(5, 10, 0, 100) == 0
    assert scroll_to_line(20, 10, 0, 100) == 13
    assert scroll_to_line(1, 10, 10, 100) == 0
    assert scroll_to_line(99, 10, 0, 100) == max_scroll(100, 10)


def test_scroll_to_link_brings_link_into_view():
    doc = long_page()
    text = highlight_link(doc.text, 30)
    offset = scroll_to_link(30, text, 80, 10, 0)
    line = plain_text(text).split("\n").index("[31] page 30")
    assert offset <= line < offset + 10


def test_scroll_to_link_idempotent():
    doc = long_page()
    first = scroll_to_link(25, doc.text, 80, 10, 0)
    assert scroll_to_link(25, doc.text, 80, 10, first) == first


def test_scroll_to_missing_link_unchanged():
    doc = long_page(links=3)
    assert scroll_to_link(10, doc.text, 80, 10, 4) == 4


def test_scroll_to_fragment():
    doc = long_page(target=30)
    offset = scroll_to_fragment("here", doc.text, 80, 10, 0)
    line = plain_text(doc.text).split("\n").index("Here")
    assert offset <= line < offset + 10
    assert offset > 0


def test_scroll_to_missing_fragment_unchanged():
    doc = long_page(target=30)
    assert scroll_to_fragment("nowhere", doc.text, 80, 10, 7) == 7
    assert scroll_to_fragment("", doc.text, 80, 10, 7) == 7


def test_scroll_to_link_ignores_lookalike_text():
    body = "".join(f"<p>line {i}</p>" for i in range(60))
    doc = render_html('<p><b>[2] footnote</b></p><a href="/one">one</a>' + body + '<a href="/two">two</a>')
    offset = scroll_to_link(1, doc.text, 80, 10, 0)
    line = plain_text(doc.text).split("\n").index("[2] two")
    assert offset <= line < offset + 10


def test_wrap_styled_hides_label_mark():
    doc = render_html('<a href="/one">one</a>')
    assert [plain_text(l) for l in wrap_styled(doc.text, 80)] == ["[1] one"]
    assert "\x10" not in wrap_styled(doc.text, 80)[0]


def test_fragment_named_slash():
    body = "".join(f"<p>line {i}</p>" for i in range(40))
    doc = render_html('<a href="#/">home</a>' + body + '<h2 id="/">Root</h2>')
    assert doc.has_fragment("/")
    assert doc.text.startswith(fragment_open("/"), doc.fragment_markers["/"])
    offset = scroll_to_fragment("/", doc.text, 80, 10, 0)
    line = plain_text(doc.text).split("\n").index("Root")
    assert offset <= line < offset + 10
    assert offset > 0
