import pytest

from tbrowser.formatter import TagKind, classify, display_len, to_subscript, to_superscript
from tbrowser.style import PLACEHOLDER, plain_text

from .conftest import render_html


def lines_of(doc):
    return plain_text(doc.text).split("\n")


@pytest.mark.parametrize("tag,kind", [
    ("h3", TagKind.HEADING),
    ("STRONG", TagKind.INLINE),
    ("li", TagKind.BLOCK),
    ("td", TagKind.CELL),
    ("nav", TagKind.STRUCTURAL),
    ("br", TagKind.VOID),
    ("blink", TagKind.PASSTHROUGH),
    ("", TagKind.PASSTHROUGH),
])
def test_classify(tag, kind):
    assert classify(tag) is kind


def test_table_with_thead():
    doc = render_html(
        "<table>"
        "<thead><tr><th>Name</th><th>Age</th></tr></thead>"
        "<tbody><tr><td>Alice</td><td>30</td></tr><tr><td>Bob</td><td>4</td></tr></tbody>"
        "</table>"
    )
    lines = lines_of(doc)
    assert lines == [
        "┌───────┬─────┐",
        "│ Name  │ Age │",
        "├───────┼─────┤",
        "│ Alice │ 30  │",
        "│ Bob   │ 4   │",
        "└───────┴─────┘",
    ]


def test_table_without_thead_has_no_separator():
    doc = render_html("<table><tr><td>a</td></tr><tr><td>b</td></tr></table>")
    assert not any(line.startswith("├") for line in lines_of(doc))


def test_nested_table_rows_stay_inside():
    doc = render_html(
        "<table><tr><td>outer<table><tr><td>inner</td></tr></table></td></tr></table>"
    )
    top_borders = [line for line in lines_of(doc) if line.startswith("┌")]
    assert len(top_borders) == 1


def test_empty_table_renders_nothing():
    doc = render_html("<table></table><p>after</p>")
    assert plain_text(doc.text) == "after"


def test_h1_underline_matches_title():
    doc = render_html("<h1>Title</h1>")
    assert lines_of(doc)[:2] == ["Title", "====="]


def test_h2_underline():
    doc = render_html("<h2>Sub</h2>")
    assert lines_of(doc)[:2] == ["Sub", "---"]


def test_unordered_and_ordered_lists():
    doc = render_html(
        "<ul><li>one</li><li>two</li></ul>"
        '<ol start="3"><li>three</li><li>four</li></ol>'
    )
    lines = lines_of(doc)
    assert "• one" in lines
    assert "• two" in lines
    assert "3. three" in lines
    assert "4. four" in lines


def test_nested_list_is_indented():
    doc = render_html("<ul><li>outer<ul><li>inner</li></ul></li></ul>")
    text = plain_text(doc.text)
    assert "• outer" in text
    assert "\n  • inner" in text
    assert "• •" not in text


def test_br_and_hr_survive_without_text():
    doc = render_html("<p>a<br>b</p><hr><p>c</p>", columns=24)
    lines = lines_of(doc)
    assert lines[:2] == ["a", "b"]
    assert "─" * 20 in lines


def test_javascript_link_is_plain_text():
    doc = render_html('<a href="javascript:void(0)">click</a> <a>no href</a>')
    assert doc.links == ()
    assert "click" in plain_text(doc.text)


def test_empty_link_dropped():
    doc = render_html('<a href="/img"></a>')
    assert doc.links == ()
    doc = render_html('<a href="/x"><b> </b>go</a>')
    assert doc.links[0].text == "go"


def test_image_disabled_shows_alt():
    doc = render_html('<img src="/cat.png" alt="A cat">')
    assert "[Image: A cat]" in plain_text(doc.text)
    assert doc.deferred == ()


def test_data_image_never_fetched():
    doc = render_html('<img src="data:image/png;base64,AAAA" alt="inline">', render_images=True)
    assert "[Image: inline]" in plain_text(doc.text)
    assert doc.deferred == ()


def test_image_enabled_is_deferred():
    doc = render_html('<img src="/cat.png" alt="cat" width="10">', render_images=True, image_width=40)
    assert len(doc.deferred) == 1
    unit = doc.deferred[0]
    assert unit.src == "https://example.com/cat.png"
    assert unit.width == 10
    assert f"{PLACEHOLDER}0{PLACEHOLDER}" in doc.text


def test_picture_prefers_source():
    doc = render_html(
        '<picture><source srcset="/big.webp 2x, /small.webp"><img src="/cat.png" alt="c"></picture>',
        render_images=True,
    )
    assert doc.deferred[0].src == "https://example.com/big.webp"


def test_inline_styles_wrap_text():
    doc = render_html("<p><b>bold</b> <code>x()</code> <kbd>C</kbd> H<sub>2</sub>O</p>")
    text = plain_text(doc.text)
    assert "bold" in text
    assert " x() " in text
    assert "[C]" in text
    assert "H₂O" in text


def test_blockquote_prefix():
    doc = render_html("<blockquote><p>quoted</p></blockquote>")
    assert "│ quoted" in plain_text(doc.text)


def test_structural_box():
    doc = render_html("<main><p>body</p></main>", columns=40)
    lines = lines_of(doc)
    assert lines[0].startswith("┌── MAIN CONTENT ")
    assert lines[0].endswith("┐")
    assert len(lines[0]) == 36
    assert lines[-1] == "└" + "─" * 34 + "┘"


def test_empty_element_dropped():
    doc = render_html("<p>   </p><div><span></span></div><p>x</p>")
    assert plain_text(doc.text) == "x"


def test_display_len_reserves_link_label():
    marked = "\x01https://x/\x02go\x03"
    assert display_len(marked) == 6
    assert display_len(marked, first_number=10) == 7
    assert display_len(marked + marked, first_number=9) == 13


def test_super_and_subscript():
    assert to_superscript("2") == "²"
    assert to_subscript("10") == "₁₀"


def test_superscript_link_keeps_url():
    doc = render_html(
        '<p>Claim<sup><a href="https://en.wikipedia.org/wiki/X#cite_note-1">[1]</a></sup></p>'
    )
    assert doc.links[0].url == "https://en.wikipedia.org/wiki/X#cite_note-1"
    assert doc.links[0].text == "[¹]"
    assert plain_text(doc.text) == "Claim[1] [¹]"


def test_superscript_leaves_styles_intact():
    doc = render_html("<p>x<sup><b>2</b></sup> H<sub><i>2</i></sub>O</p>")
    text = plain_text(doc.text)
    assert "\x1b" not in text
    assert text == "x² H₂O"


def test_table_counts_real_link_labels():
    doc = render_html('<table><tr><td><a href="/a">ab</a></td></tr><tr><td>abcdef</td></tr></table>')
    assert lines_of(doc) == [
        "┌────────┐",
        "│ [1] ab │",
        "│ abcdef │",
        "└────────┘",
    ]


def test_table_link_numbers_continue_from_page():
    before = "".join(f'<a href="/p{i}">p</a> ' for i in range(9))
    doc = render_html(
        before + '<table><tr><td><a href="/a">ab</a></td><td>x</td></tr><tr><td>abcdef</td><td>y</td></tr></table>'
    )
    table = [line for line in lines_of(doc) if line and line[0] in "┌│└"]
    assert "│ [10] ab │ x │" in table
    assert len({len(line) for line in table}) == 1


def test_heading_underline_counts_link_label():
    doc = render_html('<h1><a href="/x">Go</a></h1>')
    assert lines_of(doc)[:2] == ["[1] Go", "======"]


def test_time_keeps_link():
    doc = render_html('<time datetime="2024-01-01"><a href="/d">today</a></time>')
    assert doc.links[0].text == "today"


def test_linked_image_uses_alt_label():
    doc = render_html('<a href="/home"><img src="/logo.png" alt="Logo"></a>', render_images=True)
    assert doc.deferred == ()
    assert doc.links[0].text == "[Image: Logo]"
    assert doc.links[0].url == "https://example.com/home"
    assert PLACEHOLDER not in doc.text


def test_row_anchor_lands_on_its_row():
    doc = render_html(
        '<a href="#r2">go</a>'
        '<table><tr><td>a</td></tr><tr id="r2"><td>b</td></tr></table>'
    )
    assert doc.has_fragment("r2")
    line = plain_text(doc.text[:doc.fragment_markers["r2"]]).split("\n")[-1]
    assert line == "│ "
    assert "│ b │" in lines_of(doc)


def test_row_group_anchor_kept():
    doc = render_html(
        '<a href="#people">go</a>'
        '<table><thead id="people"><tr><th>Name</th></tr></thead>'
        "<tbody><tr><td>Ann</td></tr></tbody></table>"
    )
    assert doc.has_fragment("people")
    rest = plain_text(doc.text[doc.fragment_markers["people"]:])
    assert rest.startswith("Name")
