import re

# ========= COLORS =========
RESET = "\033[0m"

THEMES = {
    "default": {
        "title": "96",
        "heading": "97",
        "link": "36",
        "focus": "35",
        "cmd": "92",
        "err": "91",
        "dim": "90",
        "mark": "30;43",
        "code": "37;100",
    },
    "night": {
        "title": "38;5;250",
        "heading": "38;5;245",
        "link": "38;5;180",
        "focus": "38;5;139",
        "cmd": "38;5;65",
        "err": "38;5;131",
        "dim": "38;5;240",
        "mark": "38;5;16;48;5;143",
        "code": "38;5;250;48;5;236",
    },
}

THEME = dict(THEMES["default"])


def apply_color_theme(name):
    THEME.clear()
    THEME.update(THEMES.get(name, THEMES["default"]))


# on/off pairs; each attribute has its own off code so nesting survives
ATTRS = {
    "bold": ("1", "22"),
    "dim": ("2", "22"),
    "italic": ("3", "23"),
    "underline": ("4", "24"),
    "strike": ("9", "29"),
    "inverse": ("7", "27"),
}


def styled(text, *attrs, color=None):
    if not text:
        return text
    on = [ATTRS[a][0] for a in attrs]
    off = [ATTRS[a][1] for a in reversed(attrs)]
    if color:
        on.append(THEME.get(color, color))
        off.append("39;49")
    return f"\033[{';'.join(on)}m{text}\033[{';'.join(off)}m"


def colored(text, role):
    return styled(text, color=role)


def link_on():
    return f"\033[4;{THEME['link']}m"


def focus_on():
    return f"\033[1;4;{THEME['focus']}m"


LINK_OFF = "\033[22;24;39m"

# ========= MARKERS =========
# link marker left by the walker: \x01url\x02text\x03
LINK_START = "\x01"
LINK_SEP = "\x02"
LINK_END = "\x03"

# fragment target: \x0ename\x0f ... \x0e\x0f (names are never empty)
FRAG_OPEN = "\x0e"
FRAG_CLOSE = "\x0f"
FRAG_END = FRAG_OPEN + FRAG_CLOSE

# invisible mark in front of every baked link label
LABEL_MARK = "\x10"

# deferred sub-resource placeholder: \x1a<n>\x1a
PLACEHOLDER = "\x1a"

ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")
FRAGMENT_RE = re.compile(r"\x0e[^\x0e\x0f]*\x0f")
MARKER_RE = re.compile(r"\x0e[^\x0e\x0f]*\x0f|\x10")
CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")


def fragment_open(name):
    return f"{FRAG_OPEN}{name}{FRAG_CLOSE}"


def strip_ansi(text):
    return ANSI_RE.sub("", text)


def strip_markers(text):
    return MARKER_RE.sub("", text)


def plain_text(text):
    """Text as the screen shows it: no styling, no markers."""
    return strip_markers(strip_ansi(text))


def clean_control(text):
    return CONTROL_RE.sub("", text)


# ========= SGR STATE =========
_ON = {"1": "intensity", "2": "intensity", "3": "italic", "4": "underline", "7": "inverse", "9": "strike"}
_OFF = {"22": "intensity", "23": "italic", "24": "underline", "27": "inverse", "29": "strike"}


class SgrState:
    """Tracks which SGR attributes are active after a run of escape codes,
    so a line drawn out of context can be started in the right style."""

    def __init__(self):
        self.attrs = {}

    def feed(self, seq):
        body = seq[2:-1]
        params = body.split(";") if body else ["0"]
        i = 0
        while i < len(params):
            p = params[i] or "0"
            if p == "0":
                self.attrs.clear()
            elif p in _ON:
                self.attrs[_ON[p]] = p
            elif p in _OFF:
                self.attrs.pop(_OFF[p], None)
            elif p in ("38", "48"):
                slot = "fg" if p == "38" else "bg"
                mode = params[i + 1] if i + 1 < len(params) else ""
                size = 3 if mode == "5" else 5 if mode == "2" else 1
                self.attrs[slot] = ";".join(params[i:i + size])
                i += size - 1
            elif p == "39":
                self.attrs.pop("fg", None)
            elif p == "49":
                self.attrs.pop("bg", None)
            elif p.isdigit():
                n = int(p)
                if 30 <= n <= 37 or 90 <= n <= 97:
                    self.attrs["fg"] = p
                elif 40 <= n <= 47 or 100 <= n <= 107:
                    self.attrs["bg"] = p
            i += 1

    def prefix(self):
        if not self.attrs:
            return ""
        return "\033[" + ";".join(self.attrs.values()) + "m"
