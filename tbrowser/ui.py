"""Full-screen pager: draws the active tab and turns keys into navigation."""
import os
import sys
import shutil
import logging
import termios
import tty

from . import style
from .config import COLOR_THEMES, SEARCH_ENGINES, USER_AGENTS, NUMBER_RANGES, save_config
from .errors import SettingsError
from .links import focus_next_link, focus_prev_link, highlight_link, link_for_number
from .resolver import BACK, FORWARD, RELOAD
from .viewport import count_lines, max_scroll, scroll_to_fragment, scroll_to_link, wrap_styled

logger = logging.getLogger(__name__)

HEADER_LINES = 2
FOOTER_LINES = 2

HELP = (
    "n=url s=search b/f/r=back/fwd/reload k/j=next/prev link ENTER=open l=link#  "
    "t/w/TAB=tab h=history m=bookmarks o=settings q=quit"
)


# ========= TERMINAL =========
def read_key():
    fd = sys.stdin.fileno()
    old = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        ch = sys.stdin.read(1)

        # Arrow and paging keys start with ESC
        if ch == "\x1b":
            seq = sys.stdin.read(2)
            if seq == "[A":
                return "UP"
            if seq == "[B":
                return "DOWN"
            if seq == "[C":
                return "RIGHT"
            if seq == "[D":
                return "LEFT"
            if seq in ("[H", "OH"):
                return "HOME"
            if seq in ("[F", "OF"):
                return "END"
            if seq in ("[5", "[6"):
                sys.stdin.read(1)  # trailing ~
                return "PGUP" if seq == "[5" else "PGDN"
            return ch

        if ch == "\x7f":
            return "BACKSPACE"
        if ch in ("\r", "\n"):
            return "ENTER"
        if ch == "\t":
            return "TAB"
        if ch == "\x03":
            return "q"

        return ch
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old)


def clear_screen():
    sys.stdout.write("\033[H\033[2J")
    sys.stdout.flush()


def shorten_middle(text, max_len):
    if len(text) <= max_len:
        return text
    if max_len < 10:
        return text[:max_len]
    keep = (max_len - 3) // 2
    return text[:keep] + "..." + text[-keep:]


def prompt(label):
    sys.stdout.write(f"\r\033[2K{style.colored(label, 'cmd')}")
    sys.stdout.flush()
    try:
        return input().strip()
    except EOFError:
        return ""


class ViewState:
    def __init__(self):
        self.scroll = 0
        self.focus = -1


class Pager:
    def __init__(self, session):
        self.session = session
        self.views = {}
        self.hint = None

    # ========= GEOMETRY =========
    def size(self):
        cols, rows = shutil.get_terminal_size()
        width = self.session.settings.get("columns") or cols
        return min(width, cols), max(1, rows - HEADER_LINES - FOOTER_LINES)

    @property
    def view(self):
        tab = self.session.active_tab
        if tab not in self.views:
            self.views[tab] = ViewState()
        return self.views[tab]

    @property
    def document(self):
        tab = self.session.active_tab
        return tab.current_document if tab is not None else None

    def total_lines(self):
        if self.document is None:
            return 1
        return count_lines(self.document.text, self.size()[0])

    def scroll_by(self, amount):
        height = self.size()[1]
        limit = max_scroll(self.total_lines(), height)
        self.view.scroll = max(0, min(self.view.scroll + amount, limit))

    # ========= DRAWING =========
    def tab_bar(self):
        parts = []
        for i, tab in enumerate(self.session.tabs, 1):
            label = f" {i}:{shorten_middle(tab.title, 20)} "
            if i - 1 == self.session.active_index:
                label = style.styled(label, "inverse", "bold")
            parts.append(label)
        return "".join(parts)

    def draw(self):
        width, height = self.size()
        tab = self.session.active_tab
        clear_screen()

        title = tab.title if tab is not None else "New Tab"
        out = [style.styled(shorten_middle(f"tbrowser | {title}", width), "bold", color="title")]
        out.append(self.tab_bar())

        doc = self.document
        if doc is None:
            lines = [style.colored("[No page loaded]  n=open url  s=search", "dim")]
        else:
            text = highlight_link(doc.text, self.view.focus)
            lines = wrap_styled(text, width)
        visible = lines[self.view.scroll:self.view.scroll + height]
        out.extend(visible)
        out.extend([""] * (height - len(visible)))

        url = tab.current_url if tab is not None else ""
        if self.hint:
            status = style.styled(f" {self.hint} ", color="mark")
            self.hint = None
        else:
            total = len(lines)
            status = style.colored(
                f"{shorten_middle(url, width - 20)}  "
                f"[{min(self.view.scroll + height, total)}/{total}]",
                "dim",
            )
        out.append(status)
        out.append(style.colored(shorten_middle(HELP, width), "cmd"))

        # raw mode is off between keys, so plain newlines are fine
        sys.stdout.write("\n".join(out))
        sys.stdout.flush()

    # ========= NAVIGATION =========
    def show_result(self, result, hint):
        if result is None:
            self.hint = hint
            return
        width, height = self.size()
        view = self.view
        if not result.from_cache:
            view.scroll = 0
            view.focus = -1
        if result.fragment:
            view.scroll = scroll_to_fragment(
                result.fragment, result.document.text, width, height, view.scroll
            )

    def navigate(self, target, **options):
        self.show_result(*self.session.navigate(target, **options))

    def move_focus(self, forward):
        doc = self.document
        if doc is None or not doc.links:
            self.hint = "No links on this page"
            return
        view = self.view
        if forward:
            view.focus = focus_next_link(doc.links, view.focus)
        else:
            view.focus = focus_prev_link(doc.links, view.focus)
        width, height = self.size()
        text = highlight_link(doc.text, view.focus)
        view.scroll = scroll_to_link(view.focus, text, width, height, view.scroll)
        self.hint = f"{doc.links[view.focus].label} {doc.links[view.focus].url}"

    def follow_focused(self):
        doc = self.document
        if doc is None or not 0 <= self.view.focus < len(doc.links):
            self.hint = "No link selected"
            return
        self.navigate(doc.links[self.view.focus].url)

    def follow_number(self):
        doc = self.document
        raw = prompt("Link #> ")
        if doc is None or not raw.isdigit():
            return
        link = link_for_number(doc.links, int(raw))
        if link is None:
            self.hint = f"No link [{raw}]"
            return
        self.navigate(link.url)

    # ========= SCREENS =========
    def history_screen(self):
        tab = self.session.active_tab
        if tab is None or not tab.history:
            self.hint = "No history available"
            return
        clear_screen()
        print(style.styled("=== HISTORY ===", "bold", color="title") + "\n")
        for i, url in enumerate(tab.history, 1):
            marker = style.colored("→ ", "cmd") if i - 1 == tab.current_index else "  "
            print(f"{marker}{i}. {shorten_middle(url, shutil.get_terminal_size().columns - 8)}")
        print(style.colored("\nnumber=open  q=back", "cmd"))

        c = prompt("> ")
        if c.isdigit():
            self.navigate("", history_index=int(c) - 1)

    def bookmark_screen(self):
        store = self.session.bookmarks
        while True:
            clear_screen()
            print(style.styled("=== BOOKMARKS ===", "bold", color="title") + "\n")
            if not len(store):
                print("No bookmarks.")
            cols = shutil.get_terminal_size().columns
            for i, b in enumerate(store, 1):
                print(f"{i}. {b['title']}")
                print(style.colored(f"   {shorten_middle(b['url'], max(20, cols - 6))}", "dim"))
            print(style.colored("\nnumber=open  d#=delete  a=add current  q=back", "cmd"))

            c = prompt("> ").lower()
            if c in ("q", ""):
                return
            if c == "a":
                _, self.hint = self.session.add_bookmark()
                continue
            if c.startswith("d") and c[1:].isdigit():
                store.delete(int(c[1:]) - 1)
                continue
            if c.isdigit():
                i = int(c) - 1
                if 0 <= i < len(store):
                    self.navigate(store[i]["url"])
                    return

    def settings_screen(self):
        settings = self.session.settings
        while True:
            clear_screen()
            print(style.styled("=== SETTINGS ===", "bold", color="title") + "\n")
            keys = list(settings)
            for i, key in enumerate(keys, 1):
                print(f"{i}. {key}: {settings[key]}")
            print(style.colored("\nnumber=edit  q=back", "cmd"))

            c = prompt("> ").lower()
            if c in ("q", ""):
                return
            if not c.isdigit() or not 1 <= int(c) <= len(keys):
                continue
            key = keys[int(c) - 1]
            value = self.ask_setting(key, settings[key])
            if value is None:
                continue

            updated = dict(settings, **{key: value})
            try:
                updated = save_config(updated)
            except (SettingsError, OSError) as e:
                logger.error("Failed to save settings: %s", e)
                print(style.colored(str(e), "err"))
                input("Enter…")
                continue
            settings.update(updated)
            if key == "color_theme":
                style.apply_color_theme(settings["color_theme"])

    def ask_setting(self, key, current):
        if key == "search_engine":
            return self.choose("Search engine", SEARCH_ENGINES)
        if key == "user_agent":
            return self.choose("User agent", USER_AGENTS)
        if key == "color_theme":
            return self.choose("Color theme", {t: t for t in COLOR_THEMES})
        if key == "render_images":
            return not current
        low, high = NUMBER_RANGES[key]
        val = prompt(f"{key} ({low}–{high}): ")
        return val if val else None

    def choose(self, title, options):
        clear_screen()
        print(style.styled(f"=== {title.upper()} ===", "bold", color="title") + "\n")
        names = list(options)
        for i, name in enumerate(names, 1):
            print(f"{i}. {name}")
        print(f"{len(names) + 1}. Custom")
        s = prompt("> ")
        if not s.isdigit():
            return None
        i = int(s) - 1
        if 0 <= i < len(names):
            return options[names[i]]
        if i == len(names):
            return prompt("Value: ") or None
        return None

    # ========= MAIN LOOP =========
    def handle(self, key):
        """Act on one key.  Returns False to quit."""
        height = self.size()[1]
        session = self.session

        if key == "q":
            return False
        if key == "n":
            target = prompt("URL> ")
            if target:
                self.navigate(target)
        elif key == "s":
            query = prompt("Search> ")
            if query:
                self.show_result(*session.search(query))
        elif key == "b":
            self.navigate(BACK)
        elif key == "f":
            self.navigate(FORWARD)
        elif key == "r":
            self.navigate(RELOAD)
        elif key in ("k", "RIGHT"):
            self.move_focus(True)
        elif key in ("j", "LEFT"):
            self.move_focus(False)
        elif key == "ENTER":
            self.follow_focused()
        elif key in ("l", "#"):
            self.follow_number()
        elif key == "UP":
            self.scroll_by(-1)
        elif key == "DOWN":
            self.scroll_by(1)
        elif key in (" ", "PGDN"):
            self.scroll_by(height)
        elif key == "PGUP":
            self.scroll_by(-height)
        elif key == "d":
            self.scroll_by(height // 2)
        elif key == "u":
            self.scroll_by(-(height // 2))
        elif key in ("g", "HOME"):
            self.view.scroll = 0
        elif key in ("G", "END"):
            self.view.scroll = max_scroll(self.total_lines(), height)
        elif key == "t":
            url = prompt("New tab URL (empty=home)> ")
            _, self.hint = session.new_tab(url or None)
        elif key == "w":
            _, self.hint = session.close_tab()
        elif key == "TAB":
            session.next_tab()
        elif key.isdigit() and key != "0":
            session.switch_tab(int(key) - 1)
        elif key == "h":
            self.history_screen()
        elif key == "m":
            self.bookmark_screen()
        elif key == "o":
            self.settings_screen()
        return True

    def run(self):
        try:
            while True:
                self.draw()
                if not self.handle(read_key()):
                    break
        finally:
            clear_screen()
            logger.info("Pager closed")


def interactive():
    return sys.stdin.isatty() and sys.stdout.isatty() and os.name == "posix"
