import sys
import argparse
import logging

from . import __version__
from .config import COLOR_THEMES, load_config
from .log import setup_logging
from .session import open_session
from .style import apply_color_theme, strip_ansi
from .ui import Pager, interactive

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="tbrowser",
        description="Text-mode web browser for the terminal.",
    )
    parser.add_argument("url", nargs="?", help="URL, host name or search words to open")
    parser.add_argument("--theme", choices=COLOR_THEMES, help="color theme for this run")
    images = parser.add_mutually_exclusive_group()
    images.add_argument("--images", dest="images", action="store_true", default=None,
                        help="render images as half-block art")
    images.add_argument("--no-images", dest="images", action="store_false",
                        help="show [Image: alt] instead of images")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--dump", action="store_true",
                        help="render the page to stdout and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def dump(session, out=None):
    """Print the active page and its link list; plain text unless ``out`` is a TTY."""
    out = out or sys.stdout
    tab = session.active_tab
    doc = tab.current_document if tab is not None else None
    if doc is None:
        return 1

    text = doc.display_text
    if not out.isatty():
        text = strip_ansi(text)
    out.write(text + "\n")
    if doc.links:
        out.write("\nLinks:\n")
        for link in doc.links:
            out.write(f"{link.label} {link.url}\n")
    return 0


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    settings = load_config()
    if args.theme:
        settings["color_theme"] = args.theme
    if args.images is not None:
        settings["render_images"] = args.images
    apply_color_theme(settings["color_theme"])

    session, hint = open_session(settings, args.url)

    if args.dump:
        if hint:
            sys.stderr.write(hint + "\n")
        return dump(session)

    if not interactive():
        sys.stderr.write("tbrowser needs an interactive terminal (try --dump)\n")
        return 2

    pager = Pager(session)
    pager.hint = hint
    try:
        pager.run()
    except KeyboardInterrupt:
        pass
    logger.info("Exiting")
    return 0
