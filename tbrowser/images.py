import logging
from io import BytesIO
from dataclasses import replace
from concurrent.futures import ThreadPoolExecutor

from PIL import Image

from .config import DEFAULT_CONFIG
from .document import index_fragments
from .fetch import fetch_bytes as fetch_url_bytes
from .style import PLACEHOLDER, colored

logger = logging.getLogger(__name__)

MAX_WORKERS = 4


def render_image_halfblocks(img, max_width):
    """Two pixel rows per text row: fg colours the upper half block, bg the lower."""
    img = img.convert("RGB")
    new_width = max(1, min(max_width, img.width))
    new_height = max(1, int((img.height / img.width) * new_width * 0.5))
    img = img.resize((new_width, new_height * 2))

    pixels = img.load()
    lines = []

    for y in range(0, img.height, 2):
        line = ""
        for x in range(img.width):
            top = pixels[x, y]
            bottom = pixels[x, y + 1] if y + 1 < img.height else top
            line += (
                f"\033[38;2;{top[0]};{top[1]};{top[2]}m"
                f"\033[48;2;{bottom[0]};{bottom[1]};{bottom[2]}m▀"
            )
        line += "\033[39;49m"
        lines.append(line)

    return lines


def image_fallback(unit):
    return colored(f"[Image: {unit.alt}]", "dim")


def render_unit(unit, fetch_bytes):
    data = fetch_bytes(unit.src)
    img = Image.open(BytesIO(data))
    art = "\n".join(render_image_halfblocks(img, unit.width))
    return f"{art}\n{image_fallback(unit)}"


def _safe_render(unit, fetch_bytes):
    try:
        return render_unit(unit, fetch_bytes)
    except Exception as e:
        logger.error("Failed to render image %s: %s", unit.src, e)
        return image_fallback(unit)


def resolve_deferred(document, fetch_bytes=None, settings=None):
    """Run the document's deferred image units and splice their output in.

    Units run concurrently; a failing unit falls back to its alt text and
    never fails the document.  Returns a new RenderedDocument.
    """
    if not document.deferred:
        return document

    if fetch_bytes is None:
        cfg = dict(DEFAULT_CONFIG)
        cfg.update(settings or {})

        def fetch_bytes(url):
            return fetch_url_bytes(url, cfg["user_agent"], cfg["timeout"] / 1000.0)

    workers = min(MAX_WORKERS, len(document.deferred))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(lambda u: _safe_render(u, fetch_bytes), document.deferred))

    text = document.text
    for unit, output in zip(document.deferred, results):
        text = text.replace(f"{PLACEHOLDER}{unit.index}{PLACEHOLDER}", output, 1)

    logger.debug("Resolved %d deferred images for %s", len(results), document.url)
    return replace(
        document,
        text=text,
        fragment_markers=index_fragments(text),
        deferred=(),
    )
