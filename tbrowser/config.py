import os
import json
import logging
from urllib.parse import urlparse

from .errors import SettingsError

logger = logging.getLogger(__name__)


# ========= PATHS =========
def config_dir():
    base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(
        os.path.expanduser("~"), ".config"
    )
    return os.path.join(base, "tbrowser")


def config_path():
    return os.path.join(config_dir(), "config.json")


# ========= PRESETS =========
SEARCH_ENGINES = {
    "Searx": "https://searx.be/search?q={query}&format=html",
    "Brave": "https://search.brave.com/search?q={query}&source=web",
    "DuckDuckGo Lite": "https://lite.duckduckgo.com/lite/?q={query}",
    "DuckDuckGo HTML": "https://duckduckgo.com/html/?q={query}",
    "StartPage": "https://www.startpage.com/do/search?q={query}",
}

USER_AGENTS = {
    "tbrowser Default": "Mozilla/5.0 (compatible; tbrowser/1.0)",
    "Desktop Firefox": "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:120.0) Gecko/20100101 Firefox/120.0",
    "Desktop Chrome": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mobile Chrome": "Mozilla/5.0 (Linux; Android 10; SM-G981B) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36",
}

COLOR_THEMES = ("default", "night")

# ========= PERSISTENT CONFIG =========
DEFAULT_CONFIG = {
    "search_engine": SEARCH_ENGINES["Searx"],
    "max_depth": 30,
    "max_nodes": 10000,
    "timeout": 10000,
    "render_timeout": 5000,
    "user_agent": USER_AGENTS["tbrowser Default"],
    "color_theme": "default",
    "render_images": False,
    "image_width": 40,
    "columns": 0,
}

# key -> (min, max) for the integer settings
NUMBER_RANGES = {
    "max_depth": (1, 100),
    "max_nodes": (10, 100000),
    "timeout": (1000, 30000),
    "render_timeout": (100, 60000),
    "image_width": (10, 200),
    "columns": (0, 500),
}


def load_config(path=None):
    path = path or config_path()
    if not os.path.exists(path):
        logger.debug("No settings file at %s, using defaults", path)
        return DEFAULT_CONFIG.copy()

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error("Failed to load settings from %s: %s", path, e)
        return DEFAULT_CONFIG.copy()

    if not isinstance(data, dict):
        logger.error("Settings file %s is not an object, using defaults", path)
        return DEFAULT_CONFIG.copy()

    cfg = DEFAULT_CONFIG.copy()
    for k in DEFAULT_CONFIG:
        if k in data:
            cfg[k] = data[k]

    try:
        return validate_config(cfg)
    except SettingsError as e:
        logger.error("Invalid settings in %s (%s), using defaults", path, e)
        return DEFAULT_CONFIG.copy()


def save_config(cfg, path=None):
    cfg = validate_config(cfg)
    path = path or config_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as f:
        json.dump(cfg, f, indent=2)
    logger.info("Settings saved to %s", path)
    return cfg


# ========= VALIDATION =========
def validate_number(value, low, high, name):
    if isinstance(value, bool):
        raise SettingsError(f"{name} must be a number")
    try:
        num = int(value)
    except (TypeError, ValueError):
        raise SettingsError(f"{name} must be a number")
    if num < low or num > high:
        raise SettingsError(f"{name} must be between {low} and {high}")
    return num


def validate_string(value, name, max_length=500):
    if not isinstance(value, str) or not value.strip():
        raise SettingsError(f"{name} cannot be empty")
    if len(value) > max_length:
        raise SettingsError(f"{name} too long (max {max_length} chars)")
    return value.strip()


def validate_search_template(value, name="Search engine"):
    url = validate_string(value, name)
    if "{query}" not in url:
        raise SettingsError(f"{name} must contain {{query}} placeholder")
    p = urlparse(url.replace("{query}", "test"))
    if p.scheme not in ("http", "https") or not p.netloc:
        raise SettingsError(f"{name} must be a valid URL")
    return url


def validate_config(cfg):
    """Return a checked copy of ``cfg``; raises SettingsError on the first bad value."""
    out = DEFAULT_CONFIG.copy()
    out.update(cfg)

    for key, (low, high) in NUMBER_RANGES.items():
        out[key] = validate_number(out[key], low, high, key)

    out["search_engine"] = validate_search_template(out["search_engine"])
    out["user_agent"] = validate_string(out["user_agent"], "User agent", 200)

    if out["color_theme"] not in COLOR_THEMES:
        raise SettingsError(f"Unknown color theme: {out['color_theme']}")
    if not isinstance(out["render_images"], bool):
        raise SettingsError("render_images must be true or false")

    return {k: out[k] for k in DEFAULT_CONFIG}
