"""
FlowPro configuration.

Priority: environment variables → JSON config file → built-in defaults.
The JSON file is optional; a missing or unreadable file only logs a warning.
"""

import os
import json
import copy
import logging

from . import paths

log = logging.getLogger("flowpro.config")

DEFAULTS = {
    "brand": {
        "name": "FLOWPRO",
        "tagline": "Field Service Management",
        "footer": "Generated via FlowPro Systems. Valid for 30 days from date of issue.",
        "author": "FlowPro Systems",
    },
    "limits": {
        "max_line_items": 500,
        "max_notes_chars": 20_000,
        "max_template_bytes": 10 * 1024 * 1024,
    },
}

# env var → (section, key, cast)
_ENV_OVERRIDES = {
    "FLOWPRO_BRAND_NAME":         ("brand", "name", str),
    "FLOWPRO_BRAND_TAGLINE":      ("brand", "tagline", str),
    "FLOWPRO_FOOTER":             ("brand", "footer", str),
    "FLOWPRO_MAX_LINE_ITEMS":     ("limits", "max_line_items", int),
    "FLOWPRO_MAX_NOTES_CHARS":    ("limits", "max_notes_chars", int),
    "FLOWPRO_MAX_TEMPLATE_BYTES": ("limits", "max_template_bytes", int),
}


def _read_file(path: str) -> dict:
    try:
        with open(path) as f:
            raw = json.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, json.JSONDecodeError) as e:
        log.warning("Config file %s unreadable, using defaults: %s", path, e)
        return {}
    if not isinstance(raw, dict):
        log.warning("Config file %s is not a JSON object, ignoring", path)
        return {}
    return raw


def load_config(path: str = None) -> dict:
    """Build the effective config dict. Cheap enough to call per request."""
    cfg = copy.deepcopy(DEFAULTS)

    for section, values in _read_file(path or paths.CONFIG_PATH).items():
        if section in cfg and isinstance(values, dict):
            cfg[section].update({k: v for k, v in values.items() if k in cfg[section]})

    for env_name, (section, key, cast) in _ENV_OVERRIDES.items():
        val = os.environ.get(env_name)
        if val is None or val == "":
            continue
        try:
            cfg[section][key] = cast(val)
        except ValueError:
            log.warning("Ignoring %s=%r (expected %s)", env_name, val, cast.__name__)

    return cfg


def get_limits() -> dict:
    return load_config()["limits"]


def get_brand() -> dict:
    return load_config()["brand"]
