"""
flowpro/core/paths.py: Centralized Path Configuration

Single source of truth for the directories the document pipeline touches.
Every module imports from here instead of computing its own OUTPUT_DIR.
"""

import os
import logging

log = logging.getLogger("flowpro.paths")

# ── Project Root ──────────────────────────────────────────────────────────────
_THIS_FILE = os.path.abspath(__file__)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(_THIS_FILE)))


def _resolve_dir(env_name: str, default: str) -> str:
    """Env override wins; otherwise the project-relative default."""
    env_dir = os.environ.get(env_name, "").strip()
    if env_dir:
        return os.path.abspath(os.path.expanduser(env_dir))
    return default


# ── Core Directories ─────────────────────────────────────────────────────────
DATA_DIR = _resolve_dir("FLOWPRO_DATA_DIR", os.path.join(PROJECT_ROOT, "data"))
OUTPUT_DIR = _resolve_dir("FLOWPRO_OUTPUT_DIR", os.path.join(PROJECT_ROOT, "output"))
LOG_DIR = os.path.join(DATA_DIR, "logs")

# ── Key File Paths ───────────────────────────────────────────────────────────
CONFIG_PATH = os.environ.get("FLOWPRO_CONFIG",
                             os.path.join(PROJECT_ROOT, "flowpro_config.json"))


def ensure_dirs():
    """Create data/output dirs if missing. Called by the app factory."""
    for d in (DATA_DIR, OUTPUT_DIR):
        os.makedirs(d, exist_ok=True)


def validate_paths() -> dict:
    """Runtime validation. Call at app startup to catch path issues early.

    Returns:
        {"ok": bool, "errors": [str], "warnings": [str], "resolved": {name: path}}
    """
    result = {"ok": True, "errors": [], "warnings": [], "resolved": {}}

    checks = {
        "PROJECT_ROOT": (PROJECT_ROOT, True),
        "DATA_DIR": (DATA_DIR, True),
        "OUTPUT_DIR": (OUTPUT_DIR, True),
        "CONFIG_PATH": (CONFIG_PATH, False),
    }

    for name, (path, required) in checks.items():
        result["resolved"][name] = path
        if not os.path.exists(path):
            if required:
                result["errors"].append(f"{name} not found: {path}")
                result["ok"] = False
            else:
                result["warnings"].append(f"{name} not found: {path}")

    # Generated documents land here, so it has to be writable
    test_file = os.path.join(OUTPUT_DIR, ".write_test")
    try:
        with open(test_file, "w") as f:
            f.write("ok")
        os.remove(test_file)
    except OSError as e:
        result["errors"].append(f"OUTPUT_DIR not writable: {e}")
        result["ok"] = False

    return result
