"""Static configuration for a11yscope.

All user-editable settings (results directory, reference data, priority and
history limits, logging) live in a single JSON file for quick edits without
touching Python. Environment variables (optionally from a .env file) can
point at a different config file or results directory.
"""

import json
import os

from dotenv import load_dotenv

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

# config.json sits at the project root unless A11YSCOPE_CONFIG points elsewhere.
CONFIG_PATH = os.getenv("A11YSCOPE_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _resolve(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


def _load_json_config() -> dict:
    """Load config.json; a missing file means "use the defaults"."""

    if not os.path.exists(CONFIG_PATH):
        return {}

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def load_reference_data(path: str) -> dict:
    """Load an optional JSON mapping (friendly rule names, WCAG tag links).

    A missing file yields an empty mapping. A file that exists but cannot be
    parsed is a configuration error and is raised to the caller.
    """

    resolved = _resolve(path)
    if not os.path.exists(resolved):
        return {}
    with open(resolved, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"Reference data must be a JSON object: {resolved}")
    return data


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Snapshots and history files are read from and written to this directory.
RESULTS_DIR = _resolve(os.getenv("A11YSCOPE_RESULTS_DIR") or _CONFIG.get("results_dir", "results"))

# Reference data used to enrich rules for display.
FRIENDLY_NAMES_PATH = _CONFIG.get("friendly_names_path", "data/friendly-rule-names.json")
WCAG_TAGS_PATH = _CONFIG.get("wcag_tags_path", "data/wcag-tags.json")

# Priority ranking:
# - PRIORITY_TOP_N: how many rules the "fix first" list holds
# - PRIORITY_MIN_RULES: smaller audits skip the priority section on output
_priority = _CONFIG.get("priority", {})
PRIORITY_TOP_N = int(_priority.get("top_n", 5))
PRIORITY_MIN_RULES = int(_priority.get("min_rules", 5))

# Trend history keeps only the most recent runs.
_history = _CONFIG.get("history", {})
HISTORY_LIMIT = int(_history.get("limit", 10))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
