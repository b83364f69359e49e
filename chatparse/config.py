from . import __version__

# key: 'Variable name in logic', label: 'Shown by :config', type: 'data type', default: 'value'
DEFAULT_CONFIG = [
    {"key": "fetch_timeout", "label": "Fetch Timeout (seconds)", "type": float, "default": 5.0},
    {"key": "read_chunk_size", "label": "Read Chunk Size (bytes)", "type": int, "default": 8192},
    {"key": "user_agent", "label": "User-Agent Header", "type": str, "default": f"chatparse/{__version__}"},
    {"key": "max_stats", "label": "Stats Entries Shown", "type": int, "default": 5},
]

#'category': 'data type'
RESULT_TEMPLATE = {
    "mentions": [],
    "emotions": [],
    "links": [],
}

# Keep sorted, lookups are binary searches
EMOTIONS = [
    "atlassian",
    "bitbucket",
    "boom",
    "crucible",
    "fry",
    "ghost",
    "heart",
]


def default_config():
    return {field["key"]: field["default"] for field in DEFAULT_CONFIG}


def load_config(db=None):
    """Typed settings dict, stored values (if a ParserDB is given) over defaults."""
    if db is None:
        return default_config()

    stored = db.get_all_config()
    config = {}
    # Falls back to the default when a stored value has the wrong type
    for field in DEFAULT_CONFIG:
        key = field["key"]
        try:
            config[key] = field["type"](stored[key])
        except (TypeError, ValueError):
            config[key] = field["default"]
    return config
