# commitsum/constants.py

"""Fixed values for commitsum: app identity and paths, gh fetch limits, cache TTLs,
date presets, and the icons and messages shown by the terminal UI."""

APP_NAME = "commitsum"
APP_AUTHOR = "commitsum"
APP_VERSION = "1.0.0"

# --- File System Constants ---
OUTPUT_ROOT_DIR = "commit-summaries"
CONFIG_FILE_NAME = "config.json"
CACHE_DIR_NAME = "cache"
LOG_FILE_TEMPLATE = "commitsum-{date}.log"

# --- Retrieval Limits ---
MAX_COMMITS_TO_FETCH = 1000  # gh search caps results, we ask for the maximum
GH_TIMEOUT_SECONDS = 20
TRUNCATION_WARNING = (
    "Results capped at {limit} commits by GitHub; summary may be incomplete."
)

# --- Cache TTLs (seconds) ---
TODAY_CACHE_TTL = 5 * 60
HISTORY_CACHE_TTL = 60 * 60

# --- Date Presets (key, label) ---
PRESET_TODAY = "today"
PRESET_YESTERDAY = "yesterday"
PRESET_WEEK = "week"
PRESET_MONTH = "month"
PRESET_CUSTOM = "custom"

DATE_RANGE_PRESETS = [
    (PRESET_TODAY, "Today"),
    (PRESET_YESTERDAY, "Yesterday"),
    (PRESET_WEEK, "Last 7 days"),
    (PRESET_MONTH, "Last 30 days"),
    (PRESET_CUSTOM, "Custom date"),
]

DATE_FORMAT = "%Y-%m-%d"
DATE_RANGE_SEPARATOR = ".."

# --- Text Input Limits ---
DATE_INPUT_MAX_LENGTH = 22  # YYYY-MM-DD..YYYY-MM-DD
FILTER_INPUT_MAX_LENGTH = 50

# --- UI Icons ---
ICON_CURSOR = "➜ "
ICON_CHECKED = "◉"
ICON_UNCHECKED = "○"
ICON_COMMIT = "•"
ICON_SUCCESS = "✔"
ICON_WARNING = "⚠"
ICON_ERROR = "✖"
ICON_BREADCRUMB = " › "
SPINNER_FRAMES = "⣾⣽⣻⢿⡿⣟⣯⣷"

# --- UI Messages ---
MSG_COPIED = "Copied to clipboard!"
MSG_NO_SELECTION = "No repositories selected."
