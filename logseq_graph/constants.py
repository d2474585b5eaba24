"""Module-level constants for the Logseq graph MCP server."""

import os
from pathlib import Path

# Configuration
CONFIG_PATH = Path(os.environ.get("LOGSEQ_GRAPHS_CONFIG", Path(__file__).parent.parent / "graphs.yaml"))
GRAPH_PATH_ENV = "LOGSEQ_GRAPH_PATH"

# Discovery candidates when no configuration is present
DISCOVERY_CANDIDATES = (
    Path.home() / "Documents" / "logseq",
    Path.home() / "logseq",
    Path.home() / "Logseq",
    Path.home() / "Documents" / "Logseq",
)

# Graph layout
PAGES_DIR = "pages"
JOURNALS_DIR = "journals"
CONFIG_EDN = Path("logseq") / "config.edn"

# Settings writable through update_graph_config, by config.edn keyword
CONFIG_EDN_KEYS = {
    "preferred_format": ":preferred-format",
    "journal_page_title_format": ":journal/page-title-format",
    "start_of_week": ":start-of-week",
    "enable_journals": ":feature/enable-journals?",
}
NOTE_EXTENSIONS = (".md", ".org")
JOURNAL_FILE_FORMAT = "%Y_%m_%d"

# Outline vocabulary
TASK_STATES = ("TODO", "DOING", "DONE", "LATER", "NOW", "WAITING", "IN-PROGRESS")
PRIORITIES = ("A", "B", "C")
BULLETS = ("-", "*", "+")
INDENT_WIDTH = 2

# Limits
PREVIEW_LINES = 10
UNDERDEVELOPED_CHARS = 100

# Logging
LOG_LEVEL = "INFO"
