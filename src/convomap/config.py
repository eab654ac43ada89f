"""Central configuration for paths and constants."""

import os
from pathlib import Path

# Data directory — override with CONVOMAP_DATA_DIR env var
DATA_DIR = Path(os.environ.get("CONVOMAP_DATA_DIR", str(Path.home() / ".convomap")))

# Database paths
SQLITE_PATH = DATA_DIR / "conversations.db"

# Accepted upload extensions (JSON is detected by content, not extension)
SUPPORTED_EXTENSIONS = (".json", ".html", ".htm", ".md", ".markdown", ".txt")

# Topic labeling
TOPIC_MODEL = os.environ.get("CONVOMAP_TOPIC_MODEL", "gpt-4o-mini")
TOPIC_BATCH_SIZE = 10  # Concurrent label requests per batch
TOPIC_MAX_ATTEMPTS = 3  # Attempts per message before giving up
TOPIC_MAX_CONTENT_CHARS = 500  # Message prefix sent to the model
TOPIC_MAX_UNITS_PER_RUN = 100
TOPIC_MAX_TOKENS = 20
TOPIC_TEMPERATURE = 0.3
SENTINEL_TOPIC = "[Topic unavailable]"
