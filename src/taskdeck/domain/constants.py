"""Centralized constants for taskdeck.

Scheduling offsets and storage details live here so every layer
imports from a single source of truth.
"""

# ---------- Time ----------
SECONDS_PER_DAY = 86400

# ---------- Scheduling ----------
SOON_INTERVAL_DAYS = 1
LATER_INTERVAL_DAYS = 7

# ---------- Anki storage ----------
COLLECTION_FILENAME = "collection.anki2"
DEFAULT_NOTETYPE_NAME = "Basic"

# ---------- Server ----------
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8787
SHUTDOWN_DELAY = 0.5  # seconds
