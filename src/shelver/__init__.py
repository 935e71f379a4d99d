# ABOUTME: Shelver - matching and deduplication engine for free-form book mentions.
# ABOUTME: Extracted candidates are checked against the catalog and a per-user confirmation queue.

__version__ = "0.1.0"
