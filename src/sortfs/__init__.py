"""
sortfs - list a directory tree ordered by recency.

Walks a tree concurrently, honors gitignore-style rules and prints entries
newest first.
"""

__version__ = "0.1.0"

from .listing import Lister
from .models import Entry, FileType, SortAttribute, TimestampedEntry, WalkConfig

__all__ = ["Lister", "Entry", "FileType", "SortAttribute", "TimestampedEntry", "WalkConfig", "__version__"]
