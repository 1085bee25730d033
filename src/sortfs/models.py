"""Data models for sortfs."""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class FileType(Enum):
    """Resolved type of a walked filesystem object."""
    
    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"
    UNKNOWN = "unknown"


class SortAttribute(str, Enum):
    """Timestamp used to order the listing."""
    
    MODIFIED = "modified"
    CREATED = "created"


@dataclass(frozen=True)
class Entry:
    """A single accepted filesystem object."""
    
    path: str
    file_type: FileType
    depth: int
    relative_path: str = ""
    
    @property
    def is_dir(self) -> bool:
        return self.file_type is FileType.DIRECTORY
    
    @property
    def name(self) -> str:
        return os.path.basename(self.path.rstrip(os.sep)) or self.path


@dataclass(frozen=True)
class TimestampedEntry:
    """An entry paired with the timestamp it is sorted by."""
    
    entry: Entry
    timestamp: int
    fallback: bool = False
    
    @property
    def path(self) -> str:
        return self.entry.path


@dataclass(frozen=True)
class WalkConfig:
    """Per-run traversal settings."""
    
    root: str
    dirs_only: bool = False
    max_depth: Optional[int] = None
    hidden_visible: bool = True
    follow_symlinks: bool = False
    literal_prefix_filter: Optional[str] = None
    worker_count: int = 1
    respect_ignore_files: bool = True
    custom_ignore_filename: str = ".sortfsignore"
    overrides: List[str] = field(default_factory=list)
    extra_ignore_files: List[str] = field(default_factory=list)
    symlink_depth_limit: int = 40
    
    @property
    def descent_limit(self) -> Optional[int]:
        """Depth below which directories are no longer read."""
        if self.max_depth is not None:
            return self.max_depth
        if self.follow_symlinks:
            return self.symlink_depth_limit
        return None
    
    @property
    def required_prefix(self) -> Optional[str]:
        """Full textual prefix required in completion mode, if active."""
        if not self.literal_prefix_filter:
            return None
        return os.path.join(self.root, self.literal_prefix_filter)
