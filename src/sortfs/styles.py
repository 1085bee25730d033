"""LS_COLORS style table used when colorizing output."""

import logging
from typing import Dict, List, Optional, Tuple

from .models import FileType

logger = logging.getLogger(__name__)

RESET = "\x1b[0m"

# LS_COLORS keys for entry types we can tell apart
TYPE_KEYS = {
    FileType.DIRECTORY: "di",
    FileType.SYMLINK: "ln",
    FileType.FILE: "fi",
    FileType.OTHER: "no",
    FileType.UNKNOWN: "no",
}


class StyleTable:
    """Maps a path component to an SGR style from an LS_COLORS string."""
    
    def __init__(self, types: Optional[Dict[str, str]] = None, suffixes: Optional[List[Tuple[str, str]]] = None):
        self.types: Dict[str, str] = dict(types or {})
        # Longest suffix first so "*.tar.gz" beats "*.gz"
        self.suffixes = sorted(suffixes or [], key=lambda item: len(item[0]), reverse=True)
    
    @classmethod
    def parse(cls, value: Optional[str]) -> "StyleTable":
        """Parse ``di=01;34:*.py=32:...``; malformed items are skipped."""
        types: Dict[str, str] = {}
        suffixes: List[Tuple[str, str]] = []
        for item in (value or "").split(":"):
            if not item:
                continue
            key, sep, value = item.partition("=")
            if not sep or not key or not value:
                logger.debug(f"Ignoring malformed LS_COLORS item {item!r}")
                continue
            if key.startswith("*"):
                suffixes.append((key[1:], value))
            else:
                types[key] = value
        return cls(types, suffixes)
    
    @classmethod
    def from_environment(cls, value: Optional[str]) -> "StyleTable":
        return cls.parse(value)
    
    def __bool__(self) -> bool:
        return bool(self.types or self.suffixes)
    
    def style_for(self, name: str, file_type: FileType) -> Optional[str]:
        """SGR parameters for ``name``, or None when it stays unstyled."""
        if file_type not in (FileType.DIRECTORY, FileType.SYMLINK):
            lowered = name.lower()
            for suffix, style in self.suffixes:
                if lowered.endswith(suffix.lower()):
                    return style
        style = self.types.get(TYPE_KEYS[file_type])
        if not style or style == "target":
            return None
        return style
    
    def paint(self, text: str, file_type: FileType) -> str:
        style = self.style_for(text, file_type)
        if not style:
            return text
        return f"\x1b[{style}m{text}{RESET}"
