"""Turning sorted entries into output lines."""

import os
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from .models import Entry, FileType, TimestampedEntry
from .styles import StyleTable


@dataclass(frozen=True)
class RenderOptions:
    """How paths are printed.
    
    ``root`` is the path the walk started from, ``target`` the directory
    string exactly as the user typed it.
    """
    
    root: str
    target: str
    full_path: bool = False
    prefix_target: bool = False
    color: bool = False


class Renderer:
    """Maps entries to lines; the root itself is never printed."""
    
    def __init__(self, options: RenderOptions, styles: Optional[StyleTable] = None):
        self.options = options
        self.styles = styles if styles is not None else StyleTable()
        self.leading = options.root.rstrip(os.sep)
    
    def _colorize(self, text: str, file_type: FileType) -> str:
        components = text.split(os.sep)
        last = len(components) - 1
        painted = []
        for index, component in enumerate(components):
            if not component:
                painted.append(component)
                continue
            kind = file_type if index == last else FileType.DIRECTORY
            painted.append(self.styles.paint(component, kind))
        return os.sep.join(painted)
    
    def render(self, entry: Entry) -> Optional[str]:
        """Output line for ``entry``, or None if it is suppressed."""
        if entry.depth == 0 or len(entry.path) <= len(self.leading):
            return None
        
        relative = entry.path[len(self.leading) + 1:]
        if self.options.full_path:
            text = entry.path
        elif self.options.prefix_target:
            text = os.path.join(self.options.target, relative)
        else:
            text = relative
        
        if self.options.color:
            rendered = self._colorize(text, entry.file_type)
        else:
            rendered = text
        
        if entry.is_dir and text != os.sep:
            rendered += "/"
        return rendered
    
    def lines(self, items: Iterable[TimestampedEntry]) -> Iterator[str]:
        """Rendered lines for ``items``, skipping suppressed entries."""
        for item in items:
            line = self.render(item.entry)
            if line is not None:
                yield line
