"""Concurrent directory traversal for sortfs."""

import logging
import os
import stat
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Iterable, List, Optional, Set, Tuple

from .ignore import IgnoreEngine, IgnoreRuleSet
from .metadata import MetadataResolver
from .models import Entry, FileType, TimestampedEntry, WalkConfig
from .predicate import EntryPredicate

logger = logging.getLogger(__name__)

# A directory still to read, with the rules in effect for its children
Pending = Tuple[Entry, IgnoreRuleSet]


class ResultCollector:
    """Append-only buffer shared by walker threads."""
    
    def __init__(self):
        self._lock = threading.Lock()
        self._items: List[TimestampedEntry] = []
    
    def extend(self, items: Iterable[TimestampedEntry]):
        items = list(items)
        if not items:
            return
        with self._lock:
            self._items.extend(items)
    
    def drain(self) -> List[TimestampedEntry]:
        """Take everything collected so far."""
        with self._lock:
            items, self._items = self._items, []
        return items
    
    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class ConcurrentWalker:
    """Walks a tree with a bounded thread pool.
    
    Each task reads one directory, decides which children to emit and which
    to descend into, resolves timestamps for the emitted ones and pushes them
    into the collector in one batch. The calling thread only schedules: it
    submits subdirectories as tasks complete and returns once none remain.
    Unreadable directories are skipped.
    """
    
    def __init__(
        self,
        config: WalkConfig,
        predicate: EntryPredicate,
        engine: IgnoreEngine,
        resolver: MetadataResolver,
        collector: Optional[ResultCollector] = None,
    ):
        self.config = config
        self.predicate = predicate
        self.engine = engine
        self.resolver = resolver
        self.collector = collector if collector is not None else ResultCollector()
    
    def _root_entry(self) -> Optional[Entry]:
        try:
            mode = os.stat(self.config.root).st_mode
        except OSError as e:
            logger.debug(f"Cannot stat root {self.config.root}: {e}")
            return None
        
        if stat.S_ISDIR(mode):
            file_type = FileType.DIRECTORY
        elif stat.S_ISREG(mode):
            file_type = FileType.FILE
        else:
            file_type = FileType.OTHER
        return Entry(path=self.config.root, file_type=file_type, depth=0, relative_path="")
    
    def _file_type(self, dirent: os.DirEntry) -> FileType:
        try:
            if dirent.is_symlink():
                if not self.config.follow_symlinks:
                    return FileType.SYMLINK
                if dirent.is_dir():
                    return FileType.DIRECTORY
                if dirent.is_file():
                    return FileType.FILE
                # Dangling, or pointing at something special
                return FileType.SYMLINK
            if dirent.is_dir(follow_symlinks=False):
                return FileType.DIRECTORY
            if dirent.is_file(follow_symlinks=False):
                return FileType.FILE
            return FileType.OTHER
        except OSError as e:
            logger.debug(f"Cannot determine type of {dirent.path}: {e}")
            return FileType.UNKNOWN
    
    def _scan(self, directory: Entry, rules: IgnoreRuleSet) -> List[Pending]:
        """Read one directory; returns the subdirectories to visit next."""
        try:
            with os.scandir(directory.path) as it:
                dirents = list(it)
        except OSError as e:
            logger.debug(f"Skipping unreadable directory {directory.path}: {e}")
            return []
        
        child_rules = self.engine.descend(rules, directory, (d.name for d in dirents))
        depth = directory.depth + 1
        prefix = directory.relative_path + "/" if directory.relative_path else ""
        
        accepted: List[TimestampedEntry] = []
        subdirectories: List[Pending] = []
        for dirent in dirents:
            entry = Entry(
                path=os.path.join(directory.path, dirent.name),
                file_type=self._file_type(dirent),
                depth=depth,
                relative_path=prefix + dirent.name,
            )
            if self.predicate.accept(entry, child_rules):
                accepted.append(self.resolver.timestamped(entry))
            if self.predicate.should_descend(entry, child_rules):
                subdirectories.append((entry, child_rules))
        
        self.collector.extend(accepted)
        return subdirectories
    
    def walk(self) -> List[TimestampedEntry]:
        """Traverse the whole tree; the result is in no particular order."""
        root = self._root_entry()
        if root is None:
            return self.collector.drain()
        
        rules = self.engine.root_rules()
        if self.predicate.accept(root, rules):
            self.collector.extend([self.resolver.timestamped(root)])
        if not self.predicate.should_descend(root, rules):
            return self.collector.drain()
        
        logger.debug(f"Walking {root.path} with {self.config.worker_count} worker(s)")
        with ThreadPoolExecutor(
            max_workers=self.config.worker_count,
            thread_name_prefix="sortfs-walk",
        ) as executor:
            pending: Set[Future] = {executor.submit(self._scan, root, rules)}
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    for directory, directory_rules in future.result():
                        pending.add(executor.submit(self._scan, directory, directory_rules))
        
        return self.collector.drain()
