"""The sortfs pipeline: walk, timestamp, sort, render."""

import logging
from typing import List, Optional

from .config import Settings
from .ignore import IgnoreEngine
from .metadata import MetadataResolver
from .models import SortAttribute, TimestampedEntry, WalkConfig
from .predicate import EntryPredicate
from .sorter import sort_entries
from .walker import ConcurrentWalker

logger = logging.getLogger(__name__)


class Lister:
    """Builds the recency-ordered listing for one walk root."""
    
    def __init__(
        self,
        config: WalkConfig,
        settings: Optional[Settings] = None,
        sort_by: SortAttribute = SortAttribute.MODIFIED,
    ):
        self.config = config
        self.settings = settings or Settings()
        self.sort_by = sort_by
        # Override and startup ignore-file errors surface here, before any traversal
        self.engine = IgnoreEngine(config, self.settings)
        self.predicate = EntryPredicate(config, self.engine)
        self.resolver = MetadataResolver(
            sort_by,
            fallback=self.settings.fallback,
            follow_symlinks=config.follow_symlinks,
        )
    
    def scan(self) -> List[TimestampedEntry]:
        """Walk the tree and return entries, newest first."""
        walker = ConcurrentWalker(self.config, self.predicate, self.engine, self.resolver)
        items = walker.walk()
        logger.debug(f"Collected {len(items)} entries under {self.config.root}")
        if items and all(item.fallback for item in items):
            logger.warning(
                f"No {self.sort_by.value} timestamp could be read for any entry; "
                f"all entries use the {self.settings.fallback!r} fallback"
            )
        return sort_entries(items)
