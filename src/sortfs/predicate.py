"""Structural and ignore-based filtering of walked entries."""

import os

from .ignore import IgnoreEngine, IgnoreRuleSet
from .models import Entry, WalkConfig


class EntryPredicate:
    """Decides, per candidate, whether to emit it and whether to read it.
    
    Built once per run from the walk configuration and shared read-only by
    every worker.
    """
    
    def __init__(self, config: WalkConfig, engine: IgnoreEngine):
        self.engine = engine
        self.dirs_only = config.dirs_only
        self.max_depth = config.max_depth
        self.descent_limit = config.descent_limit
        self.required_prefix = config.required_prefix
    
    def _admitted(self, entry: Entry, rules: IgnoreRuleSet) -> bool:
        if self.max_depth is not None and entry.depth > self.max_depth:
            return False
        return not self.engine.should_exclude(entry, rules)
    
    def accept(self, entry: Entry, rules: IgnoreRuleSet) -> bool:
        """Whether ``entry`` belongs in the listing."""
        if self.dirs_only and not entry.is_dir:
            return False
        if self.required_prefix is not None:
            # The root is the already-typed part of a completion query
            if entry.depth == 0 or not entry.path.startswith(self.required_prefix):
                return False
        return self._admitted(entry, rules)
    
    def should_descend(self, entry: Entry, rules: IgnoreRuleSet) -> bool:
        """Whether the children of ``entry`` should be visited."""
        if not entry.is_dir:
            return False
        if self.descent_limit is not None and entry.depth >= self.descent_limit:
            return False
        if self.required_prefix is not None and entry.depth > 0:
            on_the_way = self.required_prefix.startswith(entry.path.rstrip(os.sep) + os.sep)
            if not on_the_way and not entry.path.startswith(self.required_prefix):
                return False
        return self._admitted(entry, rules)
