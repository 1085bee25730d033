"""Layered gitignore-style exclusion for sortfs.

Rules come from several sources, each tagged with a tier. Tiers are consulted
from the highest precedence down and the first tier with an opinion about a
path decides it, so a re-include (``!pattern``) in a higher tier beats an
exclusion further down. Per-directory ignore files are discovered while the
walk descends; each directory extends an immutable rule set that its workers
share read-only.
"""

import logging
import os
import re
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from pathspec.patterns import GitWildMatchPattern

from .config import Settings, global_custom_ignore_path, global_git_ignore_path
from .errors import IgnoreFileError, IgnorePatternError
from .models import Entry, WalkConfig

logger = logging.getLogger(__name__)

GIT_DIR = ".git"
GITIGNORE = ".gitignore"

# Group pathspec puts around the separator after a pattern naming a directory
DIR_MARK = "ps_d"


class RuleTier(IntEnum):
    """Rule source tiers, lowest value wins."""
    
    OVERRIDE = 0
    CUSTOM = 1
    VCS_DIRECTORY = 2
    VCS_GLOBAL = 3
    VCS_EXCLUDE = 4


@dataclass(frozen=True)
class IgnoreRule:
    """One compiled gitignore pattern."""
    
    pattern: str
    regex: re.Pattern
    negated: bool
    
    def matches(self, candidate: str) -> bool:
        """Whether the pattern names ``candidate`` itself.
        
        pathspec regexes also accept every path below a matched directory;
        those hits belong to the directory, which the walk prunes, so they
        are not decisions about ``candidate``.
        """
        match = self.regex.match(candidate)
        if match is None:
            return False
        if match.groupdict().get(DIR_MARK) is not None and match.end(DIR_MARK) < len(candidate):
            return False
        return True


def compile_rule(line: str) -> Optional[IgnoreRule]:
    """Compile a single gitignore line; blank lines and comments yield None.
    
    Raises ValueError (pathspec's GitWildMatchPatternError) on malformed input.
    """
    line = line.rstrip("\r\n")
    compiled = GitWildMatchPattern(line)
    if compiled.include is None:
        return None
    return IgnoreRule(pattern=line, regex=compiled.regex, negated=not compiled.include)


def compile_rules(lines: Iterable[str], origin: str, strict: bool = True) -> Tuple[IgnoreRule, ...]:
    """Compile an ignore file's lines.
    
    With ``strict`` a malformed line raises IgnorePatternError; otherwise it
    is logged and skipped.
    """
    rules: List[IgnoreRule] = []
    for number, line in enumerate(lines, start=1):
        try:
            rule = compile_rule(line)
        except ValueError as e:
            if strict:
                raise IgnorePatternError(line.strip(), f"{origin}:{number}: {e}") from e
            logger.warning(f"Skipping malformed pattern in {origin}:{number}: {line.strip()!r}")
            continue
        if rule is not None:
            rules.append(rule)
    return tuple(rules)


@dataclass(frozen=True)
class RuleSource:
    """Patterns from one file (or the command line) and where they apply.
    
    ``base`` is the root-relative directory holding the source ("" for the
    root and everything above it). ``lead`` is prepended to the path below
    ``base``, which lets files above the walk root see paths relative to
    their own directory. ``specificity`` orders sources inside a tier:
    higher is consulted first.
    """
    
    tier: RuleTier
    rules: Tuple[IgnoreRule, ...]
    base: str = ""
    lead: str = ""
    specificity: int = 0
    origin: str = "<patterns>"
    
    def _localize(self, relative_path: str) -> Optional[str]:
        if self.base:
            if not relative_path.startswith(self.base + "/"):
                return None
            relative_path = relative_path[len(self.base) + 1:]
        return self.lead + relative_path
    
    def decide(self, relative_path: str, is_dir: bool) -> Optional[bool]:
        """True to exclude, False to re-include, None if no pattern matches."""
        local = self._localize(relative_path)
        if not local:
            return None
        candidate = local + "/" if is_dir else local
        # Last matching pattern wins
        for rule in reversed(self.rules):
            if rule.matches(candidate):
                return not rule.negated
        return None


def precedence(source: RuleSource) -> Tuple[int, int]:
    return (int(source.tier), -source.specificity)


def merge_decisions(sources: Iterable[RuleSource], relative_path: str, is_dir: bool) -> Optional[bool]:
    """Resolve a path against layered sources.
    
    Sources are consulted in precedence order (tier first, then the more
    specific source); the first one that matches decides.
    """
    for source in sorted(sources, key=precedence):
        verdict = source.decide(relative_path, is_dir)
        if verdict is not None:
            return verdict
    return None


class IgnoreRuleSet:
    """Immutable, precedence-ordered collection of rule sources."""
    
    __slots__ = ("sources",)
    
    def __init__(self, sources: Sequence[RuleSource] = ()):
        self.sources: Tuple[RuleSource, ...] = tuple(sorted(sources, key=precedence))
    
    def extended(self, *sources: RuleSource) -> "IgnoreRuleSet":
        """Return a new set with extra sources; self is left untouched."""
        if not sources:
            return self
        return IgnoreRuleSet(self.sources + tuple(sources))
    
    def decide(self, relative_path: str, is_dir: bool) -> Optional[bool]:
        return merge_decisions(self.sources, relative_path, is_dir)
    
    def __len__(self) -> int:
        return len(self.sources)


def has_git_component(path: str) -> bool:
    """Whether any component of ``path`` is a ``.git`` directory name."""
    parts = path.split(os.sep)
    if os.altsep:
        parts = [piece for part in parts for piece in part.split(os.altsep)]
    return GIT_DIR in parts


def find_git_top(directory: str) -> Optional[Path]:
    """Find the working-tree top enclosing ``directory``, if any."""
    current = Path(os.path.abspath(directory))
    for candidate in (current, *current.parents):
        if (candidate / GIT_DIR).exists():
            return candidate
    return None


def _read_lines(path: Path) -> List[str]:
    with open(path, "r", encoding="utf-8", errors="surrogateescape") as f:
        return f.read().splitlines()


class IgnoreEngine:
    """Decides whether walked entries are excluded."""
    
    def __init__(self, config: WalkConfig, settings: Optional[Settings] = None):
        self.config = config
        self.settings = settings or Settings()
        self.custom_ignore_filename = config.custom_ignore_filename
        self._root_rules = IgnoreRuleSet(self._startup_sources())
    
    def _startup_sources(self) -> List[RuleSource]:
        """Build every source known before traversal; failures here are fatal."""
        sources = []
        
        if self.config.overrides:
            rules = []
            for pattern in self.config.overrides:
                try:
                    rule = compile_rule(pattern)
                except ValueError as e:
                    raise IgnorePatternError(pattern, str(e)) from e
                if rule is None:
                    raise IgnorePatternError(pattern, "pattern matches nothing")
                rules.append(rule)
            sources.append(RuleSource(RuleTier.OVERRIDE, tuple(rules), origin="--exclude"))
        
        if not self.config.respect_ignore_files:
            return sources
        
        # Explicit ignore files rank below per-directory custom files
        for index, name in enumerate(self.config.extra_ignore_files):
            path = Path(name).expanduser()
            if not path.is_file():
                raise IgnoreFileError(str(path), "no such file")
            sources.append(self._load_startup_file(
                path, RuleTier.CUSTOM, lead="", specificity=-1000 + index,
            ))
        
        user_ignore = global_custom_ignore_path()
        if user_ignore.is_file():
            sources.append(self._load_startup_file(user_ignore, RuleTier.CUSTOM, lead="", specificity=-2000))
        
        git_top = find_git_top(self.config.root)
        repo_lead = ""
        if git_top is not None:
            root_in_repo = Path(os.path.abspath(self.config.root)).relative_to(git_top).as_posix()
            if root_in_repo != ".":
                repo_lead = root_in_repo + "/"
                sources.extend(self._ancestor_sources(git_top))
            
            exclude = git_top / GIT_DIR / "info" / "exclude"
            if exclude.is_file():
                sources.append(self._load_startup_file(exclude, RuleTier.VCS_EXCLUDE, lead=repo_lead))
        
        global_ignore = global_git_ignore_path(self.settings)
        if global_ignore.is_file():
            sources.append(self._load_startup_file(global_ignore, RuleTier.VCS_GLOBAL, lead=repo_lead))
        
        return sources
    
    def _ancestor_sources(self, git_top: Path) -> List[RuleSource]:
        """.gitignore files between the working-tree top and the walk root."""
        sources = []
        root = Path(os.path.abspath(self.config.root))
        ancestors = [root.parent]
        while ancestors[-1] != git_top and ancestors[-1] != ancestors[-1].parent:
            ancestors.append(ancestors[-1].parent)
        
        for ancestor in ancestors:
            gitignore = ancestor / GITIGNORE
            if not gitignore.is_file():
                continue
            lead = root.relative_to(ancestor).as_posix() + "/"
            levels = len(root.relative_to(ancestor).parts)
            sources.append(self._load_startup_file(
                gitignore, RuleTier.VCS_DIRECTORY, lead=lead, specificity=-levels,
            ))
        return sources
    
    def _load_startup_file(self, path: Path, tier: RuleTier, lead: str, specificity: int = 0) -> RuleSource:
        try:
            lines = _read_lines(path)
        except OSError as e:
            raise IgnoreFileError(str(path), e.strerror or str(e)) from e
        rules = compile_rules(lines, str(path), strict=True)
        logger.debug(f"Loaded {len(rules)} {tier.name.lower()} rules from {path}")
        return RuleSource(tier, rules, lead=lead, specificity=specificity, origin=str(path))
    
    def root_rules(self) -> IgnoreRuleSet:
        """Rules in effect for the root's direct children before its own files."""
        return self._root_rules
    
    def descend(self, rules: IgnoreRuleSet, directory: Entry, names: Optional[Iterable[str]] = None) -> IgnoreRuleSet:
        """Extend ``rules`` with the ignore files found in ``directory``.
        
        ``names`` is the directory listing when the caller already has it;
        only files present in it are opened.
        """
        if not self.config.respect_ignore_files:
            return rules
        
        present = set(names) if names is not None else None
        found = []
        for filename, tier in ((self.custom_ignore_filename, RuleTier.CUSTOM), (GITIGNORE, RuleTier.VCS_DIRECTORY)):
            if not filename or (present is not None and filename not in present):
                continue
            source = self._load_directory_file(directory, filename, tier)
            if source is not None:
                found.append(source)
        return rules.extended(*found)
    
    def _load_directory_file(self, directory: Entry, filename: str, tier: RuleTier) -> Optional[RuleSource]:
        path = os.path.join(directory.path, filename)
        try:
            lines = _read_lines(Path(path))
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.debug(f"Cannot read {path}: {e}")
            return None
        
        rules = compile_rules(lines, path, strict=False)
        if not rules:
            return None
        return RuleSource(
            tier,
            rules,
            base=directory.relative_path,
            specificity=directory.depth,
            origin=path,
        )
    
    def should_exclude(self, entry: Entry, rules: IgnoreRuleSet) -> bool:
        """Whether ``entry`` is excluded under ``rules`` (its parent's set)."""
        if has_git_component(entry.path):
            return True
        if entry.depth == 0:
            return False
        if not self.config.hidden_visible and entry.name.startswith("."):
            return True
        return bool(rules.decide(entry.relative_path, entry.is_dir))
