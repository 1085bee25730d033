"""Configuration management for sortfs using pydantic-settings and platformdirs."""

import os
from pathlib import Path
from typing import Literal, Optional

from platformdirs import user_config_dir
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global configuration for sortfs."""
    
    model_config = SettingsConfigDict(
        env_prefix="SORTFS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra environment variables
        populate_by_name=True,
    )
    
    # Worker pool sizing
    max_workers: int = Field(default=4, ge=1, description="Upper bound on walker threads")
    core_divisor: int = Field(default=2, ge=1, description="Use at most cpu_count // core_divisor threads")
    
    # Ignore handling
    custom_ignore_filename: str = Field(
        default=".sortfsignore",
        description="Per-directory ignore file name that outranks .gitignore",
    )
    global_ignore_file: Optional[Path] = Field(
        default=None,
        description=(
            "Git global excludes file (defaults to $XDG_CONFIG_HOME/git/ignore); "
            "git's core.excludesFile setting is not read, so point this at it when set"
        ),
    )
    
    # Traversal
    symlink_depth_limit: int = Field(
        default=40, ge=0, description="Depth cap when following symlinks without --max-depth"
    )
    
    # Timestamps that cannot be read sort as this value
    fallback: Literal["now", "epoch"] = Field(default="now")
    
    # Color table, read from the standard variable rather than SORTFS_*
    ls_colors: Optional[str] = Field(default=None, validation_alias="LS_COLORS")


def worker_count(settings: Settings, cpu_count: Optional[int] = None) -> int:
    """Size of the walker pool: never above max_workers nor a share of the cores."""
    if cpu_count is None:
        cpu_count = os.cpu_count() or 1
    return max(1, min(settings.max_workers, cpu_count // settings.core_divisor))


def global_git_ignore_path(settings: Settings) -> Path:
    """Location of git's global excludes file."""
    if settings.global_ignore_file is not None:
        return settings.global_ignore_file.expanduser()
    
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "git" / "ignore"
    return Path.home() / ".config" / "git" / "ignore"


def global_custom_ignore_path() -> Path:
    """Per-user sortfs ignore file, part of the custom tier."""
    return Path(user_config_dir("sortfs", "sortfs")) / "ignore"
