#!/usr/bin/env python3

import os
import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import logging
import sys

import yaml

from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("repolock")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']
LOCAL_CONFIG_FILENAMES = ['.repolock.json', '.repolock.toml', '.repolock.yaml', '.repolock.yml']


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. REPOLOCK_CONFIG environment variable
    2. .repolock.{json,toml,yaml,yml} in the current directory
    3. ~/.repolock/ directory
    """
    # Check for environment variable override
    if 'REPOLOCK_CONFIG' in os.environ:
        return Path(os.environ['REPOLOCK_CONFIG']).expanduser()

    for filename in LOCAL_CONFIG_FILENAMES:
        path = Path.cwd() / filename
        if path.exists():
            return path

    repolock_dir = Path.home() / '.repolock'
    for filename in CONFIG_FILENAMES:
        path = repolock_dir / filename
        if path.exists():
            return path

    # If no file exists, return default path
    return repolock_dir / 'config.json'


def read_config_file(config_path: Path) -> dict:
    """Read one config file, choosing the parser by suffix."""
    try:
        if config_path.suffix.lower() in ['.toml']:
            with open(config_path, 'rb') as f:
                file_config = tomllib.load(f)
        elif config_path.suffix.lower() in ['.yaml', '.yml']:
            with open(config_path, 'r') as f:
                file_config = yaml.safe_load(f)
        else:
            # Default to JSON format
            with open(config_path, 'r') as f:
                file_config = json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading config from {config_path}: {e}") from e

    if file_config is None:
        return {}
    if not isinstance(file_config, dict):
        raise ConfigError(f"Error loading config from {config_path}: expected a mapping")
    return file_config


def load_config():
    """Load configuration from file and environment."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    # Load from file if it exists
    if config_path.exists():
        logger.debug(f"Loading config from {config_path}")
        config = merge_configs(config, read_config_file(config_path))
    elif 'REPOLOCK_CONFIG' in os.environ:
        raise ConfigError(f"Config file not found: {config_path}")

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def get_default_config():
    """Get default configuration."""
    return {
        "general": {
            "manifest_file": "repolock-manifest.yaml",
            "lock_file": "repolock-lock.yaml",
            "base_dir": "repos",
        },
        "git": {
            "remote": "origin",
            "timeout_seconds": 0,  # 0 = no timeout
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        },
    }


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            # Override or add new key
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: REPOLOCK_SECTION_KEY
    For example: REPOLOCK_GIT_TIMEOUT_SECONDS=120
    """
    env_prefix = "REPOLOCK_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == "REPOLOCK_CONFIG":
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts_from_key = config_key.split('_')
                if key_parts[i : i + len(config_key_parts_from_key)] == config_key_parts_from_key:
                    if len(config_key_parts_from_key) > best_match_len:
                        best_match_len = len(config_key_parts_from_key)
                        matched_key = config_key

            if matched_key:
                # If we are at the end of the env var, we have found the key to set
                if i + best_match_len == len(key_parts):
                    current_level[matched_key] = typed_value
                    break

                # Otherwise, we descend into the dictionary
                if isinstance(current_level[matched_key], dict):
                    current_level = current_level[matched_key]
                    i += best_match_len
                else:
                    # Path conflict, e.g., env var is longer but we found a non-dict value
                    break
            else:
                # No match found
                break

    return config


def configure_logging(config, verbose: bool = False) -> None:
    """Apply the logging section of the config to the repolock logger."""
    logging_config = config.get("logging", {})
    level_name = "DEBUG" if verbose else str(logging_config.get("level", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        logger.warning(f"Unknown log level {level_name!r}, using INFO")
        level = logging.INFO
    logger.setLevel(level)

    fmt = logging_config.get("format")
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt))


@dataclass(frozen=True)
class Settings:
    """
    Everything an install or update run needs to know.

    Built once at startup from the config and command-line overrides, then
    passed to LockService.
    """
    manifest_path: Path
    lock_path: Path
    default_base_dir: str = "repos"
    base_dir_override: Optional[str] = None
    remote: str = "origin"
    git_timeout: Optional[int] = None

    @classmethod
    def from_config(cls, config, manifest: Optional[str] = None,
                    lock: Optional[str] = None,
                    base_dir: Optional[str] = None) -> 'Settings':
        general = config.get("general", {})
        git = config.get("git", {})
        timeout = git.get("timeout_seconds") or None
        return cls(
            manifest_path=Path(manifest or general.get("manifest_file", "repolock-manifest.yaml")),
            lock_path=Path(lock or general.get("lock_file", "repolock-lock.yaml")),
            default_base_dir=general.get("base_dir") or "repos",
            base_dir_override=base_dir,
            remote=git.get("remote") or "origin",
            git_timeout=int(timeout) if timeout else None,
        )

    def base_dir_for(self, record_base_directory: Optional[str]) -> Path:
        """
        Directory repositories are installed under.

        The command-line override wins over the record set's
        base_directory, which wins over the configured default.
        """
        base = self.base_dir_override or record_base_directory or self.default_base_dir
        return Path(base).expanduser()
