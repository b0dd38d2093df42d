# src/gitsops/config.py: Settings and startup checks.
# This module builds the runtime Settings from the environment, validates the
# sops configuration file it points to, and runs the preflight checks every
# command needs before any filter logic is allowed to run.

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .paths import resolve_config_path
from .errors import ConfigError, EnvironmentSetupError

if TYPE_CHECKING:
    from .gitwrap import GitRepository

LOG_LEVEL_ENV_VAR = "GIT_SOPS_LOG_LEVEL"
SOPS_BIN_ENV_VAR = "GIT_SOPS_SOPS_BIN"

# --- Pydantic Models ---

class Settings(BaseModel):
    """Runtime settings threaded into the engine and git adapters."""
    config_path: Path
    sops_binary: str = "sops"
    log_level: str = "WARNING"
    filter_name: str = "sops"


class CreationRule(BaseModel):
    model_config = ConfigDict(extra="allow")

    path_regex: Optional[str] = None


class SopsConfigFile(BaseModel):
    """
    The subset of the sops config file that git-sops cares about.

    sops owns this format; unknown keys are kept and ignored.
    """
    model_config = ConfigDict(extra="allow")

    creation_rules: List[CreationRule] = Field(default_factory=list)


# --- Loading ---

def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Builds Settings from environment variables."""
    environ = os.environ if environ is None else environ
    values: dict[str, Any] = {"config_path": resolve_config_path(environ)}
    if environ.get(SOPS_BIN_ENV_VAR):
        values["sops_binary"] = environ[SOPS_BIN_ENV_VAR]
    if environ.get(LOG_LEVEL_ENV_VAR):
        values["log_level"] = environ[LOG_LEVEL_ENV_VAR].upper()

    try:
        return Settings.model_validate(values)
    except ValidationError as e:
        raise ConfigError(f"Settings validation failed: {e}")


def load_sops_config(config_path: Path) -> SopsConfigFile:
    """
    Loads and validates the sops config file.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or does not
            have the expected shape.
    """
    if not config_path.is_file():
        raise ConfigError(
            f"sops config file not found at '{config_path}'. "
            "Create it or point SOPS_CONFIG at an existing file."
        )

    try:
        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing sops config '{config_path}': {e}")

    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ConfigError(f"sops config '{config_path}' must be a YAML mapping.")

    try:
        return SopsConfigFile.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"sops config validation failed: {e}")


def check_environment(settings: Settings, repo: "GitRepository") -> SopsConfigFile:
    """
    Runs the preflight checks required before any command.

    Raises:
        EnvironmentSetupError: If the sops binary is not on PATH or the current
            directory is not inside a git work tree.
        ConfigError: If the sops config file is missing or invalid.
    """
    if shutil.which(settings.sops_binary) is None:
        raise EnvironmentSetupError(
            f"The '{settings.sops_binary}' command was not found. Is it installed and in your PATH?"
        )

    sops_config = load_sops_config(settings.config_path)

    if not repo.is_inside_work_tree():
        raise EnvironmentSetupError("Not inside a git working tree.")

    return sops_config
