# src/gitsops/paths.py: Config path resolution.
# Resolves the default location of the sops configuration file using the
# platform's user config directory, and lets SOPS_CONFIG point elsewhere.

import os
from pathlib import Path
from typing import Mapping, Optional

import platformdirs

APP_NAME = "git-sops"
CONFIG_ENV_VAR = "SOPS_CONFIG"


def get_app_config_dir() -> Path:
    """Get the user config directory for the application."""
    return Path(platformdirs.user_config_dir(APP_NAME))


def get_default_config_path() -> Path:
    """Get the default path for the sops config.yaml file."""
    return get_app_config_dir() / "config.yaml"


def expand_path(path: str | Path) -> Path:
    """Expand environment variables and user home directory in a path."""
    return Path(os.path.expandvars(os.path.expanduser(str(path)))).resolve()


def resolve_config_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    """
    Returns the sops config path, honouring the SOPS_CONFIG override.

    The path is not checked for existence here; see config.check_environment.
    """
    environ = os.environ if environ is None else environ
    override = environ.get(CONFIG_ENV_VAR)
    if override:
        return expand_path(override)
    return get_default_config_path()
