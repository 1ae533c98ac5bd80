"""Locating and loading the client configuration file."""

import os
from pathlib import Path
from typing import Optional, Tuple

from .models import ClientConfig

CLIENT_CONFIG_FILENAME = "client-config.json"
CLIENT_CONFIG_ENV_VAR = "SPDZ_CLIENT_CONFIG"


def resolve_client_config_path(base_dir: Optional[Path] = None) -> Path:
    """
    Resolve the path to the client configuration file.

    SPDZ_CLIENT_CONFIG wins when set (relative values resolve against the
    working directory); otherwise config/client-config.json under base_dir.
    """
    env_value = os.getenv(CLIENT_CONFIG_ENV_VAR)
    if env_value:
        candidate = Path(env_value)
        if not candidate.is_absolute():
            candidate = (Path.cwd() / candidate).resolve()
        return candidate
    root = Path(base_dir) if base_dir is not None else Path.cwd()
    return (root / "config" / CLIENT_CONFIG_FILENAME).resolve()


def load_client_config(base_dir: Optional[Path] = None) -> Tuple[ClientConfig, Path]:
    """
    Load the client configuration.

    Returns:
        (config, resolved_path)

    Raises:
        FileNotFoundError: if no config file exists at the resolved path.
        ValueError: if the file is not valid JSON/YAML or fails validation.
    """
    path = resolve_client_config_path(base_dir)
    if not path.exists():
        raise FileNotFoundError(f"Client config not found at {path}")
    try:
        return ClientConfig.from_file(path), path
    except ValueError as exc:
        raise ValueError(f"Invalid client config at {path}: {exc}") from exc
