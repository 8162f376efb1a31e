import logging
import math
import os
from pathlib import Path
from typing import Optional

import yaml

from gitgandalf_core.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict = {
    "engine": "ollama",  # "ollama" | "command"
    "model": "qwen2.5-coder:7b",
    "engine_command": [],  # argv for engine: command; the prompt is written to its stdin
    "timeout_seconds": 60.0,
    "max_input_bytes": 1_048_576,
}

ENGINES = ("ollama", "command")

# Environment variables read after the config file, before CLI overrides.
_ENV_OVERRIDES = {
    "GITGANDALF_MODEL": ("model", str),
    "GITGANDALF_TIMEOUT": ("timeout_seconds", float),
}


def load_config(config_path: str = ".gitgandalf.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .gitgandalf.yml in the current directory
      3. GITGANDALF_* environment variables
      4. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "engine_command": list(DEFAULT_CONFIG["engine_command"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ConfigError(f"{config_path} must contain a mapping at the top level.")
        config.update(file_config)
        logger.debug("Loaded configuration from %s", config_path)

    for env_name, (key, cast) in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw:
            try:
                config[key] = cast(raw)
            except ValueError:
                raise ConfigError(f"{env_name}={raw!r} is not a valid {key}.")

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    _validate(config)
    return config


def _validate(config: dict) -> None:
    if config["engine"] not in ENGINES:
        raise ConfigError(f"Unknown engine: {config['engine']!r}. Choose one of: {', '.join(ENGINES)}.")
    if config["engine"] == "command" and not config.get("engine_command"):
        raise ConfigError("engine: command requires a non-empty engine_command list.")
    command = config.get("engine_command")
    if not isinstance(command, list) or not all(isinstance(arg, str) for arg in command):
        raise ConfigError("engine_command must be a list of string arguments (quote numbers in YAML).")
    if not isinstance(config.get("model"), str) or not config["model"].strip():
        raise ConfigError("model must be a non-empty string.")
    try:
        timeout = float(config["timeout_seconds"])
        limit = int(config["max_input_bytes"])
    except (TypeError, ValueError, OverflowError):
        raise ConfigError("timeout_seconds and max_input_bytes must be numbers.")
    if not math.isfinite(timeout):
        raise ConfigError("timeout_seconds must be a finite number.")
    if timeout <= 0 or limit <= 0:
        raise ConfigError("timeout_seconds and max_input_bytes must be positive.")
    config["timeout_seconds"] = timeout
    config["max_input_bytes"] = limit
