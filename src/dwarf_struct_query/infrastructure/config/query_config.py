#!/usr/bin/env python3

"""Tunables for schema loading and decoding."""

import os

ENV_PREFIX = "DWARFQUERY_"

# Default configuration values
DEFAULT_CONFIG = {
    # Pointer width used when the document's "pointer" base type is unusable
    "DEFAULT_POINTER_SIZE": 8,

    # Deepest array/pointer nesting the loader will follow before giving up
    "MAX_TYPE_DEPTH": 32,

    # Replace the published catalog on reload instead of refusing
    "ALLOW_RELOAD": True,

    # Directory for CLI log files
    "LOG_DIR": "logs",
}


def get_config() -> dict:
    """Get configuration with environment variable overrides.

    Each key can be overridden by ``DWARFQUERY_<KEY>``; values that do not
    convert to the default's type are ignored.

    Returns:
        Configuration dictionary
    """
    config = DEFAULT_CONFIG.copy()

    for key in config:
        env_value = os.getenv(f"{ENV_PREFIX}{key}")
        if env_value is None:
            continue

        if isinstance(config[key], bool):
            config[key] = env_value.lower() in ("true", "1", "yes", "on")
        elif isinstance(config[key], int):
            try:
                config[key] = int(env_value, 0)
            except ValueError:
                pass
        else:
            config[key] = env_value

    return config
