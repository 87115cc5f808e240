"""
Merge configuration from command-line arguments and environment variables.

Arguments win over environment variables. Lists are comma-separated.
"""

import argparse
import logging
import os

from ..errors import ConfigError
from ..models import DEFAULT_BATCH_SIZE, ConflictStrategy, MergeConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "MERGE_"


def _setting(args: argparse.Namespace, attr: str, env_name: str) -> str | None:
    value = getattr(args, attr, None)
    if value is None or value == "":
        value = os.getenv(ENV_PREFIX + env_name)
    return value


def _batch_size(args: argparse.Namespace) -> int:
    value = _setting(args, "batch_size", "BATCH_SIZE")
    if value is None:
        return DEFAULT_BATCH_SIZE
    try:
        return int(value)
    except ValueError as e:
        raise ConfigError(f"Invalid batch size: {value!r}") from e


def config_from_args(args: argparse.Namespace) -> MergeConfig:
    """
    Build and validate a ``MergeConfig``.

    Raises:
        ConfigError: If a required value is missing or invalid
    """
    required = {
        "dsn": ("dsn", "DSN"),
        "table_a": ("table_a", "TABLE_A"),
        "table_b": ("table_b", "TABLE_B"),
        "table_c": ("table_c", "TABLE_C"),
        "key_fields": ("key_fields", "KEY_FIELDS"),
    }
    values = {}
    missing = []
    for name, (attr, env_name) in required.items():
        values[name] = _setting(args, attr, env_name)
        if not values[name]:
            missing.append(f"--{attr.replace('_', '-')} / {ENV_PREFIX}{env_name}")
    if missing:
        raise ConfigError(f"Missing required settings: {', '.join(missing)}")

    config = MergeConfig(
        **values,
        ignore_fields_a=_setting(args, "ignore_a", "IGNORE_FIELDS_A"),
        ignore_fields_b=_setting(args, "ignore_b", "IGNORE_FIELDS_B"),
        strategy=_setting(args, "strategy", "STRATEGY") or ConflictStrategy.PREFER_A,
        batch_size=_batch_size(args),
    )
    return config.validate()
