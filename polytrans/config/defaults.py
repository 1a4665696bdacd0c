"""Default configuration values for the translation pipeline."""

from __future__ import annotations

import os
from copy import deepcopy
from typing import Any, Dict, List, Optional

# Environment variable overriding the cache directory.
CACHE_DIR_ENV = "POLYTRANS_CACHE_DIR"

# Per-provider credential variables: POLYTRANS_<PROVIDER_ID>_API_KEYS="key1,key2"
API_KEYS_ENV_TEMPLATE = "POLYTRANS_{provider}_API_KEYS"

DEFAULT_CONFIG: Dict[str, Any] = {
    "translation": {
        "providers": ["google_free_new", "google_free"],
        "source_lang": "auto",
        "target_lang": "en",
        "use_multiple_providers": True,
        "merge_strategy": "first",
    },
    # provider_id -> options (api_key, api_keys, request_timeout, proxy, model, ...)
    "providers": {},
    "network": {
        "proxy": None,
    },
    "cache": {
        "enabled": True,
        "max_size": 1000,
        "ttl_seconds": 7 * 24 * 60 * 60,
        "path": None,
    },
    "html": {
        "small_node_chars": 50,
        "group_max_chars": 200,
        "max_concurrency": 3,
        "wave_pause": 0.1,
        "free_only_node_threshold": 10,
    },
    "identity": {
        "pool_size": 200,
        "seed": None,
    },
    "logging": {
        "level": "WARNING",
    },
}


def get_default_config() -> Dict[str, Any]:
    """Return a deep copy of the default configuration."""
    return deepcopy(DEFAULT_CONFIG)


def merge_config(base: Dict[str, Any], override: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Recursively merge two configuration dictionaries.

    Args:
        base: The base configuration that provides default values.
        override: Overrides coming from callers (can be None).

    Returns:
        A new dictionary containing the merged configuration.
    """
    if override is None:
        return deepcopy(base)

    merged = deepcopy(base)
    for key, value in override.items():
        if (
            key in merged
            and isinstance(merged[key], dict)
            and isinstance(value, dict)
        ):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def env_api_keys(provider_id: str, environ: Optional[Dict[str, str]] = None) -> List[str]:
    """
    Read comma separated API keys for a provider from the environment.

    Args:
        provider_id: Provider identifier (e.g. "deepl_pro").
        environ: Mapping to read from (defaults to os.environ).

    Returns:
        The keys in declaration order, empty entries dropped.
    """
    environ = os.environ if environ is None else environ
    raw = environ.get(API_KEYS_ENV_TEMPLATE.format(provider=provider_id.upper()), "")
    return [key.strip() for key in raw.split(",") if key.strip()]
