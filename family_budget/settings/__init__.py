"""Engine settings stored as JSON beside this module.

``engine.json`` holds the currency, forecast worker count, alert threshold
and logging level.  Callers read single values with :func:`get_config_value`
and supply their own fallback.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

SETTINGS_DIR = Path(__file__).parent


@lru_cache(maxsize=None)
def _read_settings(name: str) -> str:
    path = SETTINGS_DIR / f"{name}.json"
    if not path.is_file():
        raise FileNotFoundError(f"No settings file named '{name}' in {SETTINGS_DIR}")
    return path.read_text(encoding='utf-8')


def load_config(config_name: str) -> Dict[str, Any]:
    """Parse ``<config_name>.json``; a fresh dict on every call."""
    return json.loads(_read_settings(config_name))


def get_engine_config() -> Dict[str, Any]:
    return load_config('engine')


def get_config_value(config_name: str, *keys: str, default: Any = None) -> Any:
    """Follow ``keys`` into a settings file, ``default`` when any step is missing.

    >>> get_config_value('engine', 'currency', 'code')
    'IDR'
    """
    try:
        node: Any = load_config(config_name)
    except FileNotFoundError:
        return default
    for key in keys:
        if not isinstance(node, dict) or key not in node:
            return default
        node = node[key]
    return node


__all__ = ['load_config', 'get_engine_config', 'get_config_value']
