"""Configuration loading: built-in defaults overlaid with a YAML file."""

import copy
from pathlib import Path

import yaml

from mailposture.console import log_message

DEFAULT_CONFIG = {
    'dns': {
        'servers': ['8.8.8.8', '1.1.1.1'],
        'timeout': 10,
    },
    'dkim': {
        'default_selector': 'default',
    },
    'verifier': {
        'enabled': True,
        'probe_ip': '8.8.8.8',
    },
    'composite': {
        'weights': {
            'dmarc': 1.0,
            'spf': 1.0,
            'dkim': 1.0,
            'mx': 1.0,
        },
    },
    'api': {
        'host': '0.0.0.0',
        'port': 3000,
        'require_captcha': False,
        'rate_limit': {
            'limit': 10,
            'window': 60,
        },
        'captcha': {
            'ttl': 300,
            'length': 5,
        },
    },
}


def merge_config(base, override):
    """Recursively overlay `override` onto a copy of `base`"""
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_file=None) -> dict:
    """Load configuration from YAML file"""
    if not config_file:
        return copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_file)
    if not path.exists():
        log_message(f"Config file {config_file} not found, using defaults", "WARNING")
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(path, 'r') as f:
            loaded = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        log_message(f"Error loading config: {e}", "ERROR")
        return copy.deepcopy(DEFAULT_CONFIG)

    if not isinstance(loaded, dict):
        log_message(f"Config file {config_file} is not a mapping, using defaults", "ERROR")
        return copy.deepcopy(DEFAULT_CONFIG)

    return merge_config(DEFAULT_CONFIG, loaded)
