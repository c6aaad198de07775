"""Configuration module for loading project settings and environment variables."""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DEFAULT_CONFIG: Dict[str, Any] = {
    "output_dir": "output",
    "search": {
        "gdelt_url": "https://api.gdeltproject.org/api/v2/doc/doc",
        "proxy_base": None,
        "max_records": 20,
        "query_suffix": "trump",
        "recent_query": "trump",
        "min_interval_seconds": 6,
        "timeout_seconds": 15,
    },
    "prices": {
        "stooq_url": "https://stooq.com/q/d/l/",
        "symbol": "spy.us",
        "timeout_seconds": 15,
    },
    "intraday": {
        "twelvedata_url": "https://api.twelvedata.com/time_series",
        "symbol": "SPY",
        "interval": "1h",
        "output_size": 120,
        "timezone": "America/New_York",
        "cache_seconds": 120,
        "recent_articles": 50,
    },
    "analysis": {
        "min_series_points": 30,
        "window_radius": 10,
    },
}


def load_config(config_path: str | Path = "config.yaml") -> Dict[str, Any]:
    """
    Load configuration from the specified YAML file, layered over ``DEFAULT_CONFIG``.

    Args:
        config_path (str | Path): Path to the configuration file. Defaults to "config.yaml".

    Returns:
        Dict[str, Any]: A dictionary containing the configuration settings.
    """
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found at {config_path}")

    with open(config_file, "r", encoding="utf-8") as file:
        config_data = yaml.safe_load(file)

    if not config_data:
        raise ValueError(f"Configuration file {config_path} is empty or invalid.")
    if not isinstance(config_data, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping at the top level.")

    return merge_config(DEFAULT_CONFIG, config_data)


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy of ``base`` with ``override`` merged in recursively."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_api_key(name: str = "TWELVE_API_KEY") -> Optional[str]:
    """Return a non-empty API key from the environment, or None."""
    value = os.getenv(name, "").strip()
    return value or None
