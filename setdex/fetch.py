"""Fetch layer for curated sets and usage statistics.

Handles configuration loading and retrying HTTP GETs against data.pkmn.cc.
Reference data comes from the Showdown engine, see ``setdex.showdown``.
"""

import time
from typing import Any, Dict, Optional

import requests

from .cache.io import read_json

DEFAULT_CONFIG: Dict[str, Any] = {
    "sets_url": "https://data.pkmn.cc/sets/gen{gen}.json",
    "stats_url": "https://data.pkmn.cc/stats/{format_id}.json",
    "reference_cache_dir": "data/raw/reference",
    "ttl_days": {"reference": 7},
    "pokeapi_fallback": False,
    "pokeapi_base_url": "https://pokeapi.co/api/v2",
    "engine_command": None,
    "max_retries": 5,
    "retry_backoff_seconds": 1.0,
    "request_delay_seconds": 0.0,
    "generations": [1, 2, 3, 4, 5, 6, 7, 8, 9],
}


def load_config(config_path: str) -> Dict[str, Any]:
    """Load JSON configuration from ``config_path`` over the defaults.

    Raises ``RuntimeError`` if the file is missing or invalid.
    """
    data = read_json(config_path)
    if not data or not isinstance(data, dict):
        raise RuntimeError(f"Missing or invalid config: {config_path}")
    return {**DEFAULT_CONFIG, **data}


def _should_retry_http(status_code: Optional[int]) -> bool:
    if status_code is None:
        return True
    if status_code == 429:
        return True
    return 500 <= status_code <= 599


def _extract_status_code(exc: Exception) -> Optional[int]:
    resp = getattr(exc, "response", None)
    return getattr(resp, "status_code", None)


def fetch_json(
    url: str,
    *,
    max_retries: int = 5,
    retry_backoff_seconds: float = 1.0,
    request_delay_seconds: float = 0.0,
) -> Optional[Any]:
    """GET ``url`` and decode JSON; return None when the server answers 404.

    Rate limits, 5xx responses and transport errors are retried with
    exponential backoff, then re-raised.
    """
    attempt = 0
    while True:
        try:
            resp = requests.get(url, timeout=30)
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            payload = resp.json()
            if request_delay_seconds > 0:
                time.sleep(request_delay_seconds)
            return payload
        except requests.exceptions.HTTPError as exc:
            status_code = _extract_status_code(exc)
            if attempt >= max_retries or not _should_retry_http(status_code):
                raise
        except requests.exceptions.RequestException:
            if attempt >= max_retries:
                raise

        attempt += 1
        backoff = retry_backoff_seconds * (2 ** (attempt - 1))
        time.sleep(backoff)


def _retry_settings(cfg: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "max_retries": int(cfg.get("max_retries", 5)),
        "retry_backoff_seconds": float(cfg.get("retry_backoff_seconds", 1.0)),
        "request_delay_seconds": float(cfg.get("request_delay_seconds", 0.0)),
    }


def fetch_dex_sets(gen: int, cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Fetch the curated sets of ``gen``; a missing document means no sets.

    Transport failures propagate: without curated sets there is nothing to
    import for the generation.
    """
    url = cfg["sets_url"].format(gen=gen)
    print(f"Fetching {url}...")
    data = fetch_json(url, **_retry_settings(cfg))
    return data if isinstance(data, dict) else {}


def fetch_stats(format_id: str, cfg: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Fetch the usage statistics page of ``format_id`` (None when absent)."""
    url = cfg["stats_url"].format(format_id=format_id)
    print(f"Fetching {url}...")
    data = fetch_json(url, **_retry_settings(cfg))
    return data if isinstance(data, dict) else None

