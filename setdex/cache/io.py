"""On-disk helpers for cached reference documents and setdex artifacts.

Reference documents are stored inside a ``{"_meta": {...}, "data": ...}``
envelope so their age can be checked without trusting file mtimes. Every
write goes through a temp file and ``os.replace``.
"""

import json
import os
import re
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

_UNSAFE_RE = re.compile(r"[^a-z0-9_-]+")


def ensure_dir(path: str) -> None:
    if path:
        os.makedirs(path, exist_ok=True)


def safe_filename(key: str) -> str:
    """Reduce a cache key (usually a URL) to ``[a-z0-9_-]``."""
    stem = _UNSAFE_RE.sub("_", key.strip().lower()).strip("_")
    return stem or "unnamed"


def reference_cache_path(cache_dir: str, source: str) -> str:
    return os.path.join(cache_dir, f"{safe_filename(source)}.json")


def read_json(path: str) -> Optional[Any]:
    """Decoded JSON at ``path``; None when missing or unreadable."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return None


def atomic_write_text(path: str, text: str) -> None:
    directory = os.path.dirname(path) or "."
    ensure_dir(directory)
    fd, tmp_path = tempfile.mkstemp(prefix=os.path.basename(path) + ".", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def atomic_write_json(path: str, obj: Any) -> None:
    atomic_write_text(path, json.dumps(obj, ensure_ascii=False, indent=2))


def _fetched_at(envelope: Any) -> Optional[datetime]:
    if not isinstance(envelope, dict):
        return None
    raw = (envelope.get("_meta") or {}).get("fetched_at")
    if not isinstance(raw, str):
        return None
    try:
        stamp = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    return stamp if stamp.tzinfo else stamp.replace(tzinfo=timezone.utc)


def read_cached(path: str, ttl_days: int) -> Optional[Any]:
    """Payload of a fresh envelope at ``path``, else None."""
    envelope = read_json(path)
    stamp = _fetched_at(envelope)
    if stamp is None or datetime.now(timezone.utc) - stamp > timedelta(days=ttl_days):
        return None
    return envelope.get("data")


def wrap_raw(url: str, payload: Any) -> Dict[str, Any]:
    """Envelope for an unmodified reference payload."""
    return {
        "_meta": {"fetched_at": datetime.now(timezone.utc).isoformat(), "url": url},
        "data": payload,
    }
