"""Stat-table and weighted-distribution helpers.

Pure functions shared by both set builders: picking the most used entries of
a usage-statistics distribution, filling and condensing six-stat tables, and
the per-format heuristics (default level, usage threshold).
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

STAT_IDS: Tuple[str, ...] = ("hp", "atk", "def", "spa", "spd", "spe")

# Calculator stat keys, in STAT_IDS order.
CALC_STAT_KEYS: Dict[str, str] = {
    "hp": "hp",
    "atk": "at",
    "def": "df",
    "spa": "sa",
    "spd": "sd",
    "spe": "sp",
}

# These formats are deemed to have playerbases of lower quality than normal.
LOW_QUALITY_FORMAT_RE = re.compile(r"uber|anythinggoes|doublesou", re.IGNORECASE)


def top(weighted: Mapping[str, float], n: int = 1) -> Union[str, List[str], None]:
    """Return the highest weighted key(s) of ``weighted``.

    ``n == 1`` returns a single key (or None for an empty map), keeping the
    first key seen among equal weights. ``n == 0`` returns None. Larger ``n``
    returns up to ``n`` keys in descending weight order, ties kept in input
    order.
    """
    if n == 0:
        return None
    if n == 1:
        best: Optional[str] = None
        for key, weight in weighted.items():
            if best is None or weighted[best] < weight:
                best = key
        return best
    ranked = sorted(weighted.items(), key=lambda kv: kv[1], reverse=True)
    return [key for key, _ in ranked[:n]]


def ev_default(gen: int) -> int:
    return 252 if gen < 3 else 0


def iv_default(gen: int) -> int:
    return 30 if gen == 2 else 31


def fill_stats(stats: Optional[Mapping[str, Any]], fill: int) -> Dict[str, int]:
    """Return a full six-stat table, using ``fill`` for missing entries."""
    stats = stats or {}
    out: Dict[str, int] = {}
    for stat in STAT_IDS:
        value = stats.get(stat)
        out[stat] = value if isinstance(value, int) and not isinstance(value, bool) else fill
    return out


def to_calc_stats_table(stats: Mapping[str, int], ignore: int) -> Dict[str, int]:
    """Condense a stat table to the calculator's two-letter keys.

    Entries equal to ``ignore`` (the axis default) are dropped.
    """
    out: Dict[str, int] = {}
    for stat, value in stats.items():
        if value == ignore:
            continue
        key = CALC_STAT_KEYS.get(stat)
        if key is not None:
            out[key] = value
    return out


def from_calc_stats_table(calc: Mapping[str, int], fill: int) -> Dict[str, int]:
    """Expand a condensed calculator table back to a full stat table."""
    by_calc_key = {v: k for k, v in CALC_STAT_KEYS.items()}
    stats = {by_calc_key[k]: v for k, v in calc.items() if k in by_calc_key}
    return fill_stats(stats, fill)


def from_spread(spread: Optional[str]) -> Tuple[str, Dict[str, int]]:
    """Split a usage spread ``"Adamant:0/252/0/0/4/252"`` into nature and EVs.

    Zero or unparseable values are omitted rather than stored as zero.
    """
    if not spread:
        return "", {}
    nature, _, raw_evs = spread.partition(":")
    evs: Dict[str, int] = {}
    for stat, raw in zip(STAT_IDS, raw_evs.split("/")):
        try:
            ev = int(float(raw))
        except ValueError:
            continue
        if ev:
            evs[stat] = ev
    return nature, evs


def level_for_format(format_id: str) -> int:
    if "lc" in format_id:
        return 5
    if "vgc" in format_id or "battlestadium" in format_id:
        return 50
    return 100


def usage_threshold(format_id: str, battles: int) -> float:
    """Minimum weighted usage for a species to get a usage-based set.

    Old metagames with very low battle counts get stricter thresholds.
    """
    if battles < 100:
        return float("inf")
    if battles < 400:
        return 0.05
    return 0.03 if LOW_QUALITY_FORMAT_RE.search(format_id) else 0.01
