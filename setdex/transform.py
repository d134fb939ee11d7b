"""Set builders: curated dex sets and usage statistics -> PokemonSet -> CalcSet.

Both builders produce the same PokemonSet shape (the dict Showdown's team
validator consumes); ``pset_to_calc_set`` condenses it for the calculator.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .hidden_power import reconcile_hidden_power
from .stats import (
    ev_default,
    fill_stats,
    from_spread,
    iv_default,
    level_for_format,
    to_calc_stats_table,
    top,
)

NOTHING = "Nothing"


def first(value: Any) -> Any:
    """Head of a list of alternatives, or the value itself."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _or_empty(value: Optional[str]) -> str:
    return "" if not value or value == NOTHING else value


def dex_to_pset(dex: Any, species: Dict[str, Any], dex_set: Dict[str, Any]) -> Dict[str, Any]:
    """Build a PokemonSet from one curated set.

    Every list-valued field contributes its first alternative.
    """
    gen = dex.gen
    abilities = species.get("abilities") or []
    ability = first(dex_set.get("ability"))
    if ability is None:
        ability = abilities[0] if abilities else ""
    level = first(dex_set.get("level"))
    moves = [m for m in (first(m) for m in dex_set.get("moves") or []) if isinstance(m, str)]

    pset: Dict[str, Any] = {
        "name": "",
        "species": species["name"],
        "item": first(dex_set.get("item")) or "",
        "ability": ability,
        "moves": moves,
        "nature": first(dex_set.get("nature")) or "",
        "gender": "",
        "evs": fill_stats(first(dex_set.get("evs")), ev_default(gen)),
        "ivs": fill_stats(None, iv_default(gen)),
        "level": level if isinstance(level, int) else 100,
    }
    tera_type = first(dex_set.get("teratypes"))
    if tera_type:
        pset["teraType"] = tera_type
    reconcile_hidden_power(pset, dex)
    return pset


def usage_to_pset(
    dex: Any, format_id: str, species_name: str, usage: Dict[str, Any]
) -> Dict[str, Any]:
    """Build a PokemonSet from the most used options in a usage-statistics entry."""
    gen = dex.gen
    nature, evs = from_spread(top(usage.get("spreads") or {}))
    moves: List[str] = top(usage.get("moves") or {}, 4) or []

    pset: Dict[str, Any] = {
        "name": "",
        "species": species_name,
        "item": _or_empty(top(usage.get("items") or {})),
        "ability": _or_empty(top(usage.get("abilities") or {})),
        "moves": [m for m in moves if m != NOTHING],
        "nature": nature,
        "gender": "",
        "evs": fill_stats(evs, ev_default(gen)),
        "ivs": fill_stats(None, iv_default(gen)),
        "level": level_for_format(format_id),
    }
    reconcile_hidden_power(pset, dex)
    return pset


def pset_to_calc_set(gen: int, pset: Dict[str, Any]) -> Dict[str, Any]:
    """Project a PokemonSet onto the calculator's CalcSet shape.

    Field order is the order the calculator artifact has always used.
    """
    calc_set: Dict[str, Any] = {
        "level": pset["level"],
        "ability": pset["ability"],
        "item": pset["item"],
        "nature": pset["nature"],
    }
    if pset.get("teraType"):
        calc_set["teraType"] = pset["teraType"]
    calc_set["ivs"] = to_calc_stats_table(pset["ivs"], iv_default(gen))
    calc_set["evs"] = to_calc_stats_table(pset["evs"], ev_default(gen))
    calc_set["moves"] = list(pset["moves"])
    return calc_set


def usage_weight(usage: Dict[str, Any]) -> float:
    """Weighted usage of a stats entry (legacy pages nest it under ``usage``)."""
    raw = usage.get("usage")
    if isinstance(raw, dict):
        raw = raw.get("weighted")
    return float(raw) if isinstance(raw, (int, float)) else 0.0
