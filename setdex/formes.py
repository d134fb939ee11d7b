"""Formes that should receive a copy of an accepted set.

Some species share sets with formes the calculator lists separately
(battle-only formes, megas, cosmetic renames). ``similar_formes`` decides
which, in priority order; the first rule that matches wins.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from .naming import to_id

# Species whose sets always apply to these formes too.
FORME_COPIES: Dict[str, List[str]] = {
    "Aegislash": ["Aegislash-Blade", "Aegislash-Shield", "Aegislash-Both"],
    "Darmanitan-Galar": ["Darmanitan-Galar-Zen"],
    "Keldeo": ["Keldeo-Resolute"],
    "Minior": ["Minior-Meteor"],
    "Palafin": ["Palafin-Hero"],
    "Rayquaza-Mega": ["Rayquaza"],
    "Sirfetch'd": ["Sirfetch’d"],
    "Wishiwashi": ["Wishiwashi-School"],
}

MEGA_RAYQUAZA_MOVE = "Dragon Ascent"
MEGA_RAYQUAZA_CLAUSE = "megarayquazaclause"
POWER_CONSTRUCT = "Power Construct"
ZYGARDE_COMPLETE = "Zygarde-Complete"

_FORMAT_GEN_RE = re.compile(r"^gen(\d+)")


def format_gen(format_id: str) -> Optional[int]:
    m = _FORMAT_GEN_RE.match(format_id)
    return int(m.group(1)) if m else None


def is_mega_rayquaza_allowed(fmt: Dict[str, Any]) -> bool:
    """Mega Rayquaza is legal in gen 6/7 formats and National Dex formats
    unless a clause or the banlist rules it out."""
    rules = {to_id(rule) for rule in fmt.get("ruleset") or []}
    permitted = (
        MEGA_RAYQUAZA_CLAUSE not in rules
        and "Rayquaza-Mega" not in (fmt.get("banlist") or [])
    )
    if format_gen(fmt["id"]) in (6, 7):
        return permitted
    return "nationaldex" in fmt["id"] and permitted


def similar_formes(
    pset: Dict[str, Any],
    fmt: Optional[Dict[str, Any]],
    species: Dict[str, Any],
    item: Optional[Dict[str, Any]],
) -> Optional[List[str]]:
    """Return the formes that should share ``pset``, or None."""
    if (
        fmt
        and pset["species"] == "Rayquaza"
        and MEGA_RAYQUAZA_MOVE in pset["moves"]
        and is_mega_rayquaza_allowed(fmt)
    ):
        return ["Rayquaza-Mega"]
    if (
        pset["species"] == "Rayquaza-Mega"
        and fmt
        and ("balancedhackmons" not in fmt["id"] or "bh" in fmt["id"])
    ):
        return ["Rayquaza"]
    if pset["ability"] == POWER_CONSTRUCT:
        return [ZYGARDE_COMPLETE]
    if (
        item
        and item.get("megaEvolves")
        and item.get("megaStone")
        and species["name"] == item["megaEvolves"]
    ):
        return [species["baseSpecies"] if species.get("isMega") else item["megaStone"]]
    copies = FORME_COPIES.get(species["name"])
    return list(copies) if copies else None
