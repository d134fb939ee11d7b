"""Generation importer: curated sets and usage statistics -> setdex mapping.

Curated sets are processed first; every (species, format) they cover is
remembered so usage statistics never overwrite a curated set. Usage pages
are only fetched for formats that had at least one curated set.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Set, Tuple

import requests

from .fetch import fetch_dex_sets, fetch_stats
from .formes import similar_formes
from .showdown import ValidatorCache
from .naming import format_label
from .stats import usage_threshold
from .transform import dex_to_pset, pset_to_calc_set, usage_to_pset, usage_weight
from .validate import validate_pset

# Formats the reference data does not model; they skip validation.
UNSUPPORTED_FORMATS: Dict[str, str] = {
    "gen9almostanyability": "[Gen 9] Almost Any Ability",
    "gen9lc": "[Gen 9] LC",
}

USAGE_SET_LABEL = "Showdown Usage"

CalcSets = Dict[str, Dict[str, Dict[str, Any]]]


def resolve_format(dex: Any, format_id: str) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """Return ``(format, display name)``.

    Unsupported formats have no format object; unknown formats have no name
    either and should be skipped.
    """
    if format_id in UNSUPPORTED_FORMATS:
        return None, UNSUPPORTED_FORMATS[format_id]
    fmt = dex.format(format_id)
    if fmt is None or not fmt.get("exists", True):
        return None, None
    return fmt, fmt["name"]


def resolve_species(dex: Any, name: str) -> Dict[str, Any]:
    found = dex.species(name)
    if found is not None:
        return found
    return {"name": name, "abilities": [], "baseSpecies": name, "forme": "", "isMega": False}


def mega_ability(dex: Any, forme: str) -> str:
    abilities = resolve_species(dex, forme).get("abilities") or []
    return abilities[0] if abilities else ""


def import_gen(dex: Any, validators: ValidatorCache, cfg: Dict[str, Any]) -> CalcSets:
    """Build ``{species: {set label: CalcSet}}`` for the generation of ``dex``."""
    gen = dex.gen
    calc_sets: CalcSets = {}
    stats_ignore: Dict[str, Set[str]] = {}
    format_ids: List[str] = []
    counts = {"dex": 0, "stats": 0, "copies": 0, "rejected": 0}

    dex_sets = fetch_dex_sets(gen, cfg)
    for species_name, formats in dex_sets.items():
        for suffix, sets in formats.items():
            format_id = f"gen{gen}{suffix}"
            fmt, format_name = resolve_format(dex, format_id)
            if format_name is None:
                continue
            if format_id not in format_ids:
                format_ids.append(format_id)
            species = resolve_species(dex, species_name)
            prefix = format_label(format_name)

            for label, dex_set in sets.items():
                pset = dex_to_pset(dex, species, dex_set)
                if fmt and not validate_pset(validators, fmt, pset, "dex"):
                    counts["rejected"] += 1
                    continue
                calc_set = pset_to_calc_set(gen, pset)
                set_name = f"{prefix} {label}"
                calc_sets.setdefault(species_name, {})[set_name] = calc_set
                stats_ignore.setdefault(species_name, set()).add(format_id)
                counts["dex"] += 1

                item = dex.item(pset["item"])
                for forme in similar_formes(pset, fmt, species, item) or []:
                    stats_ignore.setdefault(forme, set()).add(format_id)
                    if "-Mega" in forme:
                        copied = {**calc_set, "ability": mega_ability(dex, forme)}
                    else:
                        copied = dict(calc_set)
                    calc_sets.setdefault(forme, {})[set_name] = copied
                    counts["copies"] += 1

    for format_id in format_ids:
        fmt, format_name = resolve_format(dex, format_id)
        if format_name is None:
            continue
        # Usage statistics are optional enrichment: any failure to get them
        # is treated like a missing page.
        try:
            stats = fetch_stats(format_id, cfg)
        except (requests.exceptions.RequestException, ValueError) as exc:
            print(f"- stats:{format_id} -> failed ({exc.__class__.__name__})")
            stats = None
        if not stats:
            print(f"{format_name} has no stats page")
            continue

        battles = stats.get("battles")
        if isinstance(battles, bool) or not isinstance(battles, (int, float)):
            battles = 0
        threshold = usage_threshold(format_id, int(battles))
        set_name = f"{format_label(format_name)} {USAGE_SET_LABEL}"
        pokemon = stats.get("pokemon") or {}

        for species_name, usage in pokemon.items():
            if format_id in stats_ignore.get(species_name, ()):
                continue
            if usage_weight(usage) < threshold:
                continue
            species = resolve_species(dex, species_name)
            pset = usage_to_pset(dex, format_id, species["name"], usage)
            if fmt and not validate_pset(validators, fmt, pset, "stats"):
                counts["rejected"] += 1
                continue
            calc_set = pset_to_calc_set(gen, pset)
            calc_sets.setdefault(species_name, {})[set_name] = calc_set
            counts["stats"] += 1

            item = dex.item(pset["item"])
            is_mega_stone = bool(item and item.get("megaEvolves") and item.get("megaStone"))
            for forme in similar_formes(pset, fmt, species, item) or []:
                if format_id in stats_ignore.get(forme, ()):
                    continue
                if is_mega_stone:
                    copied = {**calc_set, "ability": mega_ability(dex, forme)}
                else:
                    copied = dict(calc_set)
                calc_sets.setdefault(forme, {})[set_name] = copied
                counts["copies"] += 1

    print(
        f"import gen{gen}: "
        f"species={len(calc_sets)} "
        f"dex_sets={counts['dex']} "
        f"usage_sets={counts['stats']} "
        f"copies={counts['copies']} "
        f"rejected={counts['rejected']}"
    )
    return calc_sets
