"""Reference database: species, items, formats and Hidden Power tables.

Species and items are scoped to one generation: each generation's tables are
built from Pokémon Showdown's dump of that generation's mod, so abilities and
formes are those of the era. Formats come from Showdown's own format list and
are shared by every generation. An optional PokéAPI fallback covers species
Showdown does not list. Every lookup is keyed by Showdown id so callers may
pass display names.
"""

from __future__ import annotations

import functools
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .hidden_power import hidden_power_template, hidden_power_type
from .naming import to_id
from .pokeapi import fetch_species
from .showdown import load_engine_document

MEGA_FORMES = ("Mega", "Mega-X", "Mega-Y")
ABILITY_SLOTS = ("0", "1", "H", "S")

SpeciesFallback = Callable[[str], Optional[Dict[str, Any]]]
# gen -> (pokedex document, items document) of that generation
GenerationSource = Callable[[int], Tuple[Any, Any]]

Table = Dict[str, Dict[str, Any]]


def build_species_entry(entry: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Normalize one ``pokedex.json`` entry."""
    name = entry.get("name")
    if not isinstance(name, str) or not name:
        return None
    raw_abilities = entry.get("abilities")
    abilities: List[str] = []
    if isinstance(raw_abilities, dict):
        for slot in ABILITY_SLOTS:
            ability = raw_abilities.get(slot)
            if isinstance(ability, str) and ability:
                abilities.append(ability)
    elif isinstance(raw_abilities, list):
        abilities = [a for a in raw_abilities if isinstance(a, str) and a]
    forme = entry.get("forme") if isinstance(entry.get("forme"), str) else ""
    base_species = entry.get("baseSpecies")
    return {
        "name": name,
        "abilities": abilities,
        "baseSpecies": base_species if isinstance(base_species, str) else name,
        "forme": forme,
        "isMega": bool(entry.get("isMega")) or forme in MEGA_FORMES,
        "requiredItem": entry.get("requiredItem"),
    }


def build_format_entry(format_id: str, entry: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    name = entry.get("name")
    if not isinstance(name, str) or not name:
        return None
    ruleset = entry.get("ruleset")
    banlist = entry.get("banlist")
    return {
        "id": format_id,
        "name": name,
        "exists": bool(entry.get("exists", True)),
        "ruleset": [r for r in ruleset if isinstance(r, str)] if isinstance(ruleset, list) else [],
        "banlist": [b for b in banlist if isinstance(b, str)] if isinstance(banlist, list) else [],
    }


def build_generation_tables(pokedex: Any, items: Any = None) -> Tuple[Table, Table]:
    """Species and item tables of one generation.

    Mega stones are derived from mega formes' ``requiredItem``; ``items``
    entries add to or override them.
    """
    species: Table = {}
    item_map: Table = {}
    if isinstance(pokedex, dict):
        for entry in pokedex.values():
            if not isinstance(entry, dict):
                continue
            rec = build_species_entry(entry)
            if rec is None:
                continue
            species[to_id(rec["name"])] = rec
            stone = rec.get("requiredItem")
            if rec["isMega"] and isinstance(stone, str) and stone:
                item_map[to_id(stone)] = {
                    "name": stone,
                    "megaStone": rec["name"],
                    "megaEvolves": rec["baseSpecies"],
                }

    if isinstance(items, dict):
        for entry in items.values():
            if isinstance(entry, dict) and isinstance(entry.get("name"), str):
                item_map[to_id(entry["name"])] = dict(entry)
    return species, item_map


def build_format_table(formats: Any) -> Table:
    """Formats keyed by id; ``formats`` maps ids or lists entries with a ``name``."""
    if isinstance(formats, dict):
        entries = [(to_id(k), v) for k, v in formats.items()]
    elif isinstance(formats, list):
        entries = [(to_id(v.get("name", "")), v) for v in formats if isinstance(v, dict)]
    else:
        entries = []
    format_map: Table = {}
    for format_id, entry in entries:
        if not isinstance(entry, dict):
            continue
        rec = build_format_entry(format_id, entry)
        if rec is not None:
            format_map[format_id] = rec
    return format_map


class Dex:
    """Reference tables of one generation.

    ``for_gen`` returns the Dex of another generation. With a ``source`` the
    other generation's species and items are loaded from it (once per
    generation); without one every generation shares this Dex's tables.
    """

    def __init__(
        self,
        gen: int = 9,
        *,
        species: Optional[Table] = None,
        items: Optional[Table] = None,
        formats: Optional[Table] = None,
        fallback: Optional[SpeciesFallback] = None,
        source: Optional[GenerationSource] = None,
        generations: Optional[Dict[int, "Dex"]] = None,
    ) -> None:
        self.gen = gen
        self._species = species if species is not None else {}
        self._items = items if items is not None else {}
        self._formats = formats if formats is not None else {}
        self._fallback = fallback
        self._source = source
        self._generations = generations if generations is not None else {}
        self._generations.setdefault(gen, self)

    @classmethod
    def from_documents(
        cls,
        *,
        pokedex: Any,
        formats: Any = None,
        items: Any = None,
        fallback: Optional[SpeciesFallback] = None,
        gen: int = 9,
        source: Optional[GenerationSource] = None,
    ) -> "Dex":
        """Build a Dex from raw JSON documents.

        ``pokedex`` maps ids to Showdown species entries and ``formats`` maps
        ids to ``{name, exists, ruleset, banlist}``. ``source`` supplies the
        documents of the other generations.
        """
        species, item_map = build_generation_tables(pokedex, items)
        return cls(
            gen,
            species=species,
            items=item_map,
            formats=build_format_table(formats),
            fallback=fallback,
            source=source,
        )

    @classmethod
    def load(cls, cfg: Dict[str, Any], gen: int = 9) -> "Dex":
        """Load the reference data from the Showdown engine (cached on disk)."""

        def source(g: int) -> Tuple[Any, Any]:
            doc = load_engine_document(cfg, "dex", str(g))
            if not isinstance(doc, dict) or not isinstance(doc.get("species"), dict):
                raise RuntimeError(f"Missing or invalid species data for gen {g}")
            return doc["species"], doc.get("items")

        formats = load_engine_document(cfg, "formats")
        if not isinstance(formats, dict):
            raise RuntimeError("Missing or invalid format list")

        fallback: Optional[SpeciesFallback] = None
        if cfg.get("pokeapi_fallback"):
            base_url = str(cfg.get("pokeapi_base_url", "https://pokeapi.co/api/v2"))
            fallback = functools.partial(fetch_species, base_url=base_url)

        pokedex, items = source(gen)
        dex = cls.from_documents(
            pokedex=pokedex, formats=formats, items=items, fallback=fallback, gen=gen, source=source
        )
        print(
            "reference: "
            f"species={len(dex._species)} "
            f"items={len(dex._items)} "
            f"formats={len(dex._formats)}"
        )
        return dex

    def for_gen(self, gen: int) -> "Dex":
        found = self._generations.get(gen)
        if found is not None:
            return found
        if self._source is None:
            species, items = self._species, self._items
        else:
            species, items = build_generation_tables(*self._source(gen))
        return Dex(
            gen,
            species=species,
            items=items,
            formats=self._formats,
            fallback=self._fallback,
            source=self._source,
            generations=self._generations,
        )

    def species(self, name: str) -> Optional[Dict[str, Any]]:
        key = to_id(name)
        found = self._species.get(key)
        if found is None and self._fallback is not None and key:
            found = self._fallback(name)
            if found is not None:
                # Remember hits so each name goes over the wire once.
                self._species[key] = found
        return found

    def item(self, name: Optional[str]) -> Optional[Dict[str, Any]]:
        if not name:
            return None
        return self._items.get(to_id(name))

    def format(self, format_id: str) -> Optional[Dict[str, Any]]:
        return self._formats.get(to_id(format_id))

    def hidden_power(self, ivs: Mapping[str, int]) -> str:
        return hidden_power_type(ivs, self.gen)

    def hidden_power_template(self, type_: str, halved: bool = False) -> Dict[str, int]:
        return hidden_power_template(type_, halved)
