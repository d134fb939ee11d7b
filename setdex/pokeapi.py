"""PokéAPI species lookup, used when the Showdown dex does not know a name."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

import requests
import pokebase
import pokebase.api as pokebase_api
import pokebase.common as pokebase_common

from .naming import slug_titlecase

_SLUG_RE = re.compile(r"[^a-z0-9-]+")


def _configure_pokebase_base_url(base_url: str) -> None:
    pokebase_common.BASE_URL = base_url.rstrip("/")


def pokeapi_slug(name: str) -> str:
    """Showdown species name -> PokéAPI slug ("Mr. Mime" -> "mr-mime")."""
    return _SLUG_RE.sub("", name.strip().lower().replace(" ", "-"))


def _extract_abilities(pokemon_data: Dict[str, Any]) -> List[str]:
    abilities = pokemon_data.get("abilities")
    if not isinstance(abilities, list):
        return []

    parsed: List[Tuple[bool, int, str]] = []
    for a in abilities:
        if not isinstance(a, dict):
            continue
        slot = a.get("slot")
        is_hidden = a.get("is_hidden")
        name = ((a.get("ability") or {}).get("name"))
        if isinstance(slot, int) and isinstance(is_hidden, bool) and isinstance(name, str):
            parsed.append((is_hidden, slot, name))
    # Regular abilities by slot, then the hidden one.
    parsed.sort()
    return [slug_titlecase(name) for _, _, name in parsed]


def build_species(name: str, pokemon_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Build a dex species entry from a raw PokéAPI pokemon payload."""
    form_key = pokemon_data.get("name")
    if not isinstance(form_key, str):
        return None
    base_slug = ((pokemon_data.get("species") or {}).get("name"))
    base_species = slug_titlecase(base_slug) if isinstance(base_slug, str) else name
    is_mega = "-mega" in form_key
    return {
        "name": name,
        "abilities": _extract_abilities(pokemon_data),
        "baseSpecies": base_species,
        "forme": "Mega" if is_mega else "",
        "isMega": is_mega,
    }


def fetch_species(name: str, base_url: str) -> Optional[Dict[str, Any]]:
    """Look ``name`` up on PokéAPI; None when unknown or unreachable."""
    _configure_pokebase_base_url(base_url)
    slug = pokeapi_slug(name)
    try:
        # pokebase validates ids as integers at the HTTP layer.
        resolved_id = pokebase.pokemon(slug).id_
        payload = pokebase_api.get_data("pokemon", resolved_id)
    except (requests.exceptions.RequestException, ValueError) as exc:
        print(f"- species:{name} -> pokeapi lookup failed ({exc.__class__.__name__})")
        return None
    if not isinstance(payload, dict):
        return None
    return build_species(name, payload)
