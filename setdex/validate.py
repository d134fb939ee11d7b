"""Set validation with automatic correction of known false rejections."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from .showdown import ValidatorCache

# Battle-only moves the validator reports under their teambuilder name.
CROWNED_MOVES: Dict[str, str] = {
    "Zacian-Crowned": "Behemoth Blade",
    "Zamazenta-Crowned": "Behemoth Bash",
}
CROWNED_PLACEHOLDER_MOVE = "ironhead"

SHINY_PROBLEM = "must be shiny"
ZERO_EVS_PROBLEM = "has exactly 0 EVs"

# Gen 4 Arceus sets are kept for tournament use even though Arceus is banned.
BANNED_SPECIES_ALLOWED = {"gen4ubers"}


def _check(validator: Any, pset: Dict[str, Any]) -> Optional[List[str]]:
    """Validate ``pset`` once, applying the engine's species correction.

    The ability is kept as submitted: the engine normalizes it for megas.
    """
    species = pset["species"]
    corrected, problems = validator.validate_set(pset)
    pset["species"] = corrected.get("species", species)
    pset["moves"] = list(corrected.get("moves", pset["moves"]))

    crowned_move = CROWNED_MOVES.get(species)
    if crowned_move and CROWNED_PLACEHOLDER_MOVE in pset["moves"]:
        pset["moves"][pset["moves"].index(CROWNED_PLACEHOLDER_MOVE)] = crowned_move
    return problems


def validate_pset(
    validators: ValidatorCache,
    fmt: Dict[str, Any],
    pset: Dict[str, Any],
    source: str,
) -> bool:
    """Return True when ``pset`` is legal in ``fmt``, possibly after self-correction.

    Rejections are printed with the offending set and are not errors.
    """
    validator = validators.get(fmt)
    problems = _check(validator, pset)
    if not problems:
        return True

    # Event-only sets are legal once marked shiny.
    if len(problems) == 1 and SHINY_PROBLEM in problems[0]:
        pset["shiny"] = True
        problems = _check(validator, pset)
        if not problems:
            return True

    if len(problems) == 1 and ZERO_EVS_PROBLEM in problems[0]:
        pset["evs"]["hp"] = 1
        problems = _check(validator, pset)
        if not problems:
            return True

    if fmt["id"] in BANNED_SPECIES_ALLOWED and f"{pset['species']} is banned." in problems:
        return True

    title = f"{fmt['name']}: {pset['species']}"
    details = f"{json.dumps(pset, ensure_ascii=False)} = {', '.join(problems)}"
    print(f"[{source.upper()}] Invalid set {title}: {details}")
    return False
