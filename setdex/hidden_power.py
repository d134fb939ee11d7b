"""Hidden Power type derivation and IV reconciliation.

Hidden Power's type is not stored on a set; it is implied by the IVs (gen 3+)
or DVs (gen 2). Sets only name the move ("Hidden Power Fire"), so the IV
table has to be rewritten until it encodes the requested type.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from .stats import fill_stats

HIDDEN_POWER_PREFIX = "Hidden Power"

HP_TYPES: List[str] = [
    "Fighting",
    "Flying",
    "Poison",
    "Ground",
    "Rock",
    "Bug",
    "Ghost",
    "Steel",
    "Fire",
    "Water",
    "Grass",
    "Electric",
    "Psychic",
    "Ice",
    "Dragon",
    "Dark",
]

# Gen 3+ IVs (0-31) per type; omitted stats stay at 31.
HP_IVS: Dict[str, Dict[str, int]] = {
    "Bug": {"atk": 30, "def": 30, "spd": 30},
    "Dark": {},
    "Dragon": {"atk": 30},
    "Electric": {"spa": 30},
    "Fighting": {"def": 30, "spa": 30, "spd": 30, "spe": 30},
    "Fire": {"atk": 30, "spa": 30, "spe": 30},
    "Flying": {"hp": 30, "atk": 30, "def": 30, "spa": 30, "spd": 30},
    "Ghost": {"def": 30, "spd": 30},
    "Grass": {"atk": 30, "spa": 30},
    "Ground": {"spa": 30, "spd": 30},
    "Ice": {"atk": 30, "def": 30},
    "Poison": {"def": 30, "spa": 30, "spd": 30},
    "Psychic": {"atk": 30, "spe": 30},
    "Rock": {"def": 30, "spd": 30, "spe": 30},
    "Steel": {"spd": 30},
    "Water": {"atk": 30, "def": 30, "spa": 30},
}

# Gen 2 DVs (0-15) per type; omitted stats stay at 15.
HP_DVS: Dict[str, Dict[str, int]] = {
    "Bug": {"atk": 13, "def": 13},
    "Dark": {},
    "Dragon": {"def": 14},
    "Electric": {"atk": 14},
    "Fighting": {"atk": 12, "def": 12},
    "Fire": {"atk": 14, "def": 12},
    "Flying": {"atk": 12, "def": 13},
    "Ghost": {"atk": 13, "def": 14},
    "Grass": {"atk": 14, "def": 14},
    "Ground": {"atk": 12},
    "Ice": {"def": 13},
    "Poison": {"atk": 12, "def": 14},
    "Psychic": {"def": 12},
    "Rock": {"atk": 13, "def": 12},
    "Steel": {"atk": 13},
    "Water": {"atk": 14, "def": 13},
}


def hidden_power_type(ivs: Mapping[str, int], gen: int) -> str:
    """Return the Hidden Power type encoded by ``ivs`` in ``gen``."""
    ivs = fill_stats(ivs, 31)
    if gen <= 2:
        atk_dv = ivs["atk"] // 2
        def_dv = ivs["def"] // 2
        return HP_TYPES[4 * (atk_dv % 4) + (def_dv % 4)]
    total = 0
    for bit, stat in enumerate(("hp", "atk", "def", "spe", "spa", "spd")):
        total += (ivs[stat] % 2) << bit
    return HP_TYPES[total * 15 // 63]


def hidden_power_template(type_: str, halved: bool = False) -> Dict[str, int]:
    """Per-stat values forcing ``type_``; DVs when ``halved`` else IVs."""
    table = HP_DVS if halved else HP_IVS
    return dict(table[type_])


def expected_hp(ivs: Mapping[str, int]) -> int:
    """Gen 2 HP IV implied by the low bits of the other four DVs."""
    ivs = fill_stats(ivs, 31)
    atk_dv = ivs["atk"] // 2
    def_dv = ivs["def"] // 2
    spe_dv = ivs["spe"] // 2
    spc_dv = ivs["spa"] // 2
    return 2 * ((atk_dv % 2) * 8 + (def_dv % 2) * 4 + (spe_dv % 2) * 2 + (spc_dv % 2))


def requested_hidden_power(moves: List[str]) -> Optional[str]:
    """Type named by the first Hidden Power move, or None."""
    for move in moves:
        if move.startswith(HIDDEN_POWER_PREFIX):
            type_ = move[len(HIDDEN_POWER_PREFIX) + 1:]
            return type_ if type_ in HP_IVS else None
    return None


def reconcile_hidden_power(pset: Dict[str, Any], dex: Any) -> Dict[str, int]:
    """Rewrite ``pset["ivs"]`` so it encodes the set's Hidden Power type.

    Gen 7+ level 100 sets keep their IVs and carry ``hpType`` instead (the
    type can be chosen freely there). Mutates the set and returns its IVs.
    """
    ivs = pset["ivs"]
    type_ = requested_hidden_power(pset.get("moves") or [])
    if not type_ or dex.hidden_power(ivs) == type_:
        return ivs

    if dex.gen >= 7 and pset.get("level") == 100:
        pset["hpType"] = type_
    elif dex.gen == 2:
        for stat, dv in dex.hidden_power_template(type_, halved=True).items():
            ivs[stat] = dv * 2
        ivs["hp"] = expected_hp(ivs)
    else:
        ivs.update(dex.hidden_power_template(type_))
    return ivs
