"""Review workbook for imported sets.

One sheet per generation with one row per (species, set label), plus a Meta
sheet. The workbook is a convenience for reviewing an import; the calculator
only reads the ``gen<N>.js`` artifacts.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping

from openpyxl import Workbook

from .cache.io import ensure_dir

HEADERS: List[str] = [
    "SPECIES",
    "SET",
    "LEVEL",
    "ABILITY",
    "ITEM",
    "NATURE",
    "TERA_TYPE",
    "EVS",
    "IVS",
    "MOVE1",
    "MOVE2",
    "MOVE3",
    "MOVE4",
]


def _write_row(ws: Any, values: List[Any]) -> None:
    ws.append(values)


def _format_stats(table: Mapping[str, int]) -> str:
    return " / ".join(f"{value} {key}" for key, value in table.items())


def set_rows(calc_sets: Mapping[str, Mapping[str, Dict[str, Any]]]) -> List[List[Any]]:
    """Flatten ``{species: {label: CalcSet}}`` into sorted sheet rows."""
    rows: List[List[Any]] = []
    for species in sorted(calc_sets):
        for label in sorted(calc_sets[species]):
            calc_set = calc_sets[species][label]
            moves = list(calc_set.get("moves") or [])[:4]
            moves.extend([None] * (4 - len(moves)))
            rows.append(
                [
                    species,
                    label,
                    calc_set.get("level"),
                    calc_set.get("ability") or None,
                    calc_set.get("item") or None,
                    calc_set.get("nature") or None,
                    calc_set.get("teraType"),
                    _format_stats(calc_set.get("evs") or {}),
                    _format_stats(calc_set.get("ivs") or {}),
                    *moves,
                ]
            )
    return rows


def write_workbook(
    path: str,
    by_gen: Mapping[int, Mapping[str, Mapping[str, Dict[str, Any]]]],
    gen_names: Mapping[int, str],
) -> None:
    """Write the review workbook for the imported generations."""
    ensure_dir(os.path.dirname(path))

    wb = Workbook()
    # Remove default sheet so we control sheet order.
    default_ws = wb.active
    if default_ws is not None:
        wb.remove(default_ws)

    total_sets = 0
    for gen in sorted(by_gen):
        ws = wb.create_sheet(f"Gen{gen} {gen_names.get(gen, '')}".strip())
        _write_row(ws, HEADERS)
        rows = set_rows(by_gen[gen])
        for row in rows:
            _write_row(ws, row)
        total_sets += len(rows)

    ws_meta = wb.create_sheet("Meta")
    _write_row(ws_meta, ["KEY", "VALUE"])
    _write_row(ws_meta, ["generated_at", datetime.now(timezone.utc).isoformat()])
    _write_row(ws_meta, ["generations", ",".join(str(g) for g in sorted(by_gen))])
    _write_row(ws_meta, ["sets", total_sets])

    wb.save(path)
    print(f"workbook: wrote {path} sets={total_sets}")
