"""Batch driver and CLI: import every generation and write its setdex file.

Each generation's map is assembled in memory and written only once complete,
so an interrupted run never leaves a half-written artifact behind.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional

from .cache.io import atomic_write_text
from .dex import Dex
from .fetch import load_config
from .importer import CalcSets, import_gen
from .showdown import ValidatorCache
from .workbook import write_workbook

GEN_NAMES: Dict[int, str] = {
    1: "RBY",
    2: "GSC",
    3: "ADV",
    4: "DPP",
    5: "BW",
    6: "XY",
    7: "SM",
    8: "SS",
    9: "SV",
}


def render_setdex(gen: int, calc_sets: CalcSets) -> str:
    """Render the calculator's ``var SETDEX_<ERA> = {...};`` script."""
    payload = json.dumps(calc_sets, ensure_ascii=False, separators=(",", ":"))
    return f"var SETDEX_{GEN_NAMES[gen]} = {payload};\n"


def write_setdex(out_dir: str, gen: int, calc_sets: CalcSets) -> str:
    path = os.path.join(out_dir, f"gen{gen}.js")
    print(f"Writing {path}...")
    atomic_write_text(path, render_setdex(gen, calc_sets))
    return path


def run_import(
    out_dir: str,
    *,
    config_path: str = "config/config.json",
    generations: Optional[List[int]] = None,
    workbook_path: Optional[str] = None,
    dex: Optional[Dex] = None,
    validators: Optional[ValidatorCache] = None,
) -> int:
    """Import the configured generations into ``out_dir``.

    Returns 1 when ``out_dir`` is not a writable directory, 0 otherwise.
    Fetch and validator failures propagate.
    """
    if not os.path.isdir(out_dir) or not os.access(out_dir, os.W_OK):
        print(f"{out_dir} is not a directory")
        return 1

    cfg = load_config(config_path)
    gens = [int(g) for g in (generations or cfg.get("generations") or [])]
    unknown = [g for g in gens if g not in GEN_NAMES]
    if unknown:
        raise RuntimeError(f"Unknown generations in config: {unknown}")

    if dex is None:
        dex = Dex.load(cfg)
    owned = validators is None
    if validators is None:
        validators = ValidatorCache.from_config(cfg)

    by_gen: Dict[int, Any] = {}
    try:
        for gen in gens:
            calc_sets = import_gen(dex.for_gen(gen), validators, cfg)
            write_setdex(out_dir, gen, calc_sets)
            if workbook_path:
                by_gen[gen] = calc_sets
    finally:
        if owned:
            validators.close()

    if workbook_path:
        write_workbook(workbook_path, by_gen, GEN_NAMES)
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="setdex",
        description="Import curated and usage-based sets into calculator setdex files.",
    )
    parser.add_argument("out_dir", help="directory receiving gen<N>.js files")
    parser.add_argument("--config", default="config/config.json")
    parser.add_argument(
        "--gens",
        type=int,
        nargs="+",
        choices=sorted(GEN_NAMES),
        default=None,
        help="generations to import (default: all configured)",
    )
    parser.add_argument("--workbook", default=None, help="also write a review .xlsx")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_arg_parser().parse_args(argv)
    return run_import(
        args.out_dir,
        config_path=args.config,
        generations=args.gens,
        workbook_path=args.workbook,
    )


if __name__ == "__main__":
    sys.exit(main())
