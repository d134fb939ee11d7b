"""Pokémon Showdown engine boundary.

Everything the importer needs from Showdown goes through ``showdown.js``,
a small node script over the ``pokemon-showdown`` package:

* ``validate <format>`` keeps one ``TeamValidator`` alive and checks sets
  one per line, so team-level rules (minimum team size, item clause) never
  apply and the set comes back as the engine rewrote it;
* ``dex <gen>`` dumps the species and items of one generation's mod;
* ``formats`` dumps every format with its ruleset flattened through the
  engine's rule table.

Dumps are cached under ``reference_cache_dir`` like any other reference
document.
"""

from __future__ import annotations

import json
import os
import subprocess
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .cache.io import atomic_write_json, read_cached, reference_cache_path, wrap_raw

ENGINE_SCRIPT = os.path.join(os.path.dirname(os.path.abspath(__file__)), "showdown.js")

ValidationResult = Tuple[Dict[str, Any], Optional[List[str]]]


def engine_command(cfg: Dict[str, Any]) -> List[str]:
    command = cfg.get("engine_command")
    return list(command) if command else ["node", ENGINE_SCRIPT]


def run_engine(command: Sequence[str], *args: str) -> Any:
    """Run a one-shot engine mode and decode its JSON output."""
    proc = subprocess.run(
        [*command, *args],
        capture_output=True,
        text=True,
        encoding="utf-8",
        check=False,
    )
    if proc.returncode != 0:
        detail = proc.stderr.strip() or f"exit status {proc.returncode}"
        raise RuntimeError(f"showdown {' '.join(args)} failed: {detail}")
    return json.loads(proc.stdout)


def load_engine_document(cfg: Dict[str, Any], *args: str) -> Any:
    """Engine dump for ``args``, refreshed once older than ``ttl_days.reference``."""
    source = "showdown " + " ".join(args)
    cache_dir = str(cfg.get("reference_cache_dir", "data/raw/reference"))
    ttl_days = int((cfg.get("ttl_days") or {}).get("reference", 7))
    path = reference_cache_path(cache_dir, source)

    cached = read_cached(path, ttl_days)
    if cached is not None:
        return cached

    print(f"Dumping {source}...")
    payload = run_engine(engine_command(cfg), *args)
    atomic_write_json(path, wrap_raw(source, payload))
    return payload


class ShowdownValidator:
    """Validates single sets against one format through a long-lived engine process."""

    def __init__(self, format_id: str, command: Optional[Sequence[str]] = None) -> None:
        self.format_id = format_id
        self.command = list(command) if command else ["node", ENGINE_SCRIPT]
        self._proc: Optional[subprocess.Popen] = None

    def _process(self) -> subprocess.Popen:
        if self._proc is None or self._proc.poll() is not None:
            self._proc = subprocess.Popen(
                [*self.command, "validate", self.format_id],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                text=True,
                encoding="utf-8",
            )
        return self._proc

    def validate_set(self, pset: Dict[str, Any]) -> ValidationResult:
        """Return the set as the engine left it and its problems (None when legal).

        The engine may rewrite the set while checking it, e.g. resolving a
        battle-only forme to its base species. The argument is never mutated.
        """
        proc = self._process()
        proc.stdin.write(json.dumps(pset, ensure_ascii=False) + "\n")
        proc.stdin.flush()
        line = proc.stdout.readline()
        if not line:
            raise RuntimeError(
                f"validator for {self.format_id} exited with status {proc.poll()}"
            )
        reply = json.loads(line)
        return reply["set"], reply.get("problems") or None

    def close(self) -> None:
        if self._proc is None:
            return
        self._proc.stdin.close()
        self._proc.wait()
        self._proc = None


ValidatorFactory = Callable[[Dict[str, Any]], Any]


class ValidatorCache:
    """One validator per format, created on first use and kept for the batch."""

    def __init__(self, factory: ValidatorFactory) -> None:
        self._factory = factory
        self._validators: Dict[str, Any] = {}

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "ValidatorCache":
        command = engine_command(cfg)

        def factory(fmt: Dict[str, Any]) -> ShowdownValidator:
            return ShowdownValidator(fmt["id"], command)

        return cls(factory)

    def get(self, fmt: Dict[str, Any]) -> Any:
        format_id = fmt["id"]
        validator = self._validators.get(format_id)
        if validator is None:
            validator = self._validators[format_id] = self._factory(fmt)
        return validator

    def close(self) -> None:
        for validator in self._validators.values():
            close = getattr(validator, "close", None)
            if close is not None:
                close()
        self._validators.clear()

    def __len__(self) -> int:
        return len(self._validators)
