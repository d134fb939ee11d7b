"""Shared fixtures: a small reference dex, in-process validators and a fake engine."""

import copy
import json
import subprocess
import types

import pytest

from setdex.dex import Dex
from setdex.showdown import ValidatorCache

POKEDEX = {
    "landorustherian": {
        "name": "Landorus-Therian",
        "baseSpecies": "Landorus",
        "forme": "Therian",
        "abilities": {"0": "Intimidate"},
    },
    "aegislash": {"name": "Aegislash", "abilities": {"0": "Stance Change"}},
    "charizard": {"name": "Charizard", "abilities": {"0": "Blaze", "H": "Solar Power"}},
    "charizardmegax": {
        "name": "Charizard-Mega-X",
        "baseSpecies": "Charizard",
        "forme": "Mega-X",
        "abilities": {"0": "Tough Claws"},
        "requiredItem": "Charizardite X",
    },
    "tyranitar": {"name": "Tyranitar", "abilities": {"0": "Sand Stream", "H": "Unnerve"}},
    "tyranitarmega": {
        "name": "Tyranitar-Mega",
        "baseSpecies": "Tyranitar",
        "forme": "Mega",
        "abilities": {"0": "Sand Stream"},
        "requiredItem": "Tyranitarite",
    },
    "rayquaza": {"name": "Rayquaza", "abilities": {"0": "Air Lock"}},
    "rayquazamega": {
        "name": "Rayquaza-Mega",
        "baseSpecies": "Rayquaza",
        "forme": "Mega",
        "abilities": {"0": "Delta Stream"},
        "requiredMove": "Dragon Ascent",
    },
    "zygarde": {"name": "Zygarde", "abilities": {"0": "Aura Break", "S": "Power Construct"}},
    "zaciancrowned": {
        "name": "Zacian-Crowned",
        "baseSpecies": "Zacian",
        "forme": "Crowned",
        "abilities": {"0": "Intrepid Sword"},
        "requiredItem": "Rusted Sword",
    },
    "arceus": {"name": "Arceus", "abilities": {"0": "Multitype"}},
}

FORMATS = {
    "gen2ou": {"name": "[Gen 2] OU", "ruleset": ["Standard"], "banlist": ["Uber"]},
    "gen4ubers": {"name": "[Gen 4] Ubers", "ruleset": ["Standard"], "banlist": ["Arceus"]},
    "gen4ou": {"name": "[Gen 4] OU", "ruleset": ["Standard"], "banlist": ["Uber"]},
    "gen6ou": {"name": "[Gen 6] OU", "ruleset": ["Standard"], "banlist": ["Uber", "Rayquaza-Mega"]},
    "gen7ou": {"name": "[Gen 7] OU", "ruleset": ["Standard"], "banlist": ["Uber"]},
    "gen7ubers": {"name": "[Gen 7] Ubers", "ruleset": ["Standard", "Mega Rayquaza Clause"], "banlist": []},
    "gen7anythinggoes": {"name": "[Gen 7] Anything Goes", "ruleset": ["Obtainable"], "banlist": []},
    "gen8nationaldex": {"name": "[Gen 8] National Dex", "ruleset": ["Standard NatDex"], "banlist": ["ND Uber"]},
    "gen9ou": {"name": "[Gen 9] OU", "ruleset": ["Standard"], "banlist": ["Uber"]},
    "gen9ubers": {"name": "[Gen 9] Ubers", "ruleset": ["Standard"], "banlist": []},
    "gen9balancedhackmons": {"name": "[Gen 9] Balanced Hackmons", "ruleset": [], "banlist": []},
}


class FakeValidator:
    """Stands in for the Showdown validator.

    ``judge(pset)`` returns the problems for a set (None when legal);
    ``correct(pset)`` may rewrite the copy handed back as the corrected set.
    """

    def __init__(self, format_id, judge=None, correct=None):
        self.format_id = format_id
        self.judge = judge or (lambda pset: None)
        self.correct = correct
        self.calls = []

    def validate_set(self, pset):
        self.calls.append(copy.deepcopy(pset))
        corrected = copy.deepcopy(pset)
        if self.correct is not None:
            corrected = self.correct(corrected)
        return corrected, self.judge(pset)


@pytest.fixture
def dex():
    return Dex.from_documents(pokedex=POKEDEX, formats=FORMATS)


@pytest.fixture
def make_validators():
    """Build a ValidatorCache of FakeValidators; ``cache.created`` lists them."""

    def _make(judge=None, correct=None):
        created = []

        def factory(fmt):
            validator = FakeValidator(fmt["id"], judge, correct)
            created.append(validator)
            return validator

        cache = ValidatorCache(factory)
        cache.created = created
        return cache

    return _make


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "reference_cache_dir": str(tmp_path / "cache"),
                "max_retries": 0,
                "retry_backoff_seconds": 0,
                "generations": [9],
            }
        ),
        encoding="utf-8",
    )
    return str(path)


class _Pipe:
    """Stdin of a fake engine process; complete lines are answered on flush."""

    def __init__(self, answer):
        self._answer = answer
        self._buffer = ""
        self.closed = False

    def write(self, text):
        self._buffer += text

    def flush(self):
        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            self._answer(line)

    def close(self):
        self.closed = True


class FakeEngineProcess:
    """Stands in for ``showdown.js validate <format>``.

    A list payload is a whole team, so team-level rules apply and a team
    smaller than ``min_team_size`` gets Showdown's team-size problem. A
    single set only gets ``judge``'s problems. ``correct`` may rewrite the set
    handed back. A ``crashed`` process never answers.
    """

    def __init__(self, args, judge=None, correct=None, min_team_size=1, crashed=False):
        self.args = list(args)
        self.judge = judge or (lambda pset: None)
        self.correct = correct
        self.min_team_size = min_team_size
        self.crashed = crashed
        self.received = []
        self.returncode = 1 if crashed else None
        self._replies = []
        self.stdin = _Pipe(self._answer)
        self.stdout = self

    def _answer(self, line):
        payload = json.loads(line)
        self.received.append(payload)
        if self.crashed:
            return
        team = payload if isinstance(payload, list) else [payload]
        problems = []
        if isinstance(payload, list) and len(team) < self.min_team_size:
            problems.append(
                f"You must bring at least {self.min_team_size} Pokémon (your team has {len(team)})."
            )
        pset = team[0]
        problems.extend(self.judge(pset) or [])
        if self.correct is not None:
            pset = self.correct(pset)
        self._replies.append(json.dumps({"set": pset, "problems": problems or None}) + "\n")

    def readline(self):
        return self._replies.pop(0) if self._replies else ""

    def poll(self):
        return self.returncode

    def wait(self):
        if self.returncode is None:
            self.returncode = 0
        return self.returncode


@pytest.fixture
def fake_engine(monkeypatch):
    """Patch the engine's subprocesses.

    Configure ``judge``, ``correct``, ``min_team_size`` (per format),
    ``crashed`` and ``documents`` (dump output keyed by mode arguments, e.g.
    ``"dex 4"``); inspect ``processes`` and ``runs``.
    """
    engine = types.SimpleNamespace(
        judge=None,
        correct=None,
        min_team_size={},
        crashed=False,
        documents={},
        processes=[],
        runs=[],
    )

    def popen(args, **kwargs):
        format_id = args[-1]
        proc = FakeEngineProcess(
            args,
            engine.judge,
            engine.correct,
            engine.min_team_size.get(format_id, 1),
            engine.crashed,
        )
        engine.processes.append(proc)
        return proc

    def run(args, **kwargs):
        key = " ".join(args[2:])
        engine.runs.append(key)
        if key not in engine.documents:
            return subprocess.CompletedProcess(args, 2, stdout="", stderr=f"usage: {key}")
        return subprocess.CompletedProcess(
            args, 0, stdout=json.dumps(engine.documents[key]), stderr=""
        )

    monkeypatch.setattr("setdex.showdown.subprocess.Popen", popen)
    monkeypatch.setattr("setdex.showdown.subprocess.run", run)
    return engine
