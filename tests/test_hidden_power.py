import copy

import pytest

from setdex.dex import Dex
from setdex.hidden_power import (
    HP_DVS,
    HP_IVS,
    expected_hp,
    hidden_power_type,
    reconcile_hidden_power,
    requested_hidden_power,
)
from setdex.stats import fill_stats


def _pset(moves, ivs, level=100):
    return {"species": "Magnezone", "moves": list(moves), "ivs": dict(ivs), "level": level}


@pytest.mark.parametrize("type_", sorted(HP_IVS))
def test_iv_templates_encode_their_type(type_):
    assert hidden_power_type(fill_stats(HP_IVS[type_], 31), 7) == type_


@pytest.mark.parametrize("type_", sorted(HP_DVS))
def test_dv_templates_encode_their_type(type_):
    ivs = {stat: dv * 2 for stat, dv in HP_DVS[type_].items()}
    assert hidden_power_type(fill_stats(ivs, 30), 2) == type_


def test_perfect_ivs_are_dark():
    assert hidden_power_type(fill_stats(None, 31), 9) == "Dark"
    assert hidden_power_type(fill_stats(None, 30), 2) == "Dark"


def test_expected_hp_follows_dv_parity():
    assert expected_hp({"atk": 28, "def": 28, "spe": 28, "spa": 28}) == 0
    assert expected_hp({"atk": 30, "def": 30, "spe": 30, "spa": 30}) == 30


def test_requested_hidden_power():
    assert requested_hidden_power(["Thunderbolt", "Hidden Power Fire"]) == "Fire"
    assert requested_hidden_power(["Hidden Power"]) is None
    assert requested_hidden_power(["Hidden Power Fairy"]) is None
    assert requested_hidden_power([]) is None


def test_gen2_rewrites_dvs_and_hp():
    pset = _pset(["Thunderbolt", "Hidden Power Fire"], fill_stats(None, 30))
    ivs = reconcile_hidden_power(pset, Dex(2))
    assert ivs == {"hp": 6, "atk": 28, "def": 24, "spa": 30, "spd": 30, "spe": 30}
    assert pset["ivs"] is ivs
    assert hidden_power_type(ivs, 2) == "Fire"


def test_gen4_applies_iv_template():
    pset = _pset(["Hidden Power Fire"], fill_stats(None, 31))
    reconcile_hidden_power(pset, Dex(4))
    assert pset["ivs"] == {"hp": 31, "atk": 30, "def": 31, "spa": 30, "spd": 31, "spe": 30}
    assert "hpType" not in pset


def test_gen7_level_100_sets_hp_type_instead():
    pset = _pset(["Hidden Power Ice"], fill_stats(None, 31))
    reconcile_hidden_power(pset, Dex(7))
    assert pset["hpType"] == "Ice"
    assert pset["ivs"] == fill_stats(None, 31)


def test_gen7_below_level_100_rewrites_ivs():
    pset = _pset(["Hidden Power Ice"], fill_stats(None, 31), level=50)
    reconcile_hidden_power(pset, Dex(7))
    assert "hpType" not in pset
    assert hidden_power_type(pset["ivs"], 7) == "Ice"


@pytest.mark.parametrize("gen", [2, 3, 6])
def test_reconcile_is_idempotent(gen):
    pset = _pset(["Hidden Power Grass"], fill_stats(None, 30 if gen == 2 else 31))
    dex = Dex(gen)
    reconcile_hidden_power(pset, dex)
    once = copy.deepcopy(pset)
    reconcile_hidden_power(pset, dex)
    assert pset == once


def test_matching_or_missing_hidden_power_leaves_ivs_alone():
    ivs = fill_stats(None, 31)
    dark = _pset(["Hidden Power Dark"], ivs)
    reconcile_hidden_power(dark, Dex(4))
    assert dark["ivs"] == ivs

    plain = _pset(["Surf"], ivs, level=50)
    reconcile_hidden_power(plain, Dex(4))
    assert plain["ivs"] == ivs
    assert "hpType" not in plain
