"""
Harvest trigger grammar tests: one case per strategy, plus the full round trip.
Run from project root: python -m pytest tests/test_trigger_parser.py -v
"""

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from agscore.trigger_parser import (
    parse_harvest_trigger,
    is_harvest_trigger,
    tokenize,
    extract_key_values,
    extract_known_system,
    yield_after_keyword,
    yield_with_mass_unit,
    first_bare_number,
    area_after_keyword,
    area_with_unit,
)
from agscore.reference_data import benchmarks_frame


def _benchmarks():
    return benchmarks_frame([
        ("Palay (Rice)", "Laguna",           "Irrigated",     4.00, "High",   ""),
        ("Palay (Rice)", "Laguna",           "Rainfed",       2.60, "High",   ""),
        ("Corn (Maize)", "Quezon, Laguna",   "Yellow (Feed)", 3.00, "High",   ""),
        ("Sweet Potato", "Quezon, Batangas", "All",           7.50, "Medium", ""),
        ("Wombok",       "Laguna, Quezon",   "Cool Season",  16.00, "Medium", ""),
    ])


def _tokens(text: str) -> list[dict]:
    return tokenize(text)


@pytest.mark.parametrize("text,expected", [
    ("harvest score palay 4", True),
    ("  HARVEST SCORE corn", True),
    ("harvestscore corn", True),
    ("please harvest score corn", False),
    ("harvest scores", False),
    ("", False),
    (None, False),
])
def test_is_harvest_trigger(text, expected):
    assert is_harvest_trigger(text) is expected


def test_non_trigger_returns_empty():
    assert parse_harvest_trigger("what is my score", _benchmarks()) == {}
    assert parse_harvest_trigger(None, _benchmarks()) == {}


def test_tokenize_splits_glued_units():
    kinds = [(t["text"], t["kind"]) for t in _tokens("palay 5.2mt/ha, area: 2 ha")]
    assert kinds == [
        ("palay", "word"), ("5.2", "number"), ("mt/ha", "unit"),
        ("area", "keyword"), ("2", "number"), ("ha", "unit"),
    ]


def test_key_values_stop_at_comma_number_or_next_key():
    found, rest = extract_key_values(" crop: sweet potato, province: quezon 8 t/ha variety: native")
    assert found == {"crop": "sweet potato", "province": "quezon", "system": "native"}
    assert "8 t/ha" in rest
    assert "quezon" not in rest


def test_key_value_stops_at_bare_keyword():
    found, rest = extract_key_values("province: laguna area 2, yield 4")
    assert found == {"province": "laguna"}
    assert "area 2" in rest


def test_known_system_longest_first():
    system, rest = extract_known_system("wombok cool season 16 laguna", ["Cool Season", "Season"])
    assert system == "Cool Season"
    assert "cool" not in rest and "season" not in rest


def test_known_system_whole_words_only():
    system, rest = extract_known_system("palay rainfedish 3", ["Rainfed"])
    assert system is None
    assert rest == "palay rainfedish 3"


@pytest.mark.parametrize("strategy,text,expected", [
    (yield_after_keyword, "corn 2 ha yield 4.5", 4),
    (yield_after_keyword, "corn 4.5 t/ha", None),
    (yield_with_mass_unit, "corn 2 ha 4.5 t/ha", 3),
    (yield_with_mass_unit, "corn area 3 t", None),
    (first_bare_number, "corn 4.5 laguna", 1),
    (first_bare_number, "corn area 2 laguna", None),
])
def test_yield_strategies(strategy, text, expected):
    assert strategy(_tokens(text)) == expected


@pytest.mark.parametrize("strategy,text,used,expected", [
    (area_after_keyword, "corn 4 t/ha area 2.5", set(), 4),
    (area_with_unit, "corn 1.5 ha 4 t/ha", set(), 1),
    (area_with_unit, "corn 4 ha", {1}, None),
])
def test_area_strategies(strategy, text, used, expected):
    assert strategy(_tokens(text), used) == expected


def test_round_trip_full_command():
    """The canonical command: crop alias, system, yield, province and area."""
    out = parse_harvest_trigger(
        "harvest score palay irrigated 5.2 mt/ha nueva ecija area 1.5", _benchmarks(),
    )
    assert out["crop_type"] == "Palay (Rice)"
    assert out["system_or_variety"].lower() == "irrigated"
    assert out["projected_yield_per_ha"] == 5.2
    assert out["area_size_ha"] == 1.5
    assert "nueva ecija" in out["province"]


def test_round_trip_with_embedded_benchmarks():
    out = parse_harvest_trigger("harvest score palay irrigated 5.2 mt/ha nueva ecija area 1.5")
    assert out["crop_type"] == "Palay (Rice)"
    assert out["system_or_variety"] == "Irrigated"
    assert out["province"] == "nueva ecija"


@pytest.mark.parametrize("text,expected", [
    ("harvest score corn 5 t/ha quezon",
     {"crop_type": "Corn (Maize)", "projected_yield_per_ha": 5.0, "province": "quezon", "area_size_ha": 1.0}),
    ("harvest score rice 4 tons per ha laguna 2 hectares",
     {"crop_type": "Palay (Rice)", "projected_yield_per_ha": 4.0, "province": "laguna", "area_size_ha": 2.0}),
    ("harvest score corn 1.5 ha 5 t/ha laguna",
     {"crop_type": "Corn (Maize)", "projected_yield_per_ha": 5.0, "province": "laguna", "area_size_ha": 1.5}),
    ("harvest score sweet potato 8 batangas",
     {"crop_type": "sweet potato", "projected_yield_per_ha": 8.0, "province": "batangas", "area_size_ha": 1.0}),
    ("harvest score crop: corn, province: nueva vizcaya, yield 3.2",
     {"crop_type": "Corn (Maize)", "projected_yield_per_ha": 3.2, "province": "nueva vizcaya", "area_size_ha": 1.0}),
    ("harvest score wombok cool season 15 mt/ha laguna",
     {"crop_type": "wombok", "system_or_variety": "Cool Season", "projected_yield_per_ha": 15.0,
      "province": "laguna", "area_size_ha": 1.0}),
    ("harvest score corn laguna",
     {"crop_type": "Corn (Maize)", "province": "laguna", "area_size_ha": 1.0}),
    ("harvest score crop: palay, province: laguna area 2, yield 4",
     {"crop_type": "Palay (Rice)", "projected_yield_per_ha": 4.0, "province": "laguna", "area_size_ha": 2.0}),
])
def test_parse_table(text, expected):
    assert parse_harvest_trigger(text, _benchmarks()) == expected


def test_explicit_system_key_wins_over_table_match():
    out = parse_harvest_trigger("harvest score palay, variety: Irrigated Hybrid, 6 t/ha laguna", _benchmarks())
    assert out["system_or_variety"] == "Irrigated Hybrid"
    assert out["province"] == "laguna"


def test_leading_crop_fragment_stripped_from_province():
    out = parse_harvest_trigger("harvest score crop: palay, 4 palay laguna", _benchmarks())
    assert out["crop_type"] == "Palay (Rice)"
    assert out["province"] == "laguna"


if __name__ == "__main__":
    import subprocess
    sys.exit(subprocess.call([sys.executable, "-m", "pytest", __file__, "-v", "-s"]))
