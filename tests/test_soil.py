"""
Soil tests: fraction normalisation, USDA texture rules, sub-score ranges.
Run from project root: python -m pytest tests/test_soil.py -v
"""

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from agscore.soil import (
    normalize_fractions,
    classify_texture,
    compaction_risk,
    soil_subscores,
    analyse_soil,
    TEXTURE_RULES,
)
from agscore.config import SOIL_RISK_LABELS


def test_fractions_inside_tolerance_are_used_raw():
    """A raw total between 85 and 115 must pass through unchanged."""
    for sand, silt, clay in [(40, 40, 25), (30, 30, 25), (50, 40, 25)]:
        fr = normalize_fractions(sand, silt, clay)
        assert (fr["sand"], fr["silt"], fr["clay"]) == (sand, silt, clay), (
            f"{sand}/{silt}/{clay} should not be rescaled"
        )


@pytest.mark.parametrize("sand,silt,clay", [(20, 20, 10), (60, 50, 40), (1, 1, 1), (200, 0, 0)])
def test_fractions_outside_tolerance_sum_to_100(sand, silt, clay):
    """Out-of-band totals are rescaled to percentages summing to 100."""
    fr = normalize_fractions(sand, silt, clay)
    assert sum(fr.values()) == pytest.approx(100.0)


def test_fractions_zero_total():
    assert normalize_fractions(0, 0, 0) == {"sand": 0.0, "silt": 0.0, "clay": 0.0}


@pytest.mark.parametrize("sand,silt,clay,expected", [
    (92, 5, 3,   "Sand"),
    (82, 12, 6,  "Loamy Sand"),
    (65, 25, 10, "Sandy Loam"),
    (40, 40, 20, "Loam"),
    (20, 65, 15, "Silt Loam"),
    (5, 88, 7,   "Silt"),
    (60, 15, 25, "Sandy Clay Loam"),
    (35, 33, 32, "Clay Loam"),
    (10, 55, 35, "Silty Clay Loam"),
    (50, 5, 45,  "Sandy Clay"),
    (5, 45, 50,  "Silty Clay"),
    (20, 20, 60, "Clay"),
])
def test_texture_rules(sand, silt, clay, expected):
    assert classify_texture(sand, silt, clay) == expected


def test_texture_rule_table_covers_all_classes():
    """Every USDA class appears exactly once in the ordered rule table."""
    names = [name for _, name in TEXTURE_RULES]
    assert len(names) == len(set(names)) == 12


def test_balanced_loam_subscores_mid_range():
    """40/40/20 loam: compaction near mid-range, drought not extreme."""
    subs = soil_subscores(40, 40, 20)
    assert 250 <= subs["compaction"] <= 750, f"compaction {subs['compaction']:.0f} should be mid-range"
    assert subs["drought"] <= 500, f"drought {subs['drought']:.0f} should not be extreme for loam"
    assert compaction_risk(40, 40, 20) == pytest.approx(566, abs=1)


@pytest.mark.parametrize("sand,silt,clay", [
    (100, 0, 0), (0, 100, 0), (0, 0, 100), (33, 33, 34), (70, 10, 20), (10, 20, 70),
])
def test_subscores_clamped(sand, silt, clay):
    for key, value in soil_subscores(sand, silt, clay).items():
        assert 0 <= value <= 1000, f"{key} out of range for {sand}/{silt}/{clay}: {value}"


def test_sandy_soil_more_drought_prone_than_loam():
    assert soil_subscores(90, 5, 5)["drought"] > soil_subscores(40, 40, 20)["drought"]


def test_analyse_soil_structure():
    """analyse_soil returns texture, fractions, four sub-scores and a bounded score."""
    result = analyse_soil(40, 40, 20)
    assert result["soil_texture"] == "Loam"
    assert 10 <= result["score"] <= 1000
    assert isinstance(result["score"], int)
    assert set(result["sub_scores"]) == {"nutrient", "drought", "waterlogging", "compaction"}
    for detail in result["sub_scores"].values():
        assert {"raw", "factor", "effective", "weight", "contribution"} <= set(detail)
    assert result["activity_factors_applied"] == []


def test_analyse_soil_weights_sum_to_one():
    for fractions in [(40, 40, 20), (90, 5, 5), (10, 30, 60), (25, 60, 15)]:
        weights = [d["weight"] for d in analyse_soil(*fractions)["sub_scores"].values()]
        assert sum(weights) == pytest.approx(1.0, abs=1e-6)
        assert all(0.0 < w <= 1.0 for w in weights)


def test_dominant_risks_labels():
    """Dominant risks name the two largest contributions with readable labels."""
    result = analyse_soil(90, 5, 5)
    first, second = result["dominant_risks"].split(" and ")
    labels = set(SOIL_RISK_LABELS.values())
    assert first in labels and second in labels
    assert first != second


def test_analyse_soil_uses_normalised_fractions():
    result = analyse_soil(20, 20, 10)
    assert (result["sand"], result["silt"], result["clay"]) == pytest.approx((40.0, 40.0, 20.0))
    assert result["soil_texture"] == "Loam"


def test_wet_climate_applies_activity_factors():
    """A wet, humid crop cycle scales drought down and nutrient/compaction up."""
    climate = {"breakdown": [{"rainfall": 300.0, "rainy_days": 20.0, "humidity": 85.0}]}
    result = analyse_soil(40, 40, 20, climate)
    subs = result["sub_scores"]
    assert subs["drought"]["factor"] == 0.5
    assert subs["nutrient"]["factor"] == 1.2
    assert subs["compaction"]["factor"] == 1.1
    assert subs["waterlogging"]["factor"] == 1.0
    assert len(result["activity_factors_applied"]) == 2


if __name__ == "__main__":
    import subprocess
    sys.exit(subprocess.call([sys.executable, "-m", "pytest", __file__, "-v", "-s"]))
