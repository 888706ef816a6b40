"""
Climate tests: station interpolation, climate-type rules, monthly tiering.
Run from project root: python -m pytest tests/test_climate.py -v
"""

import math
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from agscore.climate import (
    haversine_km,
    nearest_stations,
    interpolation_weights,
    interpolate_year,
    classify_climate_type,
    get_tier,
    interpolate_band,
    parse_months,
    score_month,
    analyse_climate,
)
from agscore.config import CLIMATE_THRESHOLDS
from agscore.reference_data import stations_frame

WET = [300] * 12
DRY = [40] * 12


def _stations():
    """Three synthetic stations: two close together in Luzon, one in Mindanao."""
    return stations_frame([
        ("North", 15.0, 121.0, WET, [20] * 12, [88] * 12),
        ("South", 14.0, 121.0, DRY, [4] * 12, [70] * 12),
        ("Far",    7.0, 125.0, [150] * 12, [12] * 12, [80] * 12),
    ])


def _year(rainfall, rainy_days=None):
    return {"rainfall": rainfall, "rainy_days": rainy_days or [20] * 12}


def test_haversine_one_degree_of_longitude_at_equator():
    assert float(haversine_km(0.0, 0.0, 0.0, 1.0)) == pytest.approx(111.19, abs=0.05)
    assert float(haversine_km(14.6, 121.0, 14.6, 121.0)) == pytest.approx(0.0)


def test_nearest_stations_ordered_by_distance():
    near = nearest_stations(14.2, 121.0, _stations())
    assert list(near["station"]) == ["South", "North"]
    assert near["dist_km"].is_monotonic_increasing


def test_interpolation_weights():
    assert interpolation_weights(10.0, 30.0) == pytest.approx((0.75, 0.25))
    assert interpolation_weights(0.0, 0.0) == (1.0, 0.0)


def test_interpolate_at_station_returns_its_series():
    """A farm standing on a station gets that station's normals."""
    year = interpolate_year(14.0, 121.0, _stations())
    assert year["rainfall"] == pytest.approx(DRY)
    assert year["stations"][0]["station"] == "South"
    assert year["stations"][0]["weight"] == pytest.approx(1.0)


def test_interpolate_midpoint_blends_evenly():
    year = interpolate_year(14.5, 121.0, _stations())
    assert year["rainfall"][0] == pytest.approx((300 + 40) / 2, abs=0.5)
    for series in ("rainfall", "rainy_days", "humidity"):
        assert len(year[series]) == 12
        assert all(math.isfinite(v) for v in year[series])


def test_interpolate_single_station():
    stations = stations_frame([("Only", 10.0, 120.0, WET, [20] * 12, [88] * 12)])
    year = interpolate_year(12.0, 122.0, stations)
    assert year["rainfall"] == pytest.approx(WET)


def test_interpolate_no_stations():
    assert interpolate_year(14.0, 121.0, stations_frame([])) is None


@pytest.mark.parametrize("rainfall,rainy_days,expected", [
    # five or more dry-season months at or below 150 mm
    ([20, 10, 10, 20, 150, 300, 400, 400, 350, 200, 100, 50], None, "Type I"),
    # Nov-Jan above 450 mm
    ([500, 300, 200, 160, 200, 250, 300, 300, 300, 400, 500, 550], None, "Type II"),
    # one to three short dry months
    ([200, 160, 160, 170, 200, 250, 300, 300, 300, 250, 200, 200],
     [15, 12, 12, 12, 15, 15, 15, 15, 15, 15, 15, 15], "Type III"),
    ([250] * 12, [15] * 12, "Type IV"),
    # fallbacks
    ([180, 180, 180, 180, 800, 800, 800, 800, 800, 180, 180, 180], None, "Type I"),
    ([300, 300, 300, 300, 800, 800, 800, 800, 800, 300, 300, 300], None, "Type II"),
    ([300, 300, 300, 300, 90, 90, 90, 90, 90, 90, 300, 300], None, "Unknown"),
])
def test_climate_type_rules(rainfall, rainy_days, expected):
    assert classify_climate_type(_year(rainfall, rainy_days)) == expected


@pytest.mark.parametrize("value,expected", [(0, 1), (75, 1), (76, 2), (400, 4), (801, 7), (5000, 7)])
def test_rainfall_tiers(value, expected):
    assert get_tier(value, CLIMATE_THRESHOLDS["rainfall"]) == expected


def test_interpolate_band():
    assert interpolate_band(100, 75, 150, 143, 286) == pytest.approx(143 + 143 / 3)
    # clamped to the band
    assert interpolate_band(500, 75, 150, 143, 286) == 286
    # open-ended top tier
    assert interpolate_band(1200, 800, float("inf"), 857, 1000) == 857


def test_parse_months():
    assert parse_months(["Jan", "february", "Foo", " MAR "]) == [0, 1, 2]
    assert parse_months([]) == []
    assert parse_months(None) == []


def test_score_month_calm():
    row = score_month(0, 50, 5, 70)
    assert row["month"] == "January"
    assert row["final_tier"] == 1
    assert row["monthly_score"] == 10


def test_score_month_limiting_factor_is_worst_variable():
    row = score_month(6, 450, 20, 80)
    assert row["final_tier"] == 5
    assert row["limiting_factor"] == "Rainfall"
    # 571 + 143 × (450 - 400) / 200
    assert row["monthly_score"] == 607


def test_score_month_ties_go_to_later_factor():
    """Humidity wins a three-way tie; rainy days beat rainfall."""
    row = score_month(0, 100, 10, 81)
    assert row["limiting_factor"] == "Humidity"
    assert row["monthly_score"] == 250
    assert score_month(0, 100, 10, 70)["limiting_factor"] == "Rainy Days"


def test_score_month_open_top_tier():
    row = score_month(7, 1500, 10, 70)
    assert row["final_tier"] == 7
    assert row["monthly_score"] == 857


def test_analyse_climate_structure():
    result = analyse_climate(15.0, 121.0, ["Jun", "Jul", "Aug"], _stations())
    assert [m["month"] for m in result["breakdown"]] == ["June", "July", "August"]
    assert 10 <= result["overall_score"] <= 1000
    assert isinstance(result["overall_score"], int)
    assert result["climate_type"] in {"Type I", "Type II", "Type III", "Type IV", "Unknown"}
    assert result["climate_type"] in result["dominant_hazard"]
    for m in result["breakdown"]:
        assert 1 <= m["final_tier"] <= 7
        assert 10 <= m["monthly_score"] <= 1000


def test_analyse_climate_wetter_site_scores_higher():
    wet = analyse_climate(15.0, 121.0, ["Jun", "Jul"], _stations())
    dry = analyse_climate(14.0, 121.0, ["Jun", "Jul"], _stations())
    assert wet["overall_score"] > dry["overall_score"]


def test_analyse_climate_without_valid_months():
    result = analyse_climate(15.0, 121.0, ["Smarch"], _stations())
    assert result["overall_score"] == 10
    assert result["breakdown"] == []
    assert result["climate_type"] == "Unknown"
    assert result["dominant_hazard"] == "No crop cycle data"


def test_analyse_climate_embedded_stations():
    """Default reference stations cover a Laguna farm."""
    result = analyse_climate(14.17, 121.24, ["June", "July", "August", "September"])
    assert len(result["breakdown"]) == 4
    assert 10 <= result["overall_score"] <= 1000


if __name__ == "__main__":
    import subprocess
    sys.exit(subprocess.call([sys.executable, "-m", "pytest", __file__, "-v", "-s"]))
