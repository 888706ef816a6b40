"""
Climate risk: station interpolation, climate-type classification and
monthly stress scoring over the crop cycle.

Pipeline:
  1. Great-circle distance from the farm to every station; keep the two nearest.
  2. Inverse-distance weights w_i = 1 - d_i / (d_1 + d_2) applied to the
     12-month rainfall / rainy-day / humidity series of both stations.
  3. Classify the interpolated year into a PAGASA climate type (I-IV).
  4. For each crop-cycle month, tier each variable against its stress ladder;
     the worst tier is the month's tier and names its limiting factor. The
     month score is interpolated within that tier's band of SCORE_SCALE.
  5. Softmax-aggregate the monthly scores into one climate score (10-1000).
"""

import logging
import math

import numpy as np
import pandas as pd

from agscore.config import (
    EARTH_RADIUS_KM,
    MONTH_NAMES,
    MONTH_MAP,
    CLIMATE_THRESHOLDS,
    SCORE_SCALE,
    LIMITING_FACTOR_LABELS,
    DRY_SEASON_MONTHS,
    WET_PEAK_MONTHS,
    SCORE_FLOOR,
    SCORE_MAX,
)
from agscore.reference_data import get_weather_stations, SERIES_COLUMNS
from agscore.weighting import aggregate_monthly_scores

log = logging.getLogger(__name__)


def haversine_km(lat1: float, lon1: float, lat2, lon2):
    """Great-circle distance in km. lat2/lon2 may be numpy arrays."""
    phi1, phi2 = np.radians(lat1), np.radians(lat2)
    dphi = np.radians(np.asarray(lat2) - lat1)
    dlmb = np.radians(np.asarray(lon2) - lon1)
    a = np.sin(dphi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(dlmb / 2) ** 2
    return EARTH_RADIUS_KM * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def nearest_stations(latitude: float, longitude: float, stations: pd.DataFrame, n: int = 2) -> pd.DataFrame:
    """Return the n closest stations with a 'dist_km' column, nearest first."""
    ranked = stations.assign(
        dist_km=haversine_km(latitude, longitude, stations["lat"].to_numpy(), stations["lon"].to_numpy())
    )
    return ranked.sort_values("dist_km", kind="stable").head(n).reset_index(drop=True)


def interpolation_weights(d1: float, d2: float) -> tuple[float, float]:
    """Two-station inverse-distance weights; all weight to the first if both are at distance 0."""
    total = d1 + d2
    if total <= 0:
        return 1.0, 0.0
    return 1 - d1 / total, 1 - d2 / total


def interpolate_year(latitude: float, longitude: float, stations: pd.DataFrame | None = None) -> dict | None:
    """
    Synthetic 12-month series at (latitude, longitude).

    Returns dict with keys rainfall, rainy_days, humidity (each a list of 12
    floats) and stations (the names and distances used), or None if the
    station table is empty.
    """
    stations = get_weather_stations() if stations is None else stations
    if stations.empty:
        log.warning("No weather stations available; climate analysis skipped.")
        return None

    near = nearest_stations(latitude, longitude, stations)
    s1 = near.iloc[0]
    s2 = near.iloc[1] if len(near) > 1 else s1
    w1, w2 = interpolation_weights(s1["dist_km"], s2["dist_km"])
    log.debug(
        "Interpolating from %s (%.1f km, w=%.3f) and %s (%.1f km, w=%.3f)",
        s1["station"], s1["dist_km"], w1, s2["station"], s2["dist_km"], w2,
    )

    out = {
        series: (np.asarray(s1[series], dtype=float) * w1 + np.asarray(s2[series], dtype=float) * w2).tolist()
        for series in SERIES_COLUMNS
    }
    out["stations"] = [
        {"station": s1["station"], "dist_km": float(s1["dist_km"]), "weight": w1},
        {"station": s2["station"], "dist_km": float(s2["dist_km"]), "weight": w2},
    ]
    return out


# ---------------------------------------------------------------------------
# Climate type (PAGASA Corona classification, heuristic)
# Evaluated top to bottom; the first matching rule wins.
# ---------------------------------------------------------------------------

def _dry_season(year: dict) -> list[float]:
    return [year["rainfall"][i] for i in DRY_SEASON_MONTHS]


CLIMATE_TYPE_RULES = [
    (lambda y: sum(r <= 150 for r in _dry_season(y)) >= 5, "Type I"),
    (lambda y: sum(y["rainfall"][i] > 450 for i in WET_PEAK_MONTHS) >= 2, "Type II"),
    (lambda y: 1 <= sum(r <= 175 and d <= 12 for r, d in zip(y["rainfall"], y["rainy_days"])) <= 3, "Type III"),
    (lambda y: sum(100 <= r <= 700 for r in y["rainfall"]) >= 10, "Type IV"),
    (lambda y: all(r <= 200 for r in _dry_season(y)), "Type I"),
    (lambda y: any(r > 700 for r in y["rainfall"]), "Type II"),
]


def classify_climate_type(year: dict) -> str:
    """year: dict with 12-element 'rainfall' and 'rainy_days' lists."""
    for predicate, climate_type in CLIMATE_TYPE_RULES:
        if predicate(year):
            return climate_type
    return "Unknown"


# ---------------------------------------------------------------------------
# Monthly scoring
# ---------------------------------------------------------------------------

def get_tier(value: float, thresholds: list[float]) -> int:
    """1-based index of the first threshold >= value."""
    for i, upper in enumerate(thresholds):
        if value <= upper:
            return i + 1
    return len(thresholds)


def interpolate_band(value: float, x1: float, x2: float, y1: float, y2: float) -> float:
    """Linear map of value from [x1, x2] onto [y1, y2], clamped to the y band."""
    if x2 - x1 == 0 or math.isinf(x2):
        # open-ended top tier starts at its lower score
        return y1
    y = y1 + (y2 - y1) * ((value - x1) / (x2 - x1))
    return max(min(y, max(y1, y2)), min(y1, y2))


# Later entries win ties for the limiting factor
LIMITING_FACTOR_PRECEDENCE = ("rainfall", "rainy_days", "humidity")


def parse_months(crop_cycle_months: list[str]) -> list[int]:
    """Map month names/abbreviations (case-insensitive) to 0-11; unknown names are dropped."""
    indices = []
    for m in crop_cycle_months or []:
        idx = MONTH_MAP.get(str(m).strip().lower())
        if idx is None:
            log.warning("Ignoring unrecognised crop cycle month %r", m)
            continue
        indices.append(idx)
    return indices


def score_month(month_index: int, rainfall: float, rainy_days: float, humidity: float) -> dict:
    """Tier one month's climate and return its breakdown row."""
    values = {"rainfall": rainfall, "rainy_days": rainy_days, "humidity": humidity}
    tiers = {k: get_tier(v, CLIMATE_THRESHOLDS[k]) for k, v in values.items()}
    final_tier = max(tiers.values())

    limiting = LIMITING_FACTOR_PRECEDENCE[0]
    for factor in LIMITING_FACTOR_PRECEDENCE:
        if tiers[factor] == final_tier:
            limiting = factor

    monthly_score = float(SCORE_FLOOR)
    if final_tier > 1:
        ladder = CLIMATE_THRESHOLDS[limiting]
        monthly_score = interpolate_band(
            values[limiting],
            ladder[final_tier - 2],
            ladder[final_tier - 1],
            SCORE_SCALE[final_tier - 1],
            SCORE_SCALE[final_tier],
        )

    return {
        "month":           MONTH_NAMES[month_index],
        "rainfall":        rainfall,
        "rainy_days":      rainy_days,
        "humidity":        humidity,
        "final_tier":      final_tier,
        "limiting_factor": LIMITING_FACTOR_LABELS[limiting],
        "monthly_score":   int(round(min(SCORE_MAX, max(SCORE_FLOOR, monthly_score)))),
    }


def analyse_climate(
    latitude: float,
    longitude: float,
    crop_cycle_months: list[str],
    stations: pd.DataFrame | None = None,
) -> dict | None:
    """
    Climate analysis for a farm location over its crop cycle.

    Returns
    -------
    dict with keys:
        overall_score   : int, softmax-aggregated climate score (10-1000)
        breakdown       : list of per-month dicts (see score_month)
        climate_type    : "Type I" .. "Type IV" | "Unknown"
        dominant_hazard : str
        stations        : stations used for interpolation
    or None if no weather stations are available.
    """
    year = interpolate_year(latitude, longitude, stations)
    if year is None:
        return None

    months = parse_months(crop_cycle_months)
    if not months:
        return {
            "overall_score":   SCORE_FLOOR,
            "breakdown":       [],
            "climate_type":    "Unknown",
            "dominant_hazard": "No crop cycle data",
            "stations":        year["stations"],
        }

    climate_type = classify_climate_type(year)
    breakdown = [
        score_month(i, year["rainfall"][i], year["rainy_days"][i], year["humidity"][i])
        for i in months
    ]
    overall = aggregate_monthly_scores([m["monthly_score"] for m in breakdown])

    return {
        "overall_score":   overall,
        "breakdown":       breakdown,
        "climate_type":    climate_type,
        "dominant_hazard": f"Persistent wetness, high rainfall and humidity, {climate_type} pattern.",
        "stations":        year["stations"],
    }
