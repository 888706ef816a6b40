"""
Soil texture classification and texture-only soil risk sub-scores.

- normalize_fractions: rescales sand/silt/clay to 100 when the raw total is
  outside the tolerance band (85-115); otherwise uses the values as given.
- classify_texture: USDA texture triangle, encoded as an ordered rule table.
- Four sub-scores (0-1000, higher = riskier): compaction, waterlogging,
  drought stress, nutrient management. Each is a weighted sum of risk drivers
  minus mitigators over the normalised fractions, clamped to [0, 1000].
- analyse_soil: full soil analysis including climate-conditioned weighting.
"""

import math

from agscore.config import SOIL_SUM_TOLERANCE, SOIL_RISK_LABELS
from agscore.weighting import weight_soil_subscores


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def gaussian(x: float, mu: float, sigma: float) -> float:
    """Unnormalised Gaussian bump: 1.0 at x == mu."""
    z = (x - mu) / sigma
    return math.exp(-0.5 * z * z)


def ramp(x: float, start: float, span: float) -> float:
    """0 at `start`, rising linearly to 1 at `start + span` (negative span ramps downward)."""
    return clamp((x - start) / span, 0.0, 1.0)


def loam_proximity(sand: float, silt: float, clay: float) -> float:
    """1.0 for the ideal 40/40/20 loam, falling to 0 at a mean deviation of 40 points."""
    distance = (abs(sand - 40) + abs(silt - 40) + abs(clay - 20)) / 3
    return clamp(1 - distance / 40, 0.0, 1.0)


def normalize_fractions(sand: float, silt: float, clay: float) -> dict:
    """Return {sand, silt, clay}, rescaled to sum to 100 if the raw total is out of band."""
    total = sand + silt + clay
    if total <= 0:
        return {"sand": 0.0, "silt": 0.0, "clay": 0.0}
    lo, hi = SOIL_SUM_TOLERANCE
    if total < lo or total > hi:
        return {
            "sand": sand / total * 100,
            "silt": silt / total * 100,
            "clay": clay / total * 100,
        }
    return {"sand": float(sand), "silt": float(silt), "clay": float(clay)}


# ---------------------------------------------------------------------------
# USDA texture triangle
# Evaluated top to bottom; the first matching rule wins.
# ---------------------------------------------------------------------------
TEXTURE_RULES = [
    (lambda sa, si, cl: si + 1.5 * cl < 15, "Sand"),
    (lambda sa, si, cl: 15 <= si + 1.5 * cl < 30, "Loamy Sand"),
    (lambda sa, si, cl: 7 <= cl < 20 and sa > 52 and si + 2 * cl >= 30, "Sandy Loam"),
    (lambda sa, si, cl: 7 <= cl < 27 and 28 <= si < 50 and sa <= 52, "Loam"),
    (lambda sa, si, cl: (si >= 50 and 12 <= cl < 27) or (50 <= si < 80 and cl < 12), "Silt Loam"),
    (lambda sa, si, cl: si >= 80 and cl < 12, "Silt"),
    (lambda sa, si, cl: 20 <= cl < 35 and si < 28 and sa > 45, "Sandy Clay Loam"),
    (lambda sa, si, cl: 27 <= cl < 40 and 20 < sa <= 45, "Clay Loam"),
    (lambda sa, si, cl: 27 <= cl < 40 and si >= 40, "Silty Clay Loam"),
    (lambda sa, si, cl: cl >= 35 and sa > 45, "Sandy Clay"),
    (lambda sa, si, cl: cl >= 40 and si >= 40, "Silty Clay"),
    (lambda sa, si, cl: cl >= 40 and sa <= 45 and si < 40, "Clay"),
]


def classify_texture(sand: float, silt: float, clay: float) -> str:
    for predicate, texture in TEXTURE_RULES:
        if predicate(sand, silt, clay):
            return texture
    return "Unknown"


# ---------------------------------------------------------------------------
# Sub-scores
# ---------------------------------------------------------------------------

def compaction_risk(sand: float, silt: float, clay: float) -> float:
    """Silt-driven, peaking near 25% clay and loam textures; relieved by very sandy or very clayey soil."""
    drivers = (
        silt / 100 * 600
        + gaussian(clay, 25, 8) * 250
        + loam_proximity(sand, silt, clay) * 120
    )
    mitigators = ramp(sand, 80, 20) * 250 + ramp(clay, 60, 40) * 180
    return clamp(drivers - mitigators, 0, 1000)


def waterlogging_risk(sand: float, silt: float, clay: float) -> float:
    drivers = (
        clay / 100 * 550
        + gaussian(silt, 45, 12) * 220
        + ramp(sand, 30, -30) * 200
        + ramp(clay, 60, 40) * 150
    )
    mitigators = ramp(sand, 60, 40) * 500 + ramp(silt, 10, -10) * 60
    return clamp(drivers - mitigators, 0, 1000)


def drought_stress_risk(sand: float, silt: float, clay: float) -> float:
    drivers = (
        sand / 100 * 600
        + ramp(sand, 60, 40) * 200
        + (1 - gaussian(clay, 25, 10)) * 250
        + ramp(clay, 55, 45) * 120
        + ramp(silt + clay, 20, -20) * 120
    )
    mitigators = gaussian(silt, 45, 10) * 250 + loam_proximity(sand, silt, clay) * 80
    return clamp(drivers - mitigators, 0, 1000)


def nutrient_management_risk(sand: float, silt: float, clay: float) -> float:
    """Leaching on coarse soils plus fixation on very heavy clays."""
    drivers = (
        sand / 100 * 450
        + ramp(silt + clay, 20, -20) * 250
        + ramp(clay, 10, -10) * 300
        + ramp(clay, 45, 55) * 120
    )
    mitigators = gaussian(clay, 35, 10) * 250 + gaussian(silt, 45, 12) * 100
    return clamp(drivers - mitigators, 0, 1000)


def soil_subscores(sand: float, silt: float, clay: float) -> dict:
    """Raw (unweighted) sub-scores for normalised fractions."""
    return {
        "nutrient":     nutrient_management_risk(sand, silt, clay),
        "drought":      drought_stress_risk(sand, silt, clay),
        "waterlogging": waterlogging_risk(sand, silt, clay),
        "compaction":   compaction_risk(sand, silt, clay),
    }


def dominant_risks(details: dict) -> str:
    """Label the two sub-scores with the largest weighted contribution."""
    ranked = sorted(details, key=lambda k: details[k]["contribution"], reverse=True)
    return f"{SOIL_RISK_LABELS[ranked[0]]} and {SOIL_RISK_LABELS[ranked[1]]}"


def analyse_soil(sand: float, silt: float, clay: float, climate: dict | None = None) -> dict:
    """
    Full soil analysis for raw sand/silt/clay percentages.

    Returns
    -------
    dict with keys:
        score         : int, weighted soil score (10-1000)
        soil_texture  : USDA texture class
        sand, silt, clay : normalised fractions
        sub_scores    : {nutrient|drought|waterlogging|compaction: {raw, factor, effective, weight, contribution}}
        dominant_risks : str
        activity_factors_applied : list[str]
    """
    fr = normalize_fractions(sand, silt, clay)
    base = soil_subscores(fr["sand"], fr["silt"], fr["clay"])
    weighted = weight_soil_subscores(base, climate)

    return {
        "score":        weighted["score"],
        "soil_texture": classify_texture(fr["sand"], fr["silt"], fr["clay"]),
        "sand":         fr["sand"],
        "silt":         fr["silt"],
        "clay":         fr["clay"],
        "sub_scores":   weighted["details"],
        "dominant_risks": dominant_risks(weighted["details"]),
        "activity_factors_applied": weighted["activity_factors_applied"],
    }
