"""
Dynamic weighting: softmax aggregation of scores and climate-conditioned
re-weighting of soil sub-scores.

Softmax with temperature T gives score s_i the weight
    w_i = exp((s_i - max s) / T) / Σ exp((s_j - max s) / T)
so the aggregate leans toward the worst (highest) scores rather than a flat
average. T = 150 on the 0-1000 scale means a 150-point gap multiplies the
relative weight by e.

Soil weights are additionally clamped to [floor, cap] and renormalised, so no
single sub-score can dominate (cap) or vanish (floor) from the soil score.
"""

import numpy as np

from agscore.config import (
    SOFTMAX_TEMPERATURE,
    SOIL_WEIGHT_FLOOR,
    SOIL_WEIGHT_CAP,
    SCORE_FLOOR,
    SCORE_MAX,
    WET_RAINFALL_MM,
    DRY_RAINFALL_MM,
    HUMID_RH_PCT,
    HUMID_RAINY_DAYS,
    WET_DROUGHT_FACTOR,
    WET_NUTRIENT_FACTOR,
    DRY_WATERLOG_FACTOR,
    HUMID_COMPACTION_FACTOR,
)

# Order of soil sub-scores in weight vectors
SOIL_KEYS = ("nutrient", "drought", "waterlogging", "compaction")


def softmax_weights(scores, temperature: float = SOFTMAX_TEMPERATURE) -> np.ndarray:
    """Return softmax weights (summing to 1) for a sequence of scores."""
    s = np.asarray(scores, dtype=float)
    if s.size == 0:
        return s
    exps = np.exp((s - s.max()) / temperature)
    total = exps.sum()
    if not total > 0:
        return np.full(s.size, 1.0 / s.size)
    return exps / total


def clamp_and_renormalize(weights, floors, caps) -> np.ndarray:
    """
    Clamp each weight into [floors[i], caps[i]] and rescale to sum to 1.
    floors / caps may be scalars or per-weight sequences.
    """
    w = np.asarray(weights, dtype=float)
    if w.size == 0:
        return w
    w = np.clip(w, floors, caps)
    total = w.sum()
    if not total > 0:
        return np.full(w.size, 1.0 / w.size)
    return w / total


def weighted_score(scores, weights) -> float:
    return float(np.dot(np.asarray(scores, dtype=float), np.asarray(weights, dtype=float)))


def aggregate_monthly_scores(monthly_scores: list[float], temperature: float = SOFTMAX_TEMPERATURE) -> int:
    """Softmax-weighted climate score over the crop cycle, clamped to [10, 1000]."""
    if not monthly_scores:
        return SCORE_FLOOR
    overall = weighted_score(monthly_scores, softmax_weights(monthly_scores, temperature))
    return int(round(min(SCORE_MAX, max(SCORE_FLOOR, overall))))


def compute_activity_factors(climate: dict | None) -> tuple[dict, list[str]]:
    """
    Derive soil sub-score multipliers from the crop-cycle climate averages.

    Returns (factors, applied) where factors maps each soil key to a multiplier
    and applied lists a human-readable note for each adjustment made.
    """
    factors = {k: 1.0 for k in SOIL_KEYS}
    applied: list[str] = []
    breakdown = (climate or {}).get("breakdown") or []
    if not breakdown:
        return factors, applied

    avg_rain = float(np.mean([m["rainfall"] for m in breakdown]))
    avg_days = float(np.mean([m["rainy_days"] for m in breakdown]))
    avg_rh   = float(np.mean([m["humidity"] for m in breakdown]))

    if avg_rain > WET_RAINFALL_MM:
        factors["drought"]  = WET_DROUGHT_FACTOR
        factors["nutrient"] = WET_NUTRIENT_FACTOR
        applied.append(
            f"Rainfall > {WET_RAINFALL_MM:g}mm → Drought×{WET_DROUGHT_FACTOR:g}, Nutrient×{WET_NUTRIENT_FACTOR:g}"
        )
    if avg_rain < DRY_RAINFALL_MM:
        factors["waterlogging"] = DRY_WATERLOG_FACTOR
        applied.append(f"Rainfall < {DRY_RAINFALL_MM:g}mm → Waterlogging×{DRY_WATERLOG_FACTOR:g}")
    if avg_rh > HUMID_RH_PCT and avg_days > HUMID_RAINY_DAYS:
        factors["compaction"] = HUMID_COMPACTION_FACTOR
        applied.append(f"Humidity > {HUMID_RH_PCT:g}% → Compaction×{HUMID_COMPACTION_FACTOR:g}")

    return factors, applied


def weight_soil_subscores(base_scores: dict, climate: dict | None = None) -> dict:
    """
    Combine the four raw soil sub-scores into one soil score.

    Parameters
    ----------
    base_scores : dict
        Raw sub-scores keyed by nutrient / drought / waterlogging / compaction.
    climate : dict or None
        Climate analysis (see climate.analyse_climate); None means no adjustment.

    Returns
    -------
    dict with keys:
        score     : int, weighted soil score clamped to [10, 1000]
        details   : {key: {raw, factor, effective, weight, contribution}}
        activity_factors_applied : list[str]
    """
    factors, applied = compute_activity_factors(climate)
    effective = np.array([base_scores[k] * factors[k] for k in SOIL_KEYS])

    weights = clamp_and_renormalize(
        softmax_weights(effective),
        SOIL_WEIGHT_FLOOR,
        SOIL_WEIGHT_CAP,
    )
    soil_score = weighted_score(effective, weights)

    details = {}
    for i, k in enumerate(SOIL_KEYS):
        details[k] = {
            "raw":          int(round(base_scores[k])),
            "factor":       factors[k],
            "effective":    int(round(effective[i])),
            "weight":       float(weights[i]),
            "contribution": int(round(weights[i] * effective[i])),
        }

    return {
        "score":   int(round(min(SCORE_MAX, max(SCORE_FLOOR, soil_score)))),
        "details": details,
        "activity_factors_applied": applied,
    }
