"""
Baseline risk engine: combines climate, soil and harvest scores into one
baseline risk score (10-1000, higher = riskier) with a 7-tier label.

Component weights depend on which components could be computed and on
whether the crop cycle touches the summer months (March-May):

    components              summer            otherwise
    climate+soil+harvest    0.40/0.40/0.20    0.50/0.30/0.20
    climate+soil            0.50/0.50         0.60/0.40
    climate+harvest         0.60/0.40         0.60/0.40
    soil+harvest            0.60/0.40         0.60/0.40
    any single component    1.0
    none                    baseline fixed at 10

Alpha (only when climate, soil and harvest all exist):
    context    = 0.60 × climate + 0.40 × soil
    alpha      = round(context − w_h × harvest)      w_h = benchmark confidence weight
    alpha_risk = clamp(round(500 − alpha), 0, 1000)
"""

import logging
import math

import pandas as pd

from agscore.config import (
    SCORE_FLOOR,
    SCORE_MAX,
    SUMMER_MONTHS,
    RISK_TIERS,
    RISK_TIER_TOP,
    BASELINE_WEIGHTS,
    COMPONENT_ORDER,
    CLIMATE_TYPE_DESCRIPTIONS,
    ALPHA_CLIMATE_WEIGHT,
    ALPHA_SOIL_WEIGHT,
    ALPHA_PIVOT,
)
from agscore.climate import analyse_climate
from agscore.soil import analyse_soil
from agscore.harvest import calculate_harvest_score, HarvestScoreError
from agscore.trigger_parser import parse_harvest_trigger

log = logging.getLogger(__name__)

COMPONENT_LABELS = {"climate": "Climate", "soil": "Soil", "harvest": "Harvest"}
COMPONENT_RECOMMENDATIONS = {
    "climate": "seasonal scheduling and drainage",
    "soil":    "soil structure and nutrient management",
    "harvest": "closing the yield gap to benchmark via variety/system and management",
}


def get_qualitative_tier(score: float) -> dict:
    """Map a 0-1000 risk score to {tier, label}."""
    for upper, tier, label in RISK_TIERS:
        if score <= upper:
            return {"tier": tier, "label": label}
    tier, label = RISK_TIER_TOP
    return {"tier": tier, "label": label}


def is_summer_crop(breakdown: list[dict] | None) -> bool:
    return any(m.get("month") in SUMMER_MONTHS for m in breakdown or [])


def baseline_weights(components, is_summer: bool) -> dict[str, float]:
    """Fixed weight for each present component; empty dict when none are present."""
    present = frozenset(components)
    if len(present) == 1:
        return {next(iter(present)): 1.0}
    return dict(BASELINE_WEIGHTS.get((present, is_summer), {}))


def compute_alpha(climate_score: float, soil_score: float, harvest: dict) -> dict:
    """Alpha context score; see module docstring."""
    context = ALPHA_CLIMATE_WEIGHT * climate_score + ALPHA_SOIL_WEIGHT * soil_score
    weight = harvest.get("weight")
    weight = 1.0 if weight is None else weight
    alpha = int(round(context - weight * harvest["score"]))
    alpha_risk = int(round(min(SCORE_MAX, max(0, ALPHA_PIVOT - alpha))))
    tier = get_qualitative_tier(alpha_risk)
    return {
        "alpha":            alpha,
        "alpha_risk":       alpha_risk,
        "alpha_tier_label": tier["label"],
        "alpha_tier":       tier["tier"],
    }


def _to_float(value) -> float:
    """Best-effort numeric coercion; anything unparseable becomes NaN."""
    if value is None:
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _first_present(*values):
    for v in values:
        if v is not None:
            return v
    return None


def _harvest_from_inputs(inputs: dict, benchmarks: pd.DataFrame | None) -> dict | None:
    """Direct fields win over values parsed from the trigger text."""
    parsed = parse_harvest_trigger(inputs.get("trigger_text"), benchmarks)

    crop_type = _first_present(inputs.get("crop_type"), parsed.get("crop_type"))
    province  = _first_present(inputs.get("province"), parsed.get("province"))
    system    = _first_present(inputs.get("system_or_variety"), parsed.get("system_or_variety"))
    yield_ha  = _to_float(_first_present(inputs.get("projected_yield_per_ha"), parsed.get("projected_yield_per_ha")))
    area_ha   = _to_float(_first_present(inputs.get("area_size_ha"), parsed.get("area_size_ha"), 1))

    if not (crop_type and province and math.isfinite(yield_ha)):
        return None
    try:
        return calculate_harvest_score(
            crop_type,
            province,
            yield_ha,
            area_ha if math.isfinite(area_ha) else 1.0,
            system,
            benchmarks=benchmarks,
        )
    except HarvestScoreError as exc:
        log.warning("Harvest score skipped: %s", exc)
        return None


def _explanation(weights: dict[str, float]) -> str:
    parts = [
        f"{COMPONENT_LABELS[k]} {round(weights[k] * 100)}%"
        for k in COMPONENT_ORDER if weights.get(k)
    ]
    return "The baseline blends available risk components using fixed weights: " + ", ".join(parts) + "."


def calculate_baseline_risk_score(
    inputs: dict,
    stations: pd.DataFrame | None = None,
    benchmarks: pd.DataFrame | None = None,
) -> dict:
    """
    Score one farm.

    Parameters
    ----------
    inputs : dict
        Any of: sand, silt, clay (percent); latitude, longitude,
        crop_cycle_months (list of month names); trigger_text, or the direct
        harvest fields crop_type, province, projected_yield_per_ha,
        area_size_ha (default 1), system_or_variety.
    stations, benchmarks : pd.DataFrame, optional
        Reference tables; default to the cached tables from reference_data.

    Returns
    -------
    dict with keys:
        baseline_score, qualitative_risk, qualitative_tier,
        climate_score, soil_score, soil_analysis, monthly_climate_breakdown,
        climate_type, climate_type_description, dominant_climate_hazard,
        explanation, final_statement, final_recommendation
    plus harvest_score (when computable) and alpha, alpha_risk,
    alpha_tier_label, alpha_tier (when climate, soil and harvest all exist).
    """
    fractions = [_to_float(inputs.get(k)) for k in ("sand", "silt", "clay")]
    lat, lon = _to_float(inputs.get("latitude")), _to_float(inputs.get("longitude"))
    has_soil = all(math.isfinite(v) for v in fractions)
    has_climate = math.isfinite(lat) and math.isfinite(lon) and bool(inputs.get("crop_cycle_months"))

    climate = None
    if has_climate:
        climate = analyse_climate(lat, lon, inputs["crop_cycle_months"], stations)

    soil = None
    if has_soil:
        soil = analyse_soil(*fractions, climate)

    harvest = _harvest_from_inputs(inputs, benchmarks)

    scores = {}
    if climate is not None:
        scores["climate"] = climate["overall_score"]
    if soil is not None:
        scores["soil"] = soil["score"]
    if harvest is not None:
        scores["harvest"] = harvest["score"]

    summer = is_summer_crop(climate["breakdown"] if climate else None)
    weights = baseline_weights(scores, summer)
    log.debug("Components %s (summer=%s) weights %s", scores, summer, weights)

    if scores:
        baseline = sum(scores[k] * weights.get(k, 0.0) for k in scores)
        explanation = _explanation(weights)
        statement = []
        if climate is not None:
            statement.append(f"{climate['climate_type']} climate")
        if soil is not None:
            statement.append(f"{soil['soil_texture']} soil")
        if harvest is not None:
            statement.append(
                f"harvest performance **{harvest['qualitative_tier']}** "
                f"(ratio {harvest['ratio']:.2f}× vs benchmark)"
            )
        final_statement = " + ".join(statement)
        final_recommendation = "; ".join(COMPONENT_RECOMMENDATIONS[k] for k in COMPONENT_ORDER if k in scores)
    else:
        baseline = SCORE_FLOOR
        explanation = "No climate, soil, or harvest inputs were available."
        final_statement = "insufficient component data"
        final_recommendation = "provide soil % or coordinates + crop cycle, or a harvest trigger"

    baseline_score = int(round(min(SCORE_MAX, max(SCORE_FLOOR, baseline))))
    tier = get_qualitative_tier(baseline_score)

    result = {
        "baseline_score":            baseline_score,
        "qualitative_risk":          tier["label"],
        "qualitative_tier":          tier["tier"],
        "climate_score":             climate["overall_score"] if climate else None,
        "soil_score":                soil["score"] if soil else None,
        "soil_analysis":             soil,
        "monthly_climate_breakdown": climate["breakdown"] if climate else None,
        "climate_type":              climate["climate_type"] if climate else None,
        "climate_type_description":  CLIMATE_TYPE_DESCRIPTIONS.get(climate["climate_type"]) if climate else None,
        "dominant_climate_hazard":   climate["dominant_hazard"] if climate else None,
        "explanation":               explanation,
        "final_statement":           final_statement,
        "final_recommendation":      final_recommendation,
    }
    if harvest is not None:
        result["harvest_score"] = harvest
        if climate is not None and soil is not None:
            result.update(compute_alpha(climate["overall_score"], soil["score"], harvest))
    return result
