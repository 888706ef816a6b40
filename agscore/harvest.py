"""
Harvest score: projected yield versus the regional benchmark.

Yield ratio R = projected / benchmark. The score (0-1000, higher = worse) is
asymmetric around R = 1 (score 500):
    R < 1 :  500 + 500 × ((1 - R) / 0.3) ^ 0.7    (saturates at R = 0.7)
    R ≥ 1 :  500 - 500 × ((R - 1) / 1.0) ^ 0.8    (saturates at R = 2.0)

Performance tiers (1 = Very Low Performance ... 7 = Very High Performance).
"""

import logging
from datetime import date

import pandas as pd

from agscore.config import (
    SHORTFALL_SPAN,
    SHORTFALL_POWER,
    SURPLUS_SPAN,
    SURPLUS_POWER,
    HARVEST_TIERS,
    HARVEST_TIER_TOP,
)
from agscore.benchmarks import (
    match_benchmark,
    match_confidence_weight,
    normalize_crop_name,
    title_case,
)

log = logging.getLogger(__name__)


class HarvestScoreError(Exception):
    """Raised when a harvest score cannot be computed."""


class BenchmarkNotFoundError(HarvestScoreError):
    """No benchmark row matches the crop/province at any level of the cascade."""

    def __init__(self, crop: str, province: str):
        self.crop = crop
        self.province = province
        super().__init__(f'No yield benchmark for "{crop}" in "{province}".')


class NonViableCropError(HarvestScoreError):
    """The matched benchmark has a recommended yield of 0 (crop marked non-viable)."""

    def __init__(self, crop: str, system_or_variety: str, province: str):
        self.crop = crop
        self.system_or_variety = system_or_variety
        self.province = province
        super().__init__(
            f'Benchmark yield is 0 for "{crop}" ({system_or_variety}) in "{province}". '
            f"Crop may be non-viable."
        )


def calculate_yield_ratio_score(projected_yield: float, benchmark_yield: float) -> dict:
    """Return {score, ratio}; a non-positive benchmark or negative yield gives {500, 0.0}."""
    if not benchmark_yield > 0 or not projected_yield >= 0:
        return {"score": 500, "ratio": 0.0}
    r = projected_yield / benchmark_yield
    if r < 1.0:
        score = 500 + 500 * ((1 - r) / SHORTFALL_SPAN) ** SHORTFALL_POWER
    else:
        score = 500 - 500 * ((r - 1) / SURPLUS_SPAN) ** SURPLUS_POWER
    return {"score": int(round(min(1000.0, max(0.0, score)))), "ratio": r}


def get_harvest_performance_tier(score: float) -> dict:
    """Map a harvest score to {tier, label}; higher score = worse performance."""
    for lower, tier, label in HARVEST_TIERS:
        if score >= lower:
            return {"tier": tier, "label": label}
    tier, label = HARVEST_TIER_TOP
    return {"tier": tier, "label": label}


def calculate_harvest_score(
    crop_type: str,
    province: str,
    projected_yield_per_ha: float,
    area_size_ha: float = 1.0,
    system_or_variety: str | None = None,
    benchmarks: pd.DataFrame | None = None,
    today: date | None = None,
) -> dict:
    """
    Score a projected harvest against its benchmark.

    Raises
    ------
    BenchmarkNotFoundError
        No benchmark for the crop/province.
    NonViableCropError
        The benchmark exists but its recommended yield is 0.

    Returns
    -------
    dict with keys:
        score, qualitative_tier (label), tier (1-7), ratio,
        projected_total_harvest (MT), benchmark_yield (MT/ha), benchmark_source,
        summary, crop_type, province, projected_yield_per_ha, area_size_ha,
        system_or_variety (of the benchmark row), weight (confidence, 0.50-1.00),
        match {spatial, system, confidence_level, years_since}
    """
    crop_clean = normalize_crop_name(crop_type) or crop_type
    province_clean = title_case(province)

    match = match_benchmark(crop_clean, province, benchmarks, system_or_variety, today=today)
    if match is None:
        raise BenchmarkNotFoundError(crop_clean, province_clean)

    bm = match["benchmark"]
    bm_yield = float(bm["recommended_minimum_yield"])
    if not bm_yield > 0:
        raise NonViableCropError(bm["crop"], bm["system_or_variety"], bm["province"])

    ratio_score = calculate_yield_ratio_score(projected_yield_per_ha, bm_yield)
    score = ratio_score["score"]
    tier_info = get_harvest_performance_tier(score)
    total_harvest = area_size_ha * projected_yield_per_ha
    weight = match_confidence_weight(match)
    log.debug("Harvest %s in %s: ratio=%.3f score=%d weight=%.3f",
              crop_clean, province_clean, ratio_score["ratio"], score, weight)

    system_note = f"({bm['system_or_variety']}) " if bm["system_or_variety"] else ""
    summary = (
        f"Benchmark: {bm_yield:g} MT/ha for {bm['crop']} {system_note}in {province_clean}. "
        f"Projected: {projected_yield_per_ha:g} MT/ha → Yield Ratio Score {score} "
        f"({tier_info['label']}). Total harvest: {total_harvest:.2f} MT."
    )

    return {
        "score":                   score,
        "qualitative_tier":        tier_info["label"],
        "tier":                    tier_info["tier"],
        "ratio":                   ratio_score["ratio"],
        "projected_total_harvest": total_harvest,
        "benchmark_yield":         bm_yield,
        "benchmark_source":        str(bm["justification"] or "N/A"),
        "summary":                 summary,
        "crop_type":               crop_clean,
        "province":                province_clean,
        "projected_yield_per_ha":  projected_yield_per_ha,
        "area_size_ha":            area_size_ha,
        "system_or_variety":       bm["system_or_variety"],
        "weight":                  weight,
        "match": {
            "spatial":          match["spatial"],
            "system":           match["system"],
            "confidence_level": match["confidence_level"],
            "years_since":      match["years_since"],
        },
    }
