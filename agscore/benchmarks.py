"""
Crop yield benchmark matching and benchmark confidence weighting.

Matching cascade (per crop, optionally narrowed to a farming system/variety):
  1. Row whose province equals the requested province   →  spatial "exact"
  2. Row whose comma-separated province group lists it  →  spatial "grouped"
  3. Row for "All Provinces"                            →  spatial "all"
Crop rows are those whose name equals the requested crop, or failing that
contain it. Ties within a level prefer higher confidence (High > Medium > Low), then the
larger recommended yield (the stricter benchmark).

The confidence weight w_h in [0.50, 1.00] discounts a harvest score whose
benchmark is low-confidence, spatially coarse, system-mismatched or stale:
    w_h = base(confidence) × spatial × system × recency × sample
"""

import logging
import re
from datetime import date

import pandas as pd

from agscore.config import (
    CROP_ALIASES,
    ALL_PROVINCES,
    CONFIDENCE_RANK,
    CONFIDENCE_BASE,
    DEFAULT_CONFIDENCE_BASE,
    SPATIAL_FACTOR,
    SYSTEM_FACTOR,
    RECENCY_BANDS,
    RECENCY_STALE,
    RECENCY_UNKNOWN,
    SAMPLE_FACTOR,
    CONFIDENCE_WEIGHT_BOUNDS,
    EARLIEST_BENCHMARK_YEAR,
)
from agscore.reference_data import get_crop_benchmarks

log = logging.getLogger(__name__)

_YEAR_RE = re.compile(r"\b(20\d{2})\b")


def norm_text(s) -> str:
    """Lowercase, collapse whitespace, strip. None → ''."""
    return re.sub(r"\s+", " ", str(s if s is not None else "")).strip().lower()


def split_provinces(s) -> list[str]:
    return [p.strip() for p in norm_text(s).split(",") if p.strip()]


def normalize_crop_name(raw) -> str | None:
    """Map aliases such as 'palay' or 'rice' to the benchmark crop name."""
    if not raw:
        return raw
    raw = str(raw)
    return CROP_ALIASES.get(raw.strip().lower(), raw)


def title_case(s: str | None) -> str:
    if not s:
        return ""
    return " ".join(w[:1].upper() + w[1:] for w in str(s).lower().split())


def pick_best(candidates: pd.DataFrame) -> dict | None:
    """Highest confidence first, then the highest (strictest) recommended yield."""
    if candidates.empty:
        return None
    ranked = candidates.assign(
        _conf_rank=candidates["confidence_level"].map(lambda c: CONFIDENCE_RANK.get(norm_text(c), 0)),
        _yield=candidates["recommended_minimum_yield"].fillna(0),
    ).sort_values(["_conf_rank", "_yield"], ascending=False, kind="stable")
    return ranked.drop(columns=["_conf_rank", "_yield"]).iloc[0].to_dict()


def _system_tokens(system: str) -> list[str]:
    return [tok for tok in re.split(r"\W+", norm_text(system)) if tok]


def benchmark_year_age(justification: str | None, today: date | None = None) -> int | None:
    """Years since the first 20xx year mentioned in the justification, if plausible."""
    m = _YEAR_RE.search(str(justification or ""))
    if not m:
        return None
    year = int(m.group(1))
    now = (today or date.today()).year
    if EARLIEST_BENCHMARK_YEAR <= year <= now:
        return now - year
    return None


def match_benchmark(
    crop_type: str,
    province: str,
    benchmarks: pd.DataFrame | None = None,
    system_or_variety: str | None = None,
    today: date | None = None,
) -> dict | None:
    """
    Find the benchmark for a crop/province (and optional system/variety).

    Returns
    -------
    dict with keys:
        benchmark        : the chosen row (crop, province, system_or_variety,
                           recommended_minimum_yield, confidence_level, justification)
        spatial          : "exact" | "grouped" | "all"
        system           : "exact" | "close" | "none"
        confidence_level : "high" | "medium" | "low" | None
        years_since      : int or None (parsed from the justification)
    or None if no level of the cascade matches.
    """
    benchmarks = get_crop_benchmarks() if benchmarks is None else benchmarks
    crop_n = norm_text(normalize_crop_name(crop_type))
    prov_n = norm_text(province)
    sys_n  = norm_text(system_or_variety)
    if not crop_n:
        return None

    crop_col = benchmarks["crop"].map(norm_text)
    # Exact crop name first, so "potato" never lands on "sweet potato" rows
    pool = benchmarks[crop_col == crop_n]
    if pool.empty:
        pool = benchmarks[crop_col.str.contains(crop_n, regex=False)]
    if pool.empty:
        return None

    system = "none"
    if sys_n:
        row_systems = pool["system_or_variety"].map(norm_text)
        exact = pool[row_systems.str.contains(sys_n, regex=False)]
        if not exact.empty:
            pool, system = exact, "exact"
        elif any(tok in sys_n for s in row_systems for tok in _system_tokens(s)):
            system = "close"

    provinces = pool["province"].map(norm_text)
    levels = [
        ("exact",   provinces == prov_n),
        ("grouped", pool["province"].map(lambda p: prov_n in split_provinces(p))),
        ("all",     provinces == ALL_PROVINCES),
    ]
    for spatial, mask in levels:
        best = pick_best(pool[mask])
        if best is None:
            continue
        conf = norm_text(best.get("confidence_level")) or None
        log.debug(
            "Benchmark for %s / %s / %s: %s row %s (%s)",
            crop_type, province, system_or_variety, spatial,
            best["province"], best["system_or_variety"],
        )
        return {
            "benchmark":        best,
            "spatial":          spatial,
            "system":           system,
            "confidence_level": conf if conf in CONFIDENCE_RANK else None,
            "years_since":      benchmark_year_age(best.get("justification"), today),
        }
    return None


def recency_factor(years_since: int | None) -> float:
    if years_since is None:
        return RECENCY_UNKNOWN
    for max_years, factor in RECENCY_BANDS:
        if years_since <= max_years:
            return factor
    return RECENCY_STALE


def compute_confidence_weight(
    confidence_level: str | None,
    spatial: str,
    system: str,
    years_since: int | None = None,
    sample_factor: float = SAMPLE_FACTOR,
) -> float:
    """Trust weight for a harvest score, clamped to [0.50, 1.00]."""
    base = CONFIDENCE_BASE.get(norm_text(confidence_level), DEFAULT_CONFIDENCE_BASE)
    w = (
        base
        * SPATIAL_FACTOR.get(spatial, SPATIAL_FACTOR["all"])
        * SYSTEM_FACTOR.get(system, SYSTEM_FACTOR["none"])
        * recency_factor(years_since)
        * sample_factor
    )
    lo, hi = CONFIDENCE_WEIGHT_BOUNDS
    return min(hi, max(lo, w))


def match_confidence_weight(match: dict) -> float:
    return compute_confidence_weight(
        match["confidence_level"], match["spatial"], match["system"], match["years_since"],
    )


def known_systems(benchmarks: pd.DataFrame | None = None) -> list[str]:
    """Distinct non-'All' farming systems/varieties, longest first."""
    benchmarks = get_crop_benchmarks() if benchmarks is None else benchmarks
    systems = {s for s in benchmarks["system_or_variety"].dropna().astype(str) if s.strip() and norm_text(s) != "all"}
    return sorted(systems, key=lambda s: (-len(s), s))
