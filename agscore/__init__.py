"""
AgScore — baseline agricultural risk scoring (climate, soil, harvest).
"""

from agscore.risk_engine import calculate_baseline_risk_score, get_qualitative_tier
from agscore.harvest import (
    calculate_harvest_score,
    HarvestScoreError,
    BenchmarkNotFoundError,
    NonViableCropError,
)
from agscore.trigger_parser import parse_harvest_trigger
from agscore.reference_data import get_reference_data, load_weather_stations, load_crop_benchmarks

__all__ = [
    "calculate_baseline_risk_score",
    "get_qualitative_tier",
    "calculate_harvest_score",
    "HarvestScoreError",
    "BenchmarkNotFoundError",
    "NonViableCropError",
    "parse_harvest_trigger",
    "get_reference_data",
    "load_weather_stations",
    "load_crop_benchmarks",
]
