"""
Configuration and constants for the AgScore baseline risk engine.
Centralizes paths, reference data file names, thresholds, and scoring weights.
"""

from pathlib import Path

# ---------------------------------------------------------------------------
# Base paths (project root = parent of 'agscore')
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"
RAW_DATA_DIR = DATA_DIR / "raw"

# ---------------------------------------------------------------------------
# Reference data file names (place CSVs in data/raw/)
# If files are absent the engine falls back to the embedded tables.
#
# Expected schemas:
#   weather_stations.csv : station, lat, lon,
#                          rainfall_1..rainfall_12, rainy_days_1..rainy_days_12,
#                          humidity_1..humidity_12
#   crop_benchmarks.csv  : crop, province, farmingSystemOrVariety,
#                          recommendedMinimumYield, confidenceLevel, justification
# ---------------------------------------------------------------------------
WEATHER_STATIONS_FNAME = "weather_stations.csv"
CROP_BENCHMARKS_FNAME  = "crop_benchmarks.csv"

# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------
MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
MONTH_MAP: dict[str, int] = {
    "january": 0, "jan": 0, "february": 1, "feb": 1, "march": 2, "mar": 2,
    "april": 3, "apr": 3, "may": 4, "june": 5, "jun": 5, "july": 6, "jul": 6,
    "august": 7, "aug": 7, "september": 8, "sep": 8, "october": 9, "oct": 9,
    "november": 10, "nov": 10, "december": 11, "dec": 11,
}
SUMMER_MONTHS = ("March", "April", "May")

# ---------------------------------------------------------------------------
# Score ranges
# ---------------------------------------------------------------------------
SCORE_FLOOR = 10
SCORE_MAX   = 1000

# ---------------------------------------------------------------------------
# Soil
# ---------------------------------------------------------------------------
# Raw sand+silt+clay totals inside this band are used as given
SOIL_SUM_TOLERANCE = (85.0, 115.0)

SOIL_WEIGHT_FLOOR = 0.10
SOIL_WEIGHT_CAP   = 0.55

SOIL_RISK_LABELS: dict[str, str] = {
    "nutrient":     "Nutrient Fixation/Leaching",
    "drought":      "Drought Stress",
    "waterlogging": "Waterlogging",
    "compaction":   "Compaction",
}

# ---------------------------------------------------------------------------
# Climate
# ---------------------------------------------------------------------------
EARTH_RADIUS_KM = 6371.0

# Upper bound of each stress tier (tier = index + 1)
CLIMATE_THRESHOLDS: dict[str, list[float]] = {
    "rainfall":   [75, 150, 250, 400, 600, 800, float("inf")],
    "rainy_days": [6, 12, 18, 22, 25, 28, float("inf")],
    "humidity":   [78, 82, 85, 88, 92, 96, float("inf")],
}
# Tier n spans SCORE_SCALE[n-1] .. SCORE_SCALE[n]
SCORE_SCALE = [0, 143, 286, 429, 571, 714, 857, 1000]

LIMITING_FACTOR_LABELS: dict[str, str] = {
    "rainfall":   "Rainfall",
    "rainy_days": "Rainy Days",
    "humidity":   "Humidity",
}

SOFTMAX_TEMPERATURE = 150.0

# Month indices (0 = January)
DRY_SEASON_MONTHS = (10, 11, 0, 1, 2, 3)   # Nov-Apr
WET_PEAK_MONTHS   = (10, 11, 0)            # Nov-Jan

CLIMATE_TYPE_DESCRIPTIONS: dict[str, str] = {
    "Type I":   "Two Pronounced Seasons (Dry: Nov–Apr; Wet: May–Oct)",
    "Type II":  "No Dry Season (Very Wet: Nov–Jan)",
    "Type III": "Short Dry Season (1–3 Months)",
    "Type IV":  "Evenly Distributed Rainfall",
    "Unknown":  "Undetermined Pattern",
}

# Activity factors: climate averages over the crop cycle → soil sub-score multipliers
WET_RAINFALL_MM     = 150.0
DRY_RAINFALL_MM     = 100.0
HUMID_RH_PCT        = 80.0
HUMID_RAINY_DAYS    = 10.0
WET_DROUGHT_FACTOR  = 0.5
WET_NUTRIENT_FACTOR = 1.2
DRY_WATERLOG_FACTOR = 0.6
HUMID_COMPACTION_FACTOR = 1.1

# ---------------------------------------------------------------------------
# Harvest / benchmarks
# ---------------------------------------------------------------------------
CROP_ALIASES: dict[str, str] = {
    "palay": "Palay (Rice)",
    "rice":  "Palay (Rice)",
    "mais":  "Corn (Maize)",
    "corn":  "Corn (Maize)",
}
ALL_PROVINCES = "all provinces"

CONFIDENCE_RANK: dict[str, int] = {"high": 3, "medium": 2, "low": 1}

# Yield-ratio curve: under-performance saturates at R = 0.7, over-performance at R = 2.0
SHORTFALL_SPAN  = 0.3
SHORTFALL_POWER = 0.7
SURPLUS_SPAN    = 1.0
SURPLUS_POWER   = 0.8

# Confidence weight components
CONFIDENCE_BASE: dict[str, float] = {"high": 1.00, "medium": 0.85, "low": 0.70}
DEFAULT_CONFIDENCE_BASE = 0.85
SPATIAL_FACTOR: dict[str, float] = {"exact": 1.00, "grouped": 0.98, "all": 0.95}
SYSTEM_FACTOR: dict[str, float]  = {"exact": 1.00, "close": 0.95, "none": 0.88}
# (max years since benchmark, factor); older than the last band → RECENCY_STALE
RECENCY_BANDS = [(2, 1.00), (4, 0.95), (6, 0.90), (9, 0.85)]
RECENCY_STALE   = 0.80
RECENCY_UNKNOWN = 0.95
SAMPLE_FACTOR   = 1.00
CONFIDENCE_WEIGHT_BOUNDS = (0.50, 1.00)
EARLIEST_BENCHMARK_YEAR  = 1990

# ---------------------------------------------------------------------------
# Tier ladders
# ---------------------------------------------------------------------------
# (upper bound inclusive, tier, label); higher score = higher risk
RISK_TIERS = [
    (99,  1, "Very Low"),
    (249, 2, "Low"),
    (399, 3, "Moderately Low"),
    (549, 4, "Moderate"),
    (699, 5, "Moderately High"),
    (849, 6, "High"),
]
RISK_TIER_TOP = (7, "Very High")

# (lower bound inclusive, tier, label); higher score = worse performance
HARVEST_TIERS = [
    (850, 1, "Very Low Performance"),
    (700, 2, "Low Performance"),
    (550, 3, "Moderately Low Performance"),
    (400, 4, "Moderate Performance"),
    (250, 5, "Moderately High Performance"),
    (100, 6, "High Performance"),
]
HARVEST_TIER_TOP = (7, "Very High Performance")

# ---------------------------------------------------------------------------
# Baseline aggregation weights
# Keyed by (frozenset of present components, summer crop?)
# ---------------------------------------------------------------------------
BASELINE_WEIGHTS: dict[tuple[frozenset, bool], dict[str, float]] = {
    (frozenset({"climate", "soil", "harvest"}), True):  {"climate": 0.40, "soil": 0.40, "harvest": 0.20},
    (frozenset({"climate", "soil", "harvest"}), False): {"climate": 0.50, "soil": 0.30, "harvest": 0.20},
    (frozenset({"climate", "soil"}), True):             {"climate": 0.50, "soil": 0.50},
    (frozenset({"climate", "soil"}), False):            {"climate": 0.60, "soil": 0.40},
    (frozenset({"climate", "harvest"}), True):          {"climate": 0.60, "harvest": 0.40},
    (frozenset({"climate", "harvest"}), False):         {"climate": 0.60, "harvest": 0.40},
    (frozenset({"soil", "harvest"}), True):             {"soil": 0.60, "harvest": 0.40},
    (frozenset({"soil", "harvest"}), False):            {"soil": 0.60, "harvest": 0.40},
}
COMPONENT_ORDER = ("climate", "soil", "harvest")

# Alpha: climate+soil context weights
ALPHA_CLIMATE_WEIGHT = 0.60
ALPHA_SOIL_WEIGHT    = 0.40
ALPHA_PIVOT          = 500
