"""
Reference data loader for weather stations and crop yield benchmarks.

Priority chain (per table):
  1. Explicit CSV path passed by the caller
  2. CSV in data/raw/                     →  deployment-specific data
  3. Embedded table in this module        →  fallback (always available)

Embedded station normals are approximate PAGASA climatological normals
(monthly rainfall mm, rainy days, relative humidity %) and are indicative only.
Embedded benchmarks are recommended minimum yields (MT/ha; TC/ha for
sugarcane) compiled from PhilRice, DA and SRA publications.

Both tables are returned as pandas DataFrames and must be treated as read-only.

Expected CSV schemas:
  weather_stations.csv : station, lat, lon, rainfall_1..12, rainy_days_1..12, humidity_1..12
  crop_benchmarks.csv  : crop, province, farmingSystemOrVariety,
                         recommendedMinimumYield, confidenceLevel, justification
"""

import logging
import pandas as pd
from functools import lru_cache
from pathlib import Path

from agscore.config import (
    RAW_DATA_DIR,
    WEATHER_STATIONS_FNAME,
    CROP_BENCHMARKS_FNAME,
)

log = logging.getLogger(__name__)

STATION_COLUMNS   = ["station", "lat", "lon", "rainfall", "rainy_days", "humidity"]
BENCHMARK_COLUMNS = [
    "crop", "province", "system_or_variety",
    "recommended_minimum_yield", "confidence_level", "justification",
]
SERIES_COLUMNS = ("rainfall", "rainy_days", "humidity")

# ---------------------------------------------------------------------------
# Embedded weather stations
# Format: (station, lat, lon, rainfall[12], rainy_days[12], humidity[12])
# ---------------------------------------------------------------------------
EMBEDDED_STATIONS: list[tuple] = [
    ("Science Garden, Quezon City", 14.645, 121.044,
     [19, 11, 13, 23, 165, 265, 470, 500, 415, 200, 135, 70],
     [4, 2, 3, 4, 12, 18, 22, 23, 21, 16, 12, 8],
     [75, 71, 68, 66, 72, 79, 84, 86, 85, 82, 80, 78]),
    ("Port Area, Manila", 14.588, 120.968,
     [17, 8, 11, 21, 133, 290, 450, 470, 380, 180, 120, 70],
     [4, 2, 3, 3, 10, 17, 21, 22, 20, 15, 11, 7],
     [73, 70, 67, 66, 71, 78, 82, 84, 83, 80, 77, 75]),
    ("Sangley Point, Cavite", 14.495, 120.907,
     [15, 8, 10, 20, 150, 320, 520, 560, 420, 190, 120, 55],
     [3, 2, 2, 3, 10, 18, 22, 23, 21, 14, 10, 6],
     [75, 73, 71, 70, 74, 80, 84, 85, 84, 81, 78, 77]),
    ("Tanay, Rizal", 14.581, 121.367,
     [55, 35, 40, 55, 200, 300, 420, 430, 380, 300, 250, 180],
     [9, 6, 6, 6, 13, 18, 21, 21, 20, 17, 15, 13],
     [84, 82, 79, 77, 80, 84, 87, 88, 87, 86, 86, 86]),
    ("UPLB, Los Baños, Laguna", 14.167, 121.250,
     [55, 30, 35, 50, 160, 230, 300, 280, 260, 250, 220, 160],
     [10, 6, 6, 6, 12, 16, 19, 19, 18, 17, 16, 13],
     [84, 81, 77, 75, 78, 83, 86, 86, 86, 85, 86, 86]),
    ("Ambulong, Tanauan, Batangas", 14.088, 121.055,
     [20, 15, 15, 35, 140, 240, 330, 350, 300, 200, 150, 80],
     [5, 3, 3, 4, 11, 17, 21, 21, 20, 15, 12, 9],
     [80, 77, 74, 73, 77, 82, 85, 86, 86, 84, 83, 82]),
    ("Infanta, Quezon", 14.742, 121.649,
     [350, 220, 200, 120, 180, 200, 230, 220, 260, 450, 550, 520],
     [20, 14, 13, 10, 12, 14, 17, 16, 17, 20, 22, 22],
     [88, 86, 84, 83, 83, 84, 86, 86, 86, 87, 88, 89]),
    ("Tayabas, Quezon", 13.945, 121.616,
     [150, 95, 80, 80, 150, 210, 260, 230, 240, 300, 340, 280],
     [15, 10, 9, 8, 11, 15, 18, 17, 17, 18, 19, 18],
     [86, 84, 81, 79, 80, 83, 85, 85, 85, 86, 87, 87]),
    ("CLSU, Muñoz, Nueva Ecija", 15.733, 120.933,
     [10, 8, 15, 25, 180, 220, 330, 390, 310, 170, 110, 35],
     [2, 1, 2, 3, 10, 14, 19, 21, 18, 12, 8, 4],
     [77, 74, 70, 69, 75, 81, 85, 87, 86, 83, 81, 79]),
    ("Casiguran, Aurora", 16.283, 122.117,
     [330, 220, 170, 130, 200, 230, 240, 250, 300, 480, 520, 470],
     [20, 15, 13, 10, 12, 13, 15, 16, 17, 20, 21, 21],
     [87, 86, 84, 83, 83, 83, 84, 84, 85, 87, 88, 88]),
    ("Baguio City, Benguet", 16.411, 120.599,
     [15, 25, 50, 110, 400, 460, 890, 1040, 700, 400, 140, 30],
     [3, 3, 4, 9, 19, 22, 25, 26, 23, 16, 9, 4],
     [82, 81, 81, 84, 88, 91, 93, 94, 93, 89, 86, 84]),
    ("Legazpi City, Albay", 13.150, 123.733,
     [370, 250, 210, 160, 170, 220, 250, 240, 270, 330, 480, 530],
     [21, 15, 14, 11, 12, 15, 17, 16, 17, 19, 21, 22],
     [85, 83, 82, 81, 82, 82, 83, 83, 83, 85, 86, 87]),
    ("Iloilo City, Iloilo", 10.700, 122.567,
     [45, 25, 30, 45, 120, 250, 340, 370, 310, 280, 190, 100],
     [7, 4, 4, 4, 9, 16, 19, 20, 19, 17, 13, 10],
     [82, 79, 76, 75, 77, 82, 85, 86, 86, 85, 84, 84]),
    ("Bacolod City, Negros Occidental", 10.650, 122.933,
     [90, 60, 55, 60, 130, 260, 290, 280, 270, 280, 210, 150],
     [10, 7, 6, 6, 10, 16, 19, 19, 19, 18, 15, 13],
     [82, 80, 78, 77, 79, 83, 85, 85, 85, 85, 85, 84]),
    ("Mactan, Cebu", 10.307, 123.979,
     [105, 75, 55, 50, 105, 160, 170, 140, 170, 190, 165, 130],
     [13, 10, 8, 7, 9, 14, 15, 13, 15, 16, 15, 14],
     [81, 79, 77, 75, 77, 80, 81, 80, 81, 82, 83, 82]),
    ("Davao City, Davao del Sur", 7.125, 125.646,
     [115, 105, 80, 130, 180, 200, 165, 170, 170, 175, 135, 110],
     [14, 12, 12, 13, 17, 19, 17, 16, 16, 17, 16, 14],
     [81, 81, 80, 80, 81, 82, 82, 82, 82, 82, 82, 81]),
]

# ---------------------------------------------------------------------------
# Embedded crop benchmarks
# Format: (crop, province, system_or_variety, min_yield, confidence, justification)
# province may be a single name, a comma-separated group, or "All Provinces".
# ---------------------------------------------------------------------------
_PHILRICE_2024 = "Based on 2024 Philrice data."

EMBEDDED_BENCHMARKS: list[tuple] = [
    ("Palay (Rice)", "Laguna, laguna",   "Irrigated", 3.99, "High", _PHILRICE_2024),
    ("Palay (Rice)", "Laguna, laguna",   "Rainfed",   2.61, "High", _PHILRICE_2024),
    ("Palay (Rice)", "Cavite, cavite",   "Irrigated", 3.49, "High", _PHILRICE_2024),
    ("Palay (Rice)", "Cavite, cavite",   "Rainfed",   1.90, "High", _PHILRICE_2024),
    ("Palay (Rice)", "Batangas, batangas", "Irrigated", 3.05, "High", _PHILRICE_2024),
    ("Palay (Rice)", "Batangas, batangas", "Rainfed",   2.23, "High", _PHILRICE_2024),
    ("Palay (Rice)", "Quezon, quezon",   "Irrigated", 3.49, "High", _PHILRICE_2024),
    ("Palay (Rice)", "Quezon, quezon",   "Rainfed",   2.91, "High", _PHILRICE_2024),
    ("Palay (Rice)", "Rizal, rizal",     "Irrigated", 3.74, "High", _PHILRICE_2024),
    ("Palay (Rice)", "Rizal, rizal",     "Rainfed",   2.39, "High", _PHILRICE_2024),
    ("Corn (Maize)", "Quezon, Laguna", "Yellow (Feed)", 3.00, "High",
     "Based on Quezon's 2024 avg. of 3.17 MT/ha. Increased to reflect hybrid seed adoption trends."),
    ("Corn (Maize)", "All Provinces", "White (Food)", 1.20, "High",
     "Based on Quezon's 2024 avg. of 1.13 MT/ha. Adjusted upward for improved practices."),
    ("Cassava", "Quezon, Batangas", "All", 6.50, "Medium",
     "Above 2020 regional avg. (5.83 MT/ha) but below DA target (10.35 MT/ha). Reflects trends."),
    ("Sweet Potato", "Quezon, Batangas", "All", 7.50, "Medium",
     "Aligned with 2020 regional avg. (7.52 MT/ha). Adjusted for improved practices in Quezon."),
    ("Tomato", "Quezon, Batangas", "All", 6.00, "Medium",
     "Based on 2023 DA report (6–8 MT/ha in Quezon). Adjusted for regional productivity trends."),
    ("Ampalaya", "Quezon, Laguna", "All", 5.00, "Medium",
     "Based on DA field data (5–6 MT/ha). Increased to reflect CALABARZON's ranking."),
    ("Eggplant", "Quezon, Laguna", "All", 12.50, "High",
     "Based on 2019 Quezon study (13–16 MT/ha). Adjusted for consistency with recent data."),
    ("Kalabasa (Squash)", "Quezon", "All", 11.00, "Medium",
     "Based on VRC data (10–12 MT/ha). Increased to reflect Quezon's dominance in production."),
    ("Pechay", "Laguna, Quezon", "Native", 4.00, "Medium",
     "Based on DA reports (4–5 MT/ha in irrigated areas). Adjusted for Laguna's irrigation."),
    ("Pechay", "Cavite, Batangas, Rizal", "Native", 3.50, "Low",
     "Lowered for non-irrigated provinces, based on national averages."),
    ("Cabbage", "Laguna, Quezon", "All", 13.00, "Medium",
     "Based on national avg. (15–16 MT/ha), adjusted for lowland conditions and cool season."),
    ("Wombok", "Laguna, Quezon", "Cool Season", 16.00, "Medium",
     "Adjusted upward based on international benchmarks (40–50 MT/ha), with seasonal restriction."),
    ("Potato", "All Provinces", "All", 0.00, "High",
     "Confirmed non-viable due to agro-climatic constraints. No production data exists."),
    ("Radish", "Laguna, Quezon", "All", 4.50, "Medium",
     "Estimated from DA root crop data (4–6 MT/ha). Adjusted for irrigated provinces."),
    ("Radish", "Cavite, Batangas, Rizal", "All", 4.00, "Low",
     "Conservative estimate for non-irrigated provinces, based on general root crop productivity."),
]

# Negros Occidental sugarcane, by city/municipality: (locality, min TC/ha, range text, cluster)
_NEGROS_SUGARCANE = [
    ("Cadiz City", 65, "65–75", "Northern"), ("Calatrava", 60, "60–70", "Northern"),
    ("Enrique B. Magalona", 65, "65–75", "Northern"), ("Escalante City", 65, "65–75", "Northern"),
    ("Manapla", 65, "65–75", "Northern"), ("Sagay City", 70, "70–80", "Northern"),
    ("San Carlos City", 70, "70–80", "Northern"), ("Silay City", 65, "65–75", "Northern"),
    ("Talisay City", 65, "65–75", "Northern"), ("Toboso", 60, "60–70", "Northern"),
    ("Victorias City", 75, "75–80", "Northern"),
    ("Bacolod City", 60, "60–65", "Central"), ("Bago City", 60, "60–65", "Central"),
    ("Don Salvador Benedicto", 55, "55–65", "Central"), ("La Carlota City", 80, "80–100", "Central"),
    ("La Castellana", 70, "70–80", "Central"), ("Moises Padilla", 55, "55–65", "Central"),
    ("Murcia", 60, "60–65", "Central"), ("Pontevedra", 80, "80–100", "Central"),
    ("Pulupandan", 60, "60–65", "Central"), ("San Enrique", 80, "80–100", "Central"),
    ("Valladolid", 80, "80–100", "Central"),
    ("Binalbagan", 50, "50–60", "Southern"), ("Candoni", 45, "45–55", "Southern"),
    ("Cauayan", 45, "45–55", "Southern"), ("Himamaylan City", 50, "50–60", "Southern"),
    ("Hinigaran", 50, "50–60", "Southern"), ("Hinoba-an", 45, "45–55", "Southern"),
    ("Ilog", 45, "45–55", "Southern"), ("Isabela", 50, "50–60", "Southern"),
    ("Kabankalan City", 50, "50–60", "Southern"), ("Sipalay City", 45, "45–55", "Southern"),
]
EMBEDDED_BENCHMARKS += [
    ("Sugarcane", "Negros Occidental", locality, float(min_tc), "Medium",
     f"Estimated average yield range ({span} TC/ha) for {cluster} Cluster, Negros Occidental.")
    for locality, min_tc, span, cluster in _NEGROS_SUGARCANE
]


# ---------------------------------------------------------------------------
# CSV loaders: each returns None if the file is absent or malformed
# ---------------------------------------------------------------------------

def _read_csv_safe(path: Path, label: str) -> pd.DataFrame | None:
    """Read a CSV; log and return None on any error."""
    if not path.exists():
        log.debug("No %s CSV at %s; using embedded table.", label, path)
        return None
    try:
        df = pd.read_csv(path)
        df.columns = [c.strip() for c in df.columns]
        log.info("Loaded %s from %s (%d rows).", label, path, len(df))
        return df
    except (OSError, ValueError) as exc:
        log.warning("Could not read %s (%s): %s", label, path, exc)
        return None


def _match_columns(df: pd.DataFrame, wanted: dict[str, list[str]], label: str) -> dict | None:
    """Map canonical names to actual column names (case-insensitive). None if any is missing."""
    lower_cols = {c.lower(): c for c in df.columns}
    col_map = {}
    for key, candidates in wanted.items():
        for c in candidates:
            if c in lower_cols:
                col_map[key] = lower_cols[c]
                break
    if not all(k in col_map for k in wanted):
        log.warning("%s CSV missing required columns. Available: %s", label, list(df.columns))
        return None
    return col_map


def _stations_from_csv(path: Path) -> pd.DataFrame | None:
    df = _read_csv_safe(path, "weather stations")
    if df is None:
        return None

    wanted = {
        "station": ["station", "name", "id", "station_name"],
        "lat":     ["lat", "latitude"],
        "lon":     ["lon", "lng", "longitude"],
    }
    for series in SERIES_COLUMNS:
        for m in range(1, 13):
            wanted[f"{series}_{m}"] = [f"{series}_{m}", f"{series.replace('_', '')}_{m}"]
    col_map = _match_columns(df, wanted, "weather stations")
    if col_map is None:
        return None

    out = pd.DataFrame({
        "station": df[col_map["station"]].astype(str).str.strip(),
        "lat":     pd.to_numeric(df[col_map["lat"]], errors="coerce"),
        "lon":     pd.to_numeric(df[col_map["lon"]], errors="coerce"),
    })
    for series in SERIES_COLUMNS:
        monthly = df[[col_map[f"{series}_{m}"] for m in range(1, 13)]].apply(pd.to_numeric, errors="coerce")
        out[series] = monthly.values.tolist()

    complete = out[["lat", "lon"]].notna().all(axis=1)
    for series in SERIES_COLUMNS:
        complete &= out[series].apply(lambda xs: not any(pd.isna(x) for x in xs))
    dropped = int((~complete).sum())
    if dropped:
        log.warning("Dropped %d weather station rows with missing values.", dropped)
    out = out[complete].reset_index(drop=True)
    return out if not out.empty else None


def _benchmarks_from_csv(path: Path) -> pd.DataFrame | None:
    df = _read_csv_safe(path, "crop benchmarks")
    if df is None:
        return None

    col_map = _match_columns(df, {
        "crop":                      ["crop", "crop_name", "commodity"],
        "province":                  ["province", "region"],
        "system_or_variety":         [
            "farmingsystemorvariety", "system_or_variety", "farming_system",
            "system", "variety",
        ],
        "recommended_minimum_yield": [
            "recommendedminimumyield", "recommended_minimum_yield", "min_yield", "yield",
        ],
        "confidence_level":          ["confidencelevel", "confidence_level", "confidence"],
        "justification":             ["justification", "source", "notes"],
    }, "crop benchmarks")
    if col_map is None:
        return None

    out = df.rename(columns={v: k for k, v in col_map.items()})[BENCHMARK_COLUMNS].copy()
    out["recommended_minimum_yield"] = pd.to_numeric(out["recommended_minimum_yield"], errors="coerce")
    out = out.dropna(subset=["crop", "province", "recommended_minimum_yield"])
    for col in ("crop", "province", "system_or_variety", "confidence_level", "justification"):
        out[col] = out[col].fillna("").astype(str).str.strip()
    return out.reset_index(drop=True) if not out.empty else None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def stations_frame(rows: list[tuple]) -> pd.DataFrame:
    """Build a station DataFrame from (station, lat, lon, rainfall, rainy_days, humidity) tuples."""
    return pd.DataFrame(
        [(name, float(lat), float(lon), [float(v) for v in rain], [float(v) for v in days], [float(v) for v in rh])
         for name, lat, lon, rain, days, rh in rows],
        columns=STATION_COLUMNS,
    )


def benchmarks_frame(rows: list[tuple]) -> pd.DataFrame:
    """Build a benchmark DataFrame from (crop, province, system, yield, confidence, justification) tuples."""
    df = pd.DataFrame(rows, columns=BENCHMARK_COLUMNS)
    df["recommended_minimum_yield"] = df["recommended_minimum_yield"].astype(float)
    return df


def load_weather_stations(path: Path | str | None = None) -> pd.DataFrame:
    """
    Return the weather station table.
    Uses `path` if given, else data/raw/weather_stations.csv, else the embedded normals.
    """
    csv_path = Path(path) if path else RAW_DATA_DIR / WEATHER_STATIONS_FNAME
    df = _stations_from_csv(csv_path)
    if df is None:
        df = stations_frame(EMBEDDED_STATIONS)
    return df


def load_crop_benchmarks(path: Path | str | None = None) -> pd.DataFrame:
    """
    Return the crop benchmark table.
    Uses `path` if given, else data/raw/crop_benchmarks.csv, else the embedded table.
    """
    csv_path = Path(path) if path else RAW_DATA_DIR / CROP_BENCHMARKS_FNAME
    df = _benchmarks_from_csv(csv_path)
    if df is None:
        df = benchmarks_frame(EMBEDDED_BENCHMARKS)
    return df


@lru_cache(maxsize=1)
def get_reference_data() -> dict:
    """Load both reference tables once per process; cache result."""
    return {
        "stations":   load_weather_stations(),
        "benchmarks": load_crop_benchmarks(),
    }


def get_weather_stations() -> pd.DataFrame:
    return get_reference_data()["stations"]


def get_crop_benchmarks() -> pd.DataFrame:
    return get_reference_data()["benchmarks"]
