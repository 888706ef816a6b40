"""
Score one farm from the command line and print the result as JSON.

Run from project root:
    python run_scoring.py request.json
    echo '{"sand": 40, "silt": 40, "clay": 20}' | python run_scoring.py -
    python run_scoring.py --lat 14.17 --lon 121.24 --months Jun Jul Aug Sep \\
        --trigger "harvest score palay irrigated 4.2 mt/ha laguna area 2"

Flags override keys read from the JSON request.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure project root is on path
PROJECT_ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(PROJECT_ROOT))

from agscore.reference_data import load_weather_stations, load_crop_benchmarks
from agscore.risk_engine import calculate_baseline_risk_score

log = logging.getLogger("run_scoring")

# flag dest → request key
FLAG_KEYS = {
    "sand":     "sand",
    "silt":     "silt",
    "clay":     "clay",
    "lat":      "latitude",
    "lon":      "longitude",
    "months":   "crop_cycle_months",
    "trigger":  "trigger_text",
    "crop":     "crop_type",
    "province": "province",
    "yield_ha": "projected_yield_per_ha",
    "area":     "area_size_ha",
    "system":   "system_or_variety",
}


def read_request(source: str | None) -> dict:
    if not source:
        return {}
    text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    request = json.loads(text)
    if not isinstance(request, dict):
        raise ValueError("Request must be a JSON object")
    return request


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compute the AgScore baseline risk for one farm.")
    parser.add_argument("request", nargs="?", default=None, help="JSON request file, or '-' for stdin")
    parser.add_argument("--sand", type=float, help="Sand percent")
    parser.add_argument("--silt", type=float, help="Silt percent")
    parser.add_argument("--clay", type=float, help="Clay percent")
    parser.add_argument("--lat", type=float, help="Farm latitude")
    parser.add_argument("--lon", type=float, help="Farm longitude")
    parser.add_argument("--months", nargs="+", help="Crop cycle months, e.g. Jun Jul Aug")
    parser.add_argument("--trigger", help='Harvest command, e.g. "harvest score corn 5 t/ha quezon"')
    parser.add_argument("--crop", help="Crop type")
    parser.add_argument("--province", help="Province")
    parser.add_argument("--yield", dest="yield_ha", type=float, help="Projected yield (MT/ha)")
    parser.add_argument("--area", type=float, help="Farm area (ha)")
    parser.add_argument("--system", help="Farming system or variety")
    parser.add_argument("--stations", type=Path, default=None, help="Weather stations CSV")
    parser.add_argument("--benchmarks", type=Path, default=None, help="Crop benchmarks CSV")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        request = read_request(args.request)
    except (OSError, ValueError) as exc:
        log.error("Could not read request: %s", exc)
        return 1

    for dest, key in FLAG_KEYS.items():
        value = getattr(args, dest)
        if value is not None:
            request[key] = value

    result = calculate_baseline_risk_score(
        request,
        stations=load_weather_stations(args.stations),
        benchmarks=load_crop_benchmarks(args.benchmarks),
    )
    print(json.dumps(result, indent=2, ensure_ascii=False, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
