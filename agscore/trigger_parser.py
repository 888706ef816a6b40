"""
Free-text "harvest score ..." command parser.

Grammar (case-insensitive):

    command   := "harvest" "score" item*
    item      := key ":" value            key ∈ crop | province | system | variety
               | ["yield"] NUMBER unit*   projected yield (MT/ha)
               | "area" NUMBER | NUMBER area-unit
               | SYSTEM                   any farming system/variety in the benchmark table
               | WORD+                    crop (first) and province (rest)
    unit      := mt | t | ton | tons | per | ha | hectare | hectares | /ha | ha-1 | mt/ha | t/ha ...

Each field is resolved by an ordered list of named strategies; the first
strategy that produces a value wins. Missing fields are left out of the
result except area, which defaults to 1 ha.
"""

import re

import pandas as pd

from agscore.config import CROP_ALIASES
from agscore.benchmarks import known_systems, normalize_crop_name, norm_text
from agscore.reference_data import get_crop_benchmarks

TRIGGER_RE = re.compile(r"^\s*harvest\s*score\b", re.IGNORECASE)
KEY_VALUE_RE = re.compile(
    r"\b(crop|province|system|variety)\s*:\s*(.+?)\s*(?=,|\s+\d|\s+(?:area|yield)\b|\b(?:crop|province|system|variety|area|yield)\s*:|$)",
    re.IGNORECASE,
)
NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")
GLUED_RE = re.compile(r"^(\d+(?:\.\d+)?)(\S+)$")
UNIT_RE = re.compile(
    r"^(?:mt|t|tons?|per|ha|hectares?|/ha|ha-1|per/ha|(?:mt|t|tons?)/(?:ha|hectares?))$",
    re.IGNORECASE,
)
MASS_UNIT_RE = re.compile(r"^(?:mt|t|tons?)(?:/(?:ha|hectares?))?$", re.IGNORECASE)
AREA_UNIT_RE = re.compile(r"^(?:ha|hectares?)$", re.IGNORECASE)
KEYWORDS = {"area", "yield"}


def is_harvest_trigger(text: str | None) -> bool:
    return bool(text) and bool(TRIGGER_RE.match(text))


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

def _kind(tok: str) -> str:
    if NUMBER_RE.match(tok):
        return "number"
    if UNIT_RE.match(tok):
        return "unit"
    if tok.lower().rstrip(":") in KEYWORDS:
        return "keyword"
    return "word"


def tokenize(text: str) -> list[dict]:
    """Split on whitespace/commas; '5.2mt/ha' style tokens are split into number + unit."""
    tokens = []
    for raw in re.split(r"[\s,]+", text):
        if not raw:
            continue
        glued = GLUED_RE.match(raw)
        if glued and UNIT_RE.match(glued.group(2)):
            parts = [glued.group(1), glued.group(2)]
        else:
            parts = [raw]
        for part in parts:
            kind = _kind(part)
            tokens.append({"text": part.rstrip(":") if kind == "keyword" else part, "kind": kind})
    return tokens


# ---------------------------------------------------------------------------
# Key: value pairs and system phrases (removed from the text before tokenizing)
# ---------------------------------------------------------------------------

def extract_key_values(text: str) -> tuple[dict, str]:
    """Return ({crop|province|system: value}, text with the pairs removed)."""
    found = {}
    for m in KEY_VALUE_RE.finditer(text):
        key = m.group(1).lower()
        key = "system" if key == "variety" else key
        found.setdefault(key, m.group(2).strip())
    return found, KEY_VALUE_RE.sub(" ", text)


def extract_known_system(text: str, systems: list[str]) -> tuple[str | None, str]:
    """Find the longest benchmark system/variety mentioned in the text; return it as spelled in the table."""
    for system in systems:
        pattern = re.compile(r"(?<!\w)" + re.escape(system) + r"(?!\w)", re.IGNORECASE)
        m = pattern.search(text)
        if m:
            return system, text[: m.start()] + " " + text[m.end():]
    return None, text


# ---------------------------------------------------------------------------
# Yield strategies: each returns the index of the yield number token or None
# ---------------------------------------------------------------------------

def _after(tokens: list[dict], i: int) -> dict | None:
    return tokens[i + 1] if i + 1 < len(tokens) else None


def _before(tokens: list[dict], i: int) -> dict | None:
    return tokens[i - 1] if i > 0 else None


def _is_area_marked(tokens: list[dict], i: int) -> bool:
    prev = _before(tokens, i)
    return prev is not None and prev["kind"] == "keyword" and prev["text"].lower() == "area"


def yield_after_keyword(tokens: list[dict]) -> int | None:
    for i, tok in enumerate(tokens):
        prev = _before(tokens, i)
        if tok["kind"] == "number" and prev and prev["kind"] == "keyword" and prev["text"].lower() == "yield":
            return i
    return None


def yield_with_mass_unit(tokens: list[dict]) -> int | None:
    for i, tok in enumerate(tokens):
        nxt = _after(tokens, i)
        if tok["kind"] == "number" and nxt and MASS_UNIT_RE.match(nxt["text"]) and not _is_area_marked(tokens, i):
            return i
    return None


def first_bare_number(tokens: list[dict]) -> int | None:
    for i, tok in enumerate(tokens):
        if tok["kind"] == "number" and not _is_area_marked(tokens, i):
            return i
    return None


YIELD_STRATEGIES = [yield_after_keyword, yield_with_mass_unit, first_bare_number]


# ---------------------------------------------------------------------------
# Area strategies (skip the token already used for yield)
# ---------------------------------------------------------------------------

def area_after_keyword(tokens: list[dict], used: set) -> int | None:
    for i, tok in enumerate(tokens):
        if i not in used and tok["kind"] == "number" and _is_area_marked(tokens, i):
            return i
    return None


def area_with_unit(tokens: list[dict], used: set) -> int | None:
    for i, tok in enumerate(tokens):
        nxt = _after(tokens, i)
        if i not in used and tok["kind"] == "number" and nxt and AREA_UNIT_RE.match(nxt["text"]):
            return i
    return None


AREA_STRATEGIES = [area_after_keyword, area_with_unit]


# ---------------------------------------------------------------------------
# Crop
# ---------------------------------------------------------------------------

def _base_crop_name(name: str) -> str:
    """'Palay (Rice)' → 'palay'."""
    return norm_text(re.sub(r"\(.*?\)", "", name))


def known_crop_phrases(benchmarks: pd.DataFrame) -> list[list[str]]:
    """Crop names, their un-parenthesised forms and aliases, as word lists, longest first."""
    names = set(CROP_ALIASES)
    for crop in benchmarks["crop"].dropna().astype(str):
        names.add(_base_crop_name(crop))
        for inner in re.findall(r"\((.*?)\)", crop):
            names.add(norm_text(inner))
    phrases = [n.split() for n in names if n]
    return sorted(phrases, key=lambda p: (-len(p), p))


def crop_from_known_phrase(words: list[str], phrases: list[list[str]]) -> tuple[int, int] | None:
    """Earliest (start, length) of a known crop phrase among the word tokens."""
    lowered = [w.lower() for w in words]
    best = None
    for phrase in phrases:
        n = len(phrase)
        for start in range(len(lowered) - n + 1):
            if lowered[start:start + n] == phrase:
                if best is None or start < best[0]:
                    best = (start, n)
                break
    return best


def _strip_leading_crop(province: str, crop: str) -> str:
    base = _base_crop_name(crop)
    if base:
        province = re.sub(r"^\s*" + re.escape(base) + r"\b", "", province, flags=re.IGNORECASE)
    return re.sub(r"\s+", " ", province).strip()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_harvest_trigger(text: str | None, benchmarks: pd.DataFrame | None = None) -> dict:
    """
    Parse a "harvest score ..." command.

    Returns a dict with any of crop_type, province, projected_yield_per_ha,
    system_or_variety, plus area_size_ha (default 1.0). Returns {} when the
    text is not a harvest score command.

    >>> parse_harvest_trigger("harvest score palay irrigated 5.2 mt/ha nueva ecija area 1.5")
    {'system_or_variety': 'Irrigated', 'projected_yield_per_ha': 5.2, 'area_size_ha': 1.5,
     'crop_type': 'Palay (Rice)', 'province': 'nueva ecija'}
    """
    if not is_harvest_trigger(text):
        return {}
    benchmarks = get_crop_benchmarks() if benchmarks is None else benchmarks
    out: dict = {}

    tail = TRIGGER_RE.sub("", text, count=1)
    kv, tail = extract_key_values(tail)

    system = kv.get("system")
    if system is None:
        system, tail = extract_known_system(tail, known_systems(benchmarks))
    if system:
        out["system_or_variety"] = system

    tokens = tokenize(tail)
    used: set = set()

    for strategy in YIELD_STRATEGIES:
        idx = strategy(tokens)
        if idx is not None:
            out["projected_yield_per_ha"] = float(tokens[idx]["text"])
            used.add(idx)
            break

    for strategy in AREA_STRATEGIES:
        idx = strategy(tokens, used)
        if idx is not None:
            out["area_size_ha"] = float(tokens[idx]["text"])
            used.add(idx)
            break

    words = [t["text"] for t in tokens if t["kind"] == "word"]

    crop = kv.get("crop")
    if crop is None and words:
        hit = crop_from_known_phrase(words, known_crop_phrases(benchmarks))
        start, length = hit if hit else (0, 1)
        crop = " ".join(words[start:start + length])
        words = words[:start] + words[start + length:]
    crop = normalize_crop_name(crop)
    if crop:
        out["crop_type"] = crop

    province = kv.get("province")
    if province is None and words:
        province = " ".join(words)
    if province and crop:
        province = _strip_leading_crop(province, crop)
    if province:
        out["province"] = province

    out.setdefault("area_size_ha", 1.0)
    return out
