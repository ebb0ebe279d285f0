"""Best-effort parsing of free-form LLM output.

Every parser returns either ``Parsed(value)`` when the text yielded a usable
value, or ``Fallback(value, reason)`` carrying the caller-supplied default.
Parsers never raise on malformed text.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from repo_lens.domain.entities import (
    DeploymentGuide,
    DeploymentOption,
    RepoScore,
    ScoreBreakdown,
)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Parsed(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Fallback(Generic[T]):
    value: T
    reason: str


ParseResult = Union[Parsed[T], Fallback[T]]

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_MERMAID_FENCE_RE = re.compile(r"```mermaid[ \t]*\r?\n([\s\S]*?)```")
_PLAIN_FENCE_RE = re.compile(r"```[^\n`]*\r?\n?([\s\S]*?)```")

NEUTRAL_SCORE = 5.0
MIN_SCORE = 1.0
MAX_SCORE = 10.0

# Dimension → accepted spellings in LLM output.
_SCORE_KEYS: dict[str, tuple[str, ...]] = {
    "code_quality": ("codeQuality", "code_quality"),
    "documentation": ("documentation",),
    "testing": ("testing", "tests"),
    "activity": ("activity",),
    "dependencies": ("dependencies",),
    "community": ("community",),
}


# ── JSON ────────────────────────────────────────────────────────────────────


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the outermost ``{...}`` span of *text* decoded, or ``None``."""
    if not text:
        return None
    match = _JSON_OBJECT_RE.search(text)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def parse_json_object(text: str, fallback: dict[str, Any]) -> ParseResult[dict[str, Any]]:
    data = extract_json_object(text)
    if data is None:
        return Fallback(fallback, "no JSON object found in response")
    return Parsed(data)


# ── Mermaid ─────────────────────────────────────────────────────────────────


def parse_mermaid(text: str, keywords: tuple[str, ...], fallback: str) -> ParseResult[str]:
    """Pull a Mermaid diagram out of *text*.

    Tried in order: a ```` ```mermaid ```` fence, any fence whose body mentions
    one of *keywords*, then the bare text if it mentions one of *keywords*.
    """
    if not text or not text.strip():
        return Fallback(fallback, "empty response")

    match = _MERMAID_FENCE_RE.search(text)
    if match and match.group(1).strip():
        return Parsed(match.group(1).strip())

    for match in _PLAIN_FENCE_RE.finditer(text):
        body = match.group(1)
        if any(keyword in body for keyword in keywords):
            return Parsed(body.strip())

    if any(keyword in text for keyword in keywords):
        return Parsed(_from_first_keyword_line(text, keywords))

    return Fallback(fallback, f"no Mermaid diagram ({'/'.join(keywords)}) in response")


def _from_first_keyword_line(text: str, keywords: tuple[str, ...]) -> str:
    lines = text.strip().splitlines()
    for index, line in enumerate(lines):
        if line.lstrip().startswith(keywords):
            return "\n".join(lines[index:]).strip()
    return text.strip()


# ── Score ───────────────────────────────────────────────────────────────────


def clamp_score(value: Any, default: float = NEUTRAL_SCORE) -> float:
    """Coerce *value* to a float in [1, 10]; non-numeric values give *default*."""
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:  # NaN
        return default
    return round(min(max(number, MIN_SCORE), MAX_SCORE), 1)


def _lookup(mapping: dict[str, Any], spellings: tuple[str, ...]) -> Any:
    for key in spellings:
        if key in mapping:
            return mapping[key]
    return None


def parse_score(text: str, fallback: RepoScore) -> ParseResult[RepoScore]:
    data = extract_json_object(text)
    if data is None:
        return Fallback(fallback, "no JSON object found in score response")

    raw_breakdown = data.get("breakdown")
    source = raw_breakdown if isinstance(raw_breakdown, dict) else data
    values = {
        field: clamp_score(_lookup(source, spellings))
        for field, spellings in _SCORE_KEYS.items()
    }
    breakdown = ScoreBreakdown(**values)

    if "overall" in data:
        overall = clamp_score(data["overall"])
    else:
        overall = round(sum(values.values()) / len(values), 1)

    details: dict[str, tuple[str, ...]] = {}
    raw_details = data.get("details")
    if isinstance(raw_details, dict):
        for field, spellings in _SCORE_KEYS.items():
            items = _lookup(raw_details, spellings)
            if isinstance(items, list):
                details[field] = tuple(str(item) for item in items)
            elif isinstance(items, str):
                details[field] = (items,)

    return Parsed(RepoScore(overall=overall, breakdown=breakdown, details=details))


# ── Deployment ──────────────────────────────────────────────────────────────


def _option_from_json(raw: Any) -> DeploymentOption | None:
    if not isinstance(raw, dict):
        return None
    name = raw.get("name") or raw.get("platform")
    if not name:
        return None

    def _strings(key: str) -> tuple[str, ...]:
        items = raw.get(key)
        return tuple(str(item) for item in items) if isinstance(items, list) else ()

    return DeploymentOption(
        name=str(name),
        description=str(raw.get("description", "")),
        difficulty=str(raw.get("difficulty", "Medium")),
        estimated_time=str(raw.get("estimatedTime") or raw.get("estimated_time") or ""),
        steps=_strings("steps"),
        features=_strings("features"),
        pricing=str(raw.get("pricing", "")),
    )


def _tier(data: dict[str, Any], key: str) -> tuple[DeploymentOption, ...]:
    raw = data.get(key)
    if not isinstance(raw, list):
        return ()
    return tuple(option for option in map(_option_from_json, raw) if option is not None)


def parse_deployment(text: str, fallback: DeploymentGuide) -> ParseResult[DeploymentGuide]:
    """Parse ``{"free": [...], "paid": [...]}``; an empty tier keeps the fallback tier."""
    data = extract_json_object(text)
    if data is None:
        return Fallback(fallback, "no JSON object found in deployment response")

    free = _tier(data, "free")
    paid = _tier(data, "paid")
    if not free and not paid:
        return Fallback(fallback, "deployment response listed no usable options")

    return Parsed(DeploymentGuide(free=free or fallback.free, paid=paid or fallback.paid))
