"""
Entry model, result records, and ingestion.

entries_to_frame() is the one place where raw check-ins become fully
resolved values: every formula downstream operates on its DataFrame and
never re-applies defaults inline.
"""

import math
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from thrive.config import DEFAULT_CONFIG, ThriveConfig


class InsufficientDataError(ValueError):
    """Raised by explicit validation entry points when input is too small."""


class TimeBucket(str, Enum):
    MORNING = "Morning"
    MIDDAY = "Midday"
    EVENING = "Evening"
    NIGHT = "Night"


RATING_FIELDS = ("valence", "energy", "focus", "stress")
OPTIONAL_FIELDS = (
    "deepwork_minutes",
    "tasks_completed",
    "sleep_hours",
    "social_touchpoints",
)

FRAME_COLUMNS = (
    "id", "timestamp", "time_bucket",
    *RATING_FIELDS, *OPTIONAL_FIELDS,
    "recovery_action", "tags", "day", "hour", "weekday",
)

_CAMEL_TO_SNAKE = {
    "timeBucket": "time_bucket",
    "deepworkMinutes": "deepwork_minutes",
    "tasksCompleted": "tasks_completed",
    "sleepHours": "sleep_hours",
    "socialTouchpoints": "social_touchpoints",
    "recoveryAction": "recovery_action",
}

_TRUTHY = {"1", "true", "yes", "y", "on"}

EntryLike = Union["MoodEntry", Mapping[str, Any]]


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def bucket_value(bucket) -> Optional[str]:
    """Plain string for a TimeBucket or free-form bucket label."""
    if bucket is None:
        return None
    if isinstance(bucket, TimeBucket):
        return bucket.value
    return str(bucket)


def _parse_timestamp(value) -> Optional[datetime]:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError):
        return None
    return None if ts is pd.NaT else ts.to_pydatetime()


# ---------------------------------------------------------------------------
# Entry model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MoodEntry:
    """One check-in. Created by the caller on submission and never mutated."""

    id: str
    timestamp: Optional[datetime]
    time_bucket: Union[TimeBucket, str, None]
    valence: Any
    energy: Any
    focus: Any
    stress: Any
    tags: Optional[Tuple[str, ...]] = ()
    deepwork_minutes: Any = None
    tasks_completed: Any = None
    sleep_hours: Any = None
    social_touchpoints: Any = None
    recovery_action: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MoodEntry":
        """Build an entry from a camelCase or snake_case mapping."""
        known = {f.name for f in fields(cls)}
        kw = {_CAMEL_TO_SNAKE.get(k, k): v for k, v in data.items()}
        kw = {k: v for k, v in kw.items() if k in known}

        for name in ("id", "timestamp", "time_bucket", *RATING_FIELDS):
            kw.setdefault(name, None)

        kw["timestamp"] = _parse_timestamp(kw["timestamp"])
        try:
            kw["time_bucket"] = TimeBucket(kw["time_bucket"])
        except ValueError:
            pass
        kw["tags"] = _normalize_tags(kw.get("tags"))
        return cls(**kw)

    def to_dict(self) -> Dict[str, Any]:
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "timestamp" and value is not None:
                value = value.isoformat()
            elif f.name == "time_bucket":
                value = bucket_value(value)
            elif f.name == "tags":
                value = list(value or ())
            out[_camel(f.name)] = value
        return out


def as_entry(item: EntryLike) -> MoodEntry:
    if isinstance(item, MoodEntry):
        return item
    return MoodEntry.from_dict(item)


def require_entries(entries: Optional[Iterable[EntryLike]], minimum: int = 1) -> List[MoodEntry]:
    """Explicit validation entry point: reject clearly insufficient input."""
    resolved = [as_entry(e) for e in (entries or [])]
    if len(resolved) < minimum:
        raise InsufficientDataError(
            f"At least {minimum} entr{'y' if minimum == 1 else 'ies'} required, got {len(resolved)}"
        )
    return resolved


# ---------------------------------------------------------------------------
# Resolve-with-default ingestion
# ---------------------------------------------------------------------------

def _resolve_number(value, default: float) -> float:
    """None → default; anything not convertible to a finite float → NaN."""
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return math.nan
    return number if math.isfinite(number) else math.nan


def _resolve_flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def _normalize_tags(tags) -> Tuple[str, ...]:
    if not tags:
        return ()
    if isinstance(tags, str):
        tags = tags.split(",")
    seen: List[str] = []
    for tag in tags:
        if tag is None:
            continue
        tag = str(tag).strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return tuple(seen)


def _wall_clock(ts: Optional[datetime]) -> Tuple[Optional[date], int, int]:
    """(calendar day, hour, weekday with Sunday=0) on the timestamp's own clock."""
    if ts is None:
        return None, -1, -1
    return ts.date(), ts.hour, ts.isoweekday() % 7


def wall_clock_time(value) -> Optional[datetime]:
    """
    Naive datetime as written on the timestamp's own clock, or None.

    Aware values keep their local reading and drop the offset, so naive and
    aware timestamps order together without conversion.
    """
    ts = _parse_timestamp(value)
    return None if ts is None else ts.replace(tzinfo=None)


def entries_to_frame(
    entries: Iterable[EntryLike],
    cfg: ThriveConfig | None = None,
) -> pd.DataFrame:
    """
    Resolve entries into a DataFrame, one row per entry.

    - ratings: float, clamped to the configured scale; NaN if unresolvable
    - optional numerics: None → 0, negatives → 0, NaN if unresolvable
    - recovery_action: bool
    - tags: lower-cased, de-duplicated tuple
    - timestamp: naive datetime on the entry's own clock, None if unparseable
    - day / hour / weekday: wall-clock fields of the timestamp (no tz conversion)

    Aware timestamps are read on their own offset: "2024-01-02T23:30:00Z"
    lands on 2024-01-02 at hour 23 whatever the host's local zone is.
    Callers wanting device-local days convert before ingestion.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    s = cfg.scoring

    rows = []
    for item in entries or []:
        entry = as_entry(item)
        ts = _parse_timestamp(entry.timestamp)
        day, hour, weekday = _wall_clock(ts)
        row = {
            "id": entry.id,
            "timestamp": wall_clock_time(ts),
            "time_bucket": bucket_value(entry.time_bucket),
            "recovery_action": _resolve_flag(entry.recovery_action),
            "tags": _normalize_tags(entry.tags),
            "day": day,
            "hour": hour,
            "weekday": weekday,
        }
        for name in RATING_FIELDS:
            row[name] = _resolve_number(getattr(entry, name), math.nan)
        for name in OPTIONAL_FIELDS:
            row[name] = _resolve_number(getattr(entry, name), 0.0)
        rows.append(row)

    df = pd.DataFrame(rows, columns=list(FRAME_COLUMNS))

    numeric = list(RATING_FIELDS + OPTIONAL_FIELDS)
    df[numeric] = df[numeric].astype(np.float64)
    df[list(RATING_FIELDS)] = df[list(RATING_FIELDS)].clip(s.rating_min, s.rating_max)
    df[list(OPTIONAL_FIELDS)] = df[list(OPTIONAL_FIELDS)].clip(lower=0.0)
    df["recovery_action"] = df["recovery_action"].astype(bool)
    df[["hour", "weekday"]] = df[["hour", "weekday"]].astype(np.int64)
    return df


# ---------------------------------------------------------------------------
# Result records
# ---------------------------------------------------------------------------

def _camel_keys(obj):
    if isinstance(obj, dict):
        return {_camel(k): _camel_keys(v) for k, v in obj.items()}
    return obj


@dataclass(frozen=True)
class ScoreResult:
    """MC or DSS for one entry. `components` holds the named sub-scores."""

    value: float
    is_valid: bool
    components: Dict[str, Dict[str, float]] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "value": self.value,
            "isValid": self.is_valid,
            "components": _camel_keys(self.components),
        }
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass(frozen=True)
class StreakResult:
    current_streak: int
    longest_streak: int
    streak_start_date: Optional[date]
    last_entry_date: Optional[date]
    is_active: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "streakStartDate": self.streak_start_date.isoformat() if self.streak_start_date else None,
            "lastEntryDate": self.last_entry_date.isoformat() if self.last_entry_date else None,
            "isActive": self.is_active,
        }


@dataclass(frozen=True)
class DriverResult:
    tag: str
    occurrences: int
    mc_impact: float
    dss_impact: float
    confidence: str
    avg_mc_with: float = 0.0
    avg_mc_without: float = 0.0
    avg_dss_with: float = 0.0
    avg_dss_without: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {_camel(f.name): getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class HourCell:
    weekday: int
    hour: int
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"weekday": self.weekday, "hour": self.hour, "score": self.score}


@dataclass(frozen=True)
class PowerHoursResult:
    matrix: List[List[float]]
    peak_hours: List[HourCell]
    low_hours: List[HourCell]
    last_updated: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matrix": [list(row) for row in self.matrix],
            "peakHours": [c.to_dict() for c in self.peak_hours],
            "lowHours": [c.to_dict() for c in self.low_hours],
            "lastUpdated": self.last_updated.isoformat(),
        }
