"""
Pipeline orchestration: resolve → score → streak → drivers → power hours → tips → report.

All analytical logic is delegated to scoring, normalization, streaks,
drivers, power_hours and coach. Nothing here reads or writes files; the caller
supplies the entries and renders the result.
"""

import logging
from datetime import date, datetime
from typing import Dict, Iterable, List

from thrive.coach import select_relevant_tips
from thrive.config import DEFAULT_CONFIG, ThriveConfig
from thrive.drivers import analyze_drivers
from thrive.models import EntryLike, as_entry, entries_to_frame, require_entries, wall_clock_time
from thrive.normalization import (
    SUB_INDEX_COLUMNS,
    calculate_period_averages,
    compute_sub_indices,
    weekly_compass,
)
from thrive.power_hours import generate_power_hours
from thrive.scoring import calculate_dss, calculate_mc, score_frame
from thrive.streaks import calculate_streak

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Single-entry aggregate
# ---------------------------------------------------------------------------

def calculate_all_scores(
    entry: EntryLike,
    historical_entries: Iterable[EntryLike],
    cfg: ThriveConfig | None = None,
    today: date | None = None,
) -> Dict:
    """MC (within the entry's time bucket), DSS and streak from one snapshot."""
    entry = as_entry(entry)
    history = [as_entry(e) for e in historical_entries]

    return {
        "mc": calculate_mc(entry, history, time_bucket=entry.time_bucket, cfg=cfg),
        "dss": calculate_dss(entry, history, cfg=cfg),
        "streak": calculate_streak(history + [entry], today=today),
    }


# ---------------------------------------------------------------------------
# Daily series
# ---------------------------------------------------------------------------

def calculate_daily_scores(
    entries: Iterable[EntryLike],
    cfg: ThriveConfig | None = None,
) -> List[Dict]:
    """
    Per-day means of MC, DSS, LM, RI and CN in chronological order.

    MC is scored against the full entry list, so the series is comparable
    across days.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    p = cfg.scoring.precision

    df = entries_to_frame(entries, cfg)
    if df.empty:
        return []
    df = compute_sub_indices(score_frame(df, cfg), cfg)
    df = df[df["day"].map(lambda d: isinstance(d, date)).astype(bool)]

    columns = {"MC": "mc_score", "DSS": "dss_score"}
    columns.update(SUB_INDEX_COLUMNS)
    daily = df.groupby("day")[list(columns.values())].mean().round(p).sort_index()

    return [
        {"date": day.isoformat(), **{name: float(row[col]) for name, col in columns.items()}}
        for day, row in daily.iterrows()
    ]


# ---------------------------------------------------------------------------
# Full analysis (explicit validation entry point)
# ---------------------------------------------------------------------------

def _chronological(entries):
    """Oldest first on each entry's own wall clock; undated entries lead."""
    def key(entry):
        ts = wall_clock_time(entry.timestamp)
        return (0, datetime.min) if ts is None else (1, ts)

    return sorted(entries, key=key)


def analyze_data(
    data: Iterable[EntryLike],
    cfg: ThriveConfig | None = None,
    now: datetime | None = None,
) -> Dict:
    """
    Backend / UI integration entry point.

    Accepts MoodEntry objects or camelCase / snake_case dicts. The most
    recent entry is scored against everything logged before it; the
    analytics views cover the whole history.

    Raises InsufficientDataError on empty input.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    if now is None:
        now = datetime.now()

    entries = _chronological(require_entries(data))
    latest, history = entries[-1], entries[:-1]
    logger.debug("Analyzing %d entries (latest=%s)", len(entries), latest.id)

    scores = calculate_all_scores(latest, history, cfg=cfg, today=now.date())
    compass = weekly_compass(entries, now=now, cfg=cfg)
    recent = history[max(len(history) - cfg.coach.recent_window, 0):]
    tips = select_relevant_tips(latest, recent, cfg=cfg)

    return {
        "entry_count": len(entries),
        "latest_entry_id": latest.id,
        "scores": {name: result.to_dict() for name, result in scores.items()},
        "period_averages": calculate_period_averages(entries, cfg),
        "weekly_compass": {**compass, "week_start": compass["week_start"].isoformat()},
        "drivers": [d.to_dict() for d in analyze_drivers(entries, cfg=cfg)],
        "power_hours": generate_power_hours(entries, cfg=cfg, now=now).to_dict(),
        "daily_scores": calculate_daily_scores(entries, cfg),
        "coach_tips": [tip.to_dict() for tip in tips],
    }


# ---------------------------------------------------------------------------
# Report generation
# ---------------------------------------------------------------------------

_WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def _score_line(label: str, score: Dict) -> str:
    if score["isValid"]:
        return f"  {label:20s}: {score['value']}"
    return f"  {label:20s}: n/a ({score['error']})"


def generate_report(result: Dict) -> str:
    """Format the analysis result as a human-readable text report."""
    scores = result["scores"]
    streak = scores["streak"]
    averages = result["period_averages"]
    compass = result["weekly_compass"]

    lines = [
        "THRIVE WELLNESS REPORT",
        "=" * 58,
        "",
        f"  Entries analyzed    : {result['entry_count']}",
        _score_line("Mood Composite", scores["mc"]),
        _score_line("Daily Success", scores["dss"]),
        f"  Streak              : {streak['currentStreak']}d current, "
        f"{streak['longestStreak']}d longest ({'active' if streak['isActive'] else 'lapsed'})",
        "",
        "  Sub-indices (all time / this week vs last):",
    ]

    for name in SUB_INDEX_COLUMNS:
        delta = compass["delta"][name]
        lines.append(
            f"    {name:4s} : {averages[name]:.3f}  |  "
            f"{compass['current'][name]:.3f} vs {compass['baseline'][name]:.3f} ({delta:+.3f})"
        )

    if result["drivers"]:
        lines.append("")
        lines.append("  Drivers (MC / DSS impact):")
        for d in result["drivers"]:
            lines.append(
                f"    {d['tag']:15s} : {d['mcImpact']:+.3f} / {d['dssImpact']:+.3f}"
                f"  ({d['occurrences']}x, {d['confidence']} confidence)"
            )

    ph = result["power_hours"]
    if ph["peakHours"]:
        lines.append("")
        lines.append("  Power Hours:")
        for label, cells in (("Peak", ph["peakHours"]), ("Low", ph["lowHours"])):
            slots = ", ".join(
                f"{_WEEKDAY_NAMES[c['weekday']]} {c['hour']:02d}:00 ({c['score']:.2f})" for c in cells
            )
            lines.append(f"    {label:5s}: {slots}")

    if result["coach_tips"]:
        lines.append("")
        lines.append("  Coach Tips:")
        for tip in result["coach_tips"]:
            lines.append(f"    - {tip['suggestedAction']} ({tip['durationMinutes']} min)")

    lines.append("")
    lines.append("=" * 58)
    return "\n".join(lines)
