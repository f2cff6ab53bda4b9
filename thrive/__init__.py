"""
THRIVE v1.0 — Deterministic Wellness Scoring Engine

Turns a history of mood / activity check-ins into composite scores,
streaks, tag drivers, a weekday × hour productivity matrix and coach tips.

Architecture:
    config         — Weights, caps, thresholds and their validation
    models         — Entry model, result records, resolve-with-default ingestion
    normalization  — LM / RI / CN sub-indices, period averages, weekly compass
    scoring        — Mood Composite (MC) and Daily Success Score (DSS)
    streaks        — Consecutive-day logging streaks
    drivers        — Tag impact analysis
    power_hours    — Weekday × hour productivity matrix
    coach          — Coach tip relevance scoring and selection
    pipeline       — Aggregation: score → streak → drivers → power hours → tips → report

The engine is stateless and performs no I/O. The default configuration is
validated at import; a violated invariant raises ConfigurationError.
"""

from thrive.coach import onboarding_tips, select_relevant_tips
from thrive.config import (
    DEFAULT_CONFIG,
    ConfigurationError,
    CoachTip,
    TipCondition,
    ThriveConfig,
    require_valid_config,
    validate_scoring_config,
)
from thrive.drivers import analyze_drivers
from thrive.models import (
    DriverResult,
    HourCell,
    InsufficientDataError,
    MoodEntry,
    PowerHoursResult,
    ScoreResult,
    StreakResult,
    TimeBucket,
)
from thrive.normalization import calculate_period_averages, calculate_sub_indices, weekly_compass
from thrive.pipeline import analyze_data, calculate_all_scores, calculate_daily_scores, generate_report
from thrive.power_hours import generate_power_hours
from thrive.scoring import calculate_dss, calculate_mc
from thrive.streaks import calculate_streak

__version__ = "1.0.0"

require_valid_config(DEFAULT_CONFIG)

__all__ = [
    "ConfigurationError",
    "CoachTip",
    "DEFAULT_CONFIG",
    "DriverResult",
    "HourCell",
    "InsufficientDataError",
    "MoodEntry",
    "PowerHoursResult",
    "ScoreResult",
    "StreakResult",
    "ThriveConfig",
    "TipCondition",
    "TimeBucket",
    "analyze_data",
    "analyze_drivers",
    "calculate_all_scores",
    "calculate_daily_scores",
    "calculate_dss",
    "calculate_mc",
    "calculate_period_averages",
    "calculate_streak",
    "calculate_sub_indices",
    "generate_power_hours",
    "generate_report",
    "onboarding_tips",
    "require_valid_config",
    "select_relevant_tips",
    "validate_scoring_config",
    "weekly_compass",
]
