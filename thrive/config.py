"""
Centralized configuration for all weights, caps, and thresholds.

Every tunable constant lives here. The scoring modules read their numbers
from a ThriveConfig instance and never embed literals of their own, so a
single validate_scoring_config() call guards every formula.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 0.001


class ConfigurationError(ValueError):
    """Raised when the scoring configuration violates a design invariant."""


# ---------------------------------------------------------------------------
# Mood Composite weights
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MCWeights:
    """
    Weights applied to per-field z-scores.

    Stress is negative because a higher stress rating is a worse day.
    The absolute values must sum to 1.0.
    """

    valence: float = 0.40
    energy: float = 0.25
    focus: float = 0.15
    stress: float = -0.20

    def as_dict(self):
        return {
            "valence": self.valence,
            "energy": self.energy,
            "focus": self.focus,
            "stress": self.stress,
        }


# ---------------------------------------------------------------------------
# Daily Success Score
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DSSWeights:
    """Weights for combining normalized LM / RI / CN raws into DSS."""

    lm: float = 0.5
    ri: float = 0.3
    cn: float = 0.2

    def as_dict(self):
        return {"lm": self.lm, "ri": self.ri, "cn": self.cn}


@dataclass(frozen=True)
class DSSMultipliers:
    """Closed-form multipliers used to build DSS raw components."""

    # lm.raw = deepwork_minutes + tasks_to_lm * tasks_completed
    tasks_to_lm: float = 10.0
    # ri.raw = sleep_hours + recovery_to_ri * recovery_action
    recovery_to_ri: float = 1.0


@dataclass(frozen=True)
class DSSCaps:
    """Saturation caps: raw / cap is clamped to [0, 1]."""

    lm: float = 300.0   # 3h deep work + 12 tasks
    ri: float = 9.0     # 8h sleep + recovery action
    cn: float = 5.0     # touchpoints


# ---------------------------------------------------------------------------
# Sub-indices (LM / RI / CN)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LearningMomentumWeights:
    focus: float = 0.5
    deep_work: float = 0.3
    tasks: float = 0.2


@dataclass(frozen=True)
class RecoveryIndexWeights:
    sleep: float = 0.4
    recovery_action: float = 0.3
    stress_inv: float = 0.3


@dataclass(frozen=True)
class ConnectionWeights:
    valence: float = 0.4
    touchpoints: float = 0.4
    social_tags: float = 0.2


@dataclass(frozen=True)
class SubIndexCaps:
    """Values at which each sub-index component saturates at 1.0."""

    deep_work_minutes: float = 180.0
    tasks_completed: float = 10.0
    sleep_hours: float = 8.0
    social_touchpoints: float = 5.0
    social_tags: float = 3.0


# Tags that count toward the Connection sub-index
DEFAULT_CONNECTION_TAGS: frozenset = frozenset(
    {"social", "friends", "family", "party", "dating"}
)


# ---------------------------------------------------------------------------
# Scoring parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScoringParams:
    """Parameters shared by the statistical calculators."""

    # Substituted for the historical std whenever it falls below this value
    sigma_floor: float = 0.5

    # Nominal rating scale; ratings are clamped into it at ingestion
    rating_min: float = 0.0
    rating_max: float = 5.0

    # Decimal places kept on published scores
    precision: int = 3


# ---------------------------------------------------------------------------
# Driver analysis
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DriverThresholds:
    """
    Sample-size policy for tag drivers.

    A tag is reported only when it occurs at least `min_occurrences` times.
    Confidence is `high` when both the tagged and untagged groups reach
    `high`, `medium` when both reach `medium`, otherwise `low`.
    """

    min_occurrences: int = 3
    high: int = 10
    medium: int = 5


# ---------------------------------------------------------------------------
# Power hours
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PowerHoursParams:
    """Maps MC onto a 0..score_max productivity scale and picks extremes."""

    score_offset: float = 3.0
    score_max: float = 5.0
    extreme_fraction: float = 0.1   # share of non-empty cells reported as peak / low
    min_extremes: int = 1


# ---------------------------------------------------------------------------
# Coach tips
# ---------------------------------------------------------------------------

TIP_OPERATORS = ("<", "<=", "=", ">=", ">")
TIP_PRIORITIES = ("high", "medium", "low")
TIP_METRICS = (
    "valence", "energy", "focus", "stress",
    "sleep_hours", "social_touchpoints", "recovery_action",
)


@dataclass(frozen=True)
class TipCondition:
    """`metric operator value`, checked against the current entry."""

    metric: str
    operator: str
    value: float


@dataclass(frozen=True)
class CoachTip:
    id: str
    content: str
    category: str
    priority: str
    conditions: Tuple[TipCondition, ...] = ()
    time_buckets: Tuple[str, ...] = ()
    required_tags: Tuple[str, ...] = ()
    suggested_action: str = ""
    duration_minutes: int = 0

    def to_dict(self):
        return {
            "id": self.id,
            "content": self.content,
            "category": self.category,
            "priority": self.priority,
            "conditions": [
                {"score": c.metric, "operator": c.operator, "value": c.value}
                for c in self.conditions
            ],
            "timeBuckets": list(self.time_buckets),
            "requiredTags": list(self.required_tags),
            "suggestedAction": self.suggested_action,
            "durationMinutes": self.duration_minutes,
        }


@dataclass(frozen=True)
class CoachParams:
    """
    Relevance scoring for coach tips.

    score = condition_match × satisfied conditions
          + priority bonus (high / medium / low)
          + time_match if the entry's time bucket is one of the tip's buckets
          + tag_match × required tags seen in the recent entries
    """

    condition_match: int = 10
    high_priority: int = 5
    medium_priority: int = 3
    low_priority: int = 1
    time_match: int = 3
    tag_match: int = 2
    max_tips: int = 3

    # Entries before the current one whose tags count as "recent"
    recent_window: int = 7

    # Stand-ins for a current entry's missing values
    rating_fallback: float = 2.5
    sleep_fallback: float = 7.0

    # Shown when there is no current entry yet
    onboarding_categories: frozenset = frozenset(
        {"mindfulness", "productivity", "physical_wellness"}
    )

    def priority_bonus(self, priority: str) -> int:
        return {
            "high": self.high_priority,
            "medium": self.medium_priority,
            "low": self.low_priority,
        }.get(priority, 0)


_DAYTIME = ("Morning", "Midday", "Evening")
_WORKDAY = ("Morning", "Midday")
_LATE = ("Evening", "Night")


def _tip(tip_id, content, category, priority, conditions, time_buckets,
         suggested_action, duration_minutes, required_tags=()):
    return CoachTip(
        id=tip_id,
        content=content,
        category=category,
        priority=priority,
        conditions=tuple(TipCondition(*c) for c in conditions),
        time_buckets=time_buckets,
        required_tags=required_tags,
        suggested_action=suggested_action,
        duration_minutes=duration_minutes,
    )


DEFAULT_COACH_TIPS: Tuple[CoachTip, ...] = (
    # -- stress -----------------------------------------------------------
    _tip("stress_box_breathing",
         "Breathe in for 4 counts, hold for 4, out for 6. Four rounds slow the stress response.",
         "stress_management", "high", [("stress", ">=", 4)], _DAYTIME,
         "Find a quiet spot and do four slow breaths", 2),
    _tip("stress_muscle_release",
         "Tense each muscle group for five seconds and let go, working from feet to shoulders.",
         "stress_management", "high", [("stress", ">=", 4)], _LATE,
         "Lie down and work through each muscle group", 5),
    _tip("stress_grounding",
         "Name five things you see, four you can touch, three you hear, two you smell and one you taste.",
         "stress_management", "medium", [("stress", ">=", 3)], _DAYTIME,
         "Run through the 5-4-3-2-1 senses check", 3),
    # -- mood -------------------------------------------------------------
    _tip("mood_three_good_things",
         "Write down three small things that went right today, however minor.",
         "mood_boost", "high", [("valence", "<=", 2)], _DAYTIME,
         "List three good moments", 3),
    _tip("mood_music",
         "Put on a song that reliably lifts you and give it your full attention.",
         "mood_boost", "medium", [("valence", "<=", 2)], _DAYTIME,
         "Play one favourite track", 4),
    _tip("mood_evening_reflection",
         "Before bed, name one thing that went well. Ending on it helps both sleep and mood.",
         "mood_boost", "medium", [("valence", "<=", 3)], _LATE,
         "Note one positive moment from today", 3),
    # -- focus ------------------------------------------------------------
    _tip("focus_pomodoro",
         "You have energy but focus is drifting: set a 25-minute timer for a single task.",
         "focus_enhancement", "high", [("energy", ">=", 4), ("focus", "<=", 2)], _WORKDAY,
         "Start one 25-minute focus block", 25),
    _tip("focus_reset_desk",
         "Clear your desk down to the one thing you are working on and close unrelated tabs.",
         "focus_enhancement", "medium", [("energy", ">=", 3), ("focus", "<=", 2)], _WORKDAY,
         "Tidy your workspace for two minutes", 2),
    _tip("focus_study_blocks",
         "Study in 25-minute blocks with 5-minute breaks to match your attention span.",
         "focus_enhancement", "high", [("focus", "<=", 2)], _DAYTIME,
         "Pick one topic and set a timer", 10, ("study", "exam")),
    # -- energy -----------------------------------------------------------
    _tip("energy_move",
         "Two minutes of movement, such as stairs, squats or a brisk walk, wakes the body up.",
         "energy_management", "high", [("energy", "<=", 2)], _DAYTIME,
         "Move for two minutes", 2),
    _tip("energy_water",
         "Drink a full glass of water. Mild dehydration feels a lot like fatigue.",
         "energy_management", "medium", [("energy", "<=", 2)], _DAYTIME,
         "Refill and finish a glass of water", 1),
    _tip("energy_workout_burst",
         "A short, hard burst of exercise releases endorphins and lifts energy quickly.",
         "energy_management", "medium", [("energy", "<=", 2)], _DAYTIME,
         "Do five minutes of vigorous exercise", 5, ("gym", "exercise", "workout")),
    # -- sleep ------------------------------------------------------------
    _tip("sleep_wind_down",
         "Start winding down 30 minutes before bed with dim light and no work.",
         "sleep_recovery", "high", [("sleep_hours", "<=", 6)], _LATE,
         "Set a wind-down alarm", 30),
    _tip("sleep_screens_off",
         "Put screens away an hour before bed so your body can start producing melatonin.",
         "sleep_recovery", "high", [("sleep_hours", "<=", 6)], _LATE,
         "Charge your phone outside the bedroom", 1, ("sleep", "rest")),
    # -- connection -------------------------------------------------------
    _tip("social_reach_out",
         "Send a short message to someone you have not talked to in a while.",
         "social_connection", "medium", [("social_touchpoints", "<=", 1)], _DAYTIME,
         "Message one friend", 2),
    _tip("social_call_someone",
         "Call a friend or family member. Connection is one of the strongest mood boosters.",
         "social_connection", "medium", [("valence", "<=", 2)], _DAYTIME,
         "Call someone you care about", 10, ("social", "friends", "family")),
    # -- caffeine ---------------------------------------------------------
    _tip("stress_caffeine_check",
         "Notice how much caffeine you have had. Too much raises anxiety and hurts sleep.",
         "stress_management", "medium", [("stress", ">=", 3)], _WORKDAY,
         "Switch the next drink to water or decaf", 1, ("caffeine", "coffee")),
    # -- onboarding categories -------------------------------------------
    _tip("mindfulness_body_scan",
         "Scan slowly from head to toe and notice where you are holding tension.",
         "mindfulness", "medium", [("stress", ">=", 2)], _DAYTIME,
         "Close your eyes for a one-minute body scan", 1),
    _tip("mindfulness_one_breath",
         "Take one slow breath and notice five details around you before going back to work.",
         "mindfulness", "medium", [("focus", "<=", 2)], _DAYTIME,
         "Pause for one mindful breath", 1),
    _tip("productivity_first_step",
         "Break the task into the smallest next step and do only that.",
         "productivity", "medium", [("focus", "<=", 2)], _WORKDAY,
         "Write down one next action", 5),
    _tip("productivity_daily_intention",
         "Set one intention for today so the day has a clear direction.",
         "productivity", "medium", [("energy", "<=", 3)], ("Morning",),
         "Write one goal for today", 2),
    _tip("physical_posture",
         "Roll your shoulders back, unclench your jaw and plant both feet on the floor.",
         "physical_wellness", "low", [("energy", "<=", 3)], _DAYTIME,
         "Reset your posture", 1),
    _tip("physical_eye_rest",
         "Every 20 minutes, look at something 20 feet away for 20 seconds.",
         "physical_wellness", "low", [("focus", "<=", 3)], _DAYTIME,
         "Look out of a window for 20 seconds", 1),
)


# ---------------------------------------------------------------------------
# Top-level config aggregate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ThriveConfig:
    """Complete engine configuration. Pass to any calculator to override defaults."""

    mc_weights: MCWeights = field(default_factory=MCWeights)
    dss_weights: DSSWeights = field(default_factory=DSSWeights)
    dss_multipliers: DSSMultipliers = field(default_factory=DSSMultipliers)
    dss_caps: DSSCaps = field(default_factory=DSSCaps)
    lm_weights: LearningMomentumWeights = field(default_factory=LearningMomentumWeights)
    ri_weights: RecoveryIndexWeights = field(default_factory=RecoveryIndexWeights)
    cn_weights: ConnectionWeights = field(default_factory=ConnectionWeights)
    sub_index_caps: SubIndexCaps = field(default_factory=SubIndexCaps)
    connection_tags: frozenset = DEFAULT_CONNECTION_TAGS
    scoring: ScoringParams = field(default_factory=ScoringParams)
    drivers: DriverThresholds = field(default_factory=DriverThresholds)
    power_hours: PowerHoursParams = field(default_factory=PowerHoursParams)
    coach: CoachParams = field(default_factory=CoachParams)
    coach_tips: Tuple[CoachTip, ...] = DEFAULT_COACH_TIPS


DEFAULT_CONFIG = ThriveConfig()


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _weight_error(name: str, total: float):
    if abs(total - 1.0) > WEIGHT_TOLERANCE:
        return f"{name} weights must sum to 1.0, got {total:.4f}"
    return None


def config_errors(cfg: ThriveConfig | None = None) -> List[str]:
    """Return every invariant violation found in `cfg` (empty when valid)."""
    if cfg is None:
        cfg = DEFAULT_CONFIG

    mc_total = sum(abs(w) for w in cfg.mc_weights.as_dict().values())
    dss_total = sum(cfg.dss_weights.as_dict().values())
    lm, ri, cn = cfg.lm_weights, cfg.ri_weights, cfg.cn_weights

    errors = [
        _weight_error("MC (absolute)", mc_total),
        _weight_error("DSS", dss_total),
        _weight_error("LM", lm.focus + lm.deep_work + lm.tasks),
        _weight_error("RI", ri.sleep + ri.recovery_action + ri.stress_inv),
        _weight_error("CN", cn.valence + cn.touchpoints + cn.social_tags),
    ]

    if cfg.scoring.sigma_floor <= 0:
        errors.append(f"Sigma floor must be positive, got {cfg.scoring.sigma_floor}")

    dt = cfg.drivers
    if not 0 < dt.medium <= dt.high:
        errors.append(
            f"Driver confidence thresholds must satisfy 0 < medium <= high, "
            f"got medium={dt.medium}, high={dt.high}"
        )
    if dt.min_occurrences < 1:
        errors.append(f"Driver min_occurrences must be >= 1, got {dt.min_occurrences}")

    ph = cfg.power_hours
    if not 0 < ph.extreme_fraction <= 1:
        errors.append(f"Power hours extreme_fraction must be in (0, 1], got {ph.extreme_fraction}")

    errors.extend(_tip_errors(cfg))
    return [e for e in errors if e]


def _tip_errors(cfg: ThriveConfig) -> List[str]:
    errors = []
    if cfg.coach.max_tips < 0:
        errors.append(f"Coach max_tips must be >= 0, got {cfg.coach.max_tips}")

    seen = set()
    for tip in cfg.coach_tips:
        if tip.id in seen:
            errors.append(f"Duplicate coach tip id '{tip.id}'")
        seen.add(tip.id)
        if tip.priority not in TIP_PRIORITIES:
            errors.append(f"Coach tip '{tip.id}' has unknown priority '{tip.priority}'")
        for c in tip.conditions:
            if c.metric not in TIP_METRICS:
                errors.append(f"Coach tip '{tip.id}' conditions on unknown metric '{c.metric}'")
            if c.operator not in TIP_OPERATORS:
                errors.append(f"Coach tip '{tip.id}' uses unknown operator '{c.operator}'")
    return errors


def validate_scoring_config(cfg: ThriveConfig | None = None) -> bool:
    """Pure boolean check of the configuration invariants. Violations are logged."""
    errors = config_errors(cfg)
    for err in errors:
        logger.error("Scoring configuration invalid: %s", err)
    return not errors


def require_valid_config(cfg: ThriveConfig | None = None) -> ThriveConfig:
    """Startup guard: raise ConfigurationError unless `cfg` is valid."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    errors = config_errors(cfg)
    if errors:
        raise ConfigurationError("; ".join(errors))
    return cfg
