"""
Coach tip selection.

Every tip in the configured library is scored against the current entry
(see CoachParams for the formula) and the highest-scoring tips are returned,
ties keeping library order. Without a current entry the onboarding
categories are offered instead, highest priority first.
"""

import logging
import operator
from typing import Dict, Iterable, List, Optional, Set, Tuple

import pandas as pd

from thrive.config import DEFAULT_CONFIG, CoachTip, ThriveConfig
from thrive.models import RATING_FIELDS, EntryLike, as_entry, bucket_value, entries_to_frame

logger = logging.getLogger(__name__)

_COMPARE = {
    "<": operator.lt,
    "<=": operator.le,
    "=": operator.eq,
    ">=": operator.ge,
    ">": operator.gt,
}


def current_state(entry: EntryLike, cfg: ThriveConfig | None = None) -> Dict[str, float]:
    """Resolved metric values a tip condition can refer to."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    c = cfg.coach
    row = entries_to_frame([entry], cfg).iloc[0]

    state = {
        name: c.rating_fallback if pd.isna(row[name]) else float(row[name])
        for name in RATING_FIELDS
    }
    sleep = row["sleep_hours"]
    unlogged = as_entry(entry).sleep_hours is None or pd.isna(sleep)
    state["sleep_hours"] = c.sleep_fallback if unlogged else float(sleep)
    touchpoints = row["social_touchpoints"]
    state["social_touchpoints"] = 0.0 if pd.isna(touchpoints) else float(touchpoints)
    state["recovery_action"] = 1.0 if row["recovery_action"] else 0.0
    return state


def recent_tags(entries: Iterable[EntryLike], cfg: ThriveConfig | None = None) -> Set[str]:
    df = entries_to_frame(entries, cfg)
    return set(df["tags"].explode().dropna())


def score_tip(
    tip: CoachTip,
    state: Dict[str, float],
    time_bucket: Optional[str],
    tags: Set[str],
    cfg: ThriveConfig | None = None,
) -> int:
    """Relevance of one tip for the given state, bucket and recent tags."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    c = cfg.coach

    score = 0
    for cond in tip.conditions:
        value = state.get(cond.metric)
        if value is not None and _COMPARE[cond.operator](value, cond.value):
            score += c.condition_match

    score += c.priority_bonus(tip.priority)

    if time_bucket is not None and time_bucket in tip.time_buckets:
        score += c.time_match

    score += c.tag_match * sum(1 for tag in tip.required_tags if tag in tags)
    return score


def rank_tips(
    entry: EntryLike,
    recent_entries: Iterable[EntryLike] = (),
    cfg: ThriveConfig | None = None,
) -> List[Tuple[CoachTip, int]]:
    """Every configured tip with its score, best first."""
    if cfg is None:
        cfg = DEFAULT_CONFIG

    state = current_state(entry, cfg)
    bucket = bucket_value(as_entry(entry).time_bucket)
    tags = recent_tags(recent_entries, cfg)

    scored = [(tip, score_tip(tip, state, bucket, tags, cfg)) for tip in cfg.coach_tips]
    return sorted(scored, key=lambda pair: pair[1], reverse=True)


def onboarding_tips(max_tips: int | None = None, cfg: ThriveConfig | None = None) -> List[CoachTip]:
    """Starter tips for a user with no entries, highest priority first."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    c = cfg.coach
    if max_tips is None:
        max_tips = c.max_tips

    starters = [tip for tip in cfg.coach_tips if tip.category in c.onboarding_categories]
    starters.sort(key=lambda tip: c.priority_bonus(tip.priority), reverse=True)
    return starters[:max(max_tips, 0)]


def select_relevant_tips(
    entry: Optional[EntryLike],
    recent_entries: Iterable[EntryLike] = (),
    max_tips: int | None = None,
    cfg: ThriveConfig | None = None,
) -> List[CoachTip]:
    """
    Top tips for the current entry given the tags of recent entries.

    `entry=None` means nothing has been logged yet and returns
    onboarding_tips(). Unresolvable ratings fall back to the scale midpoint.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    if max_tips is None:
        max_tips = cfg.coach.max_tips

    if entry is None:
        return onboarding_tips(max_tips, cfg)

    ranked = rank_tips(entry, recent_entries, cfg)
    logger.debug("Ranked %d coach tips, keeping %d", len(ranked), max_tips)
    return [tip for tip, _ in ranked[:max(max_tips, 0)]]
