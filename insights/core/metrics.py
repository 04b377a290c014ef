import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from .models import Speaker, SpeakerData, TrendData, UtteranceData

DATE_RE = re.compile(r"(\d{4}-\d{2}-\d{2})")
UNKNOWN = "Unknown"


@dataclass
class DashboardMetrics:
    total_topics: int = 0
    active_speakers: int = 0
    avg_speaker_sentiment: int = 0   # percent
    meetings_held: int = 0
    quarterly_meetings: int = 0
    unique_regions: int = 0
    unique_departments: int = 0
    total_utterances: int = 0
    avg_utterance_sentiment: int = 0  # percent


def _pct_mean(values: List[float]) -> int:
    if not values:
        return 0
    # round half up (12.5 -> 13)
    return math.floor(sum(values) / len(values) * 100 + 0.5)


def _known(values: Iterable[str]) -> set:
    return {v for v in values if v and v != UNKNOWN}


def _three_months_ago(now: datetime) -> datetime:
    month = now.month - 3
    year = now.year
    if month < 1:
        month += 12
        year -= 1
    # clamp the day, e.g. May 31 -> Feb 28
    for day in (now.day, 30, 29, 28):
        try:
            return now.replace(year=year, month=month, day=day)
        except ValueError:
            continue
    return now.replace(year=year, month=month, day=28)


def recent_meetings(meeting_ids: Iterable[str], now: Optional[datetime] = None) -> set:
    # ids without an embedded date count as recent
    cutoff = _three_months_ago(now or datetime.now()).date()
    out = set()
    for mid in meeting_ids:
        if not mid:
            continue
        m = DATE_RE.search(mid)
        if not m:
            out.add(mid)
            continue
        try:
            when = datetime.strptime(m.group(1), "%Y-%m-%d").date()
        except ValueError:
            out.add(mid)
            continue
        if when >= cutoff:
            out.add(mid)
    return out


def compute_metrics(trends: Optional[TrendData], speakers: Optional[SpeakerData],
                    utterances: Optional[UtteranceData], now: Optional[datetime] = None) -> DashboardMetrics:
    out = DashboardMetrics()
    if trends is not None:
        out.total_topics = len(trends.trends)
    if speakers is not None:
        out.active_speakers = len(speakers.results)
        out.avg_speaker_sentiment = _pct_mean([s.avg_sentiment for s in speakers.results])
    if utterances is not None:
        items = utterances.items
        out.meetings_held = len({u.meeting_id for u in items})
        out.quarterly_meetings = len(recent_meetings((u.meeting_id for u in items), now=now))
        out.unique_regions = len(_known(u.region for u in items))
        out.unique_departments = len(_known(u.department for u in items))
        out.total_utterances = utterances.total_count
        out.avg_utterance_sentiment = _pct_mean([u.sentiment_score for u in items if u.sentiment_score])
    return out


def speaker_sentiment_label(score: float) -> str:
    if score > 0.7:
        return "Very Positive"
    if score > 0.3:
        return "Positive"
    if score > -0.3:
        return "Neutral"
    if score > -0.7:
        return "Negative"
    return "Very Negative"


def utterance_sentiment_label(score: float) -> str:
    if score > 0.3:
        return "Positive"
    if score < -0.3:
        return "Negative"
    return "Neutral"


def sentiment_style(score: float) -> str:
    # rich style for a sentiment value
    if score > 0.3:
        return "green"
    if score < -0.3:
        return "red"
    return "white"


MOMENTUM_ARROWS = {"up": "↑", "down": "↓", "flat": "→"}
MOMENTUM_STYLES = {"up": "green", "down": "red", "flat": "white"}


def momentum_arrow(momentum: str) -> str:
    return MOMENTUM_ARROWS.get(momentum, MOMENTUM_ARROWS["flat"])


def momentum_style(momentum: str) -> str:
    return MOMENTUM_STYLES.get(momentum, MOMENTUM_STYLES["flat"])


def format_percent(value: float, digits: int = 1) -> str:
    return f"{value * 100:.{digits}f}%"


def _matches(value: str, selected: Optional[str]) -> bool:
    return not selected or selected == "all" or value == selected


def filter_speakers(results: List[Speaker], search: str = "", department: Optional[str] = None,
                    region: Optional[str] = None) -> List[Speaker]:
    term = (search or "").lower()
    out = []
    for s in results:
        if term and term not in s.display_name.lower() and term not in s.department.lower():
            continue
        if not _matches(s.department, department) or not _matches(s.region, region):
            continue
        out.append(s)
    return out


def top_speakers(results: List[Speaker], limit: int = 5) -> List[Speaker]:
    return [s for s in results if "moderator" not in s.display_name.lower()][:limit]
