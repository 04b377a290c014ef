"""View models for the overview, trends and speakers pages.

A failed load never keeps stale or made-up numbers: the view falls back to
empty envelopes and zeroed metrics and carries the error message so the
caller can show it inline.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from .api import ApiClient, ApiError
from .config import OVERVIEW_TOP
from .metrics import DashboardMetrics, compute_metrics
from .models import SpeakerData, TrendData, UtteranceData

logger = logging.getLogger(__name__)


@dataclass
class OverviewView:
    trends: TrendData = field(default_factory=TrendData)
    speakers: SpeakerData = field(default_factory=SpeakerData)
    utterances: UtteranceData = field(default_factory=UtteranceData)
    metrics: DashboardMetrics = field(default_factory=DashboardMetrics)
    error: Optional[str] = None


@dataclass
class TrendsView:
    data: TrendData = field(default_factory=TrendData)
    error: Optional[str] = None

    @property
    def empty(self) -> bool:
        return not self.data.trends


@dataclass
class SpeakersView:
    data: SpeakerData = field(default_factory=SpeakerData)
    error: Optional[str] = None

    @property
    def empty(self) -> bool:
        return not self.data.results


async def load_overview(client: ApiClient, top: int = OVERVIEW_TOP) -> OverviewView:
    try:
        utterances, speakers, trends = await asyncio.gather(
            client.get_utterances({"top": str(top)}),
            client.get_speakers(),
            client.get_trends(),
        )
    except ApiError as e:
        logger.error("Failed to fetch dashboard data: %s", e)
        return OverviewView(error=str(e))
    return OverviewView(
        trends=trends,
        speakers=speakers,
        utterances=utterances,
        metrics=compute_metrics(trends, speakers, utterances),
    )


async def load_trends(client: ApiClient) -> TrendsView:
    try:
        return TrendsView(data=await client.get_trends())
    except ApiError as e:
        logger.error("Failed to fetch trends: %s", e)
        return TrendsView(error=str(e))


async def load_speakers(client: ApiClient) -> SpeakersView:
    try:
        return SpeakersView(data=await client.get_speakers())
    except ApiError as e:
        logger.error("Failed to fetch speakers: %s", e)
        return SpeakersView(error=str(e))
