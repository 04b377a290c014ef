from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _f(v) -> float:
    return float(v) if v is not None else 0.0


def _i(v) -> int:
    return int(v) if v is not None else 0


def _s(v) -> str:
    return str(v) if v is not None else ""


@dataclass
class Utterance:
    utterance_id: str
    meeting_id: str
    speaker: str
    department: str
    region: str
    country: str
    start_ts: str
    end_ts: str
    sentiment_score: float
    content: str
    topics: List[str] = field(default_factory=list)
    link_to_clip: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Utterance":
        return cls(
            utterance_id=_s(d.get("utterance_id")),
            meeting_id=_s(d.get("meeting_id")),
            speaker=_s(d.get("speaker")),
            department=_s(d.get("department")),
            region=_s(d.get("region")),
            country=_s(d.get("country")),
            start_ts=_s(d.get("start_ts")),
            end_ts=_s(d.get("end_ts")),
            sentiment_score=_f(d.get("sentiment_score")),
            content=_s(d.get("content")),
            topics=list(d.get("topics") or []),
            link_to_clip=_s(d.get("link_to_clip")),
        )


@dataclass
class TrendSupport:
    meeting_id: str
    ts: str


@dataclass
class Trend:
    name: str
    description: str
    meetings_count: int
    avg_sentiment: float
    momentum: str  # up|down|flat
    novelty_score: float
    support: List[TrendSupport] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Trend":
        return cls(
            name=_s(d.get("name")),
            description=_s(d.get("description")),
            meetings_count=_i(d.get("meetings_count")),
            avg_sentiment=_f(d.get("avg_sentiment")),
            momentum=_s(d.get("momentum")) or "flat",
            novelty_score=_f(d.get("novelty_score")),
            support=[TrendSupport(meeting_id=_s(s.get("meeting_id")), ts=_s(s.get("ts")))
                     for s in d.get("support") or []],
        )


@dataclass
class ExemplarQuote:
    quote: str
    meeting_id: str
    ts: str


@dataclass
class Speaker:
    speaker_id: str
    display_name: str
    department: str
    region: str
    country: str
    mentions: int
    avg_sentiment: float
    exemplar_quotes: List[ExemplarQuote] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Speaker":
        return cls(
            speaker_id=_s(d.get("speaker_id")),
            display_name=_s(d.get("display_name")),
            department=_s(d.get("department")),
            region=_s(d.get("region")),
            country=_s(d.get("country")),
            mentions=_i(d.get("mentions")),
            avg_sentiment=_f(d.get("avg_sentiment")),
            exemplar_quotes=[ExemplarQuote(quote=_s(q.get("quote")), meeting_id=_s(q.get("meeting_id")), ts=_s(q.get("ts")))
                             for q in d.get("exemplar_quotes") or []],
        )


@dataclass
class TrendData:
    window_start: str = ""
    window_end: str = ""
    trends: List[Trend] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TrendData":
        return cls(
            window_start=_s(d.get("window_start")),
            window_end=_s(d.get("window_end")),
            trends=[Trend.from_dict(t) for t in d.get("trends") or []],
        )


@dataclass
class SpeakerData:
    results: List[Speaker] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SpeakerData":
        return cls(results=[Speaker.from_dict(s) for s in d.get("results") or []])


@dataclass
class Pagination:
    top: int = 0
    skip: int = 0
    has_more: bool = False


@dataclass
class UtteranceData:
    items: List[Utterance] = field(default_factory=list)
    total_count: int = 0
    search_text: str = ""
    filters_applied: Dict[str, Any] = field(default_factory=dict)
    pagination: Pagination = field(default_factory=Pagination)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "UtteranceData":
        p = d.get("pagination") or {}
        return cls(
            items=[Utterance.from_dict(u) for u in d.get("items") or []],
            total_count=_i(d.get("total_count")),
            search_text=_s(d.get("search_text")),
            filters_applied=dict(d.get("filters_applied") or {}),
            pagination=Pagination(top=_i(p.get("top")), skip=_i(p.get("skip")), has_more=bool(p.get("has_more"))),
        )


@dataclass
class ChatQuery:
    question: str
    context: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"question": self.question}
        if self.context is not None:
            body["context"] = self.context
        return body


@dataclass
class ChatResponse:
    answer: str
    data: Any = None
    sources: List[str] = field(default_factory=list)
    confidence: float = 0.0
    intent: Optional[str] = None
    parameters_used: Any = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ChatResponse":
        return cls(
            answer=_s(d.get("answer")),
            data=d.get("data"),
            sources=[str(s) for s in d.get("sources") or []],
            confidence=_f(d.get("confidence")),
            intent=d.get("intent"),
            parameters_used=d.get("parameters_used"),
        )
