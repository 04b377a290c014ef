from dataclasses import dataclass, replace
from typing import Dict

ALL = "all"
SENTIMENT_BUCKETS = ("all", "positive", "negative", "neutral")
SENTIMENT_THRESHOLD = "0.3"


@dataclass(frozen=True)
class FilterState:
    search_text: str = ""
    speaker: str = ALL
    department: str = ALL
    region: str = ALL
    sentiment: str = ALL

    def __post_init__(self):
        if self.sentiment not in SENTIMENT_BUCKETS:
            raise ValueError(f"unknown sentiment bucket: {self.sentiment!r}")

    def replace(self, **changes) -> "FilterState":
        return replace(self, **changes)


def sentiment_params(bucket: str) -> Dict[str, str]:
    if bucket == "positive":
        return {"sentiment_min": SENTIMENT_THRESHOLD}
    if bucket == "negative":
        return {"sentiment_max": "-" + SENTIMENT_THRESHOLD}
    if bucket == "neutral":
        return {"sentiment_min": "-" + SENTIMENT_THRESHOLD, "sentiment_max": SENTIMENT_THRESHOLD}
    if bucket == ALL:
        return {}
    raise ValueError(f"unknown sentiment bucket: {bucket!r}")


def build_utterance_params(filters: FilterState, page: int, page_size: int) -> Dict[str, str]:
    if page < 1 or page_size < 1:
        raise ValueError(f"page and page_size must be >= 1 (got {page}, {page_size})")
    params = {
        "top": str(page_size),
        "skip": str((page - 1) * page_size),
    }
    if filters.search_text:
        params["search"] = filters.search_text
    for name in ("speaker", "department", "region"):
        value = getattr(filters, name)
        if value and value != ALL:
            params[name] = value
    params.update(sentiment_params(filters.sentiment))
    return params
