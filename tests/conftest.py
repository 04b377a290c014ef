import asyncio
import json
from typing import Callable, Dict, List

import httpx
import pytest

from insights.core.api import ApiClient
from insights.core.config import ApiConfig
from insights.core.models import Utterance, UtteranceData

LOCAL_URL = "http://localhost:7071/api"
REMOTE_URL = "https://townhall-insights.azurewebsites.net/api"


def utterance_dict(i: int, **overrides) -> Dict:
    d = {
        "utterance_id": f"u{i}",
        "meeting_id": f"townhall-2025-0{1 + i % 3}-15",
        "speaker": f"Speaker {i % 4}",
        "department": ["Sales", "Marketing", "Finance", "Unknown"][i % 4],
        "region": ["EMEA", "APAC", "NA", ""][i % 4],
        "country": "US",
        "start_ts": "2025-01-15T10:00:00Z",
        "end_ts": "2025-01-15T10:00:30Z",
        "sentiment_score": 0.5,
        "content": f"utterance number {i}",
        "topics": ["growth"],
        "link_to_clip": f"https://clips.example.com/{i}",
    }
    d.update(overrides)
    return d


def batch(start: int, n: int, total: int = 1000) -> UtteranceData:
    return UtteranceData(items=[Utterance.from_dict(utterance_dict(i)) for i in range(start, start + n)],
                         total_count=total)


def trends_payload(n: int = 2) -> Dict:
    return {
        "window_start": "2025-01-01T00:00:00Z",
        "window_end": "2025-03-31T00:00:00Z",
        "trends": [
            {
                "name": f"Topic {i}",
                "description": "something people talk about",
                "meetings_count": 3 + i,
                "avg_sentiment": 0.4,
                "momentum": ["up", "down", "flat"][i % 3],
                "novelty_score": 0.25,
                "support": [{"meeting_id": "townhall-2025-01-15", "ts": "2025-01-15T10:00:00Z"}],
            }
            for i in range(n)
        ],
    }


def speakers_payload() -> Dict:
    return {"results": [
        {"speaker_id": "s1", "display_name": "Ana Ruiz", "department": "Sales", "region": "EMEA",
         "country": "ES", "mentions": 12, "avg_sentiment": 0.8,
         "exemplar_quotes": [{"quote": "Great quarter", "meeting_id": "m1", "ts": "2025-01-15T10:00:00Z"}]},
        {"speaker_id": "s2", "display_name": "Town Hall Moderator", "department": "Comms", "region": "NA",
         "country": "US", "mentions": 40, "avg_sentiment": 0.2, "exemplar_quotes": []},
        {"speaker_id": "s3", "display_name": "Kenji Sato", "department": "Finance", "region": "APAC",
         "country": "JP", "mentions": 5, "avg_sentiment": -0.4, "exemplar_quotes": []},
    ]}


def json_response(payload, status: int = 200) -> httpx.Response:
    return httpx.Response(status, content=json.dumps(payload).encode(), headers={"content-type": "application/json"})


def router(routes: Dict[str, Callable[[httpx.Request], httpx.Response]], seen: List[httpx.Request] = None):
    """MockTransport handler dispatching on the URL path suffix."""
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        for suffix, fn in routes.items():
            if request.url.path.endswith(suffix):
                return fn(request)
        return httpx.Response(404)
    return handler


def make_client(handler, base_url: str = LOCAL_URL, **cfg) -> ApiClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ApiClient(ApiConfig(base_url=base_url, **cfg), http=http)


class GatedClient:
    """Stand-in client whose utterance fetches wait until the test resolves them."""

    def __init__(self):
        self.calls = []

    async def get_utterances(self, params):
        fut = asyncio.get_running_loop().create_future()
        self.calls.append((params, fut))
        return await fut

    def resolve(self, index: int, data):
        self.calls[index][1].set_result(data)

    def fail(self, index: int, exc: Exception):
        self.calls[index][1].set_exception(exc)


class QueueClient:
    """Returns queued batches in order."""

    def __init__(self, batches):
        self.batches = list(batches)
        self.calls = []

    async def get_utterances(self, params):
        self.calls.append(params)
        return self.batches.pop(0)


async def settle(rounds: int = 5):
    for _ in range(rounds):
        await asyncio.sleep(0)


class _Timer:
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeClock:
    """Virtual time for ``call_later`` style schedulers."""

    def __init__(self):
        self.now = 0.0
        self.timers: List[_Timer] = []

    def call_later(self, delay, callback):
        t = _Timer(self.now + delay, callback)
        self.timers.append(t)
        return t

    def advance_to(self, when: float):
        while True:
            due = [t for t in self.timers if not t.cancelled and t.when <= when]
            if not due:
                break
            t = min(due, key=lambda x: x.when)
            self.timers.remove(t)
            self.now = t.when
            t.callback()
        self.now = when


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
