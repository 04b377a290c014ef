from dataclasses import asdict
from pathlib import Path
from typing import Any, AsyncIterator, Dict

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

# Make local package importable
import sys
BASE_DIR = Path(__file__).resolve().parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from insights.core import config
from insights.core.api import ApiClient, ApiError, HttpError
from insights.core.config import ApiConfig
from insights.core.metrics import filter_speakers, top_speakers
from insights.core.params import SENTIMENT_BUCKETS, FilterState, build_utterance_params
from insights.core.views import load_overview, load_speakers, load_trends

app = FastAPI(title="Townhall Insights API")


async def get_client() -> AsyncIterator[ApiClient]:
    async with ApiClient(ApiConfig.from_env()) as client:
        yield client


@app.exception_handler(ApiError)
async def _upstream_failed(request: Request, exc: ApiError):
    body: Dict[str, Any] = {"ok": False, "message": str(exc)}
    if isinstance(exc, HttpError):
        body["upstream_status"] = exc.status
    return JSONResponse(status_code=502, content=body)


def _view_error(message: str):
    return JSONResponse(status_code=502, content={"ok": False, "message": message})


@app.get("/api/overview")
async def overview(client: ApiClient = Depends(get_client)):
    view = await load_overview(client)
    if view.error:
        return _view_error(view.error)
    return {
        "ok": True,
        "metrics": asdict(view.metrics),
        "trends": [asdict(t) for t in view.trends.trends[:5]],
        "speakers": [asdict(s) for s in top_speakers(view.speakers.results)],
    }


@app.get("/api/trends")
async def trends(client: ApiClient = Depends(get_client)):
    view = await load_trends(client)
    if view.error:
        return _view_error(view.error)
    return {"ok": True, **asdict(view.data)}


@app.get("/api/speakers")
async def speakers(search: str = "", department: str = "all", region: str = "all",
                   client: ApiClient = Depends(get_client)):
    view = await load_speakers(client)
    if view.error:
        return _view_error(view.error)
    results = view.data.results
    return {
        "ok": True,
        "results": [asdict(s) for s in filter_speakers(results, search=search, department=department, region=region)],
        "departments": sorted({s.department for s in results}),
        "regions": sorted({s.region for s in results}),
    }


@app.get("/api/utterances")
async def utterances(page: int = Query(1, ge=1),
                     page_size: int = Query(config.PAGE_SIZE, ge=1),
                     search: str = "", speaker: str = "all", department: str = "all",
                     region: str = "all", sentiment: str = "all",
                     client: ApiClient = Depends(get_client)):
    if sentiment not in SENTIMENT_BUCKETS:
        return JSONResponse(status_code=422, content={"ok": False, "message": f"unknown sentiment bucket: {sentiment}"})
    filters = FilterState(search_text=search, speaker=speaker, department=department, region=region, sentiment=sentiment)
    data = await client.get_utterances(build_utterance_params(filters, page, page_size))
    offset = (page - 1) * page_size
    return {
        "ok": True,
        "items": [dict(asdict(u), key=f"{u.utterance_id}-{offset + i}") for i, u in enumerate(data.items)],
        "total_count": data.total_count,
        "page": page,
        "has_more": len(data.items) == page_size,
    }


@app.post("/api/chat")
async def chat(payload: Dict[str, Any] = Body(...), client: ApiClient = Depends(get_client)):
    question = (payload.get("question") or "").strip()
    if not question:
        return JSONResponse(status_code=422, content={"ok": False, "message": "question is required"})
    resp = await client.chat_query(question, context=payload.get("context"))
    return {"ok": True, **asdict(resp)}
