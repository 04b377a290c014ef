"""Async client for the Townhall Insights function app.

Every outbound call goes through :meth:`ApiClient.request`, which adds the
function key (non-local deployments only), the JSON content type and the
bearer token, and turns every failure into an :class:`ApiError`. Nothing is
retried and nothing falls back to placeholder data.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from .config import ApiConfig
from .models import ChatQuery, ChatResponse, SpeakerData, TrendData, UtteranceData

logger = logging.getLogger(__name__)

LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1", "0.0.0.0"}


class ApiError(Exception):
    pass


class NetworkError(ApiError):
    """The request never reached the server, or no response came back."""

    def __init__(self, message: str):
        super().__init__(f"API request failed: {message}")
        self.message = message


class HttpError(ApiError):
    """The server answered with a non-2xx status."""

    def __init__(self, status: int, status_text: str = ""):
        super().__init__(f"API request failed: {status} {status_text}".rstrip())
        self.status = status
        self.status_text = status_text


class DecodeError(ApiError):
    pass


def is_local(base_url: str) -> bool:
    try:
        host = httpx.URL(base_url).host
    except httpx.InvalidURL:
        return False
    return host in LOCAL_HOSTS


class ApiClient:
    def __init__(self, config: ApiConfig, http: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self._access_token = config.access_token
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=config.timeout)
        self._send_key = not is_local(self.base_url)
        if self._send_key and not config.function_key:
            logger.warning("No function key configured for non-local API %s", self.base_url)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def set_access_token(self, token: Optional[str]) -> None:
        self._access_token = token or None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    async def request(self, endpoint: str, method: str = "GET",
                      params: Optional[Dict[str, str]] = None,
                      json: Any = None) -> Any:
        url = f"{self.base_url}{endpoint}"
        query: Dict[str, str] = dict(params or {})
        if self._send_key:
            query["code"] = self.config.function_key

        try:
            resp = await self._http.request(method, url, params=query or None,
                                            json=json, headers=self._headers())
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, endpoint, e)
            raise NetworkError(str(e) or e.__class__.__name__) from e

        if not resp.is_success:
            logger.warning("%s %s returned %s", method, endpoint, resp.status_code)
            raise HttpError(resp.status_code, resp.reason_phrase)

        try:
            return resp.json()
        except ValueError as e:
            logger.warning("%s %s returned a non-JSON body", method, endpoint)
            raise DecodeError(f"API request failed: invalid JSON from {endpoint}") from e

    # Chat API
    async def chat_query(self, question: str, context: Optional[str] = None) -> ChatResponse:
        body = ChatQuery(question=question, context=context).to_dict()
        data = await self.request("/chat/query", method="POST", json=body)
        return ChatResponse.from_dict(data or {})

    # Insights API
    async def get_trends(self, params: Optional[Dict[str, str]] = None) -> TrendData:
        data = await self.request("/insights/trends", params=params)
        return TrendData.from_dict(data or {})

    async def get_speakers(self, params: Optional[Dict[str, str]] = None) -> SpeakerData:
        data = await self.request("/insights/speakers", params=params)
        return SpeakerData.from_dict(data or {})

    async def get_utterances(self, params: Optional[Dict[str, str]] = None) -> UtteranceData:
        data = await self.request("/insights/utterances", params=params)
        return UtteranceData.from_dict(data or {})
