"""Paged, filterable utterance list.

The pager owns the accumulated results of an infinite-scroll list. A reset
(filters changed) replaces everything; ``load_more`` appends the next page.
Each reset bumps a generation counter and every fetch remembers the
generation it was issued under, so a response that arrives after the filters
changed is dropped instead of being merged into the new result set.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, Optional, Tuple

from .api import ApiClient, ApiError
from .config import PAGE_SIZE, SEARCH_DEBOUNCE_MS
from .debounce import Debouncer
from .models import Utterance, UtteranceData
from .params import FilterState, build_utterance_params

logger = logging.getLogger(__name__)


@dataclass
class PageState:
    items: List[Utterance] = field(default_factory=list)
    total_count: int = 0
    current_page: int = 1
    has_more: bool = True
    loading: bool = False
    loading_more: bool = False
    error: Optional[str] = None


class UtterancePager:
    def __init__(self, client: ApiClient, filters: Optional[FilterState] = None, page_size: int = PAGE_SIZE,
                 debounce_ms: int = SEARCH_DEBOUNCE_MS,
                 call_later: Optional[Callable[[float, Callable[[], None]], Any]] = None):
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self.client = client
        self.page_size = page_size
        self.filters = filters or FilterState()
        self.state = PageState()
        self._generation = 0
        self._search = Debouncer(self._search_settled, delay_ms=debounce_ms, call_later=call_later)

    @property
    def generation(self) -> int:
        return self._generation

    async def _fetch(self, page: int) -> UtteranceData:
        params = build_utterance_params(self.filters, page, self.page_size)
        return await self.client.get_utterances(params)

    async def reset_and_fetch(self) -> None:
        self._generation += 1
        gen = self._generation
        # an append still in flight belongs to the previous generation
        self.state = PageState(loading=True)

        try:
            data = await self._fetch(1)
        except ApiError as e:
            if gen != self._generation:
                logger.debug("Dropping failed reset from generation %d", gen)
                return
            logger.error("Failed to fetch utterances: %s", e)
            self.state.items = []
            self.state.error = str(e)
            # nothing to append to until the next reset
            self.state.has_more = False
            self.state.loading = False
            raise

        if gen != self._generation:
            logger.debug("Dropping stale reset from generation %d", gen)
            return
        self.state.items = list(data.items)
        self.state.total_count = data.total_count
        self.state.has_more = len(data.items) == self.page_size
        self.state.loading = False

    async def load_more(self) -> bool:
        """Fetch and append the next page. Returns False when nothing was started."""
        st = self.state
        if st.loading or st.loading_more or not st.has_more:
            return False

        gen = self._generation
        next_page = st.current_page + 1
        st.loading_more = True
        try:
            data = await self._fetch(next_page)
        except ApiError as e:
            if gen != self._generation:
                logger.debug("Dropping failed page %d from generation %d", next_page, gen)
                return True
            logger.error("Failed to load more utterances: %s", e)
            st.error = str(e)
            # keep what we have; no further appends until the next reset
            st.has_more = False
            st.loading_more = False
            raise

        if gen != self._generation:
            logger.debug("Dropping stale page %d from generation %d", next_page, gen)
            return True
        st.items.extend(data.items)
        st.current_page = next_page
        st.total_count = data.total_count or st.total_count
        st.has_more = len(data.items) == self.page_size
        st.error = None
        st.loading_more = False
        logger.debug("Loaded page %d: %d items (%d total)", next_page, len(data.items), len(st.items))
        return True

    async def on_sentinel_visible(self) -> bool:
        # the end-of-list sentinel scrolled into view; same path as a manual "load more"
        return await self.load_more()

    async def set_filters(self, filters: FilterState) -> None:
        if filters == self.filters:
            return
        self.filters = filters
        await self.reset_and_fetch()

    async def update_filters(self, **changes) -> None:
        await self.set_filters(self.filters.replace(**changes))

    def on_search_input(self, raw: str) -> None:
        """Feed a keystroke; the search filter changes once typing settles."""
        self._search.on_input_change(raw)

    async def _search_settled(self, text: str) -> None:
        try:
            await self.update_filters(search_text=text)
        except ApiError:
            # logged and kept on self.state.error by reset_and_fetch
            return

    def close(self) -> None:
        self._search.close()

    def keyed_items(self) -> Iterator[Tuple[Tuple[str, int], Utterance]]:
        # utterance_id may repeat across pages
        for pos, u in enumerate(self.state.items):
            yield (u.utterance_id, pos), u

    def _unique(self, attr: str) -> List[str]:
        return sorted({getattr(u, attr) for u in self.state.items})

    def unique_speakers(self) -> List[str]:
        return self._unique("speaker")

    def unique_departments(self) -> List[str]:
        return self._unique("department")

    def unique_regions(self) -> List[str]:
        return self._unique("region")
