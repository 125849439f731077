"""Search controller: the stateful facade the UI layer talks to.

State machine:

    IDLE     empty query, no results or suggestions
    PENDING  query submitted, debounce timer running, is_loading is True
    SETTLED  results/suggestions computed, is_loading is False

Every submission cancels the outstanding timer, so only the last query
inside the debounce window is ever evaluated. A blank query skips the timer
and goes straight to IDLE.
"""

import asyncio
import time
from collections import deque
from enum import Enum
from typing import Any, Dict, List, Optional

from loguru import logger

from .bus import Event, EventBus
from .catalog import Catalog
from .config import Config
from .models import SearchResult, SearchSuggestion, SuggestionType, UtilityDefinition
from .personalization import PersonalizationStore
from .ranker import Ranker
from .recent_searches import RecentSearches
from .suggestions import SuggestionGenerator


class SearchState(Enum):
    """Controller states."""
    IDLE = "idle"
    PENDING = "pending"
    SETTLED = "settled"


class SearchController:
    """
    Owns the current query, results, suggestions and loading flag, and
    orchestrates ranking, suggestion generation and personalization.

    Debouncing runs on the asyncio event loop. Called outside a running loop
    the controller evaluates immediately instead.
    """

    def __init__(
        self,
        catalog: Catalog,
        store: PersonalizationStore,
        config: Optional[Config] = None,
        event_bus: Optional[EventBus] = None,
        recent_searches: Optional[RecentSearches] = None,
        ranker: Optional[Ranker] = None,
        suggestion_generator: Optional[SuggestionGenerator] = None
    ):
        self.config = config or Config()
        self.catalog = catalog
        self.store = store
        self.event_bus = event_bus
        self.recent_searches = recent_searches

        self.debounce_seconds = self.config.search.debounce_ms / 1000.0
        self.max_results = self.config.search.max_results

        self.ranker = ranker or Ranker()
        limits = self.config.suggestions
        self.suggestion_generator = suggestion_generator or SuggestionGenerator(
            self.ranker,
            max_suggestions=limits.max_suggestions,
            max_utilities=limits.max_utilities,
            max_categories=limits.max_categories,
            max_keywords=limits.max_keywords
        )

        self._query = ""
        self._results: List[SearchResult] = []
        self._suggestions: List[SearchSuggestion] = []
        self._is_loading = False
        self._state = SearchState.IDLE

        self._timer: Optional[asyncio.TimerHandle] = None
        self._generation = 0
        self._waiters: List[asyncio.Future] = []

        # Performance tracking
        self._latency_history = deque(maxlen=1000)

        self._recently_used = self.store.get_recently_used()
        self._favorites = self.store.get_favorites()

    # Read access for the UI

    @property
    def query(self) -> str:
        return self._query

    @property
    def results(self) -> List[SearchResult]:
        return list(self._results)

    @property
    def suggestions(self) -> List[SearchSuggestion]:
        return list(self._suggestions)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def recently_used(self) -> List[UtilityDefinition]:
        return list(self._recently_used)

    @property
    def favorites(self) -> List[UtilityDefinition]:
        return list(self._favorites)

    # Operations

    def perform_search(self, query: str, show_suggestions: bool = True) -> None:
        """Debounced search producing results and, unless disabled, suggestions."""
        self._submit(query, compute_results=True, show_suggestions=show_suggestions)

    def handle_live_search(self, query: str) -> None:
        """Debounced suggestions only; the last results stay as they are."""
        self._submit(query, compute_results=False, show_suggestions=True)

    def handle_suggestion_select(self, suggestion: Any) -> None:
        """
        Apply a selected suggestion.

        Suggestions are cleared at once; a utility suggestion is recorded as
        used. The query becomes the suggestion text and is searched again
        without suggestions. Unknown suggestion types are ignored.
        """
        kind = getattr(suggestion, "type", None)
        if not isinstance(kind, SuggestionType):
            try:
                kind = SuggestionType(kind)
            except ValueError:
                logger.debug(f"Ignoring suggestion of unknown type: {kind!r}")
                return

        self._suggestions = []

        if kind is SuggestionType.UTILITY:
            utility = getattr(suggestion, "utility", None)
            if utility is not None:
                self.store.record_use(utility.id)
                self._refresh_personalization()

        text = getattr(suggestion, "text", "") or ""
        if self.recent_searches is not None:
            self.recent_searches.add(text)
        self.perform_search(text, show_suggestions=False)

    def toggle_favorite(self, utility_id: str) -> bool:
        is_favorite = self.store.toggle_favorite(utility_id)
        self._refresh_personalization()
        return is_favorite

    def record_use(self, utility_id: str) -> None:
        """Record that a utility was opened outside of a suggestion."""
        self.store.record_use(utility_id)
        self._refresh_personalization()

    def clear_history(self) -> None:
        """Clear recents, favorites and the query history."""
        self.store.clear_history()
        if self.recent_searches is not None:
            self.recent_searches.clear()
        self._refresh_personalization()

    def replace_catalog(self, catalog: Catalog) -> None:
        """Swap in a new catalog; the index rebuilds on next use."""
        logger.info(f"Catalog replaced ({len(self.catalog)} -> {len(catalog)} utilities)")
        self.catalog = catalog
        self.store.set_catalog(catalog)
        self._refresh_personalization()
        if self._query.strip():
            self.perform_search(self._query, show_suggestions=bool(self._suggestions))

    async def wait_until_settled(self, timeout: Optional[float] = None) -> None:
        """Wait until no search is pending."""
        if not self._is_loading:
            return
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await asyncio.wait_for(waiter, timeout=timeout)
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)

    def close(self) -> None:
        """Cancel any pending evaluation."""
        self._cancel_timer()
        self._generation += 1
        if self._is_loading:
            self._is_loading = False
            self._state = SearchState.SETTLED if self._results or self._suggestions else SearchState.IDLE
            self._notify_settled()

    # Internals

    def _submit(self, query: str, compute_results: bool, show_suggestions: bool) -> None:
        query = query or ""
        self._query = query
        self._cancel_timer()
        self._generation += 1

        if not query.strip():
            self._results = []
            self._suggestions = []
            self._is_loading = False
            self._state = SearchState.IDLE
            self._notify_settled()
            self._emit("search.cleared", {"query": query})
            return

        self._is_loading = True
        self._state = SearchState.PENDING
        generation = self._generation

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._evaluate(generation, query, compute_results, show_suggestions)
            return

        self._timer = loop.call_later(
            self.debounce_seconds,
            self._evaluate,
            generation,
            query,
            compute_results,
            show_suggestions
        )

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _evaluate(
        self,
        generation: int,
        query: str,
        compute_results: bool,
        show_suggestions: bool
    ) -> None:
        # A newer submission supersedes this one
        if generation != self._generation:
            return
        self._timer = None

        start = time.perf_counter()
        results = self._results
        suggestions: List[SearchSuggestion] = []
        try:
            snapshot = self.store.snapshot()
            if compute_results:
                results = self.ranker.rank(query, self.catalog, snapshot, limit=self.max_results)
            if show_suggestions:
                suggestions = self.suggestion_generator.suggest(query, self.catalog, snapshot)
        except Exception as e:
            logger.error(f"Search error for {query!r}: {e}")
            results = []
            suggestions = []

        latency_ms = (time.perf_counter() - start) * 1000
        self._latency_history.append(latency_ms)

        self._results = results
        self._suggestions = suggestions
        self._is_loading = False
        self._state = SearchState.SETTLED
        self._notify_settled()

        logger.debug(
            f"Search {query!r} settled: {len(results)} results, "
            f"{len(suggestions)} suggestions in {latency_ms:.1f}ms"
        )
        self._emit("search.settled", {
            "query": query,
            "result_count": len(results),
            "suggestion_count": len(suggestions),
            "latency_ms": latency_ms
        })

    def _notify_settled(self) -> None:
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

    def _refresh_personalization(self) -> None:
        self._recently_used = self.store.get_recently_used()
        self._favorites = self.store.get_favorites()
        self._emit("personalization.changed", {
            "recently_used": [u.id for u in self._recently_used],
            "favorites": [u.id for u in self._favorites]
        })

    def _emit(self, event_type: str, data: Dict[str, Any]) -> None:
        if self.event_bus is not None:
            self.event_bus.emit_nowait(Event(type=event_type, data=data, source="search_controller"))

    def get_performance_stats(self) -> Dict[str, float]:
        """Get evaluation latency statistics."""
        if not self._latency_history:
            return {}

        sorted_latencies = sorted(self._latency_history)
        n = len(sorted_latencies)

        return {
            "count": n,
            "p50": sorted_latencies[int(n * 0.5)],
            "p95": sorted_latencies[min(n - 1, int(n * 0.95))],
            "p99": sorted_latencies[int(n * 0.99)] if n > 100 else sorted_latencies[-1],
            "mean": sum(sorted_latencies) / n,
            "min": sorted_latencies[0],
            "max": sorted_latencies[-1]
        }
