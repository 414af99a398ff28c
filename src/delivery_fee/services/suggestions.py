"""Debounced place autocomplete for a single search box."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from ..config import settings
from ..errors import GeocodingUnavailable, ProviderError, SuggestionResolutionError
from ..models.domain import AddressResult, PlaceSuggestion, ResolvedPlace
from .geocoding.chain import GeocodingChain

logger = logging.getLogger(__name__)

SuggestionsListener = Callable[[tuple[PlaceSuggestion, ...]], None]
ErrorListener = Callable[[Exception], None]


class PlaceSuggestionResolver:
    """One search session: keystrokes in, suggestion lists out.

    Every keystroke cancels the pending fetch and bumps a sequence number, so at
    most one request is in flight and any response for an older query is dropped.
    """

    def __init__(
        self,
        chain: GeocodingChain,
        *,
        debounce_seconds: float | None = None,
        limit: int | None = None,
        on_results: Optional[SuggestionsListener] = None,
        on_error: Optional[ErrorListener] = None,
    ) -> None:
        self.chain = chain
        self.debounce_seconds = (
            debounce_seconds if debounce_seconds is not None else settings.suggestion_debounce_ms / 1000.0
        )
        self.limit = limit or settings.suggestion_limit
        self.on_results = on_results
        self.on_error = on_error
        self._sequence = 0
        self._pending: asyncio.Task | None = None
        self._suggestions: tuple[PlaceSuggestion, ...] = ()
        self._closed = False

    @property
    def suggestions(self) -> tuple[PlaceSuggestion, ...]:
        return self._suggestions

    @property
    def sequence(self) -> int:
        return self._sequence

    def on_query_change(self, text: str) -> asyncio.Task | None:
        """Schedule a fetch for ``text``; blank text clears suggestions without a request."""
        if self._closed:
            return None
        self._supersede()
        query = (text or "").strip()
        if not query:
            self._publish(())
            return None
        self._pending = asyncio.get_running_loop().create_task(self._debounced_fetch(self._sequence, query))
        return self._pending

    async def wait_idle(self) -> None:
        """Wait for the pending fetch, if any, to finish or be cancelled."""
        pending = self._pending
        if pending is not None:
            await asyncio.gather(pending, return_exceptions=True)

    async def resolve_suggestion(self, suggestion: PlaceSuggestion) -> ResolvedPlace:
        """Turn a picked suggestion into a point and address.

        Nominatim suggestions already carry coordinates; Google ones need a place
        details round-trip. Failures raise SuggestionResolutionError and leave the
        session usable.
        """
        self._supersede()
        self._publish(())
        if suggestion.point is not None:
            address = suggestion.address or AddressResult(
                source_point=suggestion.point,
                full_address=suggestion.label,
                provider=suggestion.provider,
                place_ref=suggestion.provider_ref,
            )
            return ResolvedPlace(point=suggestion.point, address=address)

        try:
            address = await self.chain.place_details(suggestion.provider_ref)
        except (ProviderError, asyncio.TimeoutError) as exc:
            logger.warning(f"Could not resolve suggestion {suggestion.id}: {exc}")
            raise SuggestionResolutionError(f"could not resolve suggestion {suggestion.label!r}") from exc
        return ResolvedPlace(point=address.source_point, address=address)

    def close(self) -> None:
        """Cancel pending work; later keystrokes are ignored."""
        self._supersede()
        self._closed = True

    def _supersede(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
        self._sequence += 1

    def _publish(self, suggestions: tuple[PlaceSuggestion, ...]) -> None:
        self._suggestions = suggestions
        if self.on_results is not None:
            self.on_results(suggestions)

    async def _debounced_fetch(self, sequence: int, query: str) -> None:
        await asyncio.sleep(self.debounce_seconds)
        try:
            results = await self.chain.suggest(query, limit=self.limit)
        except GeocodingUnavailable as exc:
            if sequence != self._sequence:
                return
            self._publish(())
            if self.on_error is not None:
                self.on_error(exc)
            return

        if sequence != self._sequence:
            logger.debug(f"Dropping stale suggestions for {query!r} (sequence {sequence} < {self._sequence})")
            return
        self._publish(tuple(results))
