"""Geocoding, autocomplete and distance endpoints."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from ...errors import DeliveryFeeError, DistanceUnavailable, GeocodingUnavailable, InvalidCoordinates, SuggestionResolutionError
from ...models.domain import PlaceSuggestion
from ...schemas.geocoding import (
    AddressModel,
    DistanceResponse,
    GeoPointModel,
    PlaceSuggestionModel,
    ResolvedPlaceResponse,
    SuggestionsResponse,
)
from ...services import distance as distance_service
from ...services.geocoding import chain as geocoding_chain
from ...services.location import normalize
from ...services.map_selection import MapLocationSession
from ...services.suggestions import PlaceSuggestionResolver

router = APIRouter(prefix="/geocoding", tags=["geocoding"])
logger = logging.getLogger(__name__)


def _unavailable(exc: DeliveryFeeError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message)


def _point_or_422(lat: float, lng: float):
    try:
        return normalize({"lat": lat, "lng": lng})
    except InvalidCoordinates as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message) from exc


@router.get("/forward", response_model=AddressModel)
async def forward(q: str = Query(..., min_length=1, description="Free-text address.")) -> AddressModel:
    try:
        result = await geocoding_chain.build_geocoding_chain().forward_geocode(q)
    except GeocodingUnavailable as exc:
        raise _unavailable(exc) from exc
    return AddressModel.from_result(result)


@router.get("/reverse", response_model=AddressModel)
async def reverse(lat: float = Query(...), lng: float = Query(...)) -> AddressModel:
    point = _point_or_422(lat, lng)
    try:
        result = await geocoding_chain.build_geocoding_chain().reverse_geocode(point)
    except GeocodingUnavailable as exc:
        raise _unavailable(exc) from exc
    return AddressModel.from_result(result)


@router.get("/suggestions", response_model=SuggestionsResponse)
async def suggestions(q: str = Query("", description="Partial search text.")) -> SuggestionsResponse:
    """One-shot suggestions; debouncing is the caller's job on this endpoint."""
    query = q.strip()
    if not query:
        return SuggestionsResponse(query=q, suggestions=[])
    try:
        results = await geocoding_chain.build_geocoding_chain().suggest(query)
    except GeocodingUnavailable as exc:
        raise _unavailable(exc) from exc
    return SuggestionsResponse(query=q, suggestions=[PlaceSuggestionModel.from_suggestion(item) for item in results])


@router.post("/suggestions/resolve", response_model=ResolvedPlaceResponse)
async def resolve_suggestion(payload: PlaceSuggestionModel) -> ResolvedPlaceResponse:
    resolver = PlaceSuggestionResolver(geocoding_chain.build_geocoding_chain())
    try:
        resolved = await resolver.resolve_suggestion(payload.to_suggestion())
    except SuggestionResolutionError as exc:
        raise _unavailable(exc) from exc
    finally:
        resolver.close()
    return ResolvedPlaceResponse(
        point=GeoPointModel.from_point(resolved.point), address=AddressModel.from_result(resolved.address)
    )


@router.get("/distance", response_model=DistanceResponse)
async def distance(
    origin_lat: float = Query(...),
    origin_lng: float = Query(...),
    destination_lat: float = Query(...),
    destination_lng: float = Query(...),
) -> DistanceResponse:
    origin = _point_or_422(origin_lat, origin_lng)
    destination = _point_or_422(destination_lat, destination_lng)
    try:
        result = await distance_service.build_distance_calculator().calculate(origin, destination)
    except DistanceUnavailable as exc:
        raise _unavailable(exc) from exc
    return DistanceResponse(
        distance_km=result.distance_km,
        duration_minutes=result.duration_minutes,
        distance_text=result.distance_text,
        duration_text=result.duration_text,
    )


def _suggestions_message(items: tuple[PlaceSuggestion, ...]) -> dict:
    return {
        "type": "suggestions",
        "suggestions": [PlaceSuggestionModel.from_suggestion(item).model_dump(mode="json") for item in items],
    }


@router.websocket("/session")
async def location_session(websocket: WebSocket) -> None:
    """Interactive search box + map session.

    Client messages:
      {"type": "query", "text": ...}                 debounced suggestions
      {"type": "select_suggestion", "suggestion": {...}}
      {"type": "select_point", "lat": ..., "lng": ...}  map click/drag
    """
    await websocket.accept()
    chain = geocoding_chain.build_geocoding_chain()
    outgoing: asyncio.Queue[dict] = asyncio.Queue()
    resolver = PlaceSuggestionResolver(
        chain,
        on_results=lambda items: outgoing.put_nowait(_suggestions_message(items)),
        on_error=lambda exc: outgoing.put_nowait({"type": "error", "detail": str(exc)}),
    )
    map_session = MapLocationSession(chain)
    background: set[asyncio.Task] = set()

    async def send_outgoing() -> None:
        while True:
            await websocket.send_json(await outgoing.get())

    async def apply_point(message: dict) -> None:
        try:
            address = await map_session.apply(message)
        except (InvalidCoordinates, GeocodingUnavailable) as exc:
            outgoing.put_nowait({"type": "error", "detail": exc.message})
            return
        if address is not None:
            outgoing.put_nowait({"type": "location", "address": AddressModel.from_result(address).model_dump(mode="json")})

    async def select_suggestion(message: dict) -> None:
        try:
            suggestion = PlaceSuggestionModel.model_validate(message.get("suggestion") or {}).to_suggestion()
            resolved = await resolver.resolve_suggestion(suggestion)
        except ValidationError as exc:
            outgoing.put_nowait({"type": "error", "detail": f"invalid suggestion: {exc.error_count()} errors"})
            return
        except SuggestionResolutionError as exc:
            outgoing.put_nowait({"type": "error", "detail": exc.message})
            return
        outgoing.put_nowait(
            {"type": "location", "address": AddressModel.from_result(resolved.address).model_dump(mode="json")}
        )

    def spawn(coro) -> None:
        task = asyncio.create_task(coro)
        background.add(task)
        task.add_done_callback(background.discard)

    sender = asyncio.create_task(send_outgoing())
    try:
        while True:
            message = await websocket.receive_json()
            kind = message.get("type") if isinstance(message, dict) else None
            if kind == "query":
                resolver.on_query_change(str(message.get("text") or ""))
            elif kind == "select_point":
                spawn(apply_point(message))
            elif kind == "select_suggestion":
                spawn(select_suggestion(message))
            else:
                outgoing.put_nowait({"type": "error", "detail": f"unknown message type {kind!r}"})
    except WebSocketDisconnect:
        logger.debug("Location session closed by client")
    finally:
        resolver.close()
        for task in (*background, sender):
            task.cancel()
