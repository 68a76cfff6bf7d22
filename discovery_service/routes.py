import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, HTTPException, Query

from .availability import DEFAULT_HORIZON_DAYS, DEFAULT_MAX_RESULTS, suggest_slots
from .cache import get_cached, set_cached
from .clients import fetch_booking_history, fetch_commitments, fetch_provider, fetch_providers
from .config import MAX_SEARCH_RADIUS_KM
from .discovery import filter_and_rank
from .errors import InvalidQuery, NotFound, UpstreamFailure
from .schemas import (
    DiscoveryQuery,
    RecommendationBody,
    RecommendationResponse,
    SearchRequest,
    SearchResponse,
    SlotSuggestionResponse,
)
from .scoring import recommend

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/maids/search", response_model=SearchResponse)
async def search_maids(data: SearchRequest):
    query = DiscoveryQuery(
        location=data.location(),
        radius_km=data.radius,
        category=data.service,
        min_rating=data.min_rating,
        max_price=data.max_price,
    )
    if query.location is None:
        raise InvalidQuery("Latitude and longitude are required")

    cacheable = query.radius_km <= MAX_SEARCH_RADIUS_KM
    if cacheable:
        cached = await get_cached(query)
        if cached:
            logger.debug("discovery cache hit")
            return SearchResponse.model_validate_json(cached)

    try:
        catalog = await fetch_providers()
    except UpstreamFailure as e:
        logger.error("maid search failed: %s", e)
        raise HTTPException(status_code=502, detail="Failed to search maids")

    maids = filter_and_rank(query, catalog)

    response = SearchResponse(
        maids=maids,
        total=len(maids),
        search_location=query.location,
        radius=query.radius_km,
    )

    if cacheable:
        await set_cached(query, response.model_dump_json())

    return response


async def _history_or_empty(customer_id: str):
    try:
        return await fetch_booking_history(customer_id)
    except NotFound:
        return []


@router.post("/recommendations", response_model=RecommendationResponse)
async def recommendations(data: RecommendationBody):
    request = data.to_request()
    if request.location is None:
        raise InvalidQuery("Location is required")

    # best effort: an unreachable catalog means no recommendations, not an error
    try:
        catalog = await fetch_providers()
        history = await _history_or_empty(request.customer_id)
    except UpstreamFailure as e:
        logger.warning("recommendations degraded to empty for %s: %s", request.customer_id, e)
        return RecommendationResponse(recommendations=[], total=0)

    picks = recommend(request, catalog, history)
    return RecommendationResponse(recommendations=picks, total=len(picks))


@router.get("/maids/{provider_id}/availability", response_model=SlotSuggestionResponse)
async def availability_suggestions(
    provider_id: str,
    horizon_days: int = Query(default=DEFAULT_HORIZON_DAYS, ge=1, le=60),
    max_results: int = Query(default=DEFAULT_MAX_RESULTS, ge=1, le=50),
):
    now = datetime.now()

    try:
        provider = await fetch_provider(provider_id)
        commitments = await fetch_commitments(provider_id, now, now + timedelta(days=horizon_days))
    except NotFound:
        return SlotSuggestionResponse(provider_id=provider_id, provider_found=False, slots=[])
    except UpstreamFailure as e:
        logger.error("availability lookup failed for %s: %s", provider_id, e)
        raise HTTPException(status_code=502, detail="Failed to load availability")

    slots = suggest_slots(
        provider.availability,
        commitments,
        horizon_days=horizon_days,
        max_results=max_results,
        now=now,
    )
    return SlotSuggestionResponse(provider_id=provider_id, slots=slots)
