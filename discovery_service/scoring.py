import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Sequence

from .discovery import is_searchable
from .errors import InvalidQuery
from .geo import calculate_distance
from .schemas import PastBooking, ProviderProfile, RecommendationRequest, ScoredCandidate

logger = logging.getLogger(__name__)

RECOMMENDATION_RADIUS_KM = 25.0
MAX_RECOMMENDATIONS = 10
HISTORY_LIMIT = 10
MAX_REASONS = 3

RECENT_REVIEW_WINDOW = timedelta(days=30)
RECENT_REVIEW_MIN = 3


def _distance_to(provider: ProviderProfile, request: RecommendationRequest) -> float | None:
    if request.location is None:
        raise InvalidQuery("Latitude and longitude are required")
    if provider.location is None:
        return None
    return calculate_distance(request.location, provider.location)


def history_affinity(request: RecommendationRequest, history: Sequence[PastBooking]) -> float | None:
    """
    Mean review rating of past bookings in the requested category.
    Unreviewed bookings count as 0. None when nothing matches.
    """
    if request.service_type is None:
        return None
    similar = [b for b in history if b.category == request.service_type]
    if not similar:
        return None
    return sum(b.review_rating or 0 for b in similar) / len(similar)


def relevance(provider: ProviderProfile, request: RecommendationRequest, history: Sequence[PastBooking]) -> float:
    """Additive weighted score, clamped to [0, 100]."""
    distance = _distance_to(provider, request)

    total = provider.rating * 20
    if distance is not None:
        total += max(0.0, 25 - distance) * 2

    if request.service_type is not None and provider.offers(request.service_type):
        total += 30

    if request.budget is not None and provider.hourly_rate <= request.budget:
        total += 20

    total += min(provider.experience_years * 2, 20)

    if provider.background_checked:
        total += 15

    affinity = history_affinity(request, history)
    if affinity is not None and affinity >= 4:
        total += 10

    return max(0.0, min(total, 100.0))


def explain(
    provider: ProviderProfile,
    request: RecommendationRequest,
    history: Sequence[PastBooking],
    now: datetime | None = None,
) -> list[str]:
    now = now or datetime.now(timezone.utc)
    reasons = []

    if provider.rating >= 4.5:
        reasons.append(f"Highly rated ({provider.rating:.1f}/5.0)")

    if provider.background_checked:
        reasons.append("Background verified")

    if provider.experience_years >= 5:
        reasons.append(f"{provider.experience_years} years of experience")

    distance = _distance_to(provider, request)
    if distance is not None and distance <= 5:
        reasons.append("Very close to your location")

    if request.budget is not None and provider.hourly_rate <= request.budget * 0.8:
        reasons.append("Budget-friendly pricing")

    recent = [r for r in provider.reviews if r.created_at > _align(now, r.created_at) - RECENT_REVIEW_WINDOW]
    if len(recent) >= RECENT_REVIEW_MIN:
        reasons.append("Recently active with positive reviews")

    return reasons[:MAX_REASONS]


def score(
    provider: ProviderProfile,
    request: RecommendationRequest,
    history: Sequence[PastBooking],
    now: datetime | None = None,
) -> ScoredCandidate:
    return ScoredCandidate(
        provider=provider,
        score=relevance(provider, request, history),
        reasons=explain(provider, request, history, now=now),
        distance_km=_distance_to(provider, request),
    )


def _align(now: datetime, other: datetime) -> datetime:
    # compare naive with naive and aware with aware
    if other.tzinfo is None and now.tzinfo is not None:
        return now.astimezone(timezone.utc).replace(tzinfo=None)
    if other.tzinfo is not None and now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def recommend(
    request: RecommendationRequest,
    catalog: Iterable[ProviderProfile],
    history: Sequence[PastBooking],
    now: datetime | None = None,
) -> list[ScoredCandidate]:
    """
    Personalized top picks around the requester.

    Uses a fixed 25 km radius regardless of any discovery radius, and only the
    ten most recent bookings of the history (newest first).
    """
    if request.location is None:
        raise InvalidQuery("Latitude and longitude are required")

    history = list(history)[:HISTORY_LIMIT]
    candidates = []

    for provider in catalog:
        if not is_searchable(provider):
            continue

        if calculate_distance(request.location, provider.location) > RECOMMENDATION_RADIUS_KM:
            continue

        candidates.append(score(provider, request, history, now=now))

    candidates.sort(key=lambda c: (-c.score, c.provider.id))

    logger.debug(
        "scored %d candidates for customer %s, returning top %d",
        len(candidates),
        request.customer_id,
        MAX_RECOMMENDATIONS,
    )
    return candidates[:MAX_RECOMMENDATIONS]
