import logging
from typing import Iterable

from .errors import InvalidQuery
from .geo import calculate_distance
from .schemas import DiscoveryQuery, ProviderProfile, RankedProvider

logger = logging.getLogger(__name__)


def is_searchable(provider: ProviderProfile) -> bool:
    """Active, verified and located. Anything else never shows up in geo results."""
    return provider.is_active and provider.is_verified and provider.location is not None


def _passes_filters(provider: ProviderProfile, query: DiscoveryQuery) -> bool:
    if query.category is not None and not provider.offers(query.category):
        return False

    if query.min_rating is not None and provider.rating < query.min_rating:
        return False

    if query.max_price is not None and provider.hourly_rate > query.max_price:
        return False

    return True


def filter_and_rank(query: DiscoveryQuery, catalog: Iterable[ProviderProfile]) -> list[RankedProvider]:
    """
    Providers from the catalog snapshot that match the query, nearest first.

    Raises InvalidQuery when the query carries no coordinate: that is a caller
    error, not an empty result.
    """
    if query.location is None:
        raise InvalidQuery("Latitude and longitude are required")

    results = []
    for provider in catalog:
        if not is_searchable(provider):
            continue
        if not _passes_filters(provider, query):
            continue

        distance = calculate_distance(query.location, provider.location)
        if distance > query.radius_km:
            continue

        quoted = provider.price_for(query.category) if query.category is not None else None
        results.append(RankedProvider(provider=provider, distance_km=distance, quoted_price=quoted))

    results.sort(key=lambda r: (r.distance_km, r.provider.id))

    logger.debug("discovery matched %d providers within %.1f km", len(results), query.radius_km)
    return results
