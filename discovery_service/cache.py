import logging
import math

import redis.asyncio as redis
from redis.exceptions import RedisError

from .config import CACHE_TTL_SECONDS, GRID_DEG, REDIS_URL
from .geo import km_to_deg_lat, km_to_deg_lon
from .schemas import DiscoveryQuery

logger = logging.getLogger(__name__)

ANY_CATEGORY = "any"

redis_client = redis.from_url(REDIS_URL, decode_responses=True) if REDIS_URL else None


# ---- Cache key + bucket index helpers ----

def bucket_id(lat: float, lon: float) -> tuple[int, int]:
    """
    Convert lat/lon -> integer bucket coordinates so keys are stable.
    """
    b_lat = int(math.floor(lat / GRID_DEG))
    b_lon = int(math.floor(lon / GRID_DEG))
    return b_lat, b_lon


def category_key(query: DiscoveryQuery) -> str:
    return query.category.value if query.category is not None else ANY_CATEGORY


def cache_key(query: DiscoveryQuery) -> str:
    # exact coordinates: cached distances must be the ones this query would compute
    loc = query.location
    return (
        f"discovery:{category_key(query)}"
        f":lat={loc.latitude!r}:lon={loc.longitude!r}"
        f":r={query.radius_km!r}:min={query.min_rating!r}:max={query.max_price!r}"
    )


def bucket_set_key(category: str, b_lat: int, b_lon: int) -> str:
    return f"discoverykeys:{category}:lat={b_lat}:lon={b_lon}"


def buckets_in_radius(lat: float, lon: float, radius_km: float) -> list[tuple[int, int]]:
    """
    Conservative list of buckets that could intersect a circle around (lat,lon).
    """
    d_lat = km_to_deg_lat(radius_km)
    d_lon = km_to_deg_lon(radius_km, lat)

    b_lat_min, b_lon_min = bucket_id(lat - d_lat, lon - d_lon)
    b_lat_max, b_lon_max = bucket_id(lat + d_lat, lon + d_lon)

    buckets = []
    for b_lat in range(b_lat_min, b_lat_max + 1):
        for b_lon in range(b_lon_min, b_lon_max + 1):
            buckets.append((b_lat, b_lon))
    return buckets


# ---- Read / write ----

async def get_cached(query: DiscoveryQuery) -> str | None:
    if redis_client is None:
        return None
    try:
        return await redis_client.get(cache_key(query))
    except RedisError as e:
        logger.warning("discovery cache read failed: %s", e)
        return None


async def set_cached(query: DiscoveryQuery, value: str, ttl_seconds: int = CACHE_TTL_SECONDS) -> None:
    """
    Store a result and index it in its bucket set for surgical invalidation.
    """
    if redis_client is None:
        return

    key = cache_key(query)
    b_lat, b_lon = bucket_id(query.location.latitude, query.location.longitude)
    set_key = bucket_set_key(category_key(query), b_lat, b_lon)

    try:
        pipe = redis_client.pipeline()
        pipe.set(key, value, ex=ttl_seconds)
        pipe.sadd(set_key, key)
        pipe.expire(set_key, ttl_seconds + 5)  # keep index close to cache TTL
        await pipe.execute()
    except RedisError as e:
        logger.warning("discovery cache write failed: %s", e)


async def invalidate_bucket(category: str, b_lat: int, b_lon: int) -> int:
    """
    Delete all cached keys registered under a given bucket set.
    Returns number of cache keys deleted (best effort).
    """
    if redis_client is None:
        return 0

    set_key = bucket_set_key(category, b_lat, b_lon)
    keys = await redis_client.smembers(set_key)
    if not keys:
        # still delete set_key to avoid buildup
        await redis_client.delete(set_key)
        return 0

    pipe = redis_client.pipeline()
    pipe.delete(*list(keys))
    pipe.delete(set_key)
    results = await pipe.execute()

    return results[0] if results and isinstance(results[0], int) else 0
