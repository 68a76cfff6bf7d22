import asyncio
import json
import logging

import aio_pika
from aio_pika import ExchangeType
from pydantic import ValidationError
from redis.exceptions import RedisError

from .cache import ANY_CATEGORY, buckets_in_radius, invalidate_bucket, redis_client
from .clients import fetch_provider
from .config import MAX_SEARCH_RADIUS_KM
from .errors import NotFound, UpstreamFailure
from .rabbitmq import EXCHANGE_NAME, connect
from .schemas import ProviderProfile

logger = logging.getLogger(__name__)

QUEUE_NAME = "discovery_service_domain_events"

ROUTING_KEYS = [
    "provider.created",
    "provider.updated",
    "provider.location_updated",
    "provider.deactivated",
    "availability.updated",
]

IDEMPOTENCY_TTL_SECONDS = 60 * 60  # 1 hour
RETRY_SECONDS = 5


def _processed_key(event_id: str) -> str:
    return f"processed_event:{event_id}"


async def _already_processed(event_id: str) -> bool:
    if redis_client is None:
        return False
    key = _processed_key(event_id)
    # SET NX answers None when the key already exists
    first = await redis_client.set(key, "1", ex=IDEMPOTENCY_TTL_SECONDS, nx=True)
    return not first


async def _release(event_id: str) -> None:
    if redis_client is None:
        return
    await redis_client.delete(_processed_key(event_id))


def _profile_from_payload(data: dict) -> ProviderProfile | None:
    try:
        profile = ProviderProfile.model_validate(data)
    except ValidationError:
        return None
    if profile.location is None or not profile.services:
        return None
    return profile


async def _resolve_profile(data: dict) -> ProviderProfile | None:
    profile = _profile_from_payload(data)
    if profile is not None:
        return profile

    provider_id = data.get("provider_id") or data.get("id")
    if not provider_id:
        return None
    try:
        return await fetch_provider(str(provider_id))
    except NotFound:
        logger.info("provider %s is unknown to the catalog, nothing to invalidate", provider_id)
        return None


async def invalidate_for_provider(profile: ProviderProfile) -> int:
    """
    Drop every cached search whose requester bucket could see this provider:
    each offered category plus the unfiltered key space.
    """
    location = profile.location
    if location is None:
        return 0

    categories = {s.category.value for s in profile.services}
    categories.add(ANY_CATEGORY)

    buckets = buckets_in_radius(location.latitude, location.longitude, MAX_SEARCH_RADIUS_KM)

    deleted = 0
    for category in sorted(categories):
        for b_lat, b_lon in buckets:
            deleted += await invalidate_bucket(category, b_lat, b_lon)

    logger.info("invalidated %d cached searches for provider %s", deleted, profile.id)
    return deleted


async def handle_payload(payload: dict) -> None:
    event_id = payload.get("event_id")
    event_type = payload.get("event_type")
    data = payload.get("data") or {}

    if not event_id or not event_type:
        return

    if event_type not in ROUTING_KEYS:
        return

    try:
        if await _already_processed(event_id):
            return

        try:
            profile = await _resolve_profile(data)
            if profile is not None:
                await invalidate_for_provider(profile)
        except (UpstreamFailure, RedisError) as e:
            # unmark so a redelivery of the same event is applied
            logger.warning("event %s not applied: %s", event_id, e)
            await _release(event_id)
    except RedisError as e:
        logger.warning("redis unavailable while handling event %s: %s", event_id, e)


async def handle_message(message: aio_pika.abc.AbstractIncomingMessage):
    async with message.process(requeue=False):
        try:
            payload = json.loads(message.body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.warning("dropping undecodable event on %s", QUEUE_NAME)
            return

        if not isinstance(payload, dict):
            return

        await handle_payload(payload)


async def _connect_and_consume():
    connection = await connect()
    if connection is None:
        raise RuntimeError("RABBIT_URL not set; cannot start consumer")

    channel = await connection.channel()
    await channel.set_qos(prefetch_count=50)

    exchange = await channel.declare_exchange(
        EXCHANGE_NAME,
        ExchangeType.TOPIC,
        durable=True,
    )

    queue = await channel.declare_queue(
        QUEUE_NAME,
        durable=True,
    )

    for rk in ROUTING_KEYS:
        await queue.bind(exchange, routing_key=rk)

    await queue.consume(handle_message)

    logger.info("event consumer started (cache invalidation)")
    return connection


async def start_consumer_with_retry(stop_event: asyncio.Event):
    while not stop_event.is_set():
        try:
            return await _connect_and_consume()
        except Exception as e:
            logger.warning("consumer connect failed, retrying in %ss: %s", RETRY_SECONDS, e)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=RETRY_SECONDS)
            except asyncio.TimeoutError:
                continue

    return None
