import logging
from datetime import datetime

import httpx
from pydantic import TypeAdapter, ValidationError

from .config import CATALOG_SERVICE_URL, HTTP_TIMEOUT
from .errors import NotFound, UpstreamFailure
from .schemas import Commitment, PastBooking, ProviderProfile

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10

_providers = TypeAdapter(list[ProviderProfile])
_bookings = TypeAdapter(list[PastBooking])
_commitments = TypeAdapter(list[Commitment])


async def _get_json(path: str, params: dict | None = None):
    url = f"{CATALOG_SERVICE_URL}{path}"
    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
            response = await client.get(url, params=params)
            if response.status_code == 404:
                raise NotFound(f"Not found upstream: {url}")
            response.raise_for_status()
            return response.json()
    except httpx.TimeoutException as e:
        raise UpstreamFailure(f"Timeout calling upstream: {url}") from e
    except httpx.HTTPStatusError as e:
        raise UpstreamFailure(f"Upstream {url} answered {e.response.status_code}") from e
    except (httpx.HTTPError, ValueError) as e:
        raise UpstreamFailure(f"Bad upstream response from {url}: {e}") from e


def _validate(adapter: TypeAdapter, payload, what: str):
    try:
        return adapter.validate_python(payload)
    except ValidationError as e:
        logger.warning("catalog returned malformed %s: %s", what, e)
        raise UpstreamFailure(f"Malformed {what} payload from catalog") from e


async def fetch_providers() -> list[ProviderProfile]:
    """Catalog snapshot of active, verified providers."""
    try:
        payload = await _get_json("/providers")
    except NotFound as e:
        raise UpstreamFailure(str(e)) from e
    return _validate(_providers, payload, "providers")


async def fetch_provider(provider_id: str) -> ProviderProfile:
    payload = await _get_json(f"/providers/{provider_id}")
    try:
        return ProviderProfile.model_validate(payload)
    except ValidationError as e:
        raise UpstreamFailure(f"Malformed provider payload for {provider_id}") from e


async def fetch_booking_history(customer_id: str, limit: int = HISTORY_LIMIT) -> list[PastBooking]:
    """Most recent bookings first, with category and review rating joined."""
    payload = await _get_json(f"/customers/{customer_id}/bookings", params={"limit": limit})
    return _validate(_bookings, payload, "booking history")[:limit]


async def fetch_commitments(provider_id: str, start: datetime, end: datetime) -> list[Commitment]:
    payload = await _get_json(
        f"/providers/{provider_id}/commitments",
        params={"start": start.isoformat(), "end": end.isoformat()},
    )
    return _validate(_commitments, payload, "commitments")
