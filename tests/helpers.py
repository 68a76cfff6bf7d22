"""
Builders for provider snapshots.

Most providers sit on the equator east of the origin: along the equator the
haversine distance reduces to R * delta-longitude, so `km` is the distance
from ORIGIN up to float rounding.
"""
import math

from discovery_service.schemas import Coordinate, OfferedService, ProviderProfile

ORIGIN = Coordinate(latitude=0.0, longitude=0.0)

KM_PER_DEG_EQUATOR = 6371.0 * math.pi / 180


def east_of_origin(km: float) -> dict:
    return {"latitude": 0.0, "longitude": km / KM_PER_DEG_EQUATOR}


def make_provider(provider_id: str = "p1", km: float | None = 1.0, **overrides) -> ProviderProfile:
    fields = {
        "id": provider_id,
        "name": f"Provider {provider_id}",
        "hourly_rate": 300.0,
        "rating": 4.0,
        "review_count": 10,
        "experience_years": 3,
        "background_checked": False,
        "is_verified": True,
        "is_active": True,
        "services": [OfferedService(category="HOUSEKEEPING")],
    }
    if km is not None:
        fields.update(east_of_origin(km))
    fields.update(overrides)
    return ProviderProfile(**fields)
