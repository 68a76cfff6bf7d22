import os

CATALOG_SERVICE_URL = os.getenv("CATALOG_SERVICE_URL") or "http://catalog-service:8000"

REDIS_URL = os.getenv("REDIS_URL")  # optional, caching is off without it
RABBIT_URL = os.getenv("RABBIT_URL")  # optional, cache invalidation events are off without it

HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT") or "2.0")

# Grid size in degrees. 0.25 deg latitude ~ 27.75km.
GRID_DEG = float(os.getenv("DISCOVERY_GRID_DEG") or "0.25")
CACHE_TTL_SECONDS = int(os.getenv("DISCOVERY_CACHE_TTL") or "60")

# largest cacheable search radius; wider searches bypass the cache
MAX_SEARCH_RADIUS_KM = float(os.getenv("MAX_SEARCH_RADIUS_KM") or "100")

LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").upper()
