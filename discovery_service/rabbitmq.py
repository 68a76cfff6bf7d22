import aio_pika

from .config import RABBIT_URL

EXCHANGE_NAME = "domain_events"


async def connect():
    if not RABBIT_URL:
        return None
    return await aio_pika.connect_robust(RABBIT_URL)
