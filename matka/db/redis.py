import redis.asyncio as redis

from matka.core.config import settings

r = redis.from_url(settings.REDIS_URL, decode_responses=True)
