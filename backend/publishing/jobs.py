import redis
from django.conf import settings
from rq import Queue


def get_redis() -> redis.Redis:
    return redis.Redis.from_url(settings.REINDEX_REDIS_URL)


def enqueue(func_path: str, *args) -> str:
    queue = Queue("default", connection=get_redis())
    job = queue.enqueue(func_path, *args, job_timeout=300)
    return job.id
