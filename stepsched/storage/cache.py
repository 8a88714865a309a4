import json
import hashlib
import logging
from typing import Dict, Optional

import redis

from stepsched.config.settings import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class ScheduleCache:
    """
    Solved schedules keyed by a hash of the problem.

    The search is deterministic, so identical problems always have identical
    answers. Redis errors are logged and behave like a cache miss.
    """

    def __init__(self, redis_url: str = settings.redis_url, ttl_seconds: int = settings.cache_ttl_seconds):
        self.redis_client = redis.from_url(redis_url, decode_responses=True)
        self.ttl_seconds = ttl_seconds

    def get(self, problem_hash: str) -> Optional[Dict]:
        """Retrieve cached result by problem hash."""
        try:
            cached = self.redis_client.get(f"schedule:{problem_hash}")
        except redis.RedisError as exc:
            logger.warning(f"Cache read failed: {exc}")
            return None
        if cached:
            return json.loads(cached)
        return None

    def set(self, problem_hash: str, result: Dict) -> None:
        try:
            self.redis_client.setex(
                f"schedule:{problem_hash}",
                self.ttl_seconds,
                json.dumps(result, default=str)
            )
        except redis.RedisError as exc:
            logger.warning(f"Cache write failed: {exc}")

    @staticmethod
    def hash_problem(problem: Dict) -> str:
        """Generate hash from tasks and constraint rules."""
        data = json.dumps(problem, sort_keys=True)
        return hashlib.sha256(data.encode()).hexdigest()[:16]
