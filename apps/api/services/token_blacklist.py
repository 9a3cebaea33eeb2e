"""
Token Blacklist Service
Revoked JWT ids (jti) so logout takes effect before the token expires.

Uses Redis when REDIS_URL is set and reachable, otherwise a process-local
dict, which is only suitable for a single instance.
"""

import os
import time
import logging
from threading import Lock
from typing import Dict, Optional

import redis

logger = logging.getLogger(__name__)

KEY_PREFIX = "medstock:revoked:"


class TokenBlacklist:
    """Revoked token ids with per-entry expiry"""

    def __init__(self, redis_url: Optional[str] = None):
        self._lock = Lock()
        self._memory: Dict[str, float] = {}  # jti -> expiry timestamp
        self._redis_client: Optional[redis.Redis] = None

        if redis_url:
            try:
                client = redis.from_url(redis_url, decode_responses=True, socket_connect_timeout=2)
                client.ping()
                self._redis_client = client
                logger.info("Token blacklist using Redis")
            except redis.RedisError as e:
                logger.warning(f"Redis unavailable for token blacklist: {e}. Using in-memory storage.")
        else:
            logger.info("Token blacklist using in-memory storage")

    def add(self, jti: str, expires_in_seconds: int) -> None:
        ttl = max(int(expires_in_seconds), 1)
        if self._redis_client:
            self._redis_client.setex(f"{KEY_PREFIX}{jti}", ttl, "1")
            return
        with self._lock:
            self._purge_expired()
            self._memory[jti] = time.time() + ttl

    def contains(self, jti: str) -> bool:
        if self._redis_client:
            try:
                return self._redis_client.exists(f"{KEY_PREFIX}{jti}") > 0
            except redis.RedisError as e:
                logger.error(f"Token blacklist lookup failed: {e}")
                return False
        with self._lock:
            expiry = self._memory.get(jti)
            return expiry is not None and expiry > time.time()

    def clear(self) -> None:
        """Forget every revoked token (tests)"""
        if self._redis_client:
            keys = self._redis_client.keys(f"{KEY_PREFIX}*")
            if keys:
                self._redis_client.delete(*keys)
        with self._lock:
            self._memory.clear()

    def _purge_expired(self) -> None:
        now = time.time()
        for jti in [k for k, expiry in self._memory.items() if expiry <= now]:
            del self._memory[jti]


token_blacklist = TokenBlacklist(os.getenv("REDIS_URL"))


def blacklist_token(jti: str, expires_at: Optional[float] = None) -> None:
    """Revoke a token id until its own expiry time (epoch seconds)"""
    remaining = (expires_at - time.time()) if expires_at else 3600
    token_blacklist.add(jti, int(remaining))


def is_token_blacklisted(jti: Optional[str]) -> bool:
    return bool(jti) and token_blacklist.contains(jti)
