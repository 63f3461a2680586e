# rate_limit.py
import os, logging, threading, time
from functools import wraps

from flask import request, jsonify

logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed-window request counter keyed by an opaque token (usually the client IP)."""

    def __init__(self, interval_seconds=60, max_tokens=500, clock=time.monotonic):
        self.interval = interval_seconds
        self.max_tokens = max_tokens
        self.clock = clock
        self._buckets = {}
        self._lock = threading.Lock()

    def check(self, limit, token) -> bool:
        now = self.clock()
        with self._lock:
            if len(self._buckets) > self.max_tokens:
                cutoff = now - self.interval
                for key in [k for k, b in self._buckets.items() if b["last_reset"] < cutoff]:
                    del self._buckets[key]

            bucket = self._buckets.setdefault(token, {"count": 0, "last_reset": now})
            if now - bucket["last_reset"] > self.interval:
                bucket["count"] = 0
                bucket["last_reset"] = now

            if bucket["count"] >= limit:
                return False
            bucket["count"] += 1
            return True

    def reset(self):
        with self._lock:
            self._buckets.clear()


limiter = RateLimiter()


def _requests_per_minute() -> int:
    try: return max(1, int(os.environ.get('RATE_LIMIT_PER_MINUTE', '30')))
    except ValueError: return 30


def client_token() -> str:
    forwarded = request.headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.remote_addr or 'anonymous'


def rate_limited(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        # only writes are counted; preflight and info GETs pass through
        if request.method in ('OPTIONS', 'GET'):
            return func(*args, **kwargs)
        token = client_token()
        if not limiter.check(_requests_per_minute(), token):
            logger.warning(f"Rate limit exceeded for {token} on {request.path}")
            return jsonify({"success": False, "error": "Too many requests"}), 429
        return func(*args, **kwargs)
    return wrapper
