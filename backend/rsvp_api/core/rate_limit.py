import threading
import time
from typing import Callable, Dict, List, Tuple

from fastapi import Request

from rsvp_api.core.errors import RateLimitError


def _trusts_proxy_headers(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(getattr(settings, "trust_proxy_headers", False))


def client_ip(request: Request) -> str:
    """
    Best-effort caller address.

    Forwarding headers are client-controlled unless a proxy we run rewrites
    them, so they are read only when TRUST_PROXY_HEADERS is on.
    """
    if _trusts_proxy_headers(request):
        # Cloudflare sets CF-Connecting-IP; other proxies use X-Forwarded-For ("client, proxy1, proxy2")
        cf_ip = request.headers.get("cf-connecting-ip")
        if cf_ip and cf_ip.strip():
            return cf_ip.strip()

        xff = request.headers.get("x-forwarded-for")
        if xff:
            first = xff.split(",")[0].strip()
            if first:
                return first

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


class SimpleRateLimiter:
    """
    Very simple in-memory sliding-window limiter keyed by (key, client_ip).

    Good enough for a single-instance deployment guarding the admin login.
    One instance lives on app.state, so separate apps (and tests) never share buckets.

    IMPORTANT:
    - Keep __call__'s signature clean (request only), otherwise FastAPI
      will treat extra args as query params.
    - Buckets with nothing left in the window are swept (at most once per
      window), so the map only holds recently seen clients.
    """

    def __init__(
        self,
        key: str,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ):
        self.key = key
        self.limit = int(limit)
        self.window_seconds = int(window_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        # (key, ip) -> list[timestamps]
        self._store: Dict[Tuple[str, str], List[float]] = {}
        self._last_sweep = clock()

    @property
    def bucket_count(self) -> int:
        with self._lock:
            return len(self._store)

    def _sweep(self, cutoff: float) -> None:
        stale = [k for k, stamps in self._store.items() if not stamps or stamps[-1] <= cutoff]
        for k in stale:
            del self._store[k]

    def hit(self, ip: str) -> None:
        now = self._clock()
        bucket_key = (self.key, ip)
        cutoff = now - self.window_seconds

        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now

            # Drop old entries outside the window
            timestamps = [ts for ts in self._store.get(bucket_key, []) if ts > cutoff]

            if len(timestamps) >= self.limit:
                self._store[bucket_key] = timestamps
                raise RateLimitError()

            timestamps.append(now)
            self._store[bucket_key] = timestamps

    async def __call__(self, request: Request) -> None:
        self.hit(client_ip(request))


async def login_rate_limit(request: Request) -> None:
    await request.app.state.login_limiter(request)
