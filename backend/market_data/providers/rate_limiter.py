"""
Rate Limiter

Per-provider throughput governor. Enforces three constraints together:
a sliding one-minute request window, a bound on concurrent in-flight
requests, and a minimum delay between successive requests.
"""
import asyncio
import time
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional
from loguru import logger

from market_data.providers.errors import RateLimitError


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limit policy for one provider."""
    requests_per_minute: Optional[int] = None
    max_concurrency: int = 5
    min_delay: float = 0.0  # seconds between successive requests


@dataclass
class WindowCounter:
    """Sliding window counter for rate limiting."""
    limit: int
    window_seconds: float = 60.0
    requests: deque = field(default_factory=deque)
    
    def can_proceed(self) -> bool:
        """Check if we can make a request within the limit."""
        self._cleanup()
        return len(self.requests) < self.limit
    
    def record_request(self) -> None:
        """Record a new request."""
        self._cleanup()
        self.requests.append(time.monotonic())
    
    def _cleanup(self) -> None:
        """Remove expired requests from the window."""
        cutoff = time.monotonic() - self.window_seconds
        while self.requests and self.requests[0] <= cutoff:
            self.requests.popleft()
    
    def time_until_available(self) -> float:
        """Calculate seconds until a slot is available."""
        self._cleanup()
        if len(self.requests) < self.limit:
            return 0.0
        
        wait_until = self.requests[0] + self.window_seconds
        return max(0.0, wait_until - time.monotonic())
    
    def remaining(self) -> int:
        """Get remaining requests in current window."""
        self._cleanup()
        return max(0, self.limit - len(self.requests))


class _ProviderLimits:
    """Mutable limiter state for a single provider."""
    
    def __init__(self, config: RateLimitConfig):
        self.config = config
        self.window = (
            WindowCounter(limit=config.requests_per_minute)
            if config.requests_per_minute else None
        )
        self.slots = asyncio.Semaphore(max(1, config.max_concurrency))
        self.lock = asyncio.Lock()
        self.last_request: Optional[float] = None
        self.in_flight = 0


class RateLimiter:
    """
    Rate limiter with per-provider windows and concurrency slots.
    
    Admission is a single atomic step per provider: the window check,
    the minimum delay and the request record happen under one lock, so
    concurrent callers can never over-admit.
    
    Usage:
        limiter = RateLimiter()
        limiter.configure("DSE", RateLimitConfig(requests_per_minute=120))
        
        async with limiter.slot("DSE", blocking=False):
            await adapter.get_latest_quote(context, instrument)
    """
    
    def __init__(self):
        self._limits: dict[str, _ProviderLimits] = {}
    
    def configure(self, provider: str, config: RateLimitConfig) -> None:
        """Configure rate limits for a provider."""
        self._limits[provider] = _ProviderLimits(config)
        logger.info(f"Rate limiter configured for {provider}: {config}")
    
    def remove(self, provider: str) -> None:
        """Drop a provider's limiter state."""
        self._limits.pop(provider, None)
    
    async def acquire(self, provider: str, blocking: bool = True) -> None:
        """
        Admit one request for a provider.
        
        Waits cooperatively for a concurrency slot and for the minimum
        delay. When the per-minute window is exhausted, waits for it to
        open if `blocking`, otherwise raises immediately.
        
        Args:
            provider: Provider id
            blocking: Wait for the window instead of failing fast
            
        Raises:
            RateLimitError: Window exhausted and `blocking` is False
        """
        limits = self._limits.get(provider)
        if limits is None:
            # No rate limit configured, allow all
            return
        
        # A full window fails fast even while every concurrency slot is busy
        if not blocking:
            self._check_window(provider, limits)
        
        await limits.slots.acquire()
        try:
            async with limits.lock:
                if not blocking:
                    self._check_window(provider, limits)
                elif limits.window is not None:
                    wait_time = limits.window.time_until_available()
                    if wait_time > 0:
                        logger.debug(f"Rate limit: waiting {wait_time:.2f}s for {provider}")
                        await asyncio.sleep(wait_time)
                
                if limits.last_request is not None and limits.config.min_delay > 0:
                    delay = limits.config.min_delay - (time.monotonic() - limits.last_request)
                    if delay > 0:
                        await asyncio.sleep(delay)
                
                if limits.window is not None:
                    limits.window.record_request()
                limits.last_request = time.monotonic()
        except BaseException:
            limits.slots.release()
            raise
        
        limits.in_flight += 1
    
    @staticmethod
    def _check_window(provider: str, limits: _ProviderLimits) -> None:
        """Raise RateLimitError if the per-minute window is exhausted."""
        if limits.window is None:
            return
        wait_time = limits.window.time_until_available()
        if wait_time > 0:
            raise RateLimitError(provider, retry_after=wait_time)
    
    def release(self, provider: str) -> None:
        """Return a concurrency slot taken by `acquire()`."""
        limits = self._limits.get(provider)
        if limits is None:
            return
        limits.in_flight = max(0, limits.in_flight - 1)
        limits.slots.release()
    
    @asynccontextmanager
    async def slot(self, provider: str, blocking: bool = True) -> AsyncIterator[None]:
        """Hold an admission for the duration of a request, released on every exit path."""
        await self.acquire(provider, blocking=blocking)
        try:
            yield
        finally:
            self.release(provider)
    
    def can_proceed(self, provider: str) -> bool:
        """Check if a request would be admitted without waiting on the window."""
        limits = self._limits.get(provider)
        if limits is None or limits.window is None:
            return True
        return limits.window.can_proceed()
    
    def in_flight(self, provider: str) -> int:
        """Number of admitted requests not yet released."""
        limits = self._limits.get(provider)
        return limits.in_flight if limits else 0
    
    def get_remaining(self, provider: str) -> dict[str, int]:
        """Get remaining requests in the current window."""
        limits = self._limits.get(provider)
        if limits is None or limits.window is None:
            return {}
        return {"per_minute": limits.window.remaining()}
    
    def get_stats(self, provider: str) -> dict:
        """Get rate limiter statistics for a provider."""
        limits = self._limits.get(provider)
        if not limits:
            return {"configured": False}
        
        return {
            "configured": True,
            "limits": {
                "per_minute": limits.config.requests_per_minute,
                "max_concurrency": limits.config.max_concurrency,
                "min_delay": limits.config.min_delay,
            },
            "remaining": self.get_remaining(provider),
            "in_flight": limits.in_flight,
            "can_proceed": self.can_proceed(provider),
        }
