"""
Unit Tests - Rate Limiter
Tests for window, concurrency and minimum delay enforcement.
"""
import asyncio
import time
import pytest

from market_data.providers.errors import RateLimitError
from market_data.providers.rate_limiter import RateLimitConfig, RateLimiter, WindowCounter


class TestWindowCounter:
    """Tests for the sliding window counter."""
    
    def test_limit(self):
        """Counter should stop admitting at the limit."""
        counter = WindowCounter(limit=2)
        assert counter.can_proceed()
        counter.record_request()
        counter.record_request()
        assert not counter.can_proceed()
        assert counter.remaining() == 0
        assert counter.time_until_available() > 0
    
    def test_expired_requests_drop_out(self):
        """Requests older than the window no longer count."""
        counter = WindowCounter(limit=1, window_seconds=0.05)
        counter.record_request()
        assert not counter.can_proceed()
        time.sleep(0.06)
        assert counter.can_proceed()


class TestRateLimiter:
    """Tests for RateLimiter admission."""
    
    @pytest.mark.asyncio
    async def test_unconfigured_provider_is_unlimited(self):
        """Providers without a policy are always admitted."""
        limiter = RateLimiter()
        for _ in range(10):
            await limiter.acquire("UNKNOWN", blocking=False)
        assert limiter.can_proceed("UNKNOWN")
        assert limiter.get_stats("UNKNOWN") == {"configured": False}
    
    @pytest.mark.asyncio
    async def test_non_blocking_excess_is_denied(self):
        """Beyond requests_per_minute, non-blocking admission raises RateLimitError."""
        limiter = RateLimiter()
        limiter.configure("DSE", RateLimitConfig(requests_per_minute=3, max_concurrency=10))
        
        for _ in range(3):
            async with limiter.slot("DSE", blocking=False):
                pass
        
        with pytest.raises(RateLimitError) as exc_info:
            async with limiter.slot("DSE", blocking=False):
                pass
        
        assert exc_info.value.provider == "DSE"
        assert exc_info.value.retry_after > 0
        # Denial must not leak a concurrency slot
        assert limiter.in_flight("DSE") == 0
        assert limiter.get_remaining("DSE") == {"per_minute": 0}
    
    @pytest.mark.asyncio
    async def test_denied_requests_do_not_consume_concurrency(self):
        """After many denials the full concurrency is still available."""
        limiter = RateLimiter()
        limiter.configure("DSE", RateLimitConfig(requests_per_minute=1, max_concurrency=2))
        await limiter.acquire("DSE", blocking=False)
        limiter.release("DSE")
        
        for _ in range(5):
            with pytest.raises(RateLimitError):
                await limiter.acquire("DSE", blocking=False)
        
        stats = limiter.get_stats("DSE")
        assert stats["in_flight"] == 0
        assert stats["can_proceed"] is False

    @pytest.mark.asyncio
    async def test_full_window_denied_while_slots_busy(self):
        """An exhausted window is reported at once, not after a slot frees up."""
        limiter = RateLimiter()
        limiter.configure("DSE", RateLimitConfig(requests_per_minute=1, max_concurrency=1))

        # Holds the only slot and uses up the window
        await limiter.acquire("DSE", blocking=False)
        try:
            with pytest.raises(RateLimitError):
                await asyncio.wait_for(limiter.acquire("DSE", blocking=False), timeout=0.5)
            assert limiter.in_flight("DSE") == 1
        finally:
            limiter.release("DSE")

        assert limiter.in_flight("DSE") == 0

    @pytest.mark.asyncio
    async def test_concurrency_bound(self):
        """No more than max_concurrency requests are in flight at once."""
        limiter = RateLimiter()
        limiter.configure("DSE", RateLimitConfig(max_concurrency=2))
        peak = 0
        
        async def request():
            nonlocal peak
            async with limiter.slot("DSE"):
                peak = max(peak, limiter.in_flight("DSE"))
                await asyncio.sleep(0.01)
        
        await asyncio.gather(*(request() for _ in range(6)))
        
        assert peak == 2
        assert limiter.in_flight("DSE") == 0
    
    @pytest.mark.asyncio
    async def test_min_delay_between_requests(self):
        """Successive requests are spaced by min_delay."""
        limiter = RateLimiter()
        limiter.configure("DSE", RateLimitConfig(max_concurrency=5, min_delay=0.05))
        
        start = time.monotonic()
        for _ in range(3):
            async with limiter.slot("DSE"):
                pass
        elapsed = time.monotonic() - start
        
        assert elapsed >= 0.09
    
    @pytest.mark.asyncio
    async def test_slot_released_on_error(self):
        """The slot is returned when the request raises."""
        limiter = RateLimiter()
        limiter.configure("DSE", RateLimitConfig(max_concurrency=1))
        
        with pytest.raises(RuntimeError):
            async with limiter.slot("DSE"):
                raise RuntimeError("boom")
        
        assert limiter.in_flight("DSE") == 0
        await asyncio.wait_for(limiter.acquire("DSE"), timeout=1)
    
    @pytest.mark.asyncio
    async def test_slot_released_on_cancellation(self):
        """Cancelling the in-flight request frees its slot."""
        limiter = RateLimiter()
        limiter.configure("DSE", RateLimitConfig(max_concurrency=1))
        started = asyncio.Event()
        
        async def slow():
            async with limiter.slot("DSE"):
                started.set()
                await asyncio.sleep(10)
        
        task = asyncio.create_task(slow())
        await started.wait()
        assert limiter.in_flight("DSE") == 1
        
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        
        assert limiter.in_flight("DSE") == 0
        await asyncio.wait_for(limiter.acquire("DSE"), timeout=1)
    
    @pytest.mark.asyncio
    async def test_concurrent_admission_never_over_admits(self):
        """Concurrent callers cannot exceed the per-minute ceiling."""
        limiter = RateLimiter()
        limiter.configure("DSE", RateLimitConfig(requests_per_minute=5, max_concurrency=20))
        
        async def attempt():
            try:
                async with limiter.slot("DSE", blocking=False):
                    await asyncio.sleep(0)
                return True
            except RateLimitError:
                return False
        
        results = await asyncio.gather(*(attempt() for _ in range(20)))
        
        assert sum(results) == 5
        assert limiter.in_flight("DSE") == 0
    
    @pytest.mark.asyncio
    async def test_remove(self):
        """Removing a provider drops its policy."""
        limiter = RateLimiter()
        limiter.configure("DSE", RateLimitConfig(requests_per_minute=1))
        limiter.remove("DSE")
        assert limiter.get_stats("DSE") == {"configured": False}
