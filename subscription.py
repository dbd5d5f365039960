"""Subscription manager — credit balance and pro status with caching."""

import asyncio
import logging
import time

import aiohttp

from errors import ApiError, SessionExpired
from models import CreditBalance

log = logging.getLogger(__name__)

# Cache TTL in seconds
_CACHE_TTL = 3600  # 1 hour


class SubscriptionManager:
    def __init__(self, state):
        self._state = state
        self._balance: CreditBalance | None = None
        self._cache_time: float = 0.0

    @property
    def balance(self) -> CreditBalance | None:
        return self._balance

    @property
    def is_stale(self) -> bool:
        return self._balance is None or time.monotonic() - self._cache_time >= _CACHE_TTL

    @property
    def is_pro(self) -> bool:
        return bool(self._balance and self._balance.is_pro)

    def can_download(self) -> bool:
        """Pro users download freely, everyone else needs a credit.

        Offline: uses stale cache. The server has the final word.
        """
        if not self._state.is_authenticated or self._balance is None:
            return False
        return self._balance.is_pro or self._balance.total_credits > 0

    def spend(self):
        """Mirror a successful download locally until the next refresh."""
        if self._balance is None or self._balance.is_pro:
            return
        b = self._balance
        if b.daily_credits > 0:
            b.daily_credits -= 1
        elif b.upload_credits > 0:
            b.upload_credits -= 1
        b.total_credits = max(b.total_credits - 1, 0)

    async def refresh(self, force: bool = False):
        """Fetch the balance from the server and update the cache."""
        if not self._state.services or not self._state.is_authenticated:
            return
        if not force and not self.is_stale:
            return

        try:
            self._balance = await self._state.services.credits.balance()
            self._cache_time = time.monotonic()
            log.info("Credit cache refreshed: %s", self._balance)
        except SessionExpired:
            raise
        except (ApiError, aiohttp.ClientError, asyncio.TimeoutError):
            log.exception("Failed to refresh credits")
