"""Tests for SubscriptionManager — credit cache and download gating."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from errors import ApiError, SessionExpired
from models import CreditBalance
from subscription import SubscriptionManager


class FakeState:
    def __init__(self, balance=None, error=None):
        self.is_authenticated = True
        self.services = MagicMock()
        self.services.credits.balance = AsyncMock(return_value=balance, side_effect=error)


def _balance(**kw):
    data = {"daily_credits": 1, "upload_credits": 2, "total_credits": 3, "is_pro": False}
    data.update(kw)
    return CreditBalance(**data)


def test_guest_cannot_download():
    """Guests have no balance and cannot download."""
    state = FakeState(_balance())
    state.is_authenticated = False
    sm = SubscriptionManager(state)
    asyncio.run(sm.refresh())
    assert sm.balance is None
    assert not sm.can_download()


def test_refresh_is_cached():
    """Balance is fetched once within the cache window."""
    state = FakeState(_balance())
    sm = SubscriptionManager(state)
    asyncio.run(sm.refresh())
    asyncio.run(sm.refresh())
    assert state.services.credits.balance.await_count == 1
    asyncio.run(sm.refresh(force=True))
    assert state.services.credits.balance.await_count == 2


def test_spend_uses_daily_credits_first():
    """Spending takes daily credits before upload credits."""
    sm = SubscriptionManager(FakeState(_balance()))
    asyncio.run(sm.refresh())
    sm.spend()
    assert (sm.balance.daily_credits, sm.balance.upload_credits, sm.balance.total_credits) == (0, 2, 2)
    sm.spend()
    assert (sm.balance.daily_credits, sm.balance.upload_credits, sm.balance.total_credits) == (0, 1, 1)


def test_pro_downloads_without_credits():
    """Pro users download with zero credits."""
    sm = SubscriptionManager(FakeState(_balance(daily_credits=0, upload_credits=0, total_credits=0, is_pro=True)))
    asyncio.run(sm.refresh())
    assert sm.is_pro
    assert sm.can_download()
    sm.spend()
    assert sm.balance.total_credits == 0


def test_out_of_credits():
    """Zero credits blocks downloads."""
    sm = SubscriptionManager(FakeState(_balance(daily_credits=0, upload_credits=0, total_credits=0)))
    asyncio.run(sm.refresh())
    assert not sm.can_download()


def test_api_errors_keep_stale_cache():
    """API failures keep the last known balance."""
    state = FakeState(_balance())
    sm = SubscriptionManager(state)
    asyncio.run(sm.refresh())
    state.services.credits.balance = AsyncMock(side_effect=ApiError(500, "HTTP 500"))
    asyncio.run(sm.refresh(force=True))
    assert sm.balance.total_credits == 3


def test_session_expired_propagates():
    """SessionExpired is not swallowed by refresh."""
    sm = SubscriptionManager(FakeState(error=SessionExpired("/login")))
    with pytest.raises(SessionExpired):
        asyncio.run(sm.refresh())
