"""Single-flight session refresh shared by all requests of one ApiClient.

The first request that gets a 401 starts the refresh call; requests that get a
401 while it is in flight park on a future and are released in arrival order
once it settles. On success every caller retries once, on failure every caller
sees the same SessionExpired.
"""

import asyncio
import dataclasses
import logging
from typing import Awaitable, Callable

import aiohttp

from errors import SessionExpired

log = logging.getLogger(__name__)

_REFRESH_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError)


class RefreshCoordinator:
    def __init__(
        self,
        refresh: Callable[[], Awaitable[bool]],
        *,
        refresh_endpoint: str = "/auth/refresh",
        login_endpoint: str = "/auth/login",
        login_path: str = "/login",
        location: Callable[[], str | None] | None = None,
        on_expired: Callable[[], None] | None = None,
        on_session_expired: Callable[[SessionExpired], None] | None = None,
    ):
        self._refresh = refresh
        self._skip = {_path(refresh_endpoint), _path(login_endpoint)}
        self._login_path = login_path
        self._location = location
        self._on_expired = on_expired
        self._on_session_expired = on_session_expired
        self.is_refreshing = False
        self._waiters: list[asyncio.Future] = []

    @property
    def login_path(self) -> str:
        return self._login_path

    @property
    def pending(self) -> int:
        return len(self._waiters)

    def should_handle(self, descriptor) -> bool:
        if descriptor.retried:
            return False
        return _path(descriptor.endpoint) not in self._skip

    async def handle_unauthorized(self, descriptor, retry):
        """Recover from a 401 on ``descriptor``; ``retry`` re-sends it once."""
        if self.is_refreshing:
            waiter = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            log.debug("Queued %s %s behind refresh (%d waiting)",
                      descriptor.method, descriptor.endpoint, len(self._waiters))
            await waiter
            return await retry(dataclasses.replace(descriptor, retried=True))

        # flag is set before the first await so later 401s queue up
        self.is_refreshing = True
        cause = None
        try:
            ok = await self._refresh()
        except _REFRESH_ERRORS as e:
            log.warning("Refresh call failed: %s", e)
            ok, cause = False, e
        except BaseException:
            # cancelled or crashed: never leave waiters parked
            self._release(cancel=True)
            raise

        if ok:
            log.info("Session refreshed, releasing %d queued request(s)", len(self._waiters))
            self._release()
            return await retry(dataclasses.replace(descriptor, retried=True))

        error = SessionExpired(
            self._redirect_for(descriptor),
            silent=descriptor.silent_probe,
            cause=cause,
        )
        log.warning("Session expired, failing %d queued request(s)", len(self._waiters))
        self._release(error)
        if self._on_expired:
            self._on_expired()
        if self._on_session_expired:
            self._on_session_expired(error)
        raise error

    def _release(self, error: BaseException | None = None, *, cancel: bool = False):
        waiters, self._waiters = self._waiters, []
        self.is_refreshing = False
        for waiter in waiters:
            if waiter.done():  # caller went away
                continue
            if cancel:
                waiter.cancel()
            elif error is None:
                waiter.set_result(None)
            else:
                waiter.set_exception(error)

    def _redirect_for(self, descriptor) -> str | None:
        if descriptor.silent_probe:
            return None
        location = self._location() if self._location else None
        if location and _path(location).startswith(self._login_path):
            return None
        return self._login_path


def _path(endpoint: str) -> str:
    return endpoint.split("?", 1)[0].rstrip("/") or "/"
