"""Central HTTP client for the Noteveda API. Cookie sessions with auto-refresh."""

import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from auth.refresh import RefreshCoordinator
from auth.session_store import SessionStore
from config import Settings, get_settings
from errors import ApiError
from version import __version__

log = logging.getLogger(__name__)

_USER_AGENT = f"noteveda-client/{__version__}"


@dataclass
class RequestDescriptor:
    endpoint: str
    method: str = "GET"
    headers: dict = field(default_factory=dict)
    body: Any = None
    params: dict | None = None
    # multipart fields: (name, value, filename, content_type)
    form: list[tuple] | None = None
    retried: bool = False
    silent_probe: bool = False


@dataclass
class ApiResponse:
    status: int
    headers: Any
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self):
        return json.loads(self.body)


class ApiClient:
    def __init__(
        self,
        base_url: str,
        session_store: SessionStore,
        *,
        refresh_endpoint: str = "/auth/refresh",
        login_endpoint: str = "/auth/login",
        login_path: str = "/login",
        timeout: float = 30.0,
        on_session_expired=None,
    ):
        self._base = base_url.rstrip("/")
        self._store = session_store
        self._refresh_endpoint = refresh_endpoint
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None
        # where the UI currently is; consulted before asking for a login redirect
        self.location: str | None = None
        self._refresher = RefreshCoordinator(
            self._refresh,
            refresh_endpoint=refresh_endpoint,
            login_endpoint=login_endpoint,
            login_path=login_path,
            location=lambda: self.location,
            on_expired=session_store.clear_auth_hint,
            on_session_expired=on_session_expired,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs) -> "ApiClient":
        settings = settings or get_settings()
        store = SessionStore(settings.session_file)
        return cls(
            settings.api_url,
            store,
            login_path=settings.login_path,
            timeout=settings.request_timeout,
            **kwargs,
        )

    @property
    def session_store(self) -> SessionStore:
        return self._store

    @property
    def refresher(self) -> RefreshCoordinator:
        return self._refresher

    async def _ensure_session(self):
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                cookie_jar=self._store.cookie_jar, timeout=self._timeout,
            )

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, *exc):
        await self.close()

    # ── Transport ──────────────────────────────────────────

    def _headers(self, d: RequestDescriptor) -> dict:
        headers = {"User-Agent": _USER_AGENT}
        if d.form is None:
            headers["Content-Type"] = "application/json"
        csrf = self._store.csrf_token
        if csrf:
            headers["X-CSRF-TOKEN"] = csrf
        headers.update(d.headers)
        return headers

    async def _open(self, d: RequestDescriptor) -> aiohttp.ClientResponse:
        await self._ensure_session()
        if d.form is not None:
            data = aiohttp.FormData()
            for name, value, filename, content_type in d.form:
                data.add_field(name, value, filename=filename, content_type=content_type)
        elif d.body is not None:
            data = json.dumps(d.body)
        else:
            data = None
        return await self._session.request(
            d.method, f"{self._base}{d.endpoint}",
            params=d.params, data=data, headers=self._headers(d),
        )

    async def _send(self, d: RequestDescriptor) -> ApiResponse:
        resp = await self._open(d)
        try:
            body = await resp.read()
        finally:
            resp.release()
        return ApiResponse(resp.status, resp.headers, body)

    async def perform_request(self, d: RequestDescriptor) -> ApiResponse:
        """Send ``d``; a 401 goes through the refresh coordinator and is retried once."""
        resp = await self._send(d)
        if resp.status == 401 and self._refresher.should_handle(d):
            return await self._refresher.handle_unauthorized(d, self.perform_request)
        return resp

    async def _refresh(self) -> bool:
        await self._ensure_session()
        async with self._session.post(
            f"{self._base}{self._refresh_endpoint}",
            headers={"User-Agent": _USER_AGENT, "Content-Type": "application/json"},
        ) as resp:
            if not 200 <= resp.status < 300:
                log.warning("Refresh rejected: %d", resp.status)
                return False
        self._store.save()
        return True

    # ── Requests ───────────────────────────────────────────

    async def request(
        self, method: str, endpoint: str, *,
        json=None, params=None, form=None, silent_probe=False,
    ):
        d = RequestDescriptor(
            endpoint, method,
            body=json,
            params=_clean_params(params),
            form=form,
            silent_probe=silent_probe,
        )
        resp = await self.perform_request(d)
        return _decode(resp, method, endpoint)

    async def get(self, endpoint: str, *, params=None, silent_probe=False):
        return await self.request("GET", endpoint, params=params, silent_probe=silent_probe)

    async def post(self, endpoint: str, json=None, *, form=None):
        return await self.request("POST", endpoint, json=json, form=form)

    async def patch(self, endpoint: str, json=None):
        return await self.request("PATCH", endpoint, json=json)

    async def delete(self, endpoint: str):
        return await self.request("DELETE", endpoint)

    @asynccontextmanager
    async def stream(self, method: str, endpoint: str, *, json=None):
        """Open a streaming response; the body is read by the caller."""
        d = RequestDescriptor(endpoint, method, body=json)
        resp = await self._open(d)
        if resp.status == 401 and self._refresher.should_handle(d):
            resp.release()
            d = await self._refresher.handle_unauthorized(d, _as_is)
            resp = await self._open(d)
        try:
            if resp.status >= 400:
                log.error("Stream %s %s → %d", method, endpoint, resp.status)
                raise ApiError(resp.status, f"Stream failed: {resp.status} {resp.reason}")
            yield resp
        finally:
            resp.release()


async def _as_is(d: RequestDescriptor) -> RequestDescriptor:
    return d


def _clean_params(params: dict | None) -> dict | None:
    if not params:
        return None
    cleaned = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        cleaned[key] = str(value)
    return cleaned or None


def _decode(resp: ApiResponse, method: str, endpoint: str):
    if not resp.ok:
        try:
            payload = resp.json()
        except ValueError:
            payload = None
            message = "An error occurred"
        else:
            message = payload.get("message") if isinstance(payload, dict) else None
            if isinstance(message, list):
                message = "; ".join(str(m) for m in message)
            message = str(message or f"HTTP {resp.status}")
        log.error("API %s %s → %d: %s", method, endpoint, resp.status, message[:200])
        raise ApiError(resp.status, message, payload)

    if resp.status == 204 or not resp.body:
        return {}
    try:
        return resp.json()
    except ValueError:
        return {}
