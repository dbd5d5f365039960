"""In-process fake of the Noteveda backend for client tests."""

import asyncio
from collections import Counter
from contextlib import asynccontextmanager

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from api_client import ApiClient
from auth.session_store import SessionStore

USER = {
    "id": "u1",
    "name": "Asha",
    "email": "asha@example.com",
    "credits": 7,
    "dailyCredits": 3,
    "uploadCredits": 4,
    "role": "USER",
    "createdAt": "2025-01-10T08:00:00Z",
}

RESOURCE = {
    "id": "r1",
    "title": "Thermodynamics notes",
    "description": "Unit 1 to 4",
    "fileUrl": "https://cdn.example.com/r1.pdf",
    "fileType": "PDF",
    "domain": "engineering",
    "subDomain": "mechanical",
    "subject": "thermo",
    "resourceType": "NOTES",
    "tags": ["exam"],
    "status": "APPROVED",
    "author": {"id": "u2", "name": "Ravi"},
    "downloadCount": 12,
    "createdAt": "2025-02-01T10:00:00Z",
    "updatedAt": "2025-02-01T10:00:00Z",
}


async def until(predicate, timeout: float = 5.0):
    """Yield to the loop until ``predicate()`` holds."""
    async def _wait():
        while not predicate():
            await asyncio.sleep(0.005)
    await asyncio.wait_for(_wait(), timeout)


class FakeBackend:
    def __init__(self):
        self.token = "access-1"
        self.refresh_calls = 0
        self.refresh_status = 200
        self.refresh_rotates = True
        self.hits = Counter()
        self.headers = []
        self.balance = {"dailyCredits": 3, "uploadCredits": 4, "totalCredits": 7, "isPro": False}
        self.uploads = []
        self.last_query = None
        self._gate: asyncio.Event | None = None

        app = web.Application()
        app.router.add_post("/api/auth/login", self.login)
        app.router.add_post("/api/auth/refresh", self.refresh)
        app.router.add_post("/api/auth/logout", self.logout)
        app.router.add_get("/api/auth/me", self.me)
        app.router.add_get("/api/auth/csrf", self.csrf)
        app.router.add_get("/api/items/{name}", self.item)
        app.router.add_get("/api/credits", self.credits)
        app.router.add_post("/api/credits/download/{id}", self.download)
        app.router.add_get("/api/resources", self.resources)
        app.router.add_post("/api/uploads", self.upload)
        app.router.add_delete("/api/resources/{id}", self.delete_resource)
        app.router.add_get("/api/boom", self.boom)
        app.router.add_get("/api/plain-error", self.plain_error)
        app.router.add_post("/api/ai/stream", self.ai_stream)
        self.app = app

    # ── controls ──

    def expire(self):
        """Invalidate the access cookie the client holds."""
        self.token = f"access-{self.refresh_calls + 2}"

    def hold_refresh(self):
        self._gate = asyncio.Event()

    def release_refresh(self):
        self._gate.set()

    # ── helpers ──

    def _record(self, request):
        self.hits[request.path] += 1
        self.headers.append(request.headers.copy())

    def _authorized(self, request) -> bool:
        return request.cookies.get("access_token") == self.token

    @staticmethod
    def _unauthorized():
        return web.json_response({"message": "Unauthorized", "statusCode": 401}, status=401)

    def _set_session(self, resp):
        resp.set_cookie("access_token", self.token, httponly=True, path="/")
        resp.set_cookie("refresh_token", "refresh-1", httponly=True, path="/")
        resp.set_cookie("is_authenticated", "true", path="/")
        resp.set_cookie("csrf_token", "csrf%3Dabc", path="/")

    # ── handlers ──

    async def login(self, request):
        self._record(request)
        body = await request.json()
        if body.get("password") != "secret":
            return web.json_response({"message": "Invalid credentials"}, status=401)
        resp = web.json_response({"user": USER})
        self._set_session(resp)
        return resp

    async def refresh(self, request):
        self._record(request)
        if self._gate is not None:
            await self._gate.wait()
        self.refresh_calls += 1
        if self.refresh_status != 200:
            return web.json_response({"message": "Invalid refresh token"}, status=self.refresh_status)
        resp = web.json_response({"user": USER})
        if self.refresh_rotates:
            self.token = f"access-{self.refresh_calls + 1}"
            self._set_session(resp)
        return resp

    async def logout(self, request):
        self._record(request)
        resp = web.json_response({"message": "Logged out"})
        for name in ("access_token", "refresh_token", "is_authenticated", "csrf_token"):
            resp.del_cookie(name, path="/")
        return resp

    async def me(self, request):
        self._record(request)
        if not self._authorized(request):
            return self._unauthorized()
        return web.json_response(USER)

    async def csrf(self, request):
        self._record(request)
        return web.json_response({"csrfToken": "boot-token"})

    async def item(self, request):
        self._record(request)
        if not self._authorized(request):
            return self._unauthorized()
        return web.json_response({"item": request.match_info["name"]})

    async def credits(self, request):
        self._record(request)
        if not self._authorized(request):
            return self._unauthorized()
        return web.json_response(self.balance)

    async def download(self, request):
        self._record(request)
        if not self._authorized(request):
            return self._unauthorized()
        if self.balance["totalCredits"] <= 0 and not self.balance["isPro"]:
            return web.json_response({"message": "Insufficient credits"}, status=403)
        self.balance["totalCredits"] -= 1
        return web.json_response({"success": True, "fileUrl": RESOURCE["fileUrl"]})

    async def resources(self, request):
        self._record(request)
        self.last_query = dict(request.query)
        return web.json_response({
            "items": [RESOURCE],
            "total": 1,
            "page": int(request.query.get("page", 1)),
            "limit": int(request.query.get("limit", 12)),
            "totalPages": 1,
        })

    async def upload(self, request):
        self._record(request)
        if not self._authorized(request):
            return self._unauthorized()
        form = await request.post()
        field = form["file"]
        self.uploads.append((field.filename, field.content_type, field.file.read()))
        return web.json_response({"url": "https://cdn.example.com/u.pdf", "publicId": "u", "format": "pdf"})

    async def delete_resource(self, request):
        self._record(request)
        return web.Response(status=204)

    async def boom(self, request):
        self._record(request)
        return web.json_response({"message": ["title too short", "bad tags"]}, status=500)

    async def plain_error(self, request):
        self._record(request)
        return web.Response(status=502, text="<html>bad gateway</html>")

    async def ai_stream(self, request):
        self._record(request)
        if not self._authorized(request):
            return self._unauthorized()
        resp = web.StreamResponse()
        await resp.prepare(request)
        # "café ✓" with multi-byte characters split across writes
        data = "café ✓".encode()
        for part in (data[:4], data[4:6], data[6:8], data[8:]):
            await resp.write(part)
            await asyncio.sleep(0.01)
        await resp.write_eof()
        return resp

    # ── client wiring ──

    @asynccontextmanager
    async def client(self, store=None, **kwargs):
        server = TestServer(self.app)
        await server.start_server()
        api = ApiClient(str(server.make_url("/api")), store or SessionStore(), **kwargs)
        try:
            yield api
        finally:
            await api.close()
            await server.close()


@pytest.fixture
def backend():
    return FakeBackend()
