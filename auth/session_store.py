"""Session cookies held on behalf of the backend, optionally persisted to disk."""

import logging
import os
from urllib.parse import unquote

import aiohttp

log = logging.getLogger(__name__)

CSRF_COOKIE = "csrf_token"
AUTH_HINT_COOKIE = "is_authenticated"


class SessionStore:
    def __init__(self, session_file: str | None = None):
        self._path = session_file or None
        self._jar: aiohttp.CookieJar | None = None
        self._csrf_fallback: str | None = None

    @property
    def cookie_jar(self) -> aiohttp.CookieJar:
        # created on first use: aiohttp binds the jar to the running loop
        if self._jar is None:
            self._jar = aiohttp.CookieJar(unsafe=True)
            self._load()
        return self._jar

    def _cookie(self, name: str) -> str | None:
        for morsel in self.cookie_jar:
            if morsel.key == name:
                return morsel.value
        return None

    @property
    def csrf_token(self) -> str | None:
        value = self._cookie(CSRF_COOKIE)
        if value:
            return unquote(value)
        return self._csrf_fallback

    def set_csrf_token(self, token: str | None):
        """Remember a token returned in a response body (cross-origin deployments)."""
        self._csrf_fallback = token or None

    @property
    def is_authenticated(self) -> bool:
        return self._cookie(AUTH_HINT_COOKIE) == "true"

    def clear_auth_hint(self):
        self.cookie_jar.clear(lambda morsel: morsel.key == AUTH_HINT_COOKIE)
        log.info("Auth hint cleared")

    def clear(self):
        self.cookie_jar.clear()
        self._csrf_fallback = None
        self.save()
        log.info("Session cleared")

    def save(self):
        if not self._path or self._jar is None:
            return
        try:
            self._jar.save(self._path)
        except OSError as e:
            # cookies stay valid in memory
            log.warning("Failed to save session file %s: %s", self._path, e)

    def _load(self):
        if not self._path or not os.path.exists(self._path):
            return
        try:
            self._jar.load(self._path)
        except Exception:
            log.warning("Ignoring unreadable session file %s", self._path, exc_info=True)
            self._jar.clear()
