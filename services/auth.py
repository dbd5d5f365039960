import logging

from models import AuthResponse, User

log = logging.getLogger(__name__)


class AuthService:
    def __init__(self, api):
        self._api = api

    async def login(self, email: str, password: str) -> AuthResponse:
        data = await self._api.post("/auth/login", {"email": email, "password": password})
        self._api.session_store.save()
        log.info("Logged in as %s", email)
        return AuthResponse.model_validate(data)

    async def register(self, email: str, password: str, name: str) -> AuthResponse:
        data = await self._api.post(
            "/auth/register", {"email": email, "password": password, "name": name},
        )
        self._api.session_store.save()
        return AuthResponse.model_validate(data)

    async def get_me(self) -> User:
        """Session probe: a dead session raises SessionExpired without a redirect."""
        data = await self._api.get("/auth/me", silent_probe=True)
        return User.model_validate(data)

    async def refresh(self) -> dict:
        """Explicit refresh; normally the client does this on a 401."""
        return await self._api.post("/auth/refresh")

    async def logout(self):
        try:
            await self._api.post("/auth/logout")
        finally:
            self._api.session_store.clear()

    async def fetch_csrf_token(self) -> str | None:
        data = await self._api.get("/auth/csrf")
        token = data.get("csrfToken")
        if token:
            self._api.session_store.set_csrf_token(token)
        return token

    async def update_profile(self, **fields) -> User:
        data = await self._api.patch("/auth/profile", fields)
        return User.model_validate(data)
