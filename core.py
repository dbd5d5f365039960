import asyncio
import logging

import aiohttp

from api_client import ApiClient
from config import Settings, get_settings
from errors import ApiError, SessionExpired
from models import User
from services.ai import AiService
from services.auth import AuthService
from services.categories import CategoriesService
from services.credits import CreditsService
from services.payments import PaymentsService
from services.plans import PlansService
from services.resources import ResourcesService
from services.support import SupportService
from subscription import SubscriptionManager

log = logging.getLogger(__name__)

_PROBE_ERRORS = (ApiError, aiohttp.ClientError, asyncio.TimeoutError)


class Services:
    """All services bound to one ApiClient."""

    def __init__(self, api: ApiClient):
        self.auth = AuthService(api)
        self.resources = ResourcesService(api)
        self.credits = CreditsService(api)
        self.payments = PaymentsService(api)
        self.plans = PlansService(api)
        self.categories = CategoriesService(api)
        self.support = SupportService(api)
        self.ai = AiService(api)


class AppState:
    def __init__(self):
        # Auth / Server
        self.api_client: ApiClient | None = None
        self.services: Services | None = None
        self.session_store = None    # SessionStore, owned by api_client
        self.user: User | None = None
        self.is_authenticated: bool = False
        # Navigation requested by the session layer, consumed by the UI
        self.redirect_to: str | None = None
        # Subscription
        self.subscription_manager: SubscriptionManager | None = None

    @property
    def location(self) -> str | None:
        return self.api_client.location if self.api_client else None

    @location.setter
    def location(self, path: str | None):
        if self.api_client:
            self.api_client.location = path

    def take_redirect(self) -> str | None:
        """Pop the pending navigation, if any."""
        target, self.redirect_to = self.redirect_to, None
        return target


def attach(state: AppState, api_client: ApiClient) -> AppState:
    state.api_client = api_client
    state.session_store = api_client.session_store
    state.services = Services(api_client)
    state.subscription_manager = SubscriptionManager(state)
    return state


def build_state(settings: Settings | None = None) -> AppState:
    state = AppState()
    api_client = ApiClient.from_settings(
        settings or get_settings(),
        on_session_expired=lambda exc: handle_session_expired(state, exc),
    )
    return attach(state, api_client)


def _set_guest(state: AppState):
    state.user = None
    state.is_authenticated = False


def handle_session_expired(state: AppState, exc: SessionExpired):
    """Drop the user and queue the login redirect the error asks for."""
    _set_guest(state)
    if exc.redirect_to and state.redirect_to is None:
        state.redirect_to = exc.redirect_to
        log.info("Session expired, redirecting to %s", exc.redirect_to)
    else:
        log.info("Session expired, continuing as guest")


async def check_session(state: AppState) -> bool:
    """Probe /auth/me; on any failure fall back to guest mode with a CSRF token."""
    try:
        state.user = await state.services.auth.get_me()
        state.is_authenticated = True
    except _PROBE_ERRORS as e:
        log.info("No active session: %s", e)
        _set_guest(state)
        # guests still need a token for the login form
        try:
            await state.services.auth.fetch_csrf_token()
        except _PROBE_ERRORS:
            log.warning("Failed to bootstrap CSRF token", exc_info=True)
        return False

    if state.subscription_manager:
        try:
            await state.subscription_manager.refresh()
        except SessionExpired as e:
            handle_session_expired(state, e)
            return False
    return True


async def login(state: AppState, email: str, password: str) -> User:
    try:
        resp = await state.services.auth.login(email, password)
    except ApiError as e:
        # stale or missing CSRF token: fetch a new one and retry once
        if "CSRF" not in e.message:
            raise
        await state.services.auth.fetch_csrf_token()
        resp = await state.services.auth.login(email, password)
    state.user = resp.user
    state.is_authenticated = True
    if state.subscription_manager:
        await state.subscription_manager.refresh(force=True)
    return resp.user


async def register(state: AppState, email: str, password: str, name: str) -> User:
    try:
        resp = await state.services.auth.register(email, password, name)
    except ApiError as e:
        if "CSRF" not in e.message:
            raise
        await state.services.auth.fetch_csrf_token()
        resp = await state.services.auth.register(email, password, name)
    state.user = resp.user
    state.is_authenticated = True
    return resp.user


async def logout(state: AppState):
    try:
        await state.services.auth.logout()
    except _PROBE_ERRORS:
        log.exception("Logout error")
    finally:
        _set_guest(state)
        state.redirect_to = state.api_client.refresher.login_path


async def auth_check_loop(state: AppState, interval: float = 30.0):
    """Periodically check auth status, refresh user info and credits."""
    while True:
        await asyncio.sleep(interval)
        if not state.session_store.is_authenticated:
            _set_guest(state)
            continue
        await check_session(state)


async def download_resource(state: AppState, resource_id: str) -> str:
    """Spend a credit on ``resource_id`` and return its file URL."""
    result = await state.services.credits.download(resource_id)
    if not result.success:
        raise ApiError(402, result.message or "Download failed")
    if state.subscription_manager:
        state.subscription_manager.spend()
    return result.file_url
