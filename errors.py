"""Errors raised by the API client."""


class ApiError(Exception):
    """Non-2xx response from the backend."""

    def __init__(self, status: int, message: str, payload=None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.payload = payload

    def __repr__(self):
        return f"{type(self).__name__}(status={self.status}, message={self.message!r})"


class SessionExpired(ApiError):
    """Refresh failed; the user has to log in again.

    ``redirect_to`` is where the UI should navigate, or None when the failing
    call was a silent probe or the user is already on the login page.
    """

    def __init__(self, redirect_to: str | None = None, *, silent: bool = False, cause=None):
        super().__init__(401, "Session expired. Please login again.")
        self.redirect_to = redirect_to
        self.silent = silent
        self.cause = cause
