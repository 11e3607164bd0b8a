"""Domain errors raised by the OAuth, goal and request layers.

Each error carries the HTTP status the routers answer with.
"""


class SubgoalError(Exception):
    """Base class for errors surfaced to HTTP callers."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequest(SubgoalError):
    """A required input (e.g. channel) is missing."""

    status_code = 400


class InvalidState(SubgoalError):
    """The OAuth state parameter could not be decoded."""

    status_code = 400

    def __init__(self, message: str = "Invalid state") -> None:
        super().__init__(message)


class InvalidGoal(SubgoalError):
    """The goal is missing, non-numeric or not positive."""

    status_code = 400


class ProviderError(SubgoalError):
    """Non-2xx response from Twitch during code exchange or identity lookup."""

    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        provider_status: int | None = None,
        payload: dict | str | None = None,
    ) -> None:
        super().__init__(message)
        self.provider_status = provider_status
        self.payload = payload
