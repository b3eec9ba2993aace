"""Exception types raised inside the gateway and rendered by ``main``."""


class SubTrackError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str = "Internal error"):
        super().__init__(message)
        self.message = message


class AuthenticationError(SubTrackError):
    """Missing, invalid or expired session credential."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class MalformedBodyError(SubTrackError):
    """Request body could not be parsed as JSON."""

    status_code = 400


class StoreUnavailableError(SubTrackError):
    """The key-value store could not be read or written."""

    status_code = 503

    def __init__(self, message: str = "Data store unavailable"):
        super().__init__(message)
