class APIException(Exception):
    """Raised when an upstream request fails for any reason.

    Network errors, timeouts, non-2xx statuses and malformed payloads all
    collapse into this one type; callers are not expected to tell them apart.
    """

    def __init__(self, message: str, *, status: int | None = None, path: str | None = None):
        super().__init__(message)
        self.status = status
        self.path = path
