__all__ = [
    "SyncError",
    "RemoteUnreachable",
    "RemoteRejected",
    "StorageFailure",
]


class SyncError(Exception):
    """
    Base class for errors raised while synchronizing a note with a pad.
    """


class RemoteUnreachable(SyncError):
    """
    Raised when the Etherpad server could not be reached, e.g. connection
    refused or DNS failure.
    """

    def __init__(self, host: str, reason: str):
        self.host = host
        self.reason = reason
        super().__init__(f"Failed to reach Etherpad host '{host}': {reason}")


class RemoteRejected(SyncError):
    """
    Raised when the Etherpad server handled the request but refused it.

    Examples:

    - `createPad` for a pad id which already exists
    - `getHTML` for a pad id which does not exist
    - Wrong or missing API key
    """

    code: int | None
    """
    Etherpad API response code, or `None` if the request failed at the
    HTTP level.
    """

    def __init__(self, function: str, message: str, code: int | None = None):
        self.function = function
        self.message = message
        self.code = code
        super().__init__(f"Etherpad rejected {function}: {message}")


class StorageFailure(SyncError):
    """
    Raised when a note could not be read or written, e.g. permission denied
    or note not found.
    """

    def __init__(self, note, reason: str):
        self.note = note
        self.reason = reason
        super().__init__(f"Failed to access note '{note}': {reason}")
