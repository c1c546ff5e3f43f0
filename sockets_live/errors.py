from __future__ import annotations


class EnumerationError(Exception):
    """The socket source failed (permission denied, missing tool, platform API error)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"fail to get sockets info: {self.message}"


class ProcessLookupMissing(Exception):
    """A pid could not be resolved: the process exited or access was denied."""

    def __init__(self, pid: int, reason: str = ""):
        super().__init__(pid, reason)
        self.pid = pid
        self.reason = reason

    def __str__(self) -> str:
        if self.reason:
            return f"pid {self.pid}: {self.reason}"
        return f"pid {self.pid}: not found"
