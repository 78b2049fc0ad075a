from __future__ import annotations


class ScpError(Exception):
    pass


class SessionError(ScpError):
    """Opening the invocation or one of its pipes failed."""


class ControlLineError(ScpError, ValueError):
    pass


class RemoteError(ScpError):
    def __init__(self, message: str, fatal: bool = False):
        super().__init__(message)
        self.message = message
        self.fatal = fatal

    def __str__(self) -> str:
        kind = "fatal" if self.fatal else "warning"
        return f"remote scp {kind}: {self.message}"


class TransferError(ScpError):
    pass


class TransferTimeout(TransferError):
    pass
