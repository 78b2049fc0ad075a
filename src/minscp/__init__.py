"""Minimal SCP client (minscp)

Copies exactly one file per call over an already-authenticated SSH session by
speaking the legacy scp protocol with the remote ``scp`` binary:
- a ``C<mode> <size> <name>`` control line
- the raw file bytes
- single ``\\0`` acknowledgment bytes to pace the exchange

The session itself is pluggable; ``ParamikoSession`` wraps a paramiko client.
"""

__version__ = "0.1.0"

from .control import ControlLine
from .errors import ControlLineError, RemoteError, ScpError, SessionError, TransferError, TransferTimeout
from .options import ScpOptions
from .receiver import receive_file
from .sender import send_file
from .session import Invocation, ParamikoSession, Session, connect
from .transfer import TransferStats

__all__ = [
    "__version__",
    "ControlLine",
    "ControlLineError",
    "Invocation",
    "ParamikoSession",
    "RemoteError",
    "ScpError",
    "ScpOptions",
    "Session",
    "SessionError",
    "TransferError",
    "TransferStats",
    "TransferTimeout",
    "connect",
    "receive_file",
    "send_file",
]
