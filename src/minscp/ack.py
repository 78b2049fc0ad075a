from __future__ import annotations

import logging
from typing import BinaryIO, Optional

from .constants import ACK_FATAL, ACK_OK, ACK_WARNING
from .errors import RemoteError


def send_ok(sink: BinaryIO) -> None:
    sink.write(ACK_OK)
    sink.flush()


def read_message(source: BinaryIO, first: bytes = b"") -> str:
    buf = bytearray(first)
    while not buf.endswith(b"\n"):
        b = source.read(1)
        if not b:
            break
        buf += b
    return buf.rstrip(b"\n").decode("utf-8", errors="replace")


def read_response(source: BinaryIO) -> Optional[RemoteError]:
    """Read one acknowledgment from the peer.

    Returns None for OK, otherwise the error the peer reported. Anything that
    is not one of the three status bytes is taken as the start of a message.
    """
    code = source.read(1)
    if code == ACK_OK:
        logging.debug("received scp OK")
        return None
    if not code:
        return RemoteError("connection lost", fatal=True)
    if code in (ACK_WARNING, ACK_FATAL):
        message = read_message(source)
        return RemoteError(message, fatal=code == ACK_FATAL)
    return RemoteError(read_message(source, first=code), fatal=True)


def await_ok(source: BinaryIO) -> None:
    err = read_response(source)
    if err is not None:
        raise err
