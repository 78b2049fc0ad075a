from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import BinaryIO, Optional

from .ack import send_ok
from .constants import ACK_FATAL, ACK_OK, ACK_WARNING, SOURCE_FLAG
from .control import ControlLine
from .errors import ControlLineError, RemoteError
from .options import ScpOptions
from .session import Session
from .transfer import TransferStats, open_pipes, run_exchange


@dataclass(slots=True)
class Receiver:
    """Pulls one file from a remote ``scp -f``.

    Content is read until the peer closes its output; the declared size in
    the control line is only used to spot the source's trailing status byte.
    """

    sink: BinaryIO
    source: BinaryIO
    local_dir: str
    local_name: Optional[str] = None
    options: ScpOptions = field(default_factory=ScpOptions)
    peer_gone: bool = False

    def read_control_line(self) -> tuple[ControlLine, bytes]:
        limit = self.options.max_line_size
        buf = bytearray()
        while b"\n" not in buf and len(buf) < limit:
            data = self.source.read(limit - len(buf))
            if not data:
                break
            buf += data

        code = bytes(buf[:1])
        if code in (ACK_WARNING, ACK_FATAL):
            message = bytes(buf[1:]).split(b"\n", 1)[0]
            raise RemoteError(message.decode("utf-8", errors="replace"), fatal=code == ACK_FATAL)

        line, nl, rest = bytes(buf).partition(b"\n")
        return ControlLine.from_bytes(line + nl), rest

    @staticmethod
    def peer_file_name(control: ControlLine) -> str:
        name = os.path.basename(control.name)
        if name in ("", ".", ".."):
            raise ControlLineError(f"unusable file name from peer: {control.name!r}")
        if name != control.name:
            logging.warning("peer sent file name %r; using %r", control.name, name)
        return name

    def _ack_chunk(self) -> None:
        # The source stops reading once it has its final ack.
        if self.peer_gone:
            return
        try:
            send_ok(self.sink)
        except (OSError, ValueError) as exc:
            logging.debug("peer stopped reading acks: %s", exc)
            self.peer_gone = True

    def run(self) -> TransferStats:
        send_ok(self.sink)
        control, pending = self.read_control_line()
        logging.info(
            "file with permissions: %s, size: %d, name: %s",
            control.mode,
            control.size,
            control.name,
        )

        path = os.path.join(self.local_dir, self.local_name or self.peer_file_name(control))
        stats = TransferStats(path=path, control=control)

        with open(path, "wb") as out:
            send_ok(self.sink)
            last = b""
            if pending:
                out.write(pending)
                stats.bytes_transferred += len(pending)
                last = pending[-1:]

            while True:
                chunk = self.source.read(self.options.block_size)
                if not chunk:
                    break
                out.write(chunk)
                stats.bytes_transferred += len(chunk)
                last = chunk[-1:]
                self._ack_chunk()

            # One NUL just past the declared size is taken as the source's
            # completion status, even when it was really content.
            if stats.bytes_transferred == control.size + 1 and last == ACK_OK:
                out.truncate(control.size)
                stats.bytes_transferred = control.size

            out.flush()
            os.fsync(out.fileno())

        logging.info("received %d bytes into %s", stats.bytes_transferred, path)
        return stats


def receive_file(
    session: Session,
    remote_dir: str,
    remote_name: str,
    local_dir: str,
    local_name: Optional[str] = None,
    options: Optional[ScpOptions] = None,
) -> TransferStats:
    """Copy ``remote_dir/remote_name`` into ``local_dir``.

    The destination is named ``local_name``, or the name the peer reports
    when that is empty.
    """
    options = options or ScpOptions()
    invocation = session.invoke()
    try:
        sink, source = open_pipes(invocation)
        receiver = Receiver(sink, source, local_dir, local_name or None, options)
        command = f"{options.scp_binary} {SOURCE_FLAG} {remote_dir}/{remote_name}"
        return run_exchange(invocation, command, sink, receiver.run, options)
    finally:
        invocation.close()
