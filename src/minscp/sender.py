from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import BinaryIO, Optional

from .ack import await_ok
from .constants import SINK_FLAG, SINK_TARGET, TERMINATOR
from .control import ControlLine
from .options import ScpOptions
from .session import Session
from .transfer import TransferStats, open_pipes, run_exchange


@dataclass(slots=True)
class Sender:
    sink: BinaryIO
    source: BinaryIO
    path: str
    filename: str
    options: ScpOptions = field(default_factory=ScpOptions)

    def _check(self, step: str) -> None:
        if self.options.wait_for_acks:
            logging.debug("waiting for ack %s", step)
            await_ok(self.source)

    def run(self) -> TransferStats:
        with open(self.path, "rb") as f:
            content = f.read()
        control = ControlLine.for_content(self.filename, content, mode=self.options.mode_for(self.path))
        stats = TransferStats(path=self.path, control=control)
        logging.info("SCP send start; %r", control.to_bytes())

        try:
            self._check("before control line")
            self.sink.write(control.to_bytes())
            self.sink.flush()
            self._check("after control line")
            self.sink.write(content)
            self.sink.write(TERMINATOR)
            self.sink.flush()
            self._check("after terminator")
        finally:
            self.sink.close()

        stats.bytes_transferred = len(content)
        logging.info("sent %d bytes from %s", stats.bytes_transferred, self.path)
        return stats


def send_file(
    session: Session,
    local_dir: str,
    filename: str,
    options: Optional[ScpOptions] = None,
) -> TransferStats:
    """Copy ``local_dir/filename`` into the remote command's working directory."""
    options = options or ScpOptions()
    invocation = session.invoke()
    try:
        sink, source = open_pipes(invocation)
        sender = Sender(sink, source, os.path.join(local_dir, filename), filename, options)
        command = f"{options.scp_binary} {SINK_FLAG} {SINK_TARGET}"
        return run_exchange(invocation, command, sink, sender.run, options)
    finally:
        invocation.close()
