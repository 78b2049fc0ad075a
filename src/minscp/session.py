from __future__ import annotations

import logging
import socket
import threading
from typing import BinaryIO, Optional, Protocol

import paramiko

from .errors import SessionError, TransferTimeout


class Invocation(Protocol):
    """One remote command run with its own pair of pipe ends."""

    def stdin(self) -> BinaryIO: ...

    def stdout(self) -> BinaryIO: ...

    def run(self, command: str) -> int: ...

    def close(self) -> None: ...


class Session(Protocol):
    def invoke(self) -> Invocation: ...


class ChannelSink:
    """Write end of a channel; holds writes until the command is issued."""

    def __init__(self, channel: paramiko.Channel, started: threading.Event):
        self.channel = channel
        self.started = started
        self.closed = False

    def write(self, data: bytes) -> int:
        self.started.wait()
        self.channel.sendall(data)
        return len(data)

    def flush(self) -> None:
        pass

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if not self.channel.closed:
            self.channel.shutdown_write()

    def __enter__(self) -> "ChannelSink":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class ChannelSource:
    """Read end of a channel; ``read`` returns whatever is available."""

    def __init__(self, channel: paramiko.Channel):
        self.channel = channel

    def read(self, size: int = -1) -> bytes:
        if size < 0:
            chunks = []
            while True:
                data = self.channel.recv(32768)
                if not data:
                    return b"".join(chunks)
                chunks.append(data)
        return self.channel.recv(size)

    def close(self) -> None:
        pass


class ParamikoInvocation:
    def __init__(self, channel: paramiko.Channel, timeout: Optional[float] = None):
        self.channel = channel
        self.timeout = timeout
        self._started = threading.Event()

    def stdin(self) -> ChannelSink:
        return ChannelSink(self.channel, self._started)

    def stdout(self) -> ChannelSource:
        return ChannelSource(self.channel)

    def run(self, command: str) -> int:
        logging.debug("exec: %s", command)
        try:
            self.channel.exec_command(command)
        except paramiko.SSHException as exc:
            raise SessionError(f"failed to run {command!r}: {exc}") from exc
        finally:
            self._started.set()
        if self.timeout is not None and not self.channel.status_event.wait(self.timeout):
            raise TransferTimeout(f"{command!r} did not finish within {self.timeout}s")
        status = self.channel.recv_exit_status()
        logging.debug("exit status %d for %s", status, command)
        return status

    def close(self) -> None:
        self._started.set()
        self.channel.close()


class ParamikoSession:
    """Session provider over an authenticated ``paramiko.SSHClient``."""

    def __init__(self, client: paramiko.SSHClient, timeout: Optional[float] = None):
        self.client = client
        self.timeout = timeout

    def invoke(self) -> ParamikoInvocation:
        transport = self.client.get_transport()
        if transport is None or not transport.is_active():
            raise SessionError("ssh transport is not connected")
        try:
            channel = transport.open_session(timeout=self.timeout)
        except (paramiko.SSHException, socket.error) as exc:
            raise SessionError(f"failed to open session channel: {exc}") from exc
        if self.timeout is not None:
            channel.settimeout(self.timeout)
        return ParamikoInvocation(channel, timeout=self.timeout)


def connect(
    host: str,
    port: int = 22,
    username: Optional[str] = None,
    key_filename: Optional[str] = None,
    use_agent: bool = True,
    timeout: Optional[float] = None,
) -> paramiko.SSHClient:
    client = paramiko.SSHClient()
    client.load_system_host_keys()
    try:
        client.connect(
            host,
            port=port,
            username=username,
            key_filename=key_filename,
            allow_agent=use_agent,
            look_for_keys=key_filename is None,
            timeout=timeout,
        )
    except (paramiko.SSHException, socket.error) as exc:
        client.close()
        raise SessionError(f"failed to connect to {host}:{port}: {exc}") from exc
    logging.info("connected to %s:%d as %s", host, port, username or "<default user>")
    return client
