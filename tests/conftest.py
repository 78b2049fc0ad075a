from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO, Callable

import pytest

Remote = Callable[[str, BinaryIO, BinaryIO], int]


def read_line(f: BinaryIO) -> bytes:
    buf = bytearray()
    while not buf.endswith(b"\n"):
        b = f.read(1)
        if not b:
            break
        buf += b
    return bytes(buf)


def read_exactly(f: BinaryIO, n: int) -> bytes:
    buf = bytearray()
    while len(buf) < n:
        data = f.read(n - len(buf))
        if not data:
            break
        buf += data
    return bytes(buf)


class PipeInvocation:
    """Invocation whose remote side is a Python callable on two os pipes."""

    def __init__(self, remote: Remote, keep_stdout_open: bool = False):
        in_r, in_w = os.pipe()
        out_r, out_w = os.pipe()
        self._stdin = os.fdopen(in_w, "wb")
        self._stdout = os.fdopen(out_r, "rb", buffering=0)
        self.remote_in = os.fdopen(in_r, "rb", buffering=0)
        self.remote_out = os.fdopen(out_w, "wb")
        self.remote = remote
        self.keep_stdout_open = keep_stdout_open
        self.commands: list[str] = []
        self.closed = False

    def stdin(self) -> BinaryIO:
        return self._stdin

    def stdout(self) -> BinaryIO:
        return self._stdout

    def run(self, command: str) -> int:
        self.commands.append(command)
        try:
            return self.remote(command, self.remote_in, self.remote_out)
        finally:
            if not self.keep_stdout_open:
                self.remote_out.close()

    def close(self) -> None:
        self.closed = True
        for f in (self.remote_out, self._stdin, self._stdout, self.remote_in):
            try:
                f.close()
            except OSError:
                pass


class PipeSession:
    def __init__(self, remote: Remote, keep_stdout_open: bool = False):
        self.remote = remote
        self.keep_stdout_open = keep_stdout_open
        self.invocations: list[PipeInvocation] = []

    def invoke(self) -> PipeInvocation:
        inv = PipeInvocation(self.remote, self.keep_stdout_open)
        self.invocations.append(inv)
        return inv

    @property
    def commands(self) -> list[str]:
        return [c for inv in self.invocations for c in inv.commands]


class FakeScp:
    """Enough of a remote ``scp -f`` / ``scp -t ./`` to talk to the engines.

    ``-t`` stores into ``root``; ``-f`` serves the absolute path it is given.
    """

    def __init__(self, root: Path, require_acks: bool = True):
        self.root = root
        self.require_acks = require_acks
        self.control_lines: list[bytes] = []
        self.terminators: list[bytes] = []

    def __call__(self, command: str, stdin: BinaryIO, stdout: BinaryIO) -> int:
        argv = command.split(" ")
        if argv[1] == "-f":
            return self.source(argv[2], stdin, stdout)
        if argv[1] == "-t":
            return self.sink(stdin, stdout)
        return 127

    def source(self, path: str, stdin: BinaryIO, stdout: BinaryIO) -> int:
        if stdin.read(1) != b"\0":
            return 1
        if not os.path.isfile(path):
            stdout.write(b"\x01scp: %s: No such file or directory\n" % path.encode())
            stdout.flush()
            return 1
        with open(path, "rb") as f:
            data = f.read()
        stdout.write(b"C0644 %d %s\n" % (len(data), os.path.basename(path).encode()))
        stdout.flush()
        if stdin.read(1) != b"\0":
            return 1
        stdout.write(data + b"\0")
        stdout.flush()
        return 0 if stdin.read(1) == b"\0" else 1

    def sink(self, stdin: BinaryIO, stdout: BinaryIO) -> int:
        stdout.write(b"\0")
        stdout.flush()
        line = read_line(stdin)
        if not line.startswith(b"C"):
            return 1
        self.control_lines.append(line)
        _, size, name = line[1:-1].split(b" ", 2)
        stdout.write(b"\0")
        stdout.flush()
        data = read_exactly(stdin, int(size))
        self.terminators.append(read_exactly(stdin, 2))
        (self.root / name.decode()).write_bytes(data)
        stdout.write(b"\0")
        stdout.flush()
        stdin.read()
        return 0


def scripted(reply: bytes) -> Remote:
    """A remote source that waits for the first ack, then dumps ``reply``."""

    def remote(command: str, stdin: BinaryIO, stdout: BinaryIO) -> int:
        stdin.read(1)
        stdout.write(reply)
        stdout.flush()
        return 0

    return remote


def capture(into: list) -> Remote:
    """A remote sink that records everything written to it."""

    def remote(command: str, stdin: BinaryIO, stdout: BinaryIO) -> int:
        into.append(stdin.read())
        return 0

    return remote


@pytest.fixture
def remote_root(tmp_path: Path) -> Path:
    d = tmp_path / "remote"
    d.mkdir()
    return d


@pytest.fixture
def local_dir(tmp_path: Path) -> Path:
    d = tmp_path / "local"
    d.mkdir()
    return d
