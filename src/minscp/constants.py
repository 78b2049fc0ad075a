from __future__ import annotations

SCP_BINARY = "/usr/bin/scp"
SOURCE_FLAG = "-f"  # remote acts as source: we receive
SINK_FLAG = "-t"  # remote acts as sink: we send
SINK_TARGET = "./"

COPY_RECORD = b"C"
DEFAULT_MODE = "0644"

ACK_OK = b"\x00"
ACK_WARNING = b"\x01"
ACK_FATAL = b"\x02"

TERMINATOR = b"\x00\n"

DEFAULT_BLOCK_SIZE = 4096
DEFAULT_MAX_LINE_SIZE = 4096
ABANDON_JOIN_TIMEOUT = 5.0  # seconds
