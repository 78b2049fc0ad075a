from __future__ import annotations

from dataclasses import dataclass

from .constants import COPY_RECORD, DEFAULT_MODE, TERMINATOR
from .errors import ControlLineError

__all__ = ["ControlLine", "TERMINATOR"]


@dataclass(frozen=True, slots=True)
class ControlLine:
    """The ``C<mode> <size> <name>`` record that precedes a file's bytes."""

    mode: str
    size: int
    name: str

    def to_bytes(self) -> bytes:
        return COPY_RECORD + f"{self.mode} {self.size} {self.name}\n".encode("utf-8")

    @staticmethod
    def from_bytes(raw: bytes) -> "ControlLine":
        # The record kind is not checked; a name with spaces keeps only its
        # first word.
        if raw.endswith(b"\n"):
            raw = raw[:-1]
        try:
            fields = raw.decode("utf-8").split(" ")
        except UnicodeDecodeError as exc:
            raise ControlLineError(f"control line is not valid utf-8: {raw!r}") from exc
        if len(fields) < 3:
            raise ControlLineError(f"control line has {len(fields)} field(s), expected 3: {raw!r}")
        size = fields[1]
        # Plain ASCII decimal without leading zeros, so the line formats back unchanged.
        if not (size.isascii() and size.isdigit()) or (len(size) > 1 and size[0] == "0"):
            raise ControlLineError(f"control line size is not a decimal number: {size!r}")
        return ControlLine(mode=fields[0][1:], size=int(size), name=fields[2])

    @staticmethod
    def for_content(name: str, content: bytes, mode: str = DEFAULT_MODE) -> "ControlLine":
        return ControlLine(mode=mode, size=len(content), name=name)
