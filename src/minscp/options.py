from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from typing import Optional

from .constants import DEFAULT_BLOCK_SIZE, DEFAULT_MAX_LINE_SIZE, DEFAULT_MODE, SCP_BINARY


@dataclass(frozen=True, slots=True)
class ScpOptions:
    scp_binary: str = SCP_BINARY
    block_size: int = DEFAULT_BLOCK_SIZE
    max_line_size: int = DEFAULT_MAX_LINE_SIZE
    mode: str = DEFAULT_MODE
    preserve_mode: bool = False
    strict: bool = True
    wait_for_acks: bool = False
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        if self.block_size < 1:
            raise ValueError(f"block_size must be positive, got {self.block_size}")
        if self.max_line_size < 1:
            raise ValueError(f"max_line_size must be positive, got {self.max_line_size}")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    def mode_for(self, path: str) -> str:
        if not self.preserve_mode:
            return self.mode
        return "%04o" % stat.S_IMODE(os.stat(path).st_mode)
