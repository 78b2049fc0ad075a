from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, NoReturn, Optional

from .control import ControlLine
from .constants import ABANDON_JOIN_TIMEOUT
from .errors import ScpError, SessionError, TransferError, TransferTimeout
from .options import ScpOptions
from .session import Invocation


@dataclass(slots=True)
class TransferStats:
    path: str
    control: Optional[ControlLine] = None
    bytes_transferred: int = 0
    exit_status: Optional[int] = None
    start_ts: float = field(default_factory=time.monotonic)
    end_ts: Optional[float] = None

    @property
    def duration_s(self) -> float:
        if self.end_ts is None:
            return 0.0
        return max(0.0, self.end_ts - self.start_ts)

    @property
    def throughput_mbps(self) -> float:
        if self.duration_s <= 0:
            return 0.0
        return (self.bytes_transferred * 8 / 1_000_000) / self.duration_s

    def as_dict(self) -> dict:
        return {
            "path": self.path,
            "mode": self.control.mode if self.control else None,
            "declared_size": self.control.size if self.control else None,
            "bytes": self.bytes_transferred,
            "exit_status": self.exit_status,
            "seconds": self.duration_s,
            "mbps": self.throughput_mbps,
        }


def fail(error: BaseException, options: ScpOptions) -> NoReturn:
    """Surface a background failure according to ``options.strict``."""
    if isinstance(error, ScpError):
        exc = error
    else:
        exc = TransferError(f"{type(error).__name__}: {error}")
        exc.__cause__ = error
    if options.strict:
        raise exc
    logging.critical("scp transfer failed: %s", exc)
    raise SystemExit(f"scp transfer failed: {exc}")


def open_pipes(invocation: Invocation) -> tuple[BinaryIO, BinaryIO]:
    try:
        return invocation.stdin(), invocation.stdout()
    except OSError as exc:
        raise SessionError(f"failed to open invocation pipes: {exc}") from exc


def run_exchange(
    invocation: Invocation,
    command: str,
    sink: BinaryIO,
    work: Callable[[], TransferStats],
    options: ScpOptions,
) -> TransferStats:
    """Run ``work`` on a background thread while ``command`` runs remotely.

    The remote command only returns once the whole exchange is over, so the
    two proceed concurrently and are joined before returning. On failure the
    background thread closes ``sink`` so the peer sees end-of-stream.
    """
    holder: dict = {}

    def runner() -> None:
        try:
            holder["stats"] = work()
        except Exception as exc:
            holder["error"] = exc
            logging.debug("exchange failed: %r", exc)
            try:
                sink.close()
            except OSError:
                logging.debug("closing write side after failure also failed", exc_info=True)

    t = threading.Thread(target=runner, name="scp-exchange", daemon=True)
    t.start()

    def abandon() -> None:
        # Unblock the background read before waiting for it.
        try:
            sink.close()
        except OSError:
            logging.debug("closing write side failed", exc_info=True)
        invocation.close()
        t.join(timeout=ABANDON_JOIN_TIMEOUT)
        if t.is_alive():
            logging.warning("scp exchange thread still running after %.1fs", ABANDON_JOIN_TIMEOUT)

    try:
        status = invocation.run(command)
    except SessionError:
        abandon()
        raise
    except Exception as exc:
        abandon()
        fail(exc, options)

    t.join(timeout=options.timeout)
    if t.is_alive():
        abandon()
        fail(TransferTimeout(f"transfer still running after {options.timeout}s"), options)
    sink.close()

    if "error" in holder:
        fail(holder["error"], options)

    stats: TransferStats = holder["stats"]
    stats.exit_status = status
    stats.end_ts = time.monotonic()
    return stats
