from __future__ import annotations

import argparse
import json
import logging
import os
import posixpath

from .constants import DEFAULT_BLOCK_SIZE, SCP_BINARY
from .errors import ScpError
from .options import ScpOptions
from .receiver import receive_file
from .sender import send_file
from .session import ParamikoSession, connect
from .transfer import TransferStats


def options_from_args(args: argparse.Namespace) -> ScpOptions:
    return ScpOptions(
        scp_binary=args.scp_binary,
        block_size=args.block_size,
        preserve_mode=args.preserve_mode,
        strict=not args.legacy,
        wait_for_acks=args.wait_for_acks,
        timeout=args.timeout,
    )


def report(role: str, stats: TransferStats, as_json: bool) -> None:
    payload = {"role": role, **stats.as_dict()}
    print(json.dumps(payload, indent=2) if as_json else payload)


def cmd_get(args: argparse.Namespace) -> int:
    client = connect(
        args.host,
        port=args.port,
        username=args.user,
        key_filename=args.key,
        use_agent=not args.no_agent,
        timeout=args.timeout,
    )
    try:
        remote_dir, remote_name = posixpath.split(args.remote_path)
        stats = receive_file(
            ParamikoSession(client, timeout=args.timeout),
            remote_dir or ".",
            remote_name,
            args.local_dir,
            args.name,
            options=options_from_args(args),
        )
    finally:
        client.close()
    report("receiver", stats, args.json)
    return 0


def cmd_put(args: argparse.Namespace) -> int:
    client = connect(
        args.host,
        port=args.port,
        username=args.user,
        key_filename=args.key,
        use_agent=not args.no_agent,
        timeout=args.timeout,
    )
    try:
        local_dir, filename = os.path.split(args.local_path)
        stats = send_file(
            ParamikoSession(client, timeout=args.timeout),
            local_dir or ".",
            filename,
            options=options_from_args(args),
        )
    finally:
        client.close()
    report("sender", stats, args.json)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="minscp", description="Copy one file over SSH with the legacy scp protocol.")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(x: argparse.ArgumentParser) -> None:
        x.add_argument("host")
        x.add_argument("--port", type=int, default=22)
        x.add_argument("--user", default=None)
        x.add_argument("--key", default=None, help="private key file (default: agent and ~/.ssh keys)")
        x.add_argument("--no-agent", action="store_true")
        x.add_argument("--timeout", type=float, default=None, help="seconds")
        x.add_argument("--block-size", type=int, default=DEFAULT_BLOCK_SIZE)
        x.add_argument("--scp-binary", default=SCP_BINARY)
        x.add_argument("--legacy", action="store_true", help="exit the process on transfer errors")
        x.add_argument("--preserve-mode", action="store_true")
        x.add_argument("--wait-for-acks", action="store_true")
        x.add_argument("--json", action="store_true")

    get = sub.add_parser("get", help="copy a remote file to a local directory")
    add_common(get)
    get.add_argument("remote_path")
    get.add_argument("local_dir", nargs="?", default=".")
    get.add_argument("--name", default=None, help="local file name (default: the remote one)")
    get.set_defaults(func=cmd_get)

    put = sub.add_parser("put", help="copy a local file to the remote home directory")
    add_common(put)
    put.add_argument("local_path")
    put.set_defaults(func=cmd_put)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(message)s")
    try:
        return int(args.func(args))
    except ScpError as exc:
        logging.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
