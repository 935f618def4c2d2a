"""
Command-line interface for the Fluent shipper.

Provides commands for shipping records and managing the collector.
"""

import argparse
import json
import logging
import sys
from typing import Any, List, Optional, TextIO

import structlog

from shipper import __version__
from shipper.config import ShipperConfig, set_config
from shipper.core.emitter import Emitter
from shipper.rpc import RELOAD_CONFIG, FLUSH_BUFFERS, RpcClient, RpcError
from shipper.transport.interface import ConnectError


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def _add_logging_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )


def _add_endpoint_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--endpoint",
        help="RPC endpoint of the collector (default: from config)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="fluent-shipper",
        description="Ship log records to a Fluentd HTTP input",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Emit command
    emit_parser = subparsers.add_parser("emit", help="Emit JSON records to the collector")
    emit_parser.add_argument(
        "--tag",
        required=True,
        help="Destination tag",
    )
    emit_parser.add_argument(
        "--file",
        help="File holding a JSON array or JSON Lines (default: stdin)",
    )
    emit_parser.add_argument(
        "--timestamp",
        type=float,
        help="Time in seconds attached to every request",
    )
    emit_parser.add_argument(
        "--host",
        help="Collector host (default: from config)",
    )
    emit_parser.add_argument(
        "--port",
        type=int,
        help="Collector port (default: from config)",
    )
    emit_parser.add_argument(
        "--batch-size",
        type=int,
        help="Maximum records per request (default: from config)",
    )
    emit_parser.add_argument(
        "--batches-per-connection",
        type=int,
        help="Maximum requests per connection (default: from config)",
    )
    _add_logging_arguments(emit_parser)

    # RPC commands
    invoke_parser = subparsers.add_parser("invoke", help="Invoke a collector RPC API")
    invoke_parser.add_argument("api", help="API to invoke, e.g. plugins.flushBuffers")
    _add_endpoint_argument(invoke_parser)
    _add_logging_arguments(invoke_parser)

    flush_parser = subparsers.add_parser("flush", help="Flush the collector's buffers")
    _add_endpoint_argument(flush_parser)
    _add_logging_arguments(flush_parser)

    reload_parser = subparsers.add_parser("reload-conf", help="Reload the collector's configuration")
    _add_endpoint_argument(reload_parser)
    _add_logging_arguments(reload_parser)

    return parser


def read_records(stream: TextIO) -> List[Any]:
    """Read a JSON array, or one JSON value per line."""
    text = stream.read().strip()
    if not text:
        return []
    if text.startswith("["):
        return json.loads(text)
    return [json.loads(line) for line in text.splitlines() if line.strip()]


def _timestamp(value: Optional[float]) -> Optional[float]:
    if value is not None and value.is_integer():
        return int(value)
    return value


def emit_records(args: argparse.Namespace, config: ShipperConfig) -> int:
    """Emit records from a file or stdin."""
    if args.file:
        with open(args.file, encoding="utf-8") as stream:
            records = read_records(stream)
    else:
        records = read_records(sys.stdin)

    try:
        emitter = Emitter(
            config=config,
            batch_size=args.batch_size,
            batches_per_connection=args.batches_per_connection,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        results = emitter.emit_batch(args.tag, records, _timestamp(args.timestamp))
    except ConnectError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    failed = [key for key, ok in results.items() if not ok]
    print(f"Emitted {len(results) - len(failed)} of {len(results)} record(s) to {args.tag}")
    if failed:
        print(f"Failed record(s): {', '.join(str(key) for key in failed)}", file=sys.stderr)
        return 1
    return 0


def invoke_rpc(api: str, args: argparse.Namespace, config: ShipperConfig) -> int:
    """Invoke an RPC API and print the response."""
    with RpcClient(endpoint=args.endpoint, config=config) as rpc:
        try:
            response = rpc.invoke(api)
        except RpcError as e:
            print(f"\n{e}", file=sys.stderr)
            print(f"Endpoint: {rpc.endpoint}", file=sys.stderr)
            print(f"URL: {e.url}\n", file=sys.stderr)
            if e.response is not None:
                print(e.response.body, file=sys.stderr)
            return 1

    print(response.status_line)
    for name, value in response.headers.items():
        print(f"{name}: {value}")
    print(response.body)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Setup logging
    setup_logging(args.log_level, args.log_json)

    overrides = {}
    if getattr(args, "host", None):
        overrides["host"] = args.host
    if getattr(args, "port", None):
        overrides["port"] = args.port
    config = ShipperConfig(log_level=args.log_level, log_json=args.log_json, **overrides)
    set_config(config)

    # Run appropriate command
    if args.command == "emit":
        return emit_records(args, config)
    if args.command == "flush":
        return invoke_rpc(FLUSH_BUFFERS, args, config)
    if args.command == "reload-conf":
        return invoke_rpc(RELOAD_CONFIG, args, config)
    return invoke_rpc(args.api, args, config)


if __name__ == "__main__":
    sys.exit(main())
