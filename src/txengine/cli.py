"""
Command-line interface for the transaction engine.

Provides commands for executing single operations, batches and status lookups.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

import structlog

from txengine import __version__
from txengine.abi.interface import ContractInterface
from txengine.config import EngineConfig, RpcTransport, set_config
from txengine.core.batch import BatchProgress
from txengine.core.engine import TransactionEngine
from txengine.core.record import StatusUpdate
from txengine.core.request import ContractEndpoint, load_requests


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

    # Results go to stdout, so logs go to stderr
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def _add_connection_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--rpc-url",
        help="Node endpoint (defaults to TXENGINE_RPC_URL / TXENGINE_WS_URL)",
    )
    parser.add_argument(
        "--transport",
        choices=["http", "websocket"],
        help="RPC transport (default: http)",
    )
    parser.add_argument(
        "--sender",
        help="Account operations are sent from",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="txengine",
        description="Execute contract operations and track their confirmation",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Execute command
    execute_parser = subparsers.add_parser("execute", help="Execute a single operation")
    execute_parser.add_argument(
        "--abi",
        required=True,
        help="Path to the contract ABI or build artifact (JSON)",
    )
    execute_parser.add_argument(
        "--address",
        required=True,
        help="Contract address",
    )
    execute_parser.add_argument(
        "--method",
        required=True,
        help="Method name or full signature, e.g. transfer(address,uint256)",
    )
    execute_parser.add_argument(
        "--args",
        default="[]",
        help="Method arguments as a JSON array (default: [])",
    )
    execute_parser.add_argument(
        "--confirmations",
        type=int,
        help="Confirmations to wait for",
    )
    execute_parser.add_argument(
        "--timeout-ms",
        type=int,
        help="Confirmation timeout in milliseconds",
    )
    execute_parser.add_argument(
        "--value",
        type=int,
        default=0,
        help="Native amount to send with the call (default: 0)",
    )
    execute_parser.add_argument(
        "--gas-limit",
        type=int,
        help="Explicit gas limit",
    )
    _add_connection_args(execute_parser)

    # Batch command
    batch_parser = subparsers.add_parser("batch", help="Execute operations from a JSON file")
    batch_parser.add_argument(
        "file",
        help="Batch file with 'contracts' and 'operations'",
    )
    batch_parser.add_argument(
        "--stop-on-failure",
        action="store_true",
        help="Stop at the first operation that does not confirm",
    )
    _add_connection_args(batch_parser)

    # Status command
    status_parser = subparsers.add_parser("status", help="Show the status of a transaction")
    status_parser.add_argument(
        "tx_hash",
        help="Transaction hash",
    )
    _add_connection_args(status_parser)

    return parser


def build_config(args: argparse.Namespace) -> EngineConfig:
    """Create configuration from environment defaults and command-line flags."""
    overrides: Dict[str, Any] = {}
    if args.transport:
        overrides["rpc_transport"] = RpcTransport(args.transport)
    if args.rpc_url:
        transport = overrides.get("rpc_transport", RpcTransport.HTTP)
        key = "ws_url" if transport == RpcTransport.WEBSOCKET else "rpc_url"
        overrides[key] = args.rpc_url
    if args.sender:
        overrides["sender_address"] = args.sender
    overrides["log_level"] = args.log_level
    overrides["log_json"] = args.log_json

    config = EngineConfig(**overrides)
    set_config(config)
    return config


def load_batch_file(path: str, config: EngineConfig):
    """
    Load requests from a batch file.

    The file holds a ``contracts`` mapping of name to ``{"abi": path,
    "address": address}`` and an ordered ``operations`` list. ABI paths are
    resolved relative to the batch file.
    """
    batch_path = Path(path)
    data = json.loads(batch_path.read_text())

    interfaces: Dict[str, ContractInterface] = {}
    addresses: Dict[str, str] = {}
    for name, contract in data.get("contracts", {}).items():
        abi_path = batch_path.parent / contract["abi"]
        interfaces[name] = ContractInterface.from_file(abi_path, name=name)
        if "address" in contract:
            addresses[name] = contract["address"]

    entries = []
    for entry in data.get("operations", []):
        entry = dict(entry)
        if "address" not in entry and entry.get("contract") in addresses:
            entry["address"] = addresses[entry["contract"]]
        entries.append(entry)

    return load_requests(entries, interfaces, config)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _print_status(update: StatusUpdate) -> None:
    print(f"[{update.status.value}] {update.message}", file=sys.stderr)


def _print_progress(progress: BatchProgress) -> None:
    print(f"[{progress.percentage:3d}%] {progress.message}", file=sys.stderr)


async def execute_operation(args: argparse.Namespace) -> int:
    """Execute one operation and print its record."""
    config = build_config(args)
    interface = ContractInterface.from_file(args.abi)
    endpoint = ContractEndpoint(address=args.address, interface=interface)

    async with TransactionEngine(config) as engine:
        request = engine.request(
            endpoint,
            args.method,
            *json.loads(args.args),
            confirmations=args.confirmations,
            timeout_ms=args.timeout_ms,
            value=args.value,
            gas_limit=args.gas_limit,
        )
        record = await engine.execute(request, on_status=_print_status)

    _print_json(record.to_dict())
    return 0 if record.succeeded else 1


async def execute_batch(args: argparse.Namespace) -> int:
    """Execute a batch file and print the result."""
    config = build_config(args)
    requests = load_batch_file(args.file, config)

    async with TransactionEngine(config) as engine:
        result = await engine.execute_batch(
            requests,
            stop_on_failure=args.stop_on_failure,
            on_progress=_print_progress,
        )

    _print_json(result.to_dict())
    return 0 if result.all_succeeded else 1


async def show_status(args: argparse.Namespace) -> int:
    """Look up the status of a transaction."""
    config = build_config(args)

    async with TransactionEngine(config) as engine:
        status = await engine.get_status(args.tx_hash)

    _print_json({"tx_hash": args.tx_hash, "status": status.value, "message": status.message})
    return 0


def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Setup logging
    log_level = getattr(args, "log_level", "INFO")
    log_json = getattr(args, "log_json", False)
    setup_logging(log_level, log_json)

    # Run appropriate command
    if args.command == "execute":
        exit_code = asyncio.run(execute_operation(args))
    elif args.command == "batch":
        exit_code = asyncio.run(execute_batch(args))
    else:
        exit_code = asyncio.run(show_status(args))

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
