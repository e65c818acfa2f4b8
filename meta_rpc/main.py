"""
Service main entry point.

Parses the command line, configures logging, loads the MySQL settings
and runs the block metadata RPC server until it is told to exit.
"""

import argparse
import dataclasses
import signal
import sys
from pathlib import Path

from loguru import logger

from blockmeta import __version__
from blockmeta.config.constants import DEFAULT_HOST
from blockmeta.config.database import StoreConnectionParams
from blockmeta.config.settings import Settings, get_settings
from meta_rpc.exit import Exit
from meta_rpc.initialization.cli import (
    DefaultStorageRpcArgs,
    storage_rpc_service,
    warn_for_deprecated_arguments,
)
from meta_rpc.initialization.logging import setup_logging
from meta_rpc.request_processor import JsonRpcConfig
from meta_rpc.server import RpcServer, RpcServerError


def build_store_params(
    args: argparse.Namespace, settings: Settings
) -> StoreConnectionParams | None:
    """
    Decide whether and where to connect to MySQL.

    Storage is used when the env config names a host, when it is
    explicitly enabled, or when an address is given on the command line.
    """
    enabled = (
        settings.storage_enabled
        or args.enable_rpc_mysql_meta_storage
        or args.rpc_mysql_address is not None
    )
    if not enabled:
        logger.info("MySQL metadata storage is not configured")
        return None

    timeout = args.rpc_mysql_timeout or None
    params = StoreConnectionParams.from_settings(settings, timeout=timeout)
    if args.rpc_mysql_address is not None:
        host, port = args.rpc_mysql_address
        params = dataclasses.replace(params, host=host, port=port)
    elif not params.host:
        params = dataclasses.replace(params, host=DEFAULT_HOST)
    return params


def build_rpc_config(args: argparse.Namespace, settings: Settings) -> JsonRpcConfig:
    return JsonRpcConfig.default_for_storage_rpc(
        store_params=build_store_params(args, settings),
        obsolete_v1_7_api=args.obsolete_v1_7_rpc_api,
        rpc_threads=args.rpc_threads,
        rpc_niceness_adj=args.rpc_niceness_adj,
        max_request_body_size=args.rpc_max_request_body_size,
    )


def install_signal_handlers(exit_registry: Exit) -> None:
    """Fire the exit registry on SIGINT/SIGTERM."""

    def _handle(signum: int, _frame: object) -> None:
        logger.info(f"Received signal {signal.Signals(signum).name}, shutting down")
        exit_registry.exit()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def main(argv: list[str] | None = None) -> int:
    """Run the service; returns the process exit code."""
    default_args = DefaultStorageRpcArgs()
    args = storage_rpc_service(__version__, default_args).parse_args(argv)

    log_path = Path(args.log_path)
    try:
        RpcServer.init_log_dir(log_path)
    except RpcServerError as e:
        logger.error(f"Error: Unable to create directory {log_path}: {e}")
        return 1

    settings = get_settings()
    setup_logging(log_path, quiet=args.quiet, level=settings.log_level)

    logger.info(f"block-meta-rpc {__version__}")
    logger.info(f"Starting block metadata rpc service with: {sys.argv}")
    warn_for_deprecated_arguments(args)

    rpc_server = (
        RpcServer()
        .with_config(build_rpc_config(args, settings))
        .with_rpc_port(args.rpc_port)
        .with_bind_ip_addr(args.bind_address)
    )
    install_signal_handlers(rpc_server.exit_registry)

    try:
        rpc_server.start(log_path)
    except RpcServerError as e:
        logger.error(f"Error: failed to start block metadata rpc service: {e}")
        return 1

    logger.info(f"Block metadata rpc service listening on {rpc_server.rpc_url}")
    rpc_server.join()
    logger.info("Block metadata rpc service stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
