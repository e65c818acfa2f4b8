"""
Service Initialization - CLI Module.

Command line arguments for the block metadata RPC service.
"""

import argparse
import ipaddress
import os
import socket
from dataclasses import dataclass, field

from loguru import logger

from blockmeta.config.constants import (
    DEFAULT_BIND_ADDRESS,
    DEFAULT_MYSQL_TIMEOUT_SECONDS,
    DEFAULT_RPC_PORT,
    MAX_REQUEST_BODY_SIZE,
)

MIN_NICENESS_ADJUSTMENT = -20
MAX_NICENESS_ADJUSTMENT = 19


@dataclass(frozen=True)
class DeprecatedArg:
    """
    Deprecated argument kept for compatibility.

    Attributes:
        name: Argument name, as presented to users without leading dashes
        help: Original help text
        replaced_by: Name of the replacement argument, if any
        usage_warning: Complete sentence shown when the argument is used
    """

    name: str
    help: str
    replaced_by: str | None = None
    usage_warning: str | None = None

    @property
    def dest(self) -> str:
        return self.name.replace("-", "_")


# Keep sorted alphabetically
DEPRECATED_ARGUMENTS: tuple[DeprecatedArg, ...] = (
    DeprecatedArg(
        name="minimal-rpc-api",
        help="Only expose the RPC methods required to serve snapshots to other nodes",
    ),
)


def _default_rpc_threads() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True)
class DefaultStorageRpcArgs:
    rpc_port: int = DEFAULT_RPC_PORT
    rpc_mysql_timeout: int = DEFAULT_MYSQL_TIMEOUT_SECONDS
    rpc_threads: int = field(default_factory=_default_rpc_threads)
    rpc_niceness_adjustment: int = 0
    rpc_max_request_body_size: int = MAX_REQUEST_BODY_SIZE


def port_validator(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from None
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {port}")
    return port


def non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {number}")
    return number


def niceness_adjustment_validator(value: str) -> int:
    try:
        adjustment = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if not MIN_NICENESS_ADJUSTMENT <= adjustment <= MAX_NICENESS_ADJUSTMENT:
        raise argparse.ArgumentTypeError(
            f"niceness adjustment supported only in range "
            f"[{MIN_NICENESS_ADJUSTMENT}, {MAX_NICENESS_ADJUSTMENT}]: {adjustment}"
        )
    return adjustment


def host_validator(value: str) -> str:
    """Accept an IP address or a resolvable host name; return an IP."""
    try:
        return str(ipaddress.ip_address(value))
    except ValueError:
        pass
    try:
        return socket.gethostbyname(value)
    except OSError as e:
        raise argparse.ArgumentTypeError(f"failed to resolve host {value!r}: {e}") from None


def address_validator(value: str) -> tuple[str, int]:
    """Parse ``HOST:PORT``."""
    host, sep, port = value.rpartition(":")
    if not sep or not host:
        raise argparse.ArgumentTypeError(f"expected HOST:PORT, got {value!r}")
    return host.strip("[]"), port_validator(port)


def storage_rpc_service(
    version: str, default_args: DefaultStorageRpcArgs
) -> argparse.ArgumentParser:
    """
    Build the argument parser.

    Args:
        version: Version string for ``--version``
        default_args: Defaults for numeric options

    Returns:
        Argument parser
    """
    parser = argparse.ArgumentParser(
        prog="block-meta-rpc",
        description="Block Meta RPC Service",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {version}")
    parser.add_argument(
        "-l", "--log-path",
        metavar="DIR",
        default="log",
        help="Use DIR as log location",
    )

    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode: suppress normal output",
    )
    output.add_argument(
        "--log",
        action="store_true",
        help="Log mode: stream the launcher log",
    )

    parser.add_argument(
        "--rpc-port",
        metavar="PORT",
        type=port_validator,
        default=default_args.rpc_port,
        help="Port for the RPC service",
    )
    parser.add_argument(
        "--enable-rpc-mysql-meta-storage",
        action="store_true",
        help=argparse.SUPPRESS,
    )
    parser.add_argument(
        "--rpc-mysql-address",
        metavar="ADDRESS",
        type=address_validator,
        default=None,
        help=argparse.SUPPRESS,
    )
    parser.add_argument(
        "--rpc-mysql-timeout",
        metavar="SECONDS",
        type=non_negative_int,
        default=default_args.rpc_mysql_timeout,
        help="Number of seconds before timing out RPC requests backed by MySQL",
    )
    parser.add_argument(
        "--bind-address",
        metavar="HOST",
        type=host_validator,
        default=DEFAULT_BIND_ADDRESS,
        help=f"IP address to bind the rpc service [default: {DEFAULT_BIND_ADDRESS}]",
    )
    parser.add_argument(
        "--rpc-threads",
        metavar="NUMBER",
        type=non_negative_int,
        default=default_args.rpc_threads,
        help="Number of threads to use for servicing RPC requests",
    )
    parser.add_argument(
        "--rpc-niceness-adjustment",
        dest="rpc_niceness_adj",
        metavar="ADJUSTMENT",
        type=niceness_adjustment_validator,
        default=default_args.rpc_niceness_adjustment,
        help=(
            "Add this value to niceness of RPC threads. Negative value "
            "increases priority, positive value decreases priority."
        ),
    )
    parser.add_argument(
        "--rpc-max-request-body-size",
        metavar="BYTES",
        type=non_negative_int,
        default=default_args.rpc_max_request_body_size,
        help="The maximum request body size accepted by rpc service",
    )
    parser.add_argument(
        "--obsolete-v1-7-rpc-api",
        action="store_true",
        help=argparse.SUPPRESS,
    )

    for arg in DEPRECATED_ARGUMENTS:
        parser.add_argument(
            f"--{arg.name}",
            dest=arg.dest,
            action="store_true",
            help=argparse.SUPPRESS,
        )

    return parser


def deprecation_message(arg: DeprecatedArg) -> str:
    msg = f"--{arg.name} is deprecated"
    if arg.replaced_by:
        msg += f", please use --{arg.replaced_by}"
    msg += "."
    if arg.usage_warning:
        msg += f"  {arg.usage_warning}"
        if not msg.endswith("."):
            msg += "."
    return msg


def warn_for_deprecated_arguments(args: argparse.Namespace) -> list[str]:
    """Log a warning for each deprecated argument that was used."""
    warnings = []
    for arg in DEPRECATED_ARGUMENTS:
        if getattr(args, arg.dest, False):
            msg = deprecation_message(arg)
            logger.warning(msg)
            warnings.append(msg)
    return warnings
