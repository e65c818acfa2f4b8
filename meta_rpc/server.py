"""
RPC server orchestrator.

Builder-style entry point that assembles configuration, starts the
JSON-RPC service and blocks until it stops.
"""

import ipaddress
import threading
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from blockmeta.config.constants import DEFAULT_BIND_ADDRESS, DEFAULT_RPC_PORT
from meta_rpc.exit import Exit
from meta_rpc.request_processor import JsonRpcConfig
from meta_rpc.service import JsonRpcService


class RpcServerError(Exception):
    """Raised when the server cannot be started."""


@dataclass
class RpcServerConfig:
    """Configuration for the server."""

    rpc_config: JsonRpcConfig = field(default_factory=JsonRpcConfig.default_for_storage_rpc)
    rpc_port: int = DEFAULT_RPC_PORT
    bind_ip_addr: str = DEFAULT_BIND_ADDRESS


class RpcServer:
    """
    Central object for managing the RPC server.

    Example:
        server = RpcServer().with_config(config).with_rpc_port(8899)
        server.start(Path("log"))
        server.join()
    """

    def __init__(self, exit_registry: Exit | None = None) -> None:
        self.config = RpcServerConfig()
        self.exit_registry = exit_registry or Exit()
        self.exit_flag = threading.Event()
        self.json_rpc_service: JsonRpcService | None = None
        self.actual_rpc_addr: tuple[str, int] | None = None

    def with_config(self, rpc_config: JsonRpcConfig) -> "RpcServer":
        self.config.rpc_config = rpc_config
        return self

    def with_rpc_port(self, port: int) -> "RpcServer":
        self.config.rpc_port = port
        return self

    def with_bind_ip_addr(self, ip_addr: str) -> "RpcServer":
        self.config.bind_ip_addr = ip_addr
        return self

    def start(self, log_path: Path) -> None:
        """
        Start the server, spawning the JSON-RPC thread.

        Args:
            log_path: Log directory, created if missing

        Raises:
            RpcServerError: Log directory or listener could not be set up
        """
        self.init_log_dir(log_path)

        rpc_addr = (self.config.bind_ip_addr, self.config.rpc_port)
        logger.info(f"Starting RPC server at {rpc_addr[0]}:{rpc_addr[1]}")

        try:
            service = JsonRpcService(
                rpc_addr,
                self.config.rpc_config,
                self.exit_registry,
            )
        except Exception as e:
            raise RpcServerError(str(e)) from e

        self.exit_registry.register_exit(self.exit_flag.set)

        self.json_rpc_service = service
        self.actual_rpc_addr = service.address

    @property
    def rpc_url(self) -> str | None:
        """Externally resolvable base URL, once started."""
        if self.actual_rpc_addr is None:
            return None
        host, port = self.actual_rpc_addr
        try:
            if ipaddress.ip_address(host).version == 6:
                host = f"[{host}]"
        except ValueError:
            pass
        return f"http://{host}:{port}"

    def exit(self) -> None:
        self.exit_registry.exit()

    def join(self) -> None:
        """Block until the RPC service stops."""
        service, self.json_rpc_service = self.json_rpc_service, None
        if service is not None:
            service.join()

    @staticmethod
    def init_log_dir(path: Path) -> Path:
        """
        Validate or create the log directory.

        Raises:
            RpcServerError: Directory cannot be created
        """
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RpcServerError(f"Error creating log directory: {path}: {e}") from e
        return path
