"""
JSON-RPC service host.

Owns the worker pool, the optional metadata store and the listener
thread. Construction either returns a fully started service or raises.
"""

import asyncio
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor

from aiohttp import web
from loguru import logger

from blockmeta.services.meta_storage import MetaStorage
from blockmeta.utils.exceptions import MetaStorageError
from meta_rpc.app import create_app
from meta_rpc.exit import Exit
from meta_rpc.middlewares.request import RestRoutes
from meta_rpc.request_processor import JsonRpcConfig, JsonRpcRequestProcessor

SERVICE_THREAD_NAME = "metaJsonRpcSvc"
WORKER_THREAD_PREFIX = "metaRpcEl"


class RpcServiceError(Exception):
    """Raised when the listener could not be started."""


def renice_this_thread(adjustment: int) -> None:
    """
    Add ``adjustment`` to the calling thread's niceness.

    On Linux niceness is per thread, so each worker applies it itself.
    """
    if adjustment == 0:
        return
    try:
        os.nice(adjustment)
    except OSError as e:
        logger.warning(
            f"Failed to adjust niceness of {threading.current_thread().name} "
            f"by {adjustment}: {e}"
        )


class CloseHandle:
    """Stops a running listener from any thread."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        stop: asyncio.Event,
        address: tuple[str, int],
    ) -> None:
        self._loop = loop
        self._stop = stop
        self._lock = threading.Lock()
        self._closed = False
        self.address = address

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        try:
            self._loop.call_soon_threadsafe(self._stop.set)
        except RuntimeError:
            # loop already finished
            pass


class JsonRpcService:
    """
    Hosts the JSON-RPC listener on a dedicated thread.

    Request handlers run on the listener's event loop; storage queries
    run on a fixed pool of reniced worker threads.
    """

    def __init__(
        self,
        rpc_addr: tuple[str, int],
        config: JsonRpcConfig,
        rpc_service_exit: Exit,
        rest_routes: RestRoutes | None = None,
    ) -> None:
        """
        Start the service and block until the listener is up.

        Args:
            rpc_addr: (host, port) to bind; port 0 picks a free port
            config: Service configuration
            rpc_service_exit: Exit registry the listener close is registered with
            rest_routes: Custom REST paths for the request middleware

        Raises:
            RpcServiceError: The listener could not be started
        """
        host, port = rpc_addr
        logger.info(f"rpc bound to {host}:{port}")
        logger.info(f"rpc configuration: {config}")

        rpc_threads = max(1, config.rpc_threads)
        rpc_niceness_adj = config.rpc_niceness_adj

        self._executor = ThreadPoolExecutor(
            max_workers=rpc_threads,
            thread_name_prefix=WORKER_THREAD_PREFIX,
            initializer=renice_this_thread,
            initargs=(rpc_niceness_adj,),
        )
        self._loop = asyncio.new_event_loop()
        self._loop.set_default_executor(self._executor)

        self._metadata_storage: MetaStorage | None = None
        ready: Future[CloseHandle] = Future()
        try:
            self._metadata_storage = self._init_metadata_storage(config)
            self.request_processor = JsonRpcRequestProcessor(config, self._metadata_storage)
            app = create_app(self.request_processor, rest_routes)

            self._thread = threading.Thread(
                target=self._serve,
                args=(app, host, port, rpc_niceness_adj, ready),
                name=SERVICE_THREAD_NAME,
            )
            self._thread.start()
        except BaseException:
            # listener thread never ran, so _shutdown is ours to call
            self._shutdown()
            raise

        try:
            self._close_handle = ready.result()
        except RpcServiceError:
            self._thread.join()
            raise

        self.address = self._close_handle.address
        rpc_service_exit.register_exit(self._close_handle.close)

    def _init_metadata_storage(self, config: JsonRpcConfig) -> MetaStorage | None:
        if config.store_params is None:
            return None
        try:
            storage = self._loop.run_until_complete(
                MetaStorage.connect(config.store_params)
            )
        except MetaStorageError as e:
            logger.error(f"Failed to initialize MySQL metadata storage: {e!r}")
            return None
        logger.info("MySQL metadata storage initialized")
        return storage

    def _serve(
        self,
        app: web.Application,
        host: str,
        port: int,
        rpc_niceness_adj: int,
        ready: "Future[CloseHandle]",
    ) -> None:
        renice_this_thread(rpc_niceness_adj)
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._run(app, host, port, ready))
        except Exception as e:
            logger.exception(f"JSON RPC service failed: {e}")
            if not ready.done():
                ready.set_exception(RpcServiceError(str(e)))
        finally:
            self._shutdown()

    async def _run(
        self,
        app: web.Application,
        host: str,
        port: int,
        ready: "Future[CloseHandle]",
    ) -> None:
        stop = asyncio.Event()
        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, host, port)
        try:
            await site.start()
        except OSError as e:
            logger.warning(
                f"JSON RPC service unavailable error: {e!r}. \n"
                f"Also, check that port {port} is not already in use by another application"
            )
            await runner.cleanup()
            ready.set_exception(RpcServiceError(str(e)))
            return

        bound_host, bound_port = runner.addresses[0][:2]
        ready.set_result(CloseHandle(self._loop, stop, (bound_host, bound_port)))

        await stop.wait()
        logger.info("Closing JSON RPC listener")
        # waits for in-flight handlers
        await runner.cleanup()

    def _shutdown(self) -> None:
        if self._metadata_storage is not None:
            self._metadata_storage.close()
        self._loop.run_until_complete(self._loop.shutdown_default_executor())
        self._loop.close()
        logger.info("JSON RPC service stopped")

    def exit(self) -> None:
        self._close_handle.close()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()
