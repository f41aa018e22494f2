"""
cri_util.py
Shared client for the CRI RuntimeService of the local container runtime.

get_cri_util() hands out one process-wide CRIUtil. The first callers bootstrap
it (dial the socket, then validate with a Version call) through a Retrier, so
a runtime that is still starting up gets a bounded number of attempts and the
client becomes usable on the first trigger after it comes up.
"""
import atexit
from typing import Dict, Optional

import grpc
from google.protobuf.json_format import MessageToDict

from cristat.logpkg.log_kcld import LogKCld, log_to_file
from cristat.pkg.apis.runtime.v1 import api_pb2, api_pb2_grpc
from cristat.utils.ReadConfig import ReadConfig as rc
from cristat.utils.containerd.errors import (
    DialError,
    NotInitializedError,
    QueryError,
    RuntimeValidationError,
)
from cristat.utils.containerd.schemas import CRIConfig
from cristat.utils.retry import Retrier, RetryConfig, RetryStatus, RetryStrategy
from cristat.utils.singleton import Singleton

logger = LogKCld()

RUNTIME_READY = "RuntimeReady"
NETWORK_READY = "NetworkReady"


@log_to_file(logger)
def _normalize_unix_target(sock: str) -> str:
    """Turn a socket path or unix:// target into a 'unix:///abs/path' gRPC target."""
    if not sock:
        raise ValueError("socket path/target is empty")

    if sock.startswith("unix://"):
        after = sock[len("unix://"):]
        if after.startswith("/"):
            return sock
        return "unix:///" + after
    if not sock.startswith("/"):
        sock = "/" + sock
    return "unix://" + sock


class _CRIUtil:
    """Wraps the CRI RuntimeService calls used for runtime status and container stats.

    The stub is set only by a successful bootstrap, which the owned Retrier runs
    at most once to success. After that the channel is shared by every caller
    and is only released by close().
    """

    def __init__(self, config: Optional[CRIConfig] = None) -> None:
        if config is None:
            config = rc().cri_config
        self.socket_path = config.socket_path
        self.query_timeout = config.query_timeout
        self.runtime = ""
        self.runtime_version = ""
        self.runtime_api_version = ""
        self._channel: Optional[grpc.Channel] = None
        self._client: Optional[api_pb2_grpc.RuntimeServiceStub] = None
        self._closed = False

        self.init_retry = Retrier()
        self.init_retry.setup_retrier(RetryConfig(
            name=config.retry.name,
            attempt_method=self._init,
            strategy=RetryStrategy(config.retry.strategy),
            retry_count=config.retry.retry_count,
            retry_delay=config.retry.retry_delay,
        ))

    @property
    def ready(self) -> bool:
        return self.init_retry.status == RetryStatus.OK and not self._closed

    @log_to_file(logger)
    def _init(self) -> None:
        """Bootstrap action run by init_retry: dial, then validate with Version."""
        if self._closed:
            raise DialError("CRI client is closed")
        target = _normalize_unix_target(self.socket_path)
        channel = grpc.insecure_channel(target)

        connected = grpc.channel_ready_future(channel)
        try:
            connected.result(timeout=self.query_timeout)
        except grpc.FutureTimeoutError as e:
            connected.cancel()
            channel.close()
            raise DialError(f"failed to dial {target}: not ready after {self.query_timeout}s") from e

        client = api_pb2_grpc.RuntimeServiceStub(channel)
        # a socket that accepts connections but does not answer is not ready
        try:
            r = client.Version(api_pb2.VersionRequest(), timeout=self.query_timeout)
        except grpc.RpcError as e:
            channel.close()
            raise RuntimeValidationError(
                f"version check on {target} failed: {e.code().name}: {e.details()}", e.code()) from e

        self._channel = channel
        self._client = client
        self.runtime = r.runtime_name
        self.runtime_version = r.runtime_version
        self.runtime_api_version = r.runtime_api_version
        logger.info(f"connected to {self.runtime} {self.runtime_version} "
                    f"(CRI {self.runtime_api_version}) at {target}")

    def _call(self, method: str, request):
        client = self._client
        if client is None:
            raise NotInitializedError(f"{method}: CRI client is not initialized, use get_cri_util()")
        # fresh deadline per call; cancelling releases the call if we leave early
        try:
            call = getattr(client, method).future(request, timeout=self.query_timeout)
        except ValueError as e:
            # channel closed by close() after the client was read above
            raise NotInitializedError(f"{method}: CRI client is closed") from e
        try:
            return call.result()
        except grpc.RpcError as e:
            raise QueryError.from_rpc_error(method, e) from e
        finally:
            call.cancel()

    @log_to_file(logger)
    def list_container_stats(self, pod_sandbox_id: Optional[str] = None,
                             label_selector: Optional[Dict[str, str]] = None) -> Dict[str, "api_pb2.ContainerStats"]:
        """Stats of every container the runtime reports, keyed by container id.

        With no arguments the filter is empty and nothing is filtered out.
        When the runtime returns the same id twice the later record wins.
        """
        stats_filter = api_pb2.ContainerStatsFilter(
            pod_sandbox_id=pod_sandbox_id or "",
            label_selector=label_selector or {},
        )
        r = self._call("ListContainerStats", api_pb2.ListContainerStatsRequest(filter=stats_filter))

        stats = {}
        for s in r.stats:
            stats[s.attributes.id] = s
        return stats

    @log_to_file(logger)
    def container_stats(self, container_id: str) -> "api_pb2.ContainerStats":
        if not container_id:
            raise ValueError("container_id is required")
        r = self._call("ContainerStats", api_pb2.ContainerStatsRequest(container_id=container_id))
        return r.stats

    @log_to_file(logger)
    def status(self, verbose: bool = False) -> Dict[str, "api_pb2.RuntimeCondition"]:
        """Runtime conditions keyed by condition type (RuntimeReady, NetworkReady, ...)."""
        r = self._call("Status", api_pb2.StatusRequest(verbose=verbose))
        return {c.type: c for c in r.status.conditions}

    def is_ready(self) -> bool:
        condition = self.status().get(RUNTIME_READY)
        return bool(condition and condition.status)

    def close(self) -> None:
        """Release the channel. Meant for process teardown; safe to call twice."""
        self._closed = True
        channel, self._channel, self._client = self._channel, None, None
        if channel is not None:
            channel.close()
            logger.debug(f"closed CRI channel to {self.socket_path}")


class CRIUtil(_CRIUtil, metaclass=Singleton):

    def __init__(self, config: Optional[CRIConfig] = None) -> None:
        super().__init__(config)
        atexit.register(self.close)


def get_cri_util() -> CRIUtil:
    """Return the shared, bootstrapped CRIUtil.

    Raises the bootstrap error (DialError, RuntimeValidationError) while the
    runtime is not reachable yet, and RetriesExhaustedError once the retry
    budget is spent and polling should stop.
    """
    util = CRIUtil()
    try:
        util.init_retry.trigger_retry()
    except Exception as e:
        logger.debug(f"CRI init error: {e}")
        raise
    return util


def snapshot_to_dict(snapshot: Dict[str, "api_pb2.ContainerStats"]) -> Dict[str, dict]:
    """JSON-friendly copy of a stats snapshot (uint64 counters become strings, as in proto JSON)."""
    return {cid: MessageToDict(s, preserving_proto_field_name=True) for cid, s in snapshot.items()}
