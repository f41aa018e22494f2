import os
import shutil
import tempfile
import threading
from collections import Counter
from concurrent import futures

import grpc
import pytest

from cristat.pkg.apis.runtime.v1 import api_pb2, api_pb2_grpc
from cristat.utils.containerd.cri_util import CRIUtil
from cristat.utils.containerd.schemas import CRIConfig, RetryPolicy
from cristat.utils.singleton import Singleton


def make_stats(container_id, cpu_nanos=0, working_set=0):
    return api_pb2.ContainerStats(
        attributes=api_pb2.ContainerAttributes(
            id=container_id,
            metadata=api_pb2.ContainerMetadata(name=f"{container_id}-name", attempt=0),
            labels={"io.kubernetes.pod.name": "demo"},
        ),
        cpu=api_pb2.CpuUsage(timestamp=1700000000, usage_core_nano_seconds=api_pb2.UInt64Value(value=cpu_nanos)),
        memory=api_pb2.MemoryUsage(timestamp=1700000000, working_set_bytes=api_pb2.UInt64Value(value=working_set)),
    )


class FakeRuntimeService(api_pb2_grpc.RuntimeServiceServicer):
    """In-process stand-in for containerd's CRI plugin."""

    def __init__(self):
        self.runtime_name = "containerd"
        self.runtime_version = "v1.7.13"
        self.stats = []
        self.conditions = [
            api_pb2.RuntimeCondition(type="RuntimeReady", status=True),
            api_pb2.RuntimeCondition(type="NetworkReady", status=True),
        ]
        self.version_error = None       # StatusCode to abort Version with
        self.fail_next_list = None      # StatusCode for the next ListContainerStats only
        self.list_delay = 0.0
        self.release = threading.Event()
        self.calls = Counter()
        self.requests = []
        self._lock = threading.Lock()

    def _record(self, name, request):
        with self._lock:
            self.calls[name] += 1
            self.requests.append((name, request))

    def Version(self, request, context):
        self._record("Version", request)
        if self.version_error is not None:
            context.abort(self.version_error, "runtime not serving yet")
        return api_pb2.VersionResponse(
            version="0.1.0",
            runtime_name=self.runtime_name,
            runtime_version=self.runtime_version,
            runtime_api_version="v1",
        )

    def ListContainerStats(self, request, context):
        self._record("ListContainerStats", request)
        if self.list_delay:
            self.release.wait(self.list_delay)
        with self._lock:
            code, self.fail_next_list = self.fail_next_list, None
        if code is not None:
            context.abort(code, "stats collection failed")
        return api_pb2.ListContainerStatsResponse(stats=self.stats)

    def ContainerStats(self, request, context):
        self._record("ContainerStats", request)
        for s in self.stats:
            if s.attributes.id == request.container_id:
                return api_pb2.ContainerStatsResponse(stats=s)
        context.abort(grpc.StatusCode.NOT_FOUND, f"container {request.container_id} not found")

    def Status(self, request, context):
        self._record("Status", request)
        info = {"config": "{}"} if request.verbose else {}
        return api_pb2.StatusResponse(status=api_pb2.RuntimeStatus(conditions=self.conditions), info=info)


@pytest.fixture
def socket_path():
    # unix socket paths are limited to ~108 bytes, keep the directory short
    d = tempfile.mkdtemp(prefix="cri", dir="/tmp")
    yield os.path.join(d, "containerd.sock")
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def runtime_service():
    return FakeRuntimeService()


def start_server(servicer, socket_path):
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=8))
    api_pb2_grpc.add_RuntimeServiceServicer_to_server(servicer, server)
    server.add_insecure_port(f"unix://{socket_path}")
    server.start()
    return server


@pytest.fixture
def cri_server(runtime_service, socket_path):
    server = start_server(runtime_service, socket_path)
    yield runtime_service
    runtime_service.release.set()
    server.stop(grace=None).wait()


@pytest.fixture
def cri_config(socket_path):
    def _make(query_timeout=1.0, retry_count=3, retry_delay=0.0, strategy="retry_count"):
        return CRIConfig(
            socket_path=socket_path,
            query_timeout=query_timeout,
            retry=RetryPolicy(name="criutil-test", strategy=strategy,
                              retry_count=retry_count, retry_delay=retry_delay),
        )
    return _make


@pytest.fixture(autouse=True)
def reset_cri_singleton():
    CRIUtil.clear()
    yield
    util = Singleton._instances.get(CRIUtil)
    if util is not None:
        util.close()
    CRIUtil.clear()
