# cristat/utils/containerd/schemas.py
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CONTAINERD_SOCKET = "/var/run/containerd/containerd.sock"


class RetryPolicy(BaseModel):
    name: str = Field(default="criutil", min_length=1)
    strategy: Literal["retry_count", "one_try"] = "retry_count"   # values of RetryStrategy
    retry_count: int = Field(default=10, gt=0)
    retry_delay: float = Field(default=30.0, ge=0)   # seconds

    model_config = ConfigDict(extra='forbid')


class CRIConfig(BaseModel):
    socket_path: str = Field(default=DEFAULT_CONTAINERD_SOCKET, min_length=1)
    query_timeout: float = Field(default=5.0, gt=0)  # seconds, used for connect and every RPC
    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    model_config = ConfigDict(extra='forbid')
