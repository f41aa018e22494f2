"""Resilient client for container runtime status and stats over CRI."""
from cristat.utils.containerd.cri_util import CRIUtil, get_cri_util, snapshot_to_dict
from cristat.utils.containerd.errors import (
    CRIError,
    DialError,
    RuntimeValidationError,
    QueryError,
    QueryTimeoutError,
    NotInitializedError,
)
from cristat.utils.retry import RetriesExhaustedError

__version__ = "0.1.0"

__all__ = [
    "CRIUtil",
    "get_cri_util",
    "snapshot_to_dict",
    "CRIError",
    "DialError",
    "RuntimeValidationError",
    "QueryError",
    "QueryTimeoutError",
    "NotInitializedError",
    "RetriesExhaustedError",
]
