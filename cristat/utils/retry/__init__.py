from cristat.utils.retry.errors import RetryError, RetrierNotSetupError, RetriesExhaustedError
from cristat.utils.retry.retrier import Retrier, RetryConfig, RetryStatus, RetryStrategy

__all__ = [
    "Retrier",
    "RetryConfig",
    "RetryStatus",
    "RetryStrategy",
    "RetryError",
    "RetrierNotSetupError",
    "RetriesExhaustedError",
]
