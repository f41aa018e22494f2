"""
Bounded retry around a fallible setup action.

A ``Retrier`` remembers terminal success: once the action has succeeded it is
never invoked again and every later ``trigger_retry()`` returns immediately.
After ``retry_count`` failed attempts the retrier is permanently failed and
raises ``RetriesExhaustedError`` without running the action.

``trigger_retry()`` never sleeps. ``retry_delay`` is the spacing callers are
expected to leave between triggers; ``next_try_in()`` reports how much of it
is left. A caller that triggers sooner still gets an immediate attempt.
"""
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from cristat.logpkg.log_kcld import LogKCld
from cristat.utils.retry.errors import RetrierNotSetupError, RetriesExhaustedError

logger = LogKCld()


class RetryStrategy(str, Enum):
    RETRY_COUNT = "retry_count"   # up to retry_count attempts
    ONE_TRY = "one_try"           # a single attempt


class RetryStatus(str, Enum):
    NEED_SETUP = "need_setup"
    IDLE = "idle"                 # set up, not succeeded yet, attempts left
    RUNNING = "running"           # action in flight
    OK = "ok"
    PERMA_FAIL = "perma_fail"


@dataclass
class RetryConfig:
    name: str
    attempt_method: Callable[[], None]   # raises on failure
    strategy: RetryStrategy = RetryStrategy.RETRY_COUNT
    retry_count: int = 1
    retry_delay: float = 0.0             # seconds

    def validate(self) -> None:
        if not self.name:
            raise ValueError("retry config needs a name")
        if not callable(self.attempt_method):
            raise ValueError(f"retry config {self.name}: attempt_method is not callable")
        if not isinstance(self.retry_count, int) or self.retry_count < 1:
            raise ValueError(f"retry config {self.name}: retry_count must be a positive integer")
        if self.retry_delay < 0:
            raise ValueError(f"retry config {self.name}: retry_delay must be >= 0")

    @property
    def max_attempts(self) -> int:
        if self.strategy == RetryStrategy.ONE_TRY:
            return 1
        return self.retry_count


class Retrier:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._config: Optional[RetryConfig] = None
        self._status = RetryStatus.NEED_SETUP
        self._attempts = 0
        self._last_error: Optional[Exception] = None
        self._last_try: Optional[float] = None

    def setup_retrier(self, config: RetryConfig) -> None:
        config.validate()
        with self._lock:
            self._config = RetryConfig(
                name=config.name,
                attempt_method=config.attempt_method,
                strategy=RetryStrategy(config.strategy),
                retry_count=config.retry_count,
                retry_delay=config.retry_delay,
            )
            self._status = RetryStatus.IDLE
            self._attempts = 0
            self._last_error = None
            self._last_try = None

    @property
    def name(self) -> str:
        return self._config.name if self._config else ""

    @property
    def status(self) -> RetryStatus:
        return self._status

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def last_error(self) -> Optional[Exception]:
        return self._last_error

    def next_try_in(self) -> float:
        """Seconds left before the configured delay since the last failed attempt has elapsed."""
        with self._lock:
            if self._status != RetryStatus.IDLE or self._last_try is None:
                return 0.0
            return max(0.0, self._last_try + self._config.retry_delay - time.monotonic())

    def trigger_retry(self) -> None:
        """Run the action unless it already succeeded or ran out of attempts.

        Re-raises the action's exception on a failed attempt and raises
        RetriesExhaustedError once the attempt budget is spent.
        """
        # held across the action: concurrent callers wait for the attempt in flight
        with self._lock:
            if self._status == RetryStatus.NEED_SETUP:
                raise RetrierNotSetupError()
            if self._status == RetryStatus.OK:
                return
            if self._status == RetryStatus.PERMA_FAIL or self._attempts >= self._config.max_attempts:
                self._status = RetryStatus.PERMA_FAIL
                raise RetriesExhaustedError(self._config.name, self._attempts, self._last_error)

            self._status = RetryStatus.RUNNING
            try:
                self._config.attempt_method()
            except Exception as e:
                self._attempts += 1
                self._last_error = e
                self._last_try = time.monotonic()
                if self._attempts >= self._config.max_attempts:
                    self._status = RetryStatus.PERMA_FAIL
                else:
                    self._status = RetryStatus.IDLE
                logger.debug(f"retry: {self._config.name} attempt {self._attempts}/"
                             f"{self._config.max_attempts} failed: {e}")
                raise
            except BaseException:
                self._status = RetryStatus.IDLE
                raise
            self._status = RetryStatus.OK
