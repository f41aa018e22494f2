class RetryError(Exception):
    """Base class for errors raised by the retrier itself."""


class RetrierNotSetupError(RetryError):
    def __init__(self, name: str = "") -> None:
        super().__init__(f"retry: retrier {name or '<unnamed>'} is not set up")


class RetriesExhaustedError(RetryError):
    """Permanent failure: every allowed attempt failed, the action will not run again."""

    def __init__(self, name: str, attempts: int, last_error: BaseException | None = None) -> None:
        self.name = name
        self.attempts = attempts
        self.last_error = last_error
        msg = f"retry: {name} exhausted after {attempts} attempt(s)"
        if last_error is not None:
            msg += f", last error: {last_error}"
        super().__init__(msg)
