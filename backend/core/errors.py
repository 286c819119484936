"""Error taxonomy surfaced to HTTP callers as {"error", "details"} bodies."""


class LoadLabError(Exception):
    """Base class for failures reported to the caller as structured JSON."""

    status_code = 500
    error = "Request failed"

    def __init__(self, details: str):
        super().__init__(details)
        self.details = details


class TaskTimeout(LoadLabError):
    error = "CPU task failed"

    def __init__(self, seconds: int, timeout: float):
        super().__init__(
            f"Worker timeout: task for {seconds}s did not finish within {timeout:g}s"
        )
        self.seconds = seconds
        self.timeout = timeout


class TaskExecutionError(LoadLabError):
    error = "CPU task failed"


class AllocationError(LoadLabError):
    error = "Memory allocation failed"


class UnsupportedOperation(LoadLabError):
    status_code = 400
    error = "Operation not supported"


class DuplicateTaskError(RuntimeError):
    """A task identity was registered twice. Indicates a bug, never handled."""
