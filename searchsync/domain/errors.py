# searchsync/domain/errors.py


class SearchSyncError(Exception):
    """Base class for every error raised by searchsync."""


class ConfigurationError(SearchSyncError):
    """A collaborator or model could not be resolved."""


class EngineError(SearchSyncError):
    """The search engine was unreachable or answered with an error."""


class IndexNotFoundError(EngineError):
    def __init__(self, index_name: str):
        super().__init__(f"Index '{index_name}' not found")
        self.index_name = index_name


class TaskError(EngineError):
    def __init__(self, message: str, task_uid: int):
        super().__init__(message)
        self.task_uid = task_uid


class TaskFailedError(TaskError):
    """The engine processed the task and rejected it."""

    def __init__(self, task_uid: int, error: dict | None = None):
        detail = (error or {}).get("message", "unknown error")
        super().__init__(f"Task {task_uid} failed: {detail}", task_uid)
        self.error = error or {}


class TaskTimeoutError(TaskError):
    """The task was still enqueued or processing when the wait ran out."""

    def __init__(self, task_uid: int, timeout_ms: int):
        super().__init__(
            f"Task {task_uid} did not finish within {timeout_ms}ms", task_uid
        )
        self.timeout_ms = timeout_ms


class UnsupportedOperatorError(ValueError, SearchSyncError):
    def __init__(self, operator: str):
        super().__init__(f"Unsupported operator: {operator}")
        self.operator = operator


class MixedIndexBatchError(ValueError, SearchSyncError):
    def __init__(self, expected: str, found: str):
        super().__init__(
            f"Batch targets index '{expected}' but also contains a record "
            f"for '{found}'. Split the records by index before calling."
        )
        self.expected = expected
        self.found = found


class InvalidIndexNameError(ValueError, SearchSyncError):
    pass
