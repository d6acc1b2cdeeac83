"""Exceptions raised by frontbuild."""


class FrontbuildError(Exception):
    """Base class for all frontbuild errors."""


class ConfigurationError(FrontbuildError):
    """Invalid or incomplete configuration, detected at startup."""


class TransformError(FrontbuildError):
    """An external transform rejected its input.

    :ivar path: (str) file that failed, if known
    """

    def __init__(self, message, path=None):
        super().__init__(message)
        self.path = path

    def __str__(self):
        msg = super().__str__()
        if self.path:
            return f"{self.path}: {msg}"
        return msg


class CacheError(FrontbuildError):
    """Corrupt or unreadable cache entry. Always treated as a miss."""


class TaskFailed(FrontbuildError):
    """A production task failed.

    :ivar task: (str) name of the failing task
    :ivar path: (str) file being processed when it failed, if any
    """

    def __init__(self, task, cause, path=None):
        self.task = task
        self.cause = cause
        self.path = path
        detail = str(cause)
        if path and path not in detail:
            detail = f"{path}: {detail}"
        super().__init__(f"Task '{task}' failed: {detail}")
