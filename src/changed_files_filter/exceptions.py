"""
Exception hierarchy for changed_files_filter.

Filtering itself never raises: malformed frames, empty stacks and empty
changed-file sets all have defined outcomes. The exceptions below cover the
edges around it: loading the changed-file list and the optional "fail the
request" mode of the middleware.

Catch `ChangedFilesFilterError` to handle any failure raised by the library.
"""


class ChangedFilesFilterError(Exception):
    """
    Base exception for all changed_files_filter errors.

    Example
    -------
    >>> try:
    ...     files = changed_files_from_git("origin/main")
    ... except ChangedFilesFilterError:
    ...     files = []
    """

    #: Error code for programmatic handling.
    code: str = "changed_files_filter_error"

    def __init__(self, message: str | None = None) -> None:
        if message is None:
            message = "An unspecified changed_files_filter error occurred."
        super().__init__(message)


class ChangedFilesSourceError(ChangedFilesFilterError):
    """
    Raised when the changed-file list cannot be computed.

    Common causes
    -------------
    - The path given as repository root is not a git checkout
    - The diff base (e.g. "origin/main") does not exist locally
    """

    code: str = "changed_files_source_error"


class NPlusOneQueryDetected(ChangedFilesFilterError):
    """
    Raised by the middleware in raise mode when a request produced at least
    one N+1 notification that was not filtered out.

    The notifications are available on the ``notifications`` attribute.
    """

    code: str = "n_plus_one_query_detected"

    def __init__(self, notifications) -> None:
        self.notifications = tuple(notifications)
        lines = [f"{len(self.notifications)} N+1 query pattern(s) detected:"]
        lines.extend(
            f"  - {getattr(n, 'message', repr(n))}" for n in self.notifications
        )
        super().__init__("\n".join(lines))
