"""Exceptions raised by the upvote service."""

from __future__ import annotations


class ForumUpvoteError(Exception):
    """Base class for service errors."""


class ThreadHandlerError(ForumUpvoteError):
    """Failure while processing a single thread event."""


class MissingThreadIdError(ThreadHandlerError):
    def __init__(self) -> None:
        super().__init__("Discord sent a THREAD_CREATE event without a thread ID")


class MissingParentError(ThreadHandlerError):
    def __init__(self, thread_id: str):
        super().__init__(
            f"Discord did not send a parent channel ID for thread {thread_id}, "
            "are you sure this is a thread?"
        )
        self.thread_id = thread_id


class RemoteApiError(ThreadHandlerError):
    """Discord REST call failed or returned an unusable body."""

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status


class GatewayError(ForumUpvoteError):
    """Gateway receive failure; ``is_fatal`` decides whether the loop stops."""

    def __init__(
        self,
        message: str,
        *,
        is_fatal: bool = False,
        close_code: int | None = None,
    ):
        super().__init__(message)
        self.is_fatal = is_fatal
        self.close_code = close_code
