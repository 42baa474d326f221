"""Process exit codes for the release command.

Every abort, whatever stage produced it, exits with ``FAILURE``; the
distinction between failure kinds lives in the printed message.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for ``self-release``.

    These values are used as process exit codes and should remain stable.
    """

    OK = 0
    FAILURE = 1
