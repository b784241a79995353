"""Input/Output helpers for automodsync.

Modules:

http : module
    requests.Session factory used by the gallery and Azure clients.

Public API:

make_session : function
    Create a session with the automodsync User-Agent and no retries.
DEFAULT_TIMEOUT : int
    Per-request timeout in seconds.

"""

from .http import DEFAULT_TIMEOUT, make_session

__all__ = ["DEFAULT_TIMEOUT", "make_session"]
