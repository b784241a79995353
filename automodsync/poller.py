# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Wait for a module import to finish.

Imports are asynchronous on the service side. await_completion() checks
the job's provisioning state at a fixed interval (5 seconds by default)
until it is Succeeded or Failed, and returns that state.

By default the wait is unbounded. Callers that need a bound can pass a
timeout in seconds, a threading.Event to cancel from another thread, or
both.

Example:
    ```python
    from automodsync.poller import await_completion

    state = await_completion(job, client)
    if state is ProvisioningState.FAILED:
        ...
    ```
"""

from __future__ import annotations

from collections.abc import Callable
import threading
import time

from automodsync.automation.base import AutomationService, ImportJob, ProvisioningState
from automodsync.exceptions import ImportCancelledError, ImportTimeoutError
from automodsync.logging import get_global_logger

DEFAULT_POLL_INTERVAL = 5.0


def await_completion(
    job: ImportJob,
    service: AutomationService,
    *,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> ProvisioningState:
    """Block until an import job reaches a terminal state.

    Args:
        job: Import job to track.
        service: Automation backend that reports the job's state.
        interval: Seconds between status checks.
        timeout: Give up after this many seconds. None waits forever.
        cancel: Event that aborts the wait when set.
        sleep: Sleep function (injected by tests).
        clock: Monotonic clock (injected by tests).

    Returns:
        ProvisioningState.SUCCEEDED or ProvisioningState.FAILED. Never
            PENDING.

    Raises:
        ImportTimeoutError: If timeout elapses first.
        ImportCancelledError: If cancel is set first.
        NetworkError: If a status check fails.

    """
    logger = get_global_logger()
    started = clock()
    checks = 0

    while True:
        if cancel is not None and cancel.is_set():
            raise ImportCancelledError(
                f"Stopped waiting for import of {job.module_name!r} "
                f"into {job.account.name!r}"
            )

        state = service.get_job_status(job)
        checks += 1
        logger.debug("POLL", f"{job.account.name}/{job.module_name}: {state.value}")
        if state.is_terminal:
            logger.verbose(
                "POLL",
                f"{job.account.name}/{job.module_name} finished {state.value} "
                f"after {checks} check(s)",
            )
            return state

        if timeout is not None and clock() - started + interval > timeout:
            raise ImportTimeoutError(
                f"Import of {job.module_name!r} into {job.account.name!r} "
                f"still pending after {timeout:g}s"
            )
        sleep(interval)
