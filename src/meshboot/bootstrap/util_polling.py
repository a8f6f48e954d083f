# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Fixed-interval polling loop shared by every bootstrap wait.

Polling is blocking and single-threaded: the condition is evaluated, and if
it is not yet satisfied the loop sleeps for ``interval`` seconds and tries
again. There is no backoff. Only waits given a ``deadline`` can time out;
the others poll until the condition holds or a structural error occurs.

Error Classification:
    - ``is_transient(error)`` True: logged at WARNING, polling continues
    - otherwise: the error propagates immediately

Example:
    >>> attempts = poll_until(
    ...     lambda: client.status_leader() != "",
    ...     interval=0.5,
    ...     is_transient=lambda e: isinstance(e, RuntimeHostError),
    ...     description="leader election",
    ... )
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping

from meshboot.enums import EnumInfraTransportType
from meshboot.errors import InfraTimeoutError, ModelInfraErrorContext
from meshboot.utils import sanitize_error_message

logger = logging.getLogger(__name__)


def never_transient(error: BaseException) -> bool:
    return False


def poll_until(
    condition: Callable[[], bool],
    interval: float,
    *,
    is_transient: Callable[[BaseException], bool] = never_transient,
    description: str = "condition",
    deadline: float | None = None,
    on_deadline: Callable[[], Exception] | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
    log_extra: Mapping[str, object] | None = None,
) -> int:
    """Evaluate ``condition`` every ``interval`` seconds until it returns True.

    Args:
        condition: Callable returning True once the awaited state is reached.
        interval: Seconds to sleep between attempts.
        is_transient: Classifies exceptions raised by ``condition`` as
            retryable. Non-transient exceptions propagate.
        description: Human-readable name of the wait, used in logs.
        deadline: Optional ``clock()`` value after which polling stops.
        on_deadline: Builds the exception raised when ``deadline`` passes.
            Defaults to InfraTimeoutError.
        sleep: Sleep function (injectable for tests).
        clock: Monotonic clock (injectable for tests).
        log_extra: Structured context added to every log record.

    Returns:
        Number of attempts made (1 when the first evaluation succeeded).

    Raises:
        InfraTimeoutError: (or the ``on_deadline`` result) when ``deadline``
            passes before the condition holds.
    """
    extra = dict(log_extra or {})
    attempts = 0
    while True:
        attempts += 1
        try:
            if condition():
                return attempts
        except Exception as e:
            if not is_transient(e):
                raise
            logger.warning(
                "%s not ready yet, retrying",
                description,
                extra={**extra, "attempt": attempts, "error": sanitize_error_message(e)},
            )

        if deadline is not None and clock() >= deadline:
            if on_deadline is not None:
                raise on_deadline()
            raise InfraTimeoutError(
                f"{description} did not complete before the deadline",
                context=ModelInfraErrorContext(
                    transport_type=EnumInfraTransportType.RUNTIME,
                    operation="poll_until",
                    target_name=description,
                ),
                attempts=attempts,
            )
        sleep(interval)


__all__: list[str] = ["never_transient", "poll_until"]
