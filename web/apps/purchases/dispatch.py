"""Detached execution of provisioning runs.

``ThreadDispatcher`` starts one daemon thread per submitted task once the
surrounding database transaction commits, so a provisioning run never looks
for a record the request has not yet made visible, and never runs at all for
an order whose transaction rolled back. The thread runs in a copy of the
submitter's context so log records keep the originating request id.

Both dispatchers wrap the task in an error boundary: exceptions are logged
with their traceback and never reach the caller or sibling tasks.
"""

import contextvars
import logging
import threading
from typing import Callable

from django.db import connections, transaction

logger = logging.getLogger(__name__)


def run_guarded(task: Callable[[], object], name: str) -> None:
    """Run ``task``, logging instead of propagating any exception."""
    try:
        task()
    except Exception:
        logger.exception("provisioning task crashed", extra={"task": name})


class ThreadDispatcher:
    """Runs each task on its own daemon thread after commit."""

    def submit(self, task: Callable[[], object], *, name: str) -> None:
        ctx = contextvars.copy_context()

        def start():
            thread = threading.Thread(
                target=ctx.run,
                args=(self._run, task, name),
                name=name,
                daemon=True,
            )
            thread.start()

        transaction.on_commit(start, robust=True)

    @staticmethod
    def _run(task: Callable[[], object], name: str) -> None:
        try:
            run_guarded(task, name)
        finally:
            # return this thread's connection to the pool
            connections.close_all()


class InlineDispatcher:
    """Runs tasks immediately in the caller's thread (tests, local dev)."""

    def submit(self, task: Callable[[], object], *, name: str) -> None:
        run_guarded(task, name)
