# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Provide the client operation queue: a FIFO of helper operations executed one at a time by a single
worker thread, with batch aggregation of the results.

The queue never blocks the caller. Each queued operation gets a future resolving to an 'OpResult'.
Operations queued between 'begin_batch()' and 'end_batch()' form a batch: they are held until
'end_batch()' is called, then executed in order, and the batch future resolves to a single
'BatchOutcome' when the queue drains. A failing operation never stops the queue.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
import threading
import collections
from concurrent.futures import Future
from typing import Any, Callable
from cpupwrlibs import Operations
from cpupwrlibs.Operations import OpResult, BatchOutcome
from cpupwrlibs.helperlibs import Logging, ClassHelpers
from cpupwrlibs.helperlibs.Exceptions import Error, ErrorConnect

if typing.TYPE_CHECKING:
    from typing import Protocol
    from cpupwrlibs.Operations import OperationType

    class TransportType(Protocol):
        """The transport interface, implemented by 'DBusTransport'."""

        def is_connected(self) -> bool:
            """Return 'True' if the helper is reachable."""

        def call(self, method: str, *args: Any, timeout: float | None = None) -> Any:
            """Call helper method 'method' and return the reply."""

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

# The timeout of helper calls in seconds. Mutations may wait for the polkit password prompt, which
# has a 120 seconds timeout on the helper side, so the call timeout is longer than that.
DEFAULT_CALL_TIMEOUT = 130

NOT_CONNECTED_MSG = "not connected to the privileged helper"

class _QueuedOp(typing.NamedTuple):
    """A queued operation with its description and result future."""

    op: OperationType
    description: str
    future: Future

class OpQueue(ClassHelpers.SimpleCloseContext):
    """
    The client operation queue.

    Public methods overview.

    1. Queue operations.
        * 'enqueue()' - queue an operation, return a future.
        * 'begin_batch()', 'end_batch()' - group operations into a batch.
    2. State.
        * 'is_in_progress()' - check if operations are being executed.
        * 'wait_idle()' - wait until there is nothing to execute.
    3. Listeners, called from the worker thread.
        * 'on_operation_failed()', 'on_operation_succeeded()' - called with the 'OpResult'.
        * 'on_batch_completed()' - called with the 'BatchOutcome'.
        * 'on_in_progress_changed()' - called with the new "in progress" state.
    """

    def __init__(self, transport: TransportType, call_timeout: float = DEFAULT_CALL_TIMEOUT):
        """
        Initialize a class instance and start the worker thread.

        Args:
            transport: The transport to execute the operations with.
            call_timeout: The timeout of a single helper call in seconds.
        """

        self._transport = transport
        self._call_timeout = call_timeout

        self._cond = threading.Condition()
        self._pending: collections.deque[_QueuedOp] = collections.deque()
        self._in_flight = False
        self._in_progress = False
        self._stopping = False

        # 'True' between 'begin_batch()' and 'end_batch()', operations are held.
        self._batch_open = False
        # 'True' after 'end_batch()' until the batch outcome is delivered.
        self._batch_draining = False
        self._batch_errors: list[str] = []
        self._batch_future: Future | None = None

        self._listeners: dict[str, list[Callable[[Any], None]]] = {
            "operation_failed": [],
            "operation_succeeded": [],
            "batch_completed": [],
            "in_progress_changed": [],
        }

        self._worker: threading.Thread | None = threading.Thread(target=self._work,
                                                                 name="cpupwr-opqueue",
                                                                 daemon=True)
        self._worker.start()

    def close(self):
        """Execute the remaining operations, then stop the worker thread."""

        with self._cond:
            self._stopping = True
            self._batch_open = False
            self._cond.notify_all()

        if self._worker:
            self._worker.join()
            self._worker = None

        ClassHelpers.close(self, unref_attrs=("_transport",))

    def on_operation_failed(self, callback: Callable[[OpResult], None]):
        """Call 'callback' with the 'OpResult' of every failed operation."""

        self._listeners["operation_failed"].append(callback)

    def on_operation_succeeded(self, callback: Callable[[OpResult], None]):
        """Call 'callback' with the 'OpResult' of every successful operation."""

        self._listeners["operation_succeeded"].append(callback)

    def on_batch_completed(self, callback: Callable[[BatchOutcome], None]):
        """Call 'callback' with the 'BatchOutcome' of every completed batch."""

        self._listeners["batch_completed"].append(callback)

    def on_in_progress_changed(self, callback: Callable[[bool], None]):
        """Call 'callback' with the new state whenever the "in progress" state changes."""

        self._listeners["in_progress_changed"].append(callback)

    def _notify(self, event: str, arg: Any):
        """Call the listeners of 'event'. Listener exceptions are logged and otherwise ignored."""

        for callback in self._listeners[event]:
            try:
                callback(arg)
            except Exception as err: # pylint: disable=broad-except
                errmsg = Error(str(err)).indent(2)
                _LOG.error("The '%s' listener '%s' failed:\n%s", event, callback, errmsg)

    def enqueue(self, op: OperationType, description: str = "") -> Future:
        """
        Queue an operation. Unless a batch is open, execution starts right away.

        Args:
            op: The operation to queue.
            description: The human-readable operation description used in error messages.
                         Defaults to the operation's own description.

        Returns:
            A future resolving to the 'OpResult' of the operation.
        """

        if not description:
            description = op.describe()

        future: Future = Future()
        with self._cond:
            if self._stopping:
                raise Error("the operation queue was closed")

            self._pending.append(_QueuedOp(op, description, future))
            _LOG.debug("queued: %s", description)
            self._cond.notify_all()

        return future

    def begin_batch(self):
        """
        Open a batch: hold the operations queued from now on until 'end_batch()', and reset the
        batch error list.
        """

        with self._cond:
            if self._batch_draining:
                raise Error("cannot begin a new batch while the previous batch is executing")

            self._batch_open = True
            self._batch_errors = []

    def end_batch(self) -> Future:
        """
        Close the batch and start executing the queued operations. If called without
        'begin_batch()', the operations already in the queue form the batch.

        Returns:
            A future resolving to the 'BatchOutcome' when the queue drains. If there is nothing to
            execute, the future is already resolved.
        """

        with self._cond:
            if self._batch_draining and self._batch_future:
                return self._batch_future

            if not self._batch_open:
                self._batch_errors = []
            self._batch_open = False

            future: Future = Future()
            outcome: BatchOutcome | None = None
            if not self._pending and not self._in_flight:
                outcome = BatchOutcome(not self._batch_errors, list(self._batch_errors))
            else:
                self._batch_draining = True
                self._batch_future = future
                self._cond.notify_all()

        if outcome is not None:
            future.set_result(outcome)
            self._notify("batch_completed", outcome)

        return future

    def is_in_progress(self) -> bool:
        """Return 'True' if operations are being executed."""

        with self._cond:
            return self._in_progress

    def wait_idle(self, timeout: float | None = None) -> bool:
        """
        Wait until nothing is executing and nothing executable is queued. Operations held by an
        open batch do not count.

        Args:
            timeout: The maximum time to wait in seconds, wait forever by default.

        Returns:
            'True' if the queue became idle, 'False' on timeout.
        """

        with self._cond:
            return self._cond.wait_for(self._is_idle, timeout=timeout)

    def _is_idle(self) -> bool:
        """Return 'True' if the queue is idle. Must be called with the lock held."""

        return not self._in_progress and (self._batch_open or not self._pending)

    def _set_in_progress(self, in_progress: bool) -> bool:
        """
        Update the "in progress" state and return 'True' if it changed. Must be called with the
        lock held.
        """

        if self._in_progress == in_progress:
            return False

        self._in_progress = in_progress
        self._cond.notify_all()
        return True

    def _execute(self, qop: _QueuedOp) -> OpResult:
        """Execute a queued operation and return its result."""

        method = Operations.get_method_name(qop.op)

        if not self._transport or not self._transport.is_connected():
            return OpResult(qop.description, None, NOT_CONNECTED_MSG)

        try:
            reply = self._transport.call(method, *qop.op, timeout=self._call_timeout)
        except ErrorConnect:
            return OpResult(qop.description, None, NOT_CONNECTED_MSG)
        except Error as err:
            return OpResult(qop.description, None, str(err))

        if not Operations.is_mutation(qop.op):
            return OpResult(qop.description, 0, None, reply)

        try:
            rc = int(reply)
        except (TypeError, ValueError):
            return OpResult(qop.description, None, f"bad reply '{reply}'", reply)

        if rc != 0:
            return OpResult(qop.description, rc, f"operation failed with code {rc}", reply)
        return OpResult(qop.description, rc, None, reply)

    def _has_work(self) -> bool:
        """Return 'True' if there is an operation to execute. Must be called with the lock held."""

        return bool(self._pending) and not self._batch_open

    def _work(self):
        """The worker thread: execute queued operations one by one."""

        while True:
            qop: _QueuedOp | None = None

            with self._cond:
                if self._has_work():
                    qop = self._pending.popleft()
                    self._in_flight = True
                    changed = self._set_in_progress(True)
                elif self._set_in_progress(False):
                    changed = True
                elif self._stopping:
                    return
                else:
                    self._cond.wait()
                    continue

            if changed:
                self._notify("in_progress_changed", qop is not None)
            if qop is None:
                continue

            _LOG.debug("executing: %s", qop.description)
            try:
                result = self._execute(qop)
            except Exception as err: # pylint: disable=broad-except
                result = OpResult(qop.description, None, f"unexpected error: {err}")

            outcome: BatchOutcome | None = None
            batch_future: Future | None = None

            with self._cond:
                self._in_flight = False
                if result.error is not None and self._batch_draining:
                    self._batch_errors.append(f"{result.description}: {result.error}")

                if self._batch_draining and not self._pending:
                    outcome = BatchOutcome(not self._batch_errors, list(self._batch_errors))
                    batch_future = self._batch_future
                    self._batch_draining = False
                    self._batch_future = None

            qop.future.set_result(result)
            if result.error is None:
                self._notify("operation_succeeded", result)
            else:
                _LOG.debug("failed: %s: %s", result.description, result.error)
                self._notify("operation_failed", result)

            if outcome is not None:
                _LOG.debug("batch completed, %d errors", len(outcome.errors))
                if batch_future:
                    batch_future.set_result(outcome)
                self._notify("batch_completed", outcome)
