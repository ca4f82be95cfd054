# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Provide the privileged helper client: read queries answered by the helper, and CPU setting changes
queued on the client operation queue.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from concurrent.futures import Future
from typing import Any
from cpupwrlibs import Operations, OpQueue
from cpupwrlibs.helperlibs import Logging, ClassHelpers
from cpupwrlibs.helperlibs.Exceptions import Error

if typing.TYPE_CHECKING:
    from cpupwrlibs.OpQueue import TransportType

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

class HelperClient(ClassHelpers.SimpleCloseContext):
    """
    The privileged helper client.

    Public methods overview.

    1. Read queries. They are synchronous, and return empty lists or 'False' when the helper is
       not reachable, so that the client keeps working in read-only mode.
        * 'is_connected()', 'is_authorized()'.
        * 'cpus_available()', 'cpus_online()', 'cpus_offline()', 'cpus_present()'.
        * 'cpu_governors()', 'cpu_allowed_offline()'.
    2. Queued mutations. They return a future resolving to the 'OpResult'.
        * 'queue_update_cpu_settings()', 'queue_update_cpu_governor()',
          'queue_update_cpu_energy_prefs()', 'queue_set_cpu_online()', 'queue_set_cpu_offline()'.
    3. Batches.
        * 'begin_batch()', 'end_batch()'.
    """

    def __init__(self,
                 transport: TransportType | None = None,
                 opqueue: OpQueue.OpQueue | None = None,
                 call_timeout: float = OpQueue.DEFAULT_CALL_TIMEOUT):
        """
        Initialize a class instance.

        Args:
            transport: The transport to talk to the helper with. The D-Bus transport is used by
                       default.
            opqueue: The operation queue to queue the mutations on. A new one is created by
                     default.
            call_timeout: The timeout of mutating helper calls in seconds.
        """

        self._transport = transport
        self._opqueue = opqueue

        self._close_transport = transport is None
        self._close_opqueue = opqueue is None

        if not self._transport:
            # pylint: disable-next=import-outside-toplevel
            from cpupwrlibs import _DBusTransport

            self._transport = _DBusTransport.DBusTransport()

        if not self._opqueue:
            self._opqueue = OpQueue.OpQueue(self._transport, call_timeout=call_timeout)

    def close(self):
        """Uninitialize the class object."""

        ClassHelpers.close(self, close_attrs=("_opqueue", "_transport"))

    @property
    def opqueue(self) -> OpQueue.OpQueue:
        """The operation queue."""

        if not self._opqueue:
            raise Error("the helper client was closed")
        return self._opqueue

    def is_connected(self) -> bool:
        """Return 'True' if the helper is reachable."""

        if not self._transport:
            return False
        return self._transport.is_connected()

    def _query(self, op: Operations.OperationType, default: Any) -> Any:
        """Execute read query 'op', return 'default' if the helper could not answer."""

        if not self.is_connected():
            return default

        assert self._transport is not None
        try:
            return self._transport.call(Operations.get_method_name(op), *op)
        except Error as err:
            _LOG.warning("%s failed:\n%s", op.describe(), err.indent(2))
            return default

    def is_authorized(self) -> bool:
        """Return 'True' if this process is authorized to change CPU settings."""

        return bool(self._query(Operations.IsAuthorized(), 0))

    def cpus_available(self) -> list[int]:
        """Return the available CPUs."""

        return list(self._query(Operations.GetCPUsAvailable(), []))

    def cpus_online(self) -> list[int]:
        """Return the online CPUs."""

        return list(self._query(Operations.GetCPUsOnline(), []))

    def cpus_offline(self) -> list[int]:
        """Return the offline CPUs."""

        return list(self._query(Operations.GetCPUsOffline(), []))

    def cpus_present(self) -> list[int]:
        """Return the present CPUs."""

        return list(self._query(Operations.GetCPUsPresent(), []))

    def cpu_governors(self, cpu: int) -> list[str]:
        """Return the governors available for CPU 'cpu'."""

        return list(self._query(Operations.GetCPUGovernors(cpu), []))

    def cpu_allowed_offline(self, cpu: int) -> bool:
        """Return 'True' if CPU 'cpu' can be brought offline."""

        return bool(self._query(Operations.CPUAllowedOffline(cpu), 0))

    def queue_update_cpu_settings(self, cpu: int, freq_min: int, freq_max: int) -> Future:
        """Queue changing the scaling frequency range of CPU 'cpu' to 'freq_min'-'freq_max' kHz."""

        return self.opqueue.enqueue(Operations.UpdateCPUSettings(cpu, freq_min, freq_max))

    def queue_update_cpu_governor(self, cpu: int, governor: str) -> Future:
        """Queue changing the governor of CPU 'cpu'."""

        return self.opqueue.enqueue(Operations.UpdateCPUGovernor(cpu, governor))

    def queue_update_cpu_energy_prefs(self, cpu: int, pref: str) -> Future:
        """Queue changing the energy performance preference of CPU 'cpu'."""

        return self.opqueue.enqueue(Operations.UpdateCPUEnergyPrefs(cpu, pref))

    def queue_set_cpu_online(self, cpu: int) -> Future:
        """Queue bringing CPU 'cpu' online."""

        return self.opqueue.enqueue(Operations.SetCPUOnline(cpu))

    def queue_set_cpu_offline(self, cpu: int) -> Future:
        """Queue bringing CPU 'cpu' offline."""

        return self.opqueue.enqueue(Operations.SetCPUOffline(cpu))

    def begin_batch(self):
        """Start a batch of queued operations."""

        self.opqueue.begin_batch()

    def end_batch(self) -> Future:
        """End the batch, return a future resolving to the 'BatchOutcome'."""

        return self.opqueue.end_batch()
