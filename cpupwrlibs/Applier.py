# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Apply profiles and ad-hoc CPU setting changes through the privileged helper.

All operations of a single apply are queued as one batch. For every CPU, the online state is changed
first, because the other control files of an offline CPU are not accessible. CPU 0 is never brought
online or offline.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from concurrent.futures import Future
from typing import Iterable
from cpupwrlibs import CPUInfo, HelperClient
from cpupwrlibs.helperlibs import Logging, ClassHelpers, Trivial
from cpupwrlibs.helperlibs.Exceptions import Error, ErrorConnect
from cpupwrlibs.HelperService import SERVICE_NAME

if typing.TYPE_CHECKING:
    from typing import TypedDict
    from cpupwrlibs.Profiles import Profile

    class ChangesTypedDict(TypedDict, total=False):
        """
        Ad-hoc CPU setting changes. Missing keys mean "do not change".

        Attributes:
            freq_min: The new minimum frequency in kHz.
            freq_max: The new maximum frequency in kHz.
            governor: The new governor name.
            energy_pref: The new energy performance preference.
            online: 'True' to bring the CPUs online, 'False' to bring them offline.
        """

        freq_min: int
        freq_max: int
        governor: str
        energy_pref: str
        online: bool

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

class Applier(ClassHelpers.SimpleCloseContext):
    """
    Queue CPU setting changes on the helper client.

    Public methods overview.

    1. Apply changes, both return a future resolving to the 'BatchOutcome'.
        * 'apply_profile()' - apply a profile.
        * 'apply_changes()' - apply the same changes to a set of CPUs.
    """

    def __init__(self,
                 client: HelperClient.HelperClient | None = None,
                 cpuinfo: CPUInfo.CPUInfo | None = None):
        """
        Initialize a class instance.

        Args:
            client: The helper client to queue the operations on. A new one is created by default.
            cpuinfo: The CPU information object for reading the current settings. A new one is
                     created by default.
        """

        self._client = client
        self._cpuinfo = cpuinfo

        self._close_client = client is None
        self._close_cpuinfo = cpuinfo is None

        if not self._client:
            self._client = HelperClient.HelperClient()
        if not self._cpuinfo:
            self._cpuinfo = CPUInfo.CPUInfo()

    def close(self):
        """Uninitialize the class object."""

        ClassHelpers.close(self, close_attrs=("_client", "_cpuinfo"))

    def _check_ready(self) -> tuple[HelperClient.HelperClient, CPUInfo.CPUInfo]:
        """
        Verify that a new apply can start and return the helper client and CPU information objects.
        """

        if not self._client or not self._cpuinfo:
            raise Error("the applier was closed")

        if not self._client.is_connected():
            raise ErrorConnect("the privileged helper is not running and cannot be activated",
                               service=SERVICE_NAME)

        if self._client.opqueue.is_in_progress():
            raise Error("cannot apply CPU settings: another operation is in progress")

        return self._client, self._cpuinfo

    def _queue_online_state(self, client: HelperClient.HelperClient, cpu: int,
                            online: bool) -> bool:
        """
        Queue the online state change of CPU 'cpu'. Return 'False' if the CPU is going offline and
        should get no further changes.
        """

        if cpu == 0:
            return True

        if online:
            client.queue_set_cpu_online(cpu)
            return True

        client.queue_set_cpu_offline(cpu)
        return False

    def apply_profile(self, profile: Profile) -> Future:
        """
        Apply a profile. CPUs of the profile that are not available on the system are skipped.

        Args:
            profile: The profile to apply.

        Returns:
            A future resolving to the 'BatchOutcome' of the apply.

        Raises:
            ErrorConnect: If the helper is not reachable.
            Error: If another operation is in progress.
        """

        client, cpuinfo = self._check_ready()
        available = set(client.cpus_available())

        _LOG.debug("applying profile '%s'", profile.name)

        client.begin_batch()
        for cpu in sorted(profile.entries):
            if cpu not in available:
                _LOG.debug("profile '%s': CPU %d is not available, skipping", profile.name, cpu)
                continue

            entry = profile.entries[cpu]
            if not self._queue_online_state(client, cpu, entry.online):
                continue

            if entry.freq_min > 0 and entry.freq_max > 0:
                client.queue_update_cpu_settings(cpu, entry.freq_min, entry.freq_max)
            if entry.governor:
                client.queue_update_cpu_governor(cpu, entry.governor)
            if entry.energy_pref and cpuinfo.is_energy_pref_available(cpu):
                client.queue_update_cpu_energy_prefs(cpu, entry.energy_pref)

        return client.end_batch()

    def apply_changes(self, cpus: Iterable[int], changes: ChangesTypedDict) -> Future:
        """
        Apply the same changes to CPUs 'cpus'.

        Args:
            cpus: The CPU numbers to change. CPUs that are not available are skipped.
            changes: The changes to apply. If only one of the frequency limits is given, the other
                     one is the current scaling limit of the CPU, moved to the given limit when it
                     would be on the wrong side of it.

        Returns:
            A future resolving to the 'BatchOutcome' of the apply.

        Raises:
            ErrorConnect: If the helper is not reachable.
            Error: If another operation is in progress, or if the minimum frequency is greater
                   than the maximum frequency.
        """

        client, cpuinfo = self._check_ready()
        available = set(client.cpus_available())

        cpus = Trivial.list_dedup(cpus)
        skipped = [cpu for cpu in cpus if cpu not in available]
        if skipped:
            _LOG.warning("skipping unavailable CPUs %s", Trivial.rangify(skipped))

        freq_min = changes.get("freq_min", 0)
        freq_max = changes.get("freq_max", 0)
        governor = changes.get("governor", "")
        energy_pref = changes.get("energy_pref", "")
        online = changes.get("online")

        if freq_min and freq_max and freq_min > freq_max:
            raise Error(f"minimum frequency {freq_min} kHz is greater than maximum frequency "
                        f"{freq_max} kHz")

        client.begin_batch()
        for cpu in cpus:
            if cpu not in available:
                continue

            if online is not None:
                if not self._queue_online_state(client, cpu, online):
                    continue

            if freq_min or freq_max:
                cur_min, cur_max = cpuinfo.get_frequencies(cpu)
                new_min = freq_min or cur_min
                new_max = freq_max or cur_max
                if new_min > new_max:
                    if freq_min and not freq_max:
                        new_max = new_min
                    elif freq_max and not freq_min:
                        new_min = new_max
                if new_min > 0 and new_max > 0:
                    client.queue_update_cpu_settings(cpu, new_min, new_max)
                else:
                    _LOG.warning("CPU %d: current frequency range is unknown, not changing it",
                                 cpu)

            if governor:
                client.queue_update_cpu_governor(cpu, governor)
            if energy_pref:
                if cpuinfo.is_energy_pref_available(cpu):
                    client.queue_update_cpu_energy_prefs(cpu, energy_pref)
                else:
                    _LOG.warn_once("CPU %d: energy performance preference is not supported", cpu)

        return client.end_batch()
