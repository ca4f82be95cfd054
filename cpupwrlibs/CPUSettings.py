# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Provide the mutation engine of the privileged helper: change CPU frequency limits, governors, energy
performance preferences and online/offline state.

Every mutation first checks that the caller is authorized, then that the CPU is usable, and only
then touches the control files. Results are reported with result codes rather than exceptions,
because they are sent back to the D-Bus caller as is.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

from cpupwrlibs import CPUInfo as CPUInfoModule
from cpupwrlibs.Authorization import AuthGate
from cpupwrlibs.CPUInfo import SCALING_MIN_FREQ, SCALING_MAX_FREQ, SCALING_GOVERNOR
from cpupwrlibs.CPUInfo import ENERGY_PERF_PREF
from cpupwrlibs.helperlibs import Logging, ClassHelpers
from cpupwrlibs.helperlibs.Exceptions import Error

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

# The operation succeeded.
RC_SUCCESS = 0
# The caller is not authorized, the CPU is not present or online, or there is no control file.
RC_FAILURE = -1
# Writing to a control file failed.
RC_WRITE_FAILED = -13

def get_write_order(cur_min: int, cur_max: int, new_min: int, new_max: int) -> tuple[str, str]:
    """
    Decide the order of writing the minimum and maximum frequency limits, so that "min <= max" holds
    after each write.

    Args:
        cur_min: The current minimum frequency.
        cur_max: The current maximum frequency.
        new_min: The new minimum frequency.
        new_max: The new maximum frequency.

    Returns:
        A tuple of "min" and "max" strings in the order they should be written.
    """

    if new_max < cur_min:
        return ("min", "max")
    if new_min > cur_max:
        return ("max", "min")
    return ("min", "max")

class CPUSettings(ClassHelpers.SimpleCloseContext):
    """
    Change CPU settings on behalf of authorized callers.

    Public methods overview.

    1. Authorization.
        * 'is_authorized()' - check if a caller is authorized for the default action.
    2. Mutations, each returning a result code ('RC_SUCCESS', 'RC_FAILURE' or 'RC_WRITE_FAILED').
        * 'update_frequency_range()' - change the min. and max. scaling frequencies.
        * 'update_governor()' - change the governor.
        * 'update_energy_preference()' - change the energy performance preference.
        * 'set_online()', 'set_offline()' - bring a CPU online or offline.
    """

    def __init__(self, auth_gate: AuthGate, cpuinfo: CPUInfoModule.CPUInfo | None = None):
        """
        Initialize a class instance.

        Args:
            auth_gate: The authorization gate to check callers with.
            cpuinfo: The CPU information object to use for reading CPU state and for accessing
                     sysfs. A new one is created by default.
        """

        self._auth_gate = auth_gate
        self._cpuinfo = cpuinfo
        self._close_cpuinfo = cpuinfo is None

        if not self._cpuinfo:
            self._cpuinfo = CPUInfoModule.CPUInfo()

    def close(self):
        """Uninitialize the class object."""

        ClassHelpers.close(self, close_attrs=("_cpuinfo",), unref_attrs=("_auth_gate",))

    @property
    def cpuinfo(self) -> CPUInfoModule.CPUInfo:
        """The CPU information object."""

        if not self._cpuinfo:
            raise Error("the 'CPUSettings' object was closed")
        return self._cpuinfo

    def is_authorized(self, caller: str | None) -> bool:
        """Return 'True' if 'caller' is authorized for the default action."""

        return self._auth_gate.authorize(caller)

    def _check_preconditions(self, cpu: int, caller: str | None, what: str) -> bool:
        """Return 'True' if 'caller' is authorized and CPU 'cpu' is present and online."""

        if not self._auth_gate.authorize(caller):
            _LOG.warning("%s: caller '%s' is not authorized", what, caller)
            return False

        if not self.cpuinfo.is_online(cpu):
            _LOG.warning("%s: CPU %d is not present or not online", what, cpu)
            return False

        return True

    def update_frequency_range(self, cpu: int, new_min: int, new_max: int,
                               caller: str | None = None) -> int:
        """
        Change the minimum and maximum scaling frequencies of a CPU. The limits are written in the
        order that keeps "min <= max" true after each write. A failed write does not prevent the
        other write.

        Args:
            cpu: The CPU number.
            new_min: The new minimum frequency in kHz.
            new_max: The new maximum frequency in kHz.
            caller: The unique D-Bus name of the caller, 'None' for local calls.

        Returns:
            'RC_SUCCESS' if both writes succeeded, 'RC_WRITE_FAILED' if any write failed,
            'RC_FAILURE' if the caller is not authorized or the CPU is not usable.
        """

        what = f"CPU {cpu}: set frequency range to {new_min}-{new_max} kHz"
        _LOG.debug("%s, caller '%s'", what, caller)

        if not self._check_preconditions(cpu, caller, what):
            return RC_FAILURE

        sysfs_io = self.cpuinfo.sysfs_io
        paths = {"min": sysfs_io.cpufreq_path(cpu, SCALING_MIN_FREQ),
                 "max": sysfs_io.cpufreq_path(cpu, SCALING_MAX_FREQ)}
        vals = {"min": new_min, "max": new_max}

        cur_min = sysfs_io.read_int(paths["min"])
        cur_max = sysfs_io.read_int(paths["max"])
        order = get_write_order(cur_min, cur_max, new_min, new_max)

        _LOG.debug("CPU %d: current range %d-%d kHz, writing %s first", cpu, cur_min, cur_max,
                   order[0])

        success = True
        for limit in order:
            if not sysfs_io.write_value(paths[limit], vals[limit]):
                _LOG.warning("CPU %d: failed to write %s. frequency %d kHz", cpu, limit,
                             vals[limit])
                success = False

        _LOG.debug("CPU %d: frequency range after the write: %s-%s kHz", cpu,
                   sysfs_io.read_value(paths["min"]), sysfs_io.read_value(paths["max"]))

        if success:
            return RC_SUCCESS
        return RC_WRITE_FAILED

    def update_governor(self, cpu: int, governor: str, caller: str | None = None) -> int:
        """
        Change the governor of a CPU. Invalid governor names are rejected by the kernel, which
        results in 'RC_WRITE_FAILED'.

        Args:
            cpu: The CPU number.
            governor: The governor name.
            caller: The unique D-Bus name of the caller, 'None' for local calls.

        Returns:
            The result code.
        """

        what = f"CPU {cpu}: set governor to '{governor}'"
        _LOG.debug("%s, caller '%s'", what, caller)

        if not self._check_preconditions(cpu, caller, what):
            return RC_FAILURE

        sysfs_io = self.cpuinfo.sysfs_io
        if not sysfs_io.write_value(sysfs_io.cpufreq_path(cpu, SCALING_GOVERNOR), governor):
            return RC_WRITE_FAILED

        return RC_SUCCESS

    def update_energy_preference(self, cpu: int, pref: str, caller: str | None = None) -> int:
        """
        Change the energy performance preference of a CPU. Preferences that the CPU does not
        support, and CPUs without the preference control file, are silently ignored.

        Args:
            cpu: The CPU number.
            pref: The energy performance preference name.
            caller: The unique D-Bus name of the caller, 'None' for local calls.

        Returns:
            The result code. 'RC_SUCCESS' if the preference is not supported.
        """

        what = f"CPU {cpu}: set energy preference to '{pref}'"
        _LOG.debug("%s, caller '%s'", what, caller)

        if not self._check_preconditions(cpu, caller, what):
            return RC_FAILURE

        if pref not in self.cpuinfo.get_energy_prefs(cpu):
            _LOG.debug("CPU %d: energy preference '%s' is not available, ignoring", cpu, pref)
            return RC_SUCCESS

        sysfs_io = self.cpuinfo.sysfs_io
        path = sysfs_io.cpufreq_path(cpu, ENERGY_PERF_PREF)
        if not sysfs_io.exists(path):
            _LOG.debug("CPU %d: no energy preference control file, ignoring", cpu)
            return RC_SUCCESS

        if not sysfs_io.write_value(path, pref):
            return RC_WRITE_FAILED

        return RC_SUCCESS

    def _set_online_state(self, cpu: int, online: bool, caller: str | None) -> int:
        """Write '1' or '0' to the 'online' file of CPU 'cpu'."""

        what = f"CPU {cpu}: bring {'online' if online else 'offline'}"
        _LOG.debug("%s, caller '%s'", what, caller)

        if not self._auth_gate.authorize(caller):
            _LOG.warning("%s: caller '%s' is not authorized", what, caller)
            return RC_FAILURE

        sysfs_io = self.cpuinfo.sysfs_io
        path = sysfs_io.cpu_path(cpu, "online")
        if not sysfs_io.exists(path):
            _LOG.warning("%s: no '%s' file", what, path)
            return RC_FAILURE

        if not sysfs_io.write_value(path, "1" if online else "0"):
            return RC_WRITE_FAILED

        return RC_SUCCESS

    def set_online(self, cpu: int, caller: str | None = None) -> int:
        """
        Bring a CPU online. The CPU does not have to be online, but it has to have the 'online'
        control file.

        Args:
            cpu: The CPU number.
            caller: The unique D-Bus name of the caller, 'None' for local calls.

        Returns:
            The result code. 'RC_FAILURE' if there is no 'online' control file.
        """

        return self._set_online_state(cpu, True, caller)

    def set_offline(self, cpu: int, caller: str | None = None) -> int:
        """Bring a CPU offline. Same as 'set_online()', but for the opposite direction."""

        return self._set_online_state(cpu, False, caller)
