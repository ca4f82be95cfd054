# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Provide read-only information about CPUs and their frequency scaling settings.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

from cpupwrlibs import SysfsIO as SysfsIOModule
from cpupwrlibs.helperlibs import Logging, ClassHelpers
from cpupwrlibs.helperlibs.Exceptions import Error

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

# Names of the per-CPU 'cpufreq' files.
SCALING_CUR_FREQ = "scaling_cur_freq"
SCALING_MIN_FREQ = "scaling_min_freq"
SCALING_MAX_FREQ = "scaling_max_freq"
CPUINFO_MIN_FREQ = "cpuinfo_min_freq"
CPUINFO_MAX_FREQ = "cpuinfo_max_freq"
SCALING_AVAILABLE_FREQS = "scaling_available_frequencies"
SCALING_GOVERNOR = "scaling_governor"
SCALING_AVAILABLE_GOVS = "scaling_available_governors"
ENERGY_PERF_PREF = "energy_performance_preference"
ENERGY_PERF_AVAIL_PREFS = "energy_performance_available_preferences"

class CPUInfo(ClassHelpers.SimpleCloseContext):
    """
    Provide information about CPUs. Nothing is cached: every method re-reads sysfs.

    Public methods overview.

    1. CPU lists.
        * 'get_present_cpus()', 'get_online_cpus()', 'get_offline_cpus()'.
        * 'get_available_cpus()' - present CPUs that support frequency scaling.
    2. CPU state.
        * 'is_present()', 'is_online()', 'allowed_offline()'.
    3. Per-CPU frequency scaling settings. Values of offline or absent CPUs are empty strings,
       empty lists or '(0, 0)'.
        * 'get_governors()', 'get_governor()'.
        * 'get_energy_prefs()', 'get_energy_pref()', 'is_energy_pref_available()'.
        * 'get_frequencies()', 'get_limits()', 'get_cur_freq()', 'get_freq_steps()'.
    """

    def __init__(self, sysfs_io: SysfsIOModule.SysfsIO | None = None):
        """
        Initialize a class instance.

        Args:
            sysfs_io: The sysfs accessor to use. A new one is created by default.
        """

        self._sysfs_io = sysfs_io
        self._close_sysfs_io = sysfs_io is None

        if not self._sysfs_io:
            self._sysfs_io = SysfsIOModule.SysfsIO()

    def close(self):
        """Uninitialize the class object."""

        ClassHelpers.close(self, close_attrs=("_sysfs_io",))

    @property
    def sysfs_io(self) -> SysfsIOModule.SysfsIO:
        """The sysfs accessor used by this object."""

        if not self._sysfs_io:
            raise Error("the 'CPUInfo' object was closed")
        return self._sysfs_io

    def _read_cpu_list(self, name: str) -> list[int]:
        """Read and parse the range list in top-level file 'name'."""

        return sorted(SysfsIOModule.parse_range_list(self.sysfs_io.read_value(name)))

    def get_present_cpus(self) -> list[int]:
        """Return the sorted list of present CPU numbers."""

        return self._read_cpu_list("present")

    def get_online_cpus(self) -> list[int]:
        """Return the sorted list of online CPU numbers."""

        return self._read_cpu_list("online")

    def get_offline_cpus(self) -> list[int]:
        """Return the sorted list of offline CPU numbers."""

        return self._read_cpu_list("offline")

    def get_available_cpus(self) -> list[int]:
        """
        Return present CPUs that expose the hardware frequency limits and the available governors,
        i.e., the CPUs that frequency scaling settings can be applied to.
        """

        cpus = []
        for cpu in self.get_present_cpus():
            for name in (CPUINFO_MIN_FREQ, CPUINFO_MAX_FREQ, SCALING_AVAILABLE_GOVS):
                if not self.sysfs_io.exists(self.sysfs_io.cpufreq_path(cpu, name)):
                    break
            else:
                cpus.append(cpu)

        return cpus

    def is_present(self, cpu: int) -> bool:
        """Return 'True' if CPU 'cpu' is present."""

        return cpu in self.get_present_cpus()

    def is_online(self, cpu: int) -> bool:
        """Return 'True' if CPU 'cpu' is present and online."""

        return self.is_present(cpu) and cpu in self.get_online_cpus()

    def allowed_offline(self, cpu: int) -> bool:
        """
        Return 'True' if CPU 'cpu' can be brought offline and online, which is the case when it
        has the 'online' control file. Commonly CPU 0 does not have it.
        """

        return self.sysfs_io.exists(self.sysfs_io.cpu_path(cpu, "online"))

    def _read_cpufreq(self, cpu: int, name: str) -> str:
        """Read 'cpufreq' file 'name' of CPU 'cpu', return an empty string for offline CPUs."""

        if not self.is_online(cpu):
            return ""
        return self.sysfs_io.read_value(self.sysfs_io.cpufreq_path(cpu, name))

    def _read_cpufreq_pair(self, cpu: int, min_name: str, max_name: str) -> tuple[int, int]:
        """Read a pair of integer 'cpufreq' files of CPU 'cpu', '(0, 0)' for offline CPUs."""

        if not self.is_online(cpu):
            return (0, 0)

        minval = self.sysfs_io.read_int(self.sysfs_io.cpufreq_path(cpu, min_name))
        maxval = self.sysfs_io.read_int(self.sysfs_io.cpufreq_path(cpu, max_name))
        return (minval, maxval)

    def get_governors(self, cpu: int) -> list[str]:
        """Return the list of governors available for CPU 'cpu'."""

        return SysfsIOModule.parse_whitespace_list(self._read_cpufreq(cpu, SCALING_AVAILABLE_GOVS))

    def get_governor(self, cpu: int) -> str:
        """Return the current governor of CPU 'cpu'."""

        return self._read_cpufreq(cpu, SCALING_GOVERNOR)

    def get_energy_prefs(self, cpu: int) -> list[str]:
        """Return the list of energy performance preferences available for CPU 'cpu'."""

        text = self._read_cpufreq(cpu, ENERGY_PERF_AVAIL_PREFS)
        return SysfsIOModule.parse_whitespace_list(text)

    def get_energy_pref(self, cpu: int) -> str:
        """Return the current energy performance preference of CPU 'cpu'."""

        return self._read_cpufreq(cpu, ENERGY_PERF_PREF)

    def is_energy_pref_available(self, cpu: int) -> bool:
        """Return 'True' if CPU 'cpu' exposes the energy performance preference control."""

        path = self.sysfs_io.cpufreq_path(cpu, ENERGY_PERF_AVAIL_PREFS)
        return self.sysfs_io.exists(path)

    def get_frequencies(self, cpu: int) -> tuple[int, int]:
        """Return the '(min, max)' scaling frequency range of CPU 'cpu' in kHz."""

        return self._read_cpufreq_pair(cpu, SCALING_MIN_FREQ, SCALING_MAX_FREQ)

    def get_limits(self, cpu: int) -> tuple[int, int]:
        """Return the '(min, max)' hardware frequency limits of CPU 'cpu' in kHz."""

        return self._read_cpufreq_pair(cpu, CPUINFO_MIN_FREQ, CPUINFO_MAX_FREQ)

    def get_cur_freq(self, cpu: int) -> int:
        """Return the current frequency of CPU 'cpu' in kHz, 0 if unknown."""

        val = self._read_cpufreq(cpu, SCALING_CUR_FREQ)
        if not val.isdigit():
            return 0
        return int(val)

    def get_freq_steps(self, cpu: int) -> list[int]:
        """
        Return the list of frequencies in kHz that CPU 'cpu' supports, if the driver exposes them
        (e.g., 'acpi-cpufreq'). Return an empty list otherwise.
        """

        steps = []
        text = self._read_cpufreq(cpu, SCALING_AVAILABLE_FREQS)
        for token in SysfsIOModule.parse_whitespace_list(text):
            if token.isdigit():
                steps.append(int(token))
        return steps
