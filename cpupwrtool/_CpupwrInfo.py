# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Implement the 'cpupwr info' command.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import argparse
from cpupwrlibs import CPUInfo
from cpupwrlibs.helperlibs import Logging, Trivial
from cpupwrtool import _CpupwrCommon

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

def _format_freq(khz: int) -> str:
    """Format a frequency in kHz for printing."""

    if khz <= 0:
        return "-"
    return f"{khz // 1000} MHz"

def _print_cpu(cpuinfo: CPUInfo.CPUInfo, cpu: int):
    """Print the frequency scaling settings of CPU 'cpu'."""

    if not cpuinfo.is_online(cpu):
        _LOG.info("CPU %d: offline", cpu)
        return

    fmin, fmax = cpuinfo.get_frequencies(cpu)
    lmin, lmax = cpuinfo.get_limits(cpu)

    _LOG.info("CPU %d:", cpu)
    _LOG.info("  Current frequency: %s", _format_freq(cpuinfo.get_cur_freq(cpu)))
    _LOG.info("  Frequency range: %s - %s", _format_freq(fmin), _format_freq(fmax))
    _LOG.info("  Frequency limits: %s - %s", _format_freq(lmin), _format_freq(lmax))

    steps = cpuinfo.get_freq_steps(cpu)
    if steps:
        _LOG.info("  Frequency steps: %s", ", ".join(_format_freq(step) for step in steps))

    _LOG.info("  Governor: %s", cpuinfo.get_governor(cpu) or "-")
    _LOG.info("  Available governors: %s", ", ".join(cpuinfo.get_governors(cpu)) or "-")

    if cpuinfo.is_energy_pref_available(cpu):
        _LOG.info("  Energy preference: %s", cpuinfo.get_energy_pref(cpu) or "-")
        _LOG.info("  Available energy preferences: %s",
                  ", ".join(cpuinfo.get_energy_prefs(cpu)) or "-")

def info_command(args: argparse.Namespace):
    """
    Implement the 'info' command.

    Args:
        args: The command line arguments.
    """

    config = _CpupwrCommon.load_config(args)

    with _CpupwrCommon.get_sysfs_io(config) as sysfs_io, \
         CPUInfo.CPUInfo(sysfs_io=sysfs_io) as cpuinfo:
        for func, word in (("get_online_cpus", "online"), ("get_offline_cpus", "offline")):
            cpus = getattr(cpuinfo, func)()
            if cpus:
                _LOG.info("The following CPUs are %s: %s", word, Trivial.rangify(cpus))
            else:
                _LOG.info("No %s CPUs", word)

        for cpu in _CpupwrCommon.parse_cpus_string(args.cpus, cpuinfo):
            _print_cpu(cpuinfo, cpu)
