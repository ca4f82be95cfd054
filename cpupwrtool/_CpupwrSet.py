# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Implement the 'cpupwr set' command.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
import argparse
from cpupwrlibs import Applier, CPUInfo
from cpupwrlibs.helperlibs import Logging, Trivial
from cpupwrlibs.helperlibs.Exceptions import Error
from cpupwrtool import _CpupwrCommon

if typing.TYPE_CHECKING:
    from cpupwrlibs.Applier import ChangesTypedDict

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

def _get_changes(args: argparse.Namespace) -> ChangesTypedDict:
    """Build the changes dictionary from the command line arguments."""

    changes: ChangesTypedDict = {}

    if args.min_freq is not None:
        changes["freq_min"] = args.min_freq
    if args.max_freq is not None:
        changes["freq_max"] = args.max_freq
    if args.min_freq is not None and args.max_freq is not None:
        Trivial.validate_range(args.min_freq, args.max_freq, min_limit=1, what="frequency")

    if args.governor:
        changes["governor"] = args.governor
    if args.epp:
        changes["energy_pref"] = args.epp
    if args.online is not None:
        changes["online"] = args.online

    if not changes:
        raise Error("please, specify at least one setting to change")

    return changes

def set_command(args: argparse.Namespace):
    """
    Implement the 'set' command.

    Args:
        args: The command line arguments.
    """

    changes = _get_changes(args)
    config = _CpupwrCommon.load_config(args)

    with _CpupwrCommon.get_sysfs_io(config) as sysfs_io, \
         CPUInfo.CPUInfo(sysfs_io=sysfs_io) as cpuinfo, \
         _CpupwrCommon.get_helper_client(config) as client, \
         Applier.Applier(client=client, cpuinfo=cpuinfo) as applier:
        cpus = _CpupwrCommon.parse_cpus_string(args.cpus, cpuinfo)
        if changes.get("online") is False and 0 in cpus:
            _LOG.notice("CPU 0 is never brought offline, skipping it")

        _LOG.debug("applying %s to CPUs %s", changes, Trivial.rangify(cpus))
        _CpupwrCommon.wait_batch(applier.apply_changes(cpus, changes))
