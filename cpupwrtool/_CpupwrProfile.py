# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Implement the 'cpupwr profile' commands.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import argparse
from cpupwrlibs import Applier, CPUInfo, Profiles
from cpupwrlibs.helperlibs import Logging
from cpupwrtool import _CpupwrCommon

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

def _get_kind(profile: Profiles.Profile) -> str:
    """Return the human-readable kind of a profile."""

    if profile.is_builtin:
        return "built-in"
    if profile.is_system:
        return "system"
    return "user"

def profile_list_command(args: argparse.Namespace):
    """Implement the 'profile list' command."""

    config = _CpupwrCommon.load_config(args)

    with _CpupwrCommon.get_sysfs_io(config) as sysfs_io, \
         CPUInfo.CPUInfo(sysfs_io=sysfs_io) as cpuinfo, \
         _CpupwrCommon.get_profile_store(config, cpuinfo) as store:
        names = store.get_names()
        if not names:
            _LOG.info("No profiles found")
            return

        for name in names:
            profile = store.get_profile(name)
            if profile.path:
                _LOG.info("%s (%s, %s)", name, _get_kind(profile), profile.path)
            else:
                _LOG.info("%s (%s)", name, _get_kind(profile))

def profile_show_command(args: argparse.Namespace):
    """Implement the 'profile show' command."""

    config = _CpupwrCommon.load_config(args)

    with _CpupwrCommon.get_sysfs_io(config) as sysfs_io, \
         CPUInfo.CPUInfo(sysfs_io=sysfs_io) as cpuinfo, \
         _CpupwrCommon.get_profile_store(config, cpuinfo) as store:
        profile = store.get_profile(args.name)
        _LOG.info("Profile '%s' (%s)", profile.name, _get_kind(profile))
        _LOG.info("%s", Profiles.format_profile(profile).rstrip())

def profile_apply_command(args: argparse.Namespace):
    """Implement the 'profile apply' command."""

    config = _CpupwrCommon.load_config(args)

    with _CpupwrCommon.get_sysfs_io(config) as sysfs_io, \
         CPUInfo.CPUInfo(sysfs_io=sysfs_io) as cpuinfo, \
         _CpupwrCommon.get_profile_store(config, cpuinfo) as store, \
         _CpupwrCommon.get_helper_client(config) as client, \
         Applier.Applier(client=client, cpuinfo=cpuinfo) as applier:
        profile = store.get_profile(args.name)
        _LOG.info("Applying profile '%s'", profile.name)
        _CpupwrCommon.wait_batch(applier.apply_profile(profile))

def profile_create_command(args: argparse.Namespace):
    """Implement the 'profile create' command: snapshot the current settings into a profile."""

    config = _CpupwrCommon.load_config(args)

    with _CpupwrCommon.get_sysfs_io(config) as sysfs_io, \
         CPUInfo.CPUInfo(sysfs_io=sysfs_io) as cpuinfo, \
         _CpupwrCommon.get_profile_store(config, cpuinfo) as store:
        available = set(cpuinfo.get_available_cpus())

        entries = {}
        for cpu in _CpupwrCommon.parse_cpus_string(args.cpus, cpuinfo):
            if cpu not in available:
                continue

            if not cpuinfo.is_online(cpu):
                entries[cpu] = Profiles.ProfileEntry(online=False)
                continue

            fmin, fmax = cpuinfo.get_frequencies(cpu)
            entries[cpu] = Profiles.ProfileEntry(fmin, fmax, cpuinfo.get_governor(cpu), True,
                                                 cpuinfo.get_energy_pref(cpu))

        profile = store.create_profile(args.name, entries)
        _LOG.info("Created profile '%s' in '%s'", profile.name, profile.path)

def profile_delete_command(args: argparse.Namespace):
    """Implement the 'profile delete' command."""

    config = _CpupwrCommon.load_config(args)

    with _CpupwrCommon.get_sysfs_io(config) as sysfs_io, \
         CPUInfo.CPUInfo(sysfs_io=sysfs_io) as cpuinfo, \
         _CpupwrCommon.get_profile_store(config, cpuinfo) as store:
        store.delete_profile(args.name)
        _LOG.info("Deleted profile '%s'", args.name)
