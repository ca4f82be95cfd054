# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Misc. helpers shared between the 'cpupwr' commands.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
import argparse
from concurrent.futures import Future
from cpupwrlibs import Config, CPUInfo, SysfsIO, HelperClient, Profiles
from cpupwrlibs.Operations import BatchOutcome
from cpupwrlibs.helperlibs import Logging, Trivial
from cpupwrlibs.helperlibs.Exceptions import Error

if typing.TYPE_CHECKING:
    from cpupwrlibs.Config import ConfigTypedDict

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

def load_config(args: argparse.Namespace) -> ConfigTypedDict:
    """Load the configuration, from the '--config' file if it was specified."""

    path = getattr(args, "config", None)
    if path:
        return Config.load((path,))
    return Config.load()

def get_sysfs_io(config: ConfigTypedDict) -> SysfsIO.SysfsIO:
    """Create and return a sysfs accessor for the configured sysfs base directory."""

    return SysfsIO.SysfsIO(base=config["sysfs_base"] or None)

def get_profile_store(config: ConfigTypedDict,
                      cpuinfo: CPUInfo.CPUInfo) -> Profiles.ProfileStore:
    """Create and return the profile store for the configured directories."""

    return Profiles.ProfileStore(cpuinfo=cpuinfo,
                                 system_dir=config["system_profiles_dir"] or None,
                                 user_dir=config["user_profiles_dir"] or None)

def get_helper_client(config: ConfigTypedDict) -> HelperClient.HelperClient:
    """Create and return the privileged helper client."""

    return HelperClient.HelperClient(call_timeout=config["call_timeout"])

def parse_cpus_string(cpus: str | None, cpuinfo: CPUInfo.CPUInfo) -> list[int]:
    """
    Parse a CPU list string and return the list of CPU numbers.

    Args:
        cpus: A string like '0-3,7', 'all' or 'None' for all present CPUs.
        cpuinfo: The CPU information object.

    Returns:
        The sorted list of CPU numbers.
    """

    present = cpuinfo.get_present_cpus()
    if cpus in ("all", None):
        return present

    result = Trivial.split_csv_line_int(cpus, dedup=True, what="CPU numbers")

    bad = sorted(set(result) - set(present))
    if bad:
        raise Error(f"CPUs {Trivial.rangify(bad)} are not present, present CPUs are: "
                    f"{Trivial.rangify(present)}")

    return sorted(result)

def wait_batch(future: Future) -> BatchOutcome:
    """Wait for a batch to complete and report its outcome."""

    outcome: BatchOutcome = future.result()

    if outcome.all_succeeded:
        _LOG.info("All changes were applied")
        return outcome

    errors = "\n".join(f"  * {err}" for err in outcome.errors)
    raise Error(f"failed to apply {len(outcome.errors)} change(s):\n{errors}")
