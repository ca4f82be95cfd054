#!/usr/bin/env python3
#
# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Test for the 'HelperService' and 'IdleTimer' modules.
"""

from  __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from pathlib import Path
import pytest
import common
from cpupwrlibs import CPUInfo, HelperService, IdleTimer, Operations, SysfsIO
from cpupwrlibs.CPUSettings import RC_SUCCESS, RC_FAILURE
from cpupwrlibs.helperlibs.Exceptions import Error

if typing.TYPE_CHECKING:
    from typing import Generator, cast
    from common import CommonTestParamsTypedDict

    class _TestParamsTypedDict(CommonTestParamsTypedDict, total=False):
        """
        The test parameters dictionary.

        Attributes:
            service: The 'HelperService.HelperService' object under test.
            scheduler: The fake scheduler used by 'service'.
            authority: The fake authority used by 'service'.
            shutdowns: The shutdown reasons passed to the shutdown callback.
        """

        service: HelperService.HelperService
        scheduler: common.FakeScheduler
        authority: common.FakeAuthority
        shutdowns: list[str]

_IDLE_TIMEOUT = 60

@pytest.fixture(name="params")
def get_params(dataset: str, tmp_path: Path) -> Generator[_TestParamsTypedDict, None, None]:
    """
    Yield a dictionary containing parameters required 'HelperService' tests.

    Args:
        dataset: Name of the emulated dataset.
        tmp_path: A temporary directory path (provided by the pytest framework).

    Yields:
        A dictionary with test parameters.
    """

    params = common.build_params(dataset, tmp_path)
    if typing.TYPE_CHECKING:
        params = cast(_TestParamsTypedDict, params)

    scheduler = common.FakeScheduler()
    authority = common.FakeAuthority()
    shutdowns: list[str] = []

    with SysfsIO.SysfsIO(base=params["sysfs_base"]) as sysfs_io, \
         CPUInfo.CPUInfo(sysfs_io=sysfs_io) as cpuinfo, \
         HelperService.HelperService(shutdowns.append, scheduler, authority, cpuinfo=cpuinfo,
                                     idle_timeout=_IDLE_TIMEOUT) as service:
        params["service"] = service
        params["scheduler"] = scheduler
        params["authority"] = authority
        params["shutdowns"] = shutdowns
        yield params

def test_read_operations(params: _TestParamsTypedDict):
    """Test the read-only operations."""

    service = params["service"]
    cpuinfo = service.cpuinfo

    present = cpuinfo.get_present_cpus()
    assert service.handle(Operations.GetCPUsPresent()) == present
    assert service.handle(Operations.GetCPUsAvailable()) == present
    assert service.handle(Operations.GetCPUsOnline()) == cpuinfo.get_online_cpus()
    assert service.handle(Operations.GetCPUsOffline()) == cpuinfo.get_offline_cpus()
    assert service.handle(Operations.IsAuthorized(), caller=":1.3") == 1

    for cpu in present:
        assert service.handle(Operations.GetCPUGovernors(cpu)) == cpuinfo.get_governors(cpu)
        assert service.handle(Operations.GetCPUGovernor(cpu)) == cpuinfo.get_governor(cpu)
        assert service.handle(Operations.GetCPUEnergyPrefs(cpu)) == cpuinfo.get_energy_prefs(cpu)
        assert service.handle(Operations.GetCPUEnergyPref(cpu)) == cpuinfo.get_energy_pref(cpu)
        assert service.handle(Operations.GetCPUFrequencies(cpu)) == \
               list(cpuinfo.get_frequencies(cpu))
        assert service.handle(Operations.GetCPULimits(cpu)) == list(cpuinfo.get_limits(cpu))
        assert service.handle(Operations.CPUAllowedOffline(cpu)) == int(cpu != 0)

    # Offline CPUs report empty values.
    for cpu in cpuinfo.get_offline_cpus():
        assert service.handle(Operations.GetCPUGovernor(cpu)) == ""
        assert service.handle(Operations.GetCPUFrequencies(cpu)) == [0, 0]

def test_mutations(params: _TestParamsTypedDict):
    """Test the mutating operations."""

    service = params["service"]
    cpuinfo = service.cpuinfo

    lo, hi = cpuinfo.get_limits(0)
    assert service.handle(Operations.UpdateCPUSettings(0, lo, hi), caller=":1.3") == RC_SUCCESS
    governor = cpuinfo.get_governors(0)[-1]
    assert service.handle(Operations.UpdateCPUGovernor(0, governor), caller=":1.3") == RC_SUCCESS
    assert cpuinfo.get_governor(0) == governor
    assert service.handle(Operations.UpdateCPUEnergyPrefs(0, "unsupported-value"),
                          caller=":1.3") == RC_SUCCESS
    assert service.handle(Operations.SetCPUOffline(0), caller=":1.3") == RC_FAILURE
    assert service.handle(Operations.SetCPUOffline(1), caller=":1.3") == RC_SUCCESS
    assert service.handle(Operations.SetCPUOnline(1), caller=":1.3") == RC_SUCCESS

    params["authority"].is_authorized = False
    assert service.handle(Operations.IsAuthorized(), caller=":1.4") == 0
    assert service.handle(Operations.UpdateCPUGovernor(0, governor), caller=":1.4") == RC_FAILURE
    # The first caller is still cached as authorized.
    assert service.handle(Operations.IsAuthorized(), caller=":1.3") == 1

def test_unsupported_operation(params: _TestParamsTypedDict):
    """Test that unsupported operation types are rejected."""

    class _BadOp(typing.NamedTuple):
        """An operation the service does not know."""

        cpu: int

        def describe(self) -> str:
            """Return a human-readable description of the operation."""
            return "Bad operation"

    with pytest.raises(Error):
        params["service"].handle(_BadOp(0)) # type: ignore[arg-type]

def test_idle_timer(params: _TestParamsTypedDict):
    """Test that the idle timer shuts the service down and is reset by every call."""

    service = params["service"]
    scheduler = params["scheduler"]
    shutdowns = params["shutdowns"]

    assert not service.idle_timer.is_armed()
    service.start()
    assert service.idle_timer.is_armed()
    assert [val[0] for val in scheduler.scheduled.values()] == [_IDLE_TIMEOUT]

    # Every call, including read-only ones, re-arms the timer.
    handles = list(scheduler.scheduled)
    service.handle(Operations.GetCPUsOnline())
    assert list(scheduler.scheduled) != handles
    assert handles[0] in scheduler.cancelled
    assert len(scheduler.scheduled) == 1

    scheduler.fire()
    assert shutdowns == ["idle timeout"]
    assert service.shutdown_requested
    assert not service.idle_timer.is_armed()

    # Only the first shutdown request is passed on.
    service.request_shutdown("got SIGTERM")
    assert shutdowns == ["idle timeout"]

    # Calls arriving after the shutdown request do not re-arm the timer.
    service.handle(Operations.GetCPUsOnline())
    assert not service.idle_timer.is_armed()
    assert not scheduler.scheduled

def test_quit(params: _TestParamsTypedDict):
    """Test the 'quit' operation."""

    service = params["service"]
    service.start()

    assert service.handle(Operations.Quit(), caller=":1.9") is None
    assert len(params["shutdowns"]) == 1
    assert ":1.9" in params["shutdowns"][0]
    assert not service.idle_timer.is_armed()
    assert not params["scheduler"].scheduled

def test_idle_timer_disabled():
    """Test that a zero timeout disables the idle timer."""

    scheduler = common.FakeScheduler()
    expired: list[bool] = []

    with IdleTimer.IdleTimer(0, lambda: expired.append(True), scheduler) as timer:
        timer.start()
        assert not timer.is_armed()
        assert not scheduler.scheduled

        timer.set_timeout(5)
        assert timer.is_armed()
        assert timer.timeout == 5

        timer.set_timeout(0)
        assert not timer.is_armed()
        assert not scheduler.scheduled
        assert not expired
