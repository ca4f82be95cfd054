#!/usr/bin/env python3
#
# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Test for the 'CPUSettings' module.
"""

from  __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from pathlib import Path
import pytest
import common
from cpupwrlibs import CPUInfo, CPUSettings, SysfsIO
from cpupwrlibs.Authorization import AuthGate
from cpupwrlibs.CPUSettings import RC_SUCCESS, RC_FAILURE, RC_WRITE_FAILED

if typing.TYPE_CHECKING:
    from typing import Generator, cast
    from common import CommonTestParamsTypedDict

    class _TestParamsTypedDict(CommonTestParamsTypedDict, total=False):
        """
        The test parameters dictionary.

        Attributes:
            cpuinfo: A 'CPUInfo.CPUInfo' object.
            cpusettings: A 'CPUSettings.CPUSettings' object.
            authority: The fake authority used by 'cpusettings'.
        """

        cpuinfo: CPUInfo.CPUInfo
        cpusettings: CPUSettings.CPUSettings
        authority: common.FakeAuthority

@pytest.fixture(name="params")
def get_params(dataset: str, tmp_path: Path) -> Generator[_TestParamsTypedDict, None, None]:
    """
    Yield a dictionary containing parameters required 'CPUSettings' tests.

    Args:
        dataset: Name of the emulated dataset.
        tmp_path: A temporary directory path (provided by the pytest framework).

    Yields:
        A dictionary with test parameters.
    """

    params = common.build_params(dataset, tmp_path)
    if typing.TYPE_CHECKING:
        params = cast(_TestParamsTypedDict, params)

    authority = common.FakeAuthority()
    with SysfsIO.SysfsIO(base=params["sysfs_base"]) as sysfs_io, \
         CPUInfo.CPUInfo(sysfs_io=sysfs_io) as cpuinfo, \
         AuthGate(authority) as gate, \
         CPUSettings.CPUSettings(gate, cpuinfo=cpuinfo) as cpusettings:
        params["cpuinfo"] = cpuinfo
        params["cpusettings"] = cpusettings
        params["authority"] = authority
        yield params

def test_write_order():
    """Test the 'get_write_order()' function."""

    assert CPUSettings.get_write_order(1000, 3000, 500, 800) == ("min", "max")
    assert CPUSettings.get_write_order(1000, 3000, 3500, 4000) == ("max", "min")
    assert CPUSettings.get_write_order(1000, 3000, 1500, 2500) == ("min", "max")
    assert CPUSettings.get_write_order(1000, 3000, 1000, 3000) == ("min", "max")

def test_frequency_range(params: _TestParamsTypedDict):
    """Test changing the frequency range, including ranges outside of the current one."""

    cpuinfo = params["cpuinfo"]
    cpusettings = params["cpusettings"]

    hw_min, hw_max = cpuinfo.get_limits(0)
    step = (hw_max - hw_min) // 4

    ranges = ((hw_min + step, hw_max - step),
              (hw_min, hw_min + step // 2),
              (hw_max - step // 2, hw_max),
              (hw_min, hw_max))

    for cpu in cpuinfo.get_online_cpus():
        for lo, hi in ranges:
            rc = cpusettings.update_frequency_range(cpu, lo, hi, caller=":1.5")
            assert rc == RC_SUCCESS
            assert cpuinfo.get_frequencies(cpu) == (lo, hi)

    # The caller was authorized only once, the answer got cached.
    assert len(params["authority"].queries) == 1

class _RecordingSysfsIO(SysfsIO.SysfsIO):
    """A 'SysfsIO' object recording the names of the written files and the written values."""

    def __init__(self, base: Path):
        """Initialize a class instance."""

        super().__init__(base=base)
        self.writes: list[tuple[str, int]] = []

    def write_value(self, path: Path | str, value: str | int) -> bool:
        """Record the write, then write the value."""

        self.writes.append((Path(path).name, int(value)))
        return super().write_value(path, value)

@pytest.mark.parametrize("new_min, new_max, exp_order",
                         [(500000, 800000, ("scaling_min_freq", "scaling_max_freq")),
                          (3500000, 4000000, ("scaling_max_freq", "scaling_min_freq")),
                          (1500000, 2500000, ("scaling_min_freq", "scaling_max_freq"))])
def test_frequency_range_write_order(dataset: str, tmp_path: Path, new_min: int, new_max: int,
                                     exp_order: tuple[str, str]):
    """Test that the frequency limits are written in the order keeping 'min <= max' true."""

    sysfs_base = common.build_sysfs_tree(tmp_path, dataset)
    with _RecordingSysfsIO(sysfs_base) as sysfs_io, \
         CPUInfo.CPUInfo(sysfs_io=sysfs_io) as cpuinfo, \
         AuthGate(common.FakeAuthority()) as gate, \
         CPUSettings.CPUSettings(gate, cpuinfo=cpuinfo) as cpusettings:
        assert cpusettings.update_frequency_range(0, 1000000, 3000000) == RC_SUCCESS
        assert cpuinfo.get_frequencies(0) == (1000000, 3000000)

        sysfs_io.writes.clear()
        assert cpusettings.update_frequency_range(0, new_min, new_max) == RC_SUCCESS

        vals = {"scaling_min_freq": new_min, "scaling_max_freq": new_max}
        assert sysfs_io.writes == [(name, vals[name]) for name in exp_order]
        assert cpuinfo.get_frequencies(0) == (new_min, new_max)

def test_governor(params: _TestParamsTypedDict):
    """Test changing the governor."""

    cpuinfo = params["cpuinfo"]
    cpusettings = params["cpusettings"]

    for cpu in cpuinfo.get_online_cpus():
        for governor in cpuinfo.get_governors(cpu):
            assert cpusettings.update_governor(cpu, governor) == RC_SUCCESS
            assert cpuinfo.get_governor(cpu) == governor

def test_energy_preference(params: _TestParamsTypedDict):
    """Test changing the energy performance preference."""

    cpuinfo = params["cpuinfo"]
    cpusettings = params["cpusettings"]

    for cpu in cpuinfo.get_online_cpus():
        orig = cpuinfo.get_energy_pref(cpu)

        # Unsupported values are silently ignored.
        assert cpusettings.update_energy_preference(cpu, "unsupported-value") == RC_SUCCESS
        assert cpuinfo.get_energy_pref(cpu) == orig

        if not common.has_energy_prefs(params["dataset"]):
            assert cpusettings.update_energy_preference(cpu, "power") == RC_SUCCESS
            continue

        for pref in cpuinfo.get_energy_prefs(cpu):
            assert cpusettings.update_energy_preference(cpu, pref) == RC_SUCCESS
            assert cpuinfo.get_energy_pref(cpu) == pref

def test_online_offline(params: _TestParamsTypedDict):
    """Test bringing CPUs online and offline."""

    cpuinfo = params["cpuinfo"]
    cpusettings = params["cpusettings"]
    sysfs_base = params["sysfs_base"]

    # CPU 0 has no 'online' file.
    assert cpusettings.set_offline(0) == RC_FAILURE
    assert cpusettings.set_online(0) == RC_FAILURE

    for cpu in cpuinfo.get_present_cpus()[1:]:
        assert cpusettings.set_offline(cpu) == RC_SUCCESS
        assert common.read_file(sysfs_base, f"cpu{cpu}/online") == "0"
        assert cpusettings.set_online(cpu) == RC_SUCCESS
        assert common.read_file(sysfs_base, f"cpu{cpu}/online") == "1"

def test_preconditions(params: _TestParamsTypedDict):
    """Test that the mutations fail for unauthorized callers, offline and absent CPUs."""

    cpuinfo = params["cpuinfo"]
    cpusettings = params["cpusettings"]
    authority = params["authority"]

    lo, hi = cpuinfo.get_frequencies(0)
    absent = cpuinfo.get_present_cpus()[-1] + 1

    for cpu in cpuinfo.get_offline_cpus() + [absent]:
        assert cpusettings.update_frequency_range(cpu, lo, hi) == RC_FAILURE
        assert cpusettings.update_governor(cpu, "performance") == RC_FAILURE
        assert cpusettings.update_energy_preference(cpu, "power") == RC_FAILURE

    # The absent CPU has no 'online' file.
    assert cpusettings.set_online(absent) == RC_FAILURE

    authority.is_authorized = False
    assert cpusettings.update_frequency_range(0, lo, hi, caller=":1.77") == RC_FAILURE
    assert cpusettings.update_governor(0, "performance", caller=":1.77") == RC_FAILURE
    assert cpusettings.set_offline(1, caller=":1.77") == RC_FAILURE
    assert cpusettings.is_authorized(":1.77") is False
    assert cpusettings.is_authorized(None) is True

def test_write_failure(params: _TestParamsTypedDict):
    """Test that a failed write results in 'RC_WRITE_FAILED'."""

    cpuinfo = params["cpuinfo"]
    cpusettings = params["cpusettings"]
    sysfs_base = params["sysfs_base"]

    # Replace the governor file with a directory, so that writing to it fails.
    path = sysfs_base / "cpu0" / "cpufreq" / "scaling_governor"
    path.unlink()
    path.mkdir()

    assert cpusettings.update_governor(0, cpuinfo.get_governors(0)[0]) == RC_WRITE_FAILED
