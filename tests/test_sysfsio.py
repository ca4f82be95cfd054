#!/usr/bin/env python3
#
# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Test for the 'SysfsIO' module.
"""

from  __future__ import annotations # Remove when switching to Python 3.10+.

from pathlib import Path
import pytest
import common
from cpupwrlibs import SysfsIO
from cpupwrlibs.helperlibs.Exceptions import ErrorBadFormat

def test_parse_range_list():
    """Test the 'parse_range_list()' function."""

    assert SysfsIO.parse_range_list("0-3,5,7-9") == {0, 1, 2, 3, 5, 7, 8, 9}
    assert SysfsIO.parse_range_list("") == set()
    assert SysfsIO.parse_range_list("\n") == set()
    assert SysfsIO.parse_range_list("4\n") == {4}
    assert SysfsIO.parse_range_list("0-1,1") == {0, 1}

    for bad in ("a", "1-", "3-1", "0-2,x"):
        with pytest.raises(ErrorBadFormat):
            SysfsIO.parse_range_list(bad)

def test_parse_whitespace_list():
    """Test the 'parse_whitespace_list()' function."""

    assert SysfsIO.parse_whitespace_list("performance powersave\n") == ["performance", "powersave"]
    assert SysfsIO.parse_whitespace_list("  a\tb  c ") == ["a", "b", "c"]
    assert SysfsIO.parse_whitespace_list("") == []

def test_paths(tmp_path: Path):
    """Test the path helpers of the 'SysfsIO' class."""

    with SysfsIO.SysfsIO(base=tmp_path) as sysfs_io:
        assert sysfs_io.base == tmp_path
        assert sysfs_io.cpu_path(3, "online") == tmp_path / "cpu3" / "online"
        assert sysfs_io.cpufreq_path(1, "scaling_governor") == \
               tmp_path / "cpu1" / "cpufreq" / "scaling_governor"

    with SysfsIO.SysfsIO() as sysfs_io:
        assert sysfs_io.base == SysfsIO.SYSFS_BASE

def test_read_write(dataset: str, tmp_path: Path):
    """
    Test reading and writing control files in an emulated sysfs tree.

    Args:
        dataset: Name of the emulated dataset.
        tmp_path: A temporary directory path (provided by the pytest framework).
    """

    params = common.build_params(dataset, tmp_path)
    sysfs_base = params["sysfs_base"]

    with SysfsIO.SysfsIO(base=sysfs_base) as sysfs_io:
        assert sysfs_io.read_value("present") == common.DATASETS[dataset]["present"]
        assert sysfs_io.exists("cpu0")
        assert not sysfs_io.exists(sysfs_io.cpu_path(0, "online"))

        path = sysfs_io.cpufreq_path(0, "scaling_max_freq")
        maxfreq = int(common.DATASETS[dataset]["cpus"][0]["cpufreq"]["scaling_max_freq"])
        assert sysfs_io.read_int(path) == maxfreq

        assert sysfs_io.write_value(path, maxfreq - 100000)
        assert sysfs_io.read_int(path) == maxfreq - 100000
        assert common.read_file(sysfs_base, "cpu0/cpufreq/scaling_max_freq") == \
               str(maxfreq - 100000)

        # Missing and non-integer files.
        assert sysfs_io.read_value("cpu0/no_such_file") == ""
        assert sysfs_io.read_int("cpu0/no_such_file") == 0
        assert sysfs_io.read_int(sysfs_io.cpufreq_path(0, "scaling_governor")) == 0

        # Control files are never created.
        assert not sysfs_io.write_value("cpu0/no_such_file", "1")
        assert not sysfs_io.exists("cpu0/no_such_file")
