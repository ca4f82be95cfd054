#!/usr/bin/env python3
#
# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""Common functions for cpupwr tests."""

from  __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from pathlib import Path
from cpupwrlibs import Operations
from cpupwrlibs.helperlibs.Exceptions import Error, ErrorConnect

if typing.TYPE_CHECKING:
    from typing import Any, Callable, TypedDict
    from cpupwrlibs.HelperService import HelperService

    class CPUDataTypedDict(TypedDict, total=False):
        """
        The emulated sysfs files of a single CPU.

        Attributes:
            online: Contents of the 'cpu<N>/online' file, 'None' if the file does not exist.
            cpufreq: 'cpu<N>/cpufreq' file name -> contents dictionary.
        """

        online: str | None
        cpufreq: dict[str, str]

    class DatasetTypedDict(TypedDict):
        """
        An emulated CPU sysfs tree.

        Attributes:
            present: Contents of the 'present' file.
            online: Contents of the 'online' file.
            offline: Contents of the 'offline' file.
            cpus: CPU number -> CPU files dictionary.
        """

        present: str
        online: str
        offline: str
        cpus: dict[int, CPUDataTypedDict]

    class CommonTestParamsTypedDict(TypedDict):
        """
        A dictionary of common test parameters.

        Attributes:
            dataset: Name of the emulated dataset.
            sysfs_base: Path to the emulated CPU sysfs directory.
        """

        dataset: str
        sysfs_base: Path

def _intel_pstate_cpufreq() -> dict[str, str]:
    """Return the 'cpufreq' files of an 'intel_pstate' CPU."""

    return {"scaling_driver": "intel_pstate",
            "cpuinfo_min_freq": "800000",
            "cpuinfo_max_freq": "4000000",
            "scaling_min_freq": "800000",
            "scaling_max_freq": "4000000",
            "scaling_cur_freq": "1200000",
            "scaling_available_governors": "performance powersave",
            "scaling_governor": "powersave",
            "energy_performance_available_preferences":
                "default performance balance_performance balance_power power",
            "energy_performance_preference": "balance_performance"}

def _acpi_cpufreq_cpufreq() -> dict[str, str]:
    """Return the 'cpufreq' files of an 'acpi-cpufreq' CPU."""

    return {"scaling_driver": "acpi-cpufreq",
            "cpuinfo_min_freq": "1200000",
            "cpuinfo_max_freq": "3000000",
            "scaling_min_freq": "1200000",
            "scaling_max_freq": "3000000",
            "scaling_cur_freq": "2400000",
            "scaling_available_frequencies": "3000000 2400000 1800000 1200000",
            "scaling_available_governors":
                "conservative ondemand userspace powersave performance schedutil",
            "scaling_governor": "schedutil"}

# The emulated datasets. CPU 0 has no 'online' file on both, as on most real systems.
DATASETS: dict[str, DatasetTypedDict] = {
    # Four CPUs, CPU 3 is offline. Energy performance preferences are supported.
    "intel_pstate": {
        "present": "0-3",
        "online": "0-2",
        "offline": "3",
        "cpus": {0: {"online": None, "cpufreq": _intel_pstate_cpufreq()},
                 1: {"online": "1", "cpufreq": _intel_pstate_cpufreq()},
                 2: {"online": "1", "cpufreq": _intel_pstate_cpufreq()},
                 3: {"online": "0", "cpufreq": _intel_pstate_cpufreq()}},
    },
    # Two online CPUs, no energy performance preferences.
    "acpi-cpufreq": {
        "present": "0-1",
        "online": "0-1",
        "offline": "",
        "cpus": {0: {"online": None, "cpufreq": _acpi_cpufreq_cpufreq()},
                 1: {"online": "1", "cpufreq": _acpi_cpufreq_cpufreq()}},
    },
}

def get_datasets() -> list[str]:
    """Return the names of the emulated datasets."""

    return list(DATASETS)

def _write(path: Path, contents: str):
    """Create file 'path' with 'contents'."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fobj:
        fobj.write(contents + "\n")

def build_sysfs_tree(basepath: Path, dataset: str) -> Path:
    """
    Create an emulated CPU sysfs tree.

    Args:
        basepath: The directory to create the tree in.
        dataset: Name of the dataset to create the tree for.

    Returns:
        Path to the emulated '/sys/devices/system/cpu' directory.
    """

    data = DATASETS[dataset]
    sysfs_base = basepath / "sys" / "devices" / "system" / "cpu"

    for name in ("present", "online", "offline"):
        _write(sysfs_base / name, data[name]) # type: ignore[literal-required]

    for cpu, cpudata in data["cpus"].items():
        cpudir = sysfs_base / f"cpu{cpu}"
        cpudir.mkdir(parents=True, exist_ok=True)

        online = cpudata.get("online")
        if online is not None:
            _write(cpudir / "online", online)

        for name, contents in cpudata.get("cpufreq", {}).items():
            _write(cpudir / "cpufreq" / name, contents)

    return sysfs_base

def read_file(sysfs_base: Path, relpath: str) -> str:
    """Return the stripped contents of file 'relpath' in the emulated sysfs tree."""

    with open(sysfs_base / relpath, "r", encoding="utf-8") as fobj:
        return fobj.read().strip()

def build_params(dataset: str, basepath: Path) -> CommonTestParamsTypedDict:
    """
    Create the emulated sysfs tree and build the common test parameters dictionary.

    Args:
        dataset: Name of the dataset to emulate.
        basepath: The directory to create the emulated sysfs tree in.

    Returns:
        The common test parameters dictionary.
    """

    return {"dataset": dataset, "sysfs_base": build_sysfs_tree(basepath, dataset)}

def has_energy_prefs(dataset: str) -> bool:
    """Return 'True' if CPUs of dataset 'dataset' support energy performance preferences."""

    cpufreq = DATASETS[dataset]["cpus"][0].get("cpufreq", {})
    return "energy_performance_preference" in cpufreq

class FakeAuthority:
    """A fake authority answering with a pre-defined result and counting the queries."""

    def __init__(self, is_authorized: bool = True, is_challenge: bool = False,
                 fail: bool = False):
        """Initialize a class instance."""

        self.is_authorized = is_authorized
        self.is_challenge = is_challenge
        self.fail = fail
        self.queries: list[tuple[str, str]] = []

    def check_authorization(self, caller: str, action_id: str,
                            timeout: float) -> tuple[bool, bool, dict[str, str]]:
        """Record the query and return the pre-defined answer."""

        assert timeout > 0
        self.queries.append((caller, action_id))
        if self.fail:
            raise Error("polkit is not available")
        return (self.is_authorized, self.is_challenge, {})

class FakeScheduler:
    """A fake scheduler: scheduled calls run only when 'fire()' is called."""

    def __init__(self):
        """Initialize a class instance."""

        self._next_handle = 1
        self.scheduled: dict[int, tuple[float, Callable[[], None]]] = {}
        self.cancelled: list[int] = []

    def schedule(self, seconds: float, callback: Callable[[], None]) -> int:
        """Record the call and return its handle."""

        handle = self._next_handle
        self._next_handle += 1
        self.scheduled[handle] = (seconds, callback)
        return handle

    def cancel(self, handle: int):
        """Drop a scheduled call."""

        self.cancelled.append(handle)
        del self.scheduled[handle]

    def fire(self):
        """Run all the scheduled calls."""

        scheduled = self.scheduled
        self.scheduled = {}
        for _, callback in scheduled.values():
            callback()

class FakeTransport:
    """
    A fake transport calling the helper service directly, translating D-Bus method names back to
    operations.
    """

    def __init__(self, service: HelperService | None, caller: str | None = ":1.42",
                 fail_methods: dict[str, int] | None = None):
        """
        Initialize a class instance.

        Args:
            service: The helper service to call, 'None' to emulate a helper that is not reachable.
            caller: The caller name to pass to the helper service.
            fail_methods: Method name -> number of calls dictionary. The given number of calls of
                          the method raise 'Error' before the method starts working.
        """

        self._service = service
        self._caller = caller
        self._fail_methods = fail_methods if fail_methods is not None else {}
        self._optypes = {name: optype for optype, name in Operations.METHOD_NAMES.items()}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def close(self):
        """Uninitialize the class object."""

        self._service = None

    def is_connected(self) -> bool:
        """Return 'True' if the helper service is set."""

        return self._service is not None

    def call(self, method: str, *args: Any, timeout: float | None = None) -> Any:
        """Execute method 'method' on the helper service."""

        assert timeout is None or timeout > 0
        self.calls.append((method, args))

        if not self._service:
            raise ErrorConnect("not running", service="fake")

        if self._fail_methods.get(method):
            self._fail_methods[method] -= 1
            raise Error(f"helper method '{method}()' failed")

        op = self._optypes[method](*args)
        return self._service.handle(op, caller=self._caller)
