# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
The operations supported by the privileged helper. There is one operation type per D-Bus method,
each carrying the typed method arguments. The set of operations is closed: the helper dispatches
them with a table keyed by the operation type, and the client queue executes them by the D-Bus
method name.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

from typing import Any, NamedTuple, Union

class IsAuthorized(NamedTuple):
    """Check if the caller is authorized to change CPU settings."""

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return "Check authorization"

class GetCPUsAvailable(NamedTuple):
    """Get the list of available CPUs."""

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return "Get available CPUs"

class GetCPUsOnline(NamedTuple):
    """Get the list of online CPUs."""

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return "Get online CPUs"

class GetCPUsOffline(NamedTuple):
    """Get the list of offline CPUs."""

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return "Get offline CPUs"

class GetCPUsPresent(NamedTuple):
    """Get the list of present CPUs."""

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return "Get present CPUs"

class GetCPUGovernors(NamedTuple):
    """Get the governors available for a CPU."""

    cpu: int

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return f"Get CPU {self.cpu} governors"

class GetCPUEnergyPrefs(NamedTuple):
    """Get the energy performance preferences available for a CPU."""

    cpu: int

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return f"Get CPU {self.cpu} energy preferences"

class GetCPUGovernor(NamedTuple):
    """Get the current governor of a CPU."""

    cpu: int

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return f"Get CPU {self.cpu} governor"

class GetCPUEnergyPref(NamedTuple):
    """Get the current energy performance preference of a CPU."""

    cpu: int

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return f"Get CPU {self.cpu} energy preference"

class GetCPUFrequencies(NamedTuple):
    """Get the scaling frequency range of a CPU."""

    cpu: int

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return f"Get CPU {self.cpu} frequencies"

class GetCPULimits(NamedTuple):
    """Get the hardware frequency limits of a CPU."""

    cpu: int

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return f"Get CPU {self.cpu} frequency limits"

class CPUAllowedOffline(NamedTuple):
    """Check if a CPU can be brought offline."""

    cpu: int

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return f"Check if CPU {self.cpu} can be offline"

class UpdateCPUSettings(NamedTuple):
    """
    Change the scaling frequency range of a CPU.

    Attributes:
        cpu: The CPU number.
        freq_min: The new minimum frequency in kHz.
        freq_max: The new maximum frequency in kHz.
    """

    cpu: int
    freq_min: int
    freq_max: int

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return f"Set CPU {self.cpu} frequency {self.freq_min}-{self.freq_max} kHz"

class UpdateCPUGovernor(NamedTuple):
    """Change the governor of a CPU."""

    cpu: int
    governor: str

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return f"Set CPU {self.cpu} governor to {self.governor}"

class UpdateCPUEnergyPrefs(NamedTuple):
    """Change the energy performance preference of a CPU."""

    cpu: int
    pref: str

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return f"Set CPU {self.cpu} energy preference to {self.pref}"

class SetCPUOnline(NamedTuple):
    """Bring a CPU online."""

    cpu: int

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return f"Set CPU {self.cpu} online"

class SetCPUOffline(NamedTuple):
    """Bring a CPU offline."""

    cpu: int

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return f"Set CPU {self.cpu} offline"

class Quit(NamedTuple):
    """Shut the helper down."""

    def describe(self) -> str:
        """Return a human-readable description of the operation."""
        return "Quit"

OperationType = Union[IsAuthorized, GetCPUsAvailable, GetCPUsOnline, GetCPUsOffline,
                      GetCPUsPresent, GetCPUGovernors, GetCPUEnergyPrefs, GetCPUGovernor,
                      GetCPUEnergyPref, GetCPUFrequencies, GetCPULimits, CPUAllowedOffline,
                      UpdateCPUSettings, UpdateCPUGovernor, UpdateCPUEnergyPrefs, SetCPUOnline,
                      SetCPUOffline, Quit]

# Operation type -> D-Bus method name.
METHOD_NAMES: dict[type, str] = {
    IsAuthorized: "isauthorized",
    GetCPUsAvailable: "get_cpus_available",
    GetCPUsOnline: "get_cpus_online",
    GetCPUsOffline: "get_cpus_offline",
    GetCPUsPresent: "get_cpus_present",
    GetCPUGovernors: "get_cpu_governors",
    GetCPUEnergyPrefs: "get_cpu_energy_preferences",
    GetCPUGovernor: "get_cpu_governor",
    GetCPUEnergyPref: "get_cpu_energy_preference",
    GetCPUFrequencies: "get_cpu_frequencies",
    GetCPULimits: "get_cpu_limits",
    CPUAllowedOffline: "cpu_allowed_offline",
    UpdateCPUSettings: "update_cpu_settings",
    UpdateCPUGovernor: "update_cpu_governor",
    UpdateCPUEnergyPrefs: "update_cpu_energy_prefs",
    SetCPUOnline: "set_cpu_online",
    SetCPUOffline: "set_cpu_offline",
    Quit: "quit",
}

# Operations that change CPU settings and return a result code.
MUTATIONS = (UpdateCPUSettings, UpdateCPUGovernor, UpdateCPUEnergyPrefs, SetCPUOnline,
             SetCPUOffline)

def get_method_name(op: OperationType) -> str:
    """Return the D-Bus method name of operation 'op'."""

    return METHOD_NAMES[type(op)]

def is_mutation(op: OperationType) -> bool:
    """Return 'True' if operation 'op' changes CPU settings."""

    return isinstance(op, MUTATIONS)

class OpResult(NamedTuple):
    """
    The result of a queued operation.

    Attributes:
        description: The operation description.
        rc: The result code returned by the helper, or 'None' if the operation did not complete
            (e.g., the helper is not reachable).
        error: The error message if the operation failed, 'None' on success.
        reply: The reply of the helper, e.g., the CPU list of a query operation.
    """

    description: str
    rc: int | None
    error: str | None
    reply: Any = None

    @property
    def succeeded(self) -> bool:
        """'True' if the operation succeeded."""
        return self.error is None

class BatchOutcome(NamedTuple):
    """
    The aggregated outcome of a batch of queued operations.

    Attributes:
        all_succeeded: 'True' if all operations of the batch succeeded.
        errors: The "<description>: <message>" strings of the failed operations, in completion
                order.
    """

    all_succeeded: bool
    errors: list[str]
