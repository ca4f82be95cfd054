# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Provide the privileged helper service logic: dispatch operations to the CPU information reader and
the mutation engine, and own the idle timer and the authorization gate.

This module does not depend on D-Bus. The D-Bus binding ('_DBusHelperService') translates method
calls into operations and passes them to 'HelperService.handle()' along with the caller's unique bus
name.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from typing import Any, Callable
from cpupwrlibs import CPUInfo, CPUSettings, IdleTimer, Operations
from cpupwrlibs.Authorization import AuthGate, DEFAULT_ACTION_ID, DEFAULT_AUTH_TIMEOUT
from cpupwrlibs.helperlibs import Logging, ClassHelpers
from cpupwrlibs.helperlibs.Exceptions import Error

if typing.TYPE_CHECKING:
    from cpupwrlibs.Authorization import AuthorityType
    from cpupwrlibs.IdleTimer import SchedulerType
    from cpupwrlibs.Operations import OperationType

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

# The D-Bus service name, interface name and object path of the helper.
SERVICE_NAME = "io.github.cpupwr.helper"
INTERFACE_NAME = SERVICE_NAME
OBJECT_PATH = "/io/github/cpupwr/helper"

class HelperService(ClassHelpers.SimpleCloseContext):
    """
    The privileged helper service.

    Every call through 'handle()' resets the idle timer, including read-only queries. The service
    requests a shutdown by calling the 'on_shutdown' callback, which happens on idle timer expiry,
    on the 'quit' operation, or when the process gets a termination signal (see
    'request_shutdown()').
    """

    def __init__(self,
                 on_shutdown: Callable[[str], None],
                 scheduler: SchedulerType,
                 authority: AuthorityType | None,
                 cpuinfo: CPUInfo.CPUInfo | None = None,
                 idle_timeout: float = IdleTimer.DEFAULT_IDLE_TIMEOUT,
                 action_id: str = DEFAULT_ACTION_ID,
                 auth_timeout: float = DEFAULT_AUTH_TIMEOUT):
        """
        Initialize a class instance.

        Args:
            on_shutdown: The function to call when the service should shut down. Called with the
                         shutdown reason.
            scheduler: The scheduler for the idle timer.
            authority: The external authority for the authorization gate.
            cpuinfo: The CPU information object. A new one is created by default.
            idle_timeout: The idle timeout in seconds, 0 disables the idle timer.
            action_id: The polkit action ID that authorizes the mutations.
            auth_timeout: The authority query timeout in seconds.
        """

        self._on_shutdown = on_shutdown

        self._cpuinfo = cpuinfo
        self._close_cpuinfo = cpuinfo is None
        if not self._cpuinfo:
            self._cpuinfo = CPUInfo.CPUInfo()

        self._auth_gate: AuthGate | None = AuthGate(authority, action_id=action_id,
                                                    timeout=auth_timeout)
        self._cpusettings: CPUSettings.CPUSettings | None = None
        self._cpusettings = CPUSettings.CPUSettings(self._auth_gate, cpuinfo=self._cpuinfo)
        self._idle_timer: IdleTimer.IdleTimer | None = None
        self._idle_timer = IdleTimer.IdleTimer(idle_timeout, self._idle_expired, scheduler)

        self.shutdown_requested = False

        self._handlers: dict[type, Callable[[Any, str | None], Any]] = {
            Operations.IsAuthorized: self._is_authorized,
            Operations.GetCPUsAvailable: self._get_cpus_available,
            Operations.GetCPUsOnline: lambda _, __: self.cpuinfo.get_online_cpus(),
            Operations.GetCPUsOffline: lambda _, __: self.cpuinfo.get_offline_cpus(),
            Operations.GetCPUsPresent: lambda _, __: self.cpuinfo.get_present_cpus(),
            Operations.GetCPUGovernors: lambda op, _: self.cpuinfo.get_governors(op.cpu),
            Operations.GetCPUEnergyPrefs: lambda op, _: self.cpuinfo.get_energy_prefs(op.cpu),
            Operations.GetCPUGovernor: lambda op, _: self.cpuinfo.get_governor(op.cpu),
            Operations.GetCPUEnergyPref: lambda op, _: self.cpuinfo.get_energy_pref(op.cpu),
            Operations.GetCPUFrequencies: lambda op, _: list(self.cpuinfo.get_frequencies(op.cpu)),
            Operations.GetCPULimits: lambda op, _: list(self.cpuinfo.get_limits(op.cpu)),
            Operations.CPUAllowedOffline: lambda op, _: int(self.cpuinfo.allowed_offline(op.cpu)),
            Operations.UpdateCPUSettings: self._update_cpu_settings,
            Operations.UpdateCPUGovernor: self._update_cpu_governor,
            Operations.UpdateCPUEnergyPrefs: self._update_cpu_energy_prefs,
            Operations.SetCPUOnline: self._set_cpu_online,
            Operations.SetCPUOffline: self._set_cpu_offline,
            Operations.Quit: self._quit,
        }

    def close(self):
        """Uninitialize the class object."""

        ClassHelpers.close(self, close_attrs=("_idle_timer", "_cpusettings", "_auth_gate",
                                              "_cpuinfo"),
                           unref_attrs=("_on_shutdown",))

    @property
    def cpuinfo(self) -> CPUInfo.CPUInfo:
        """The CPU information object."""

        if not self._cpuinfo:
            raise Error("the helper service was closed")
        return self._cpuinfo

    @property
    def cpusettings(self) -> CPUSettings.CPUSettings:
        """The mutation engine."""

        if not self._cpusettings:
            raise Error("the helper service was closed")
        return self._cpusettings

    @property
    def auth_gate(self) -> AuthGate:
        """The authorization gate. Its cache lives as long as the service."""

        if not self._auth_gate:
            raise Error("the helper service was closed")
        return self._auth_gate

    @property
    def idle_timer(self) -> IdleTimer.IdleTimer:
        """The idle timer."""

        if not self._idle_timer:
            raise Error("the helper service was closed")
        return self._idle_timer

    def start(self):
        """Start the service: arm the idle timer. Called after the service has been registered."""

        _LOG.debug("starting the helper service, idle timeout %s seconds",
                   self.idle_timer.timeout)
        self.idle_timer.start()

    def request_shutdown(self, reason: str):
        """
        Request the service shutdown. Only the first request is passed to the 'on_shutdown'
        callback.

        Args:
            reason: The human-readable shutdown reason.
        """

        if self.shutdown_requested:
            _LOG.debug("shutdown already requested, ignoring: %s", reason)
            return

        self.shutdown_requested = True
        if self._idle_timer:
            self._idle_timer.stop()

        _LOG.info("Shutting down the helper service: %s", reason)
        if self._on_shutdown:
            self._on_shutdown(reason)

    def _idle_expired(self):
        """The idle timer expiry callback."""

        self.request_shutdown("idle timeout")

    def handle(self, op: OperationType, caller: str | None = None) -> Any:
        """
        Execute an operation.

        Args:
            op: The operation to execute.
            caller: The unique D-Bus name of the caller, 'None' for local calls.

        Returns:
            The operation result in the form it is sent back over D-Bus: lists of CPU numbers or
            names, strings, '[min, max]' lists, 1/0 integers, result codes, or 'None' for 'quit'.

        Raises:
            Error: If the operation type is not supported.
        """

        try:
            handler = self._handlers[type(op)]
        except KeyError:
            raise Error(f"unsupported operation '{type(op).__name__}'") from None

        if not self.shutdown_requested:
            self.idle_timer.reset()

        _LOG.debug("%s, caller '%s'", op.describe(), caller)
        return handler(op, caller)

    def _is_authorized(self, _: Operations.IsAuthorized, caller: str | None) -> int:
        """Handle the 'isauthorized' operation."""

        return int(self.cpusettings.is_authorized(caller))

    def _get_cpus_available(self, _: Operations.GetCPUsAvailable, __: str | None) -> list[int]:
        """Handle the 'get_cpus_available' operation. All present CPUs can be brought online."""

        return self.cpuinfo.get_present_cpus()

    def _update_cpu_settings(self, op: Operations.UpdateCPUSettings, caller: str | None) -> int:
        """Handle the 'update_cpu_settings' operation."""

        return self.cpusettings.update_frequency_range(op.cpu, op.freq_min, op.freq_max, caller)

    def _update_cpu_governor(self, op: Operations.UpdateCPUGovernor, caller: str | None) -> int:
        """Handle the 'update_cpu_governor' operation."""

        return self.cpusettings.update_governor(op.cpu, op.governor, caller)

    def _update_cpu_energy_prefs(self, op: Operations.UpdateCPUEnergyPrefs,
                                 caller: str | None) -> int:
        """Handle the 'update_cpu_energy_prefs' operation."""

        return self.cpusettings.update_energy_preference(op.cpu, op.pref, caller)

    def _set_cpu_online(self, op: Operations.SetCPUOnline, caller: str | None) -> int:
        """Handle the 'set_cpu_online' operation."""

        return self.cpusettings.set_online(op.cpu, caller)

    def _set_cpu_offline(self, op: Operations.SetCPUOffline, caller: str | None) -> int:
        """Handle the 'set_cpu_offline' operation."""

        return self.cpusettings.set_offline(op.cpu, caller)

    def _quit(self, _: Operations.Quit, caller: str | None):
        """Handle the 'quit' operation."""

        self.request_shutdown(f"quit requested by '{caller}'")
