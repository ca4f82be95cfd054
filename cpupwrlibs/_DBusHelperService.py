# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Provide the D-Bus binding of the privileged helper service: the exported D-Bus object, the polkit
authority client and the GLib main loop scheduler for the idle timer.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

from typing import Any, Callable
import dbus
import dbus.service
import dbus.exceptions
from gi.repository import GLib
from cpupwrlibs import Operations
from cpupwrlibs.HelperService import HelperService, SERVICE_NAME, INTERFACE_NAME, OBJECT_PATH
from cpupwrlibs.helperlibs import Logging
from cpupwrlibs.helperlibs.Exceptions import Error, ErrorConnect

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

_POLKIT_NAME = "org.freedesktop.PolicyKit1"
_POLKIT_PATH = "/org/freedesktop/PolicyKit1/Authority"
_POLKIT_INTERFACE = "org.freedesktop.PolicyKit1.Authority"

# The 'AllowUserInteraction' flag of the polkit 'CheckAuthorization()' method.
_POLKIT_ALLOW_USER_INTERACTION = 1

class PolkitAuthority:
    """Query polkit over the system bus whether a D-Bus caller is authorized for an action."""

    def __init__(self, bus: dbus.Bus):
        """
        Initialize a class instance.

        Args:
            bus: The system bus connection.
        """

        self._bus = bus

    def check_authorization(self, caller: str, action_id: str,
                            timeout: float) -> tuple[bool, bool, dict[str, str]]:
        """
        Check if 'caller' is authorized for action 'action_id'. May block for up to 'timeout'
        seconds, because polkit may ask the user for the password.

        Args:
            caller: The unique D-Bus name of the caller.
            action_id: The polkit action ID.
            timeout: The D-Bus call timeout in seconds.

        Returns:
            The '(is_authorized, is_challenge, details)' tuple.

        Raises:
            Error: If polkit could not be queried.
        """

        subject = ("system-bus-name", {"name": dbus.String(caller, variant_level=1)})

        try:
            proxy = self._bus.get_object(_POLKIT_NAME, _POLKIT_PATH)
            authority = dbus.Interface(proxy, _POLKIT_INTERFACE)
            result = authority.CheckAuthorization(subject, action_id,
                                                  dbus.Dictionary({}, signature="ss"),
                                                  dbus.UInt32(_POLKIT_ALLOW_USER_INTERACTION), "",
                                                  timeout=timeout)
        except dbus.exceptions.DBusException as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"polkit 'CheckAuthorization()' call failed:\n{msg}") from None

        if len(result) < 2:
            raise Error(f"polkit returned an unexpected response: {result}")

        details: dict[str, str] = {}
        if len(result) > 2:
            details = {str(key): str(val) for key, val in dict(result[2]).items()}

        return (bool(result[0]), bool(result[1]), details)

class GLibScheduler:
    """Schedule single-shot calls on the GLib main loop."""

    def schedule(self, seconds: float, callback: Callable[[], None]) -> int:
        """Call 'callback' once after 'seconds' seconds. Return the GLib source ID."""

        def _fire() -> bool:
            """Run the callback and remove the GLib source."""

            callback()
            return False

        return GLib.timeout_add(int(seconds * 1000), _fire)

    def cancel(self, handle: int):
        """Cancel a call scheduled with 'schedule()'."""

        GLib.source_remove(handle)

class HelperObject(dbus.service.Object):
    """
    The exported D-Bus object of the helper. Each method builds the corresponding operation and
    passes it to the helper service along with the caller's unique bus name.
    """

    def __init__(self, bus: dbus.Bus, service: HelperService):
        """
        Initialize a class instance and export the object. Claim the service name on the bus.

        Args:
            bus: The system bus connection.
            service: The helper service to dispatch the operations to.

        Raises:
            ErrorConnect: If the service name could not be claimed.
        """

        try:
            self._bus_name = dbus.service.BusName(SERVICE_NAME, bus=bus, do_not_queue=True)
        except dbus.exceptions.NameExistsException as err:
            raise ErrorConnect(f"the name is already taken: {err}", service=SERVICE_NAME) from None
        except dbus.exceptions.DBusException as err:
            raise ErrorConnect(str(err), service=SERVICE_NAME) from None

        super().__init__(self._bus_name, OBJECT_PATH)
        self._service = service

    def _handle(self, op: Operations.OperationType, sender: str | None) -> Any:
        """Dispatch 'op' to the helper service, translate exceptions to D-Bus errors."""

        try:
            return self._service.handle(op, caller=sender)
        except Error as err:
            _LOG.warning("%s failed:\n%s", op.describe(), err.indent(2))
            raise dbus.exceptions.DBusException(str(err),
                                                name=f"{INTERFACE_NAME}.Error") from None

    @dbus.service.method(INTERFACE_NAME, in_signature="", out_signature="i",
                         sender_keyword="sender")
    def isauthorized(self, sender=None):
        """Return 1 if the caller is authorized to change CPU settings, 0 otherwise."""
        return self._handle(Operations.IsAuthorized(), sender)

    @dbus.service.method(INTERFACE_NAME, in_signature="", out_signature="ai",
                         sender_keyword="sender")
    def get_cpus_available(self, sender=None):
        """Return the available CPUs."""
        return dbus.Array(self._handle(Operations.GetCPUsAvailable(), sender), signature="i")

    @dbus.service.method(INTERFACE_NAME, in_signature="", out_signature="ai",
                         sender_keyword="sender")
    def get_cpus_online(self, sender=None):
        """Return the online CPUs."""
        return dbus.Array(self._handle(Operations.GetCPUsOnline(), sender), signature="i")

    @dbus.service.method(INTERFACE_NAME, in_signature="", out_signature="ai",
                         sender_keyword="sender")
    def get_cpus_offline(self, sender=None):
        """Return the offline CPUs."""
        return dbus.Array(self._handle(Operations.GetCPUsOffline(), sender), signature="i")

    @dbus.service.method(INTERFACE_NAME, in_signature="", out_signature="ai",
                         sender_keyword="sender")
    def get_cpus_present(self, sender=None):
        """Return the present CPUs."""
        return dbus.Array(self._handle(Operations.GetCPUsPresent(), sender), signature="i")

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="as",
                         sender_keyword="sender")
    def get_cpu_governors(self, cpu, sender=None):
        """Return the governors available for a CPU."""
        return dbus.Array(self._handle(Operations.GetCPUGovernors(int(cpu)), sender),
                          signature="s")

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="as",
                         sender_keyword="sender")
    def get_cpu_energy_preferences(self, cpu, sender=None):
        """Return the energy performance preferences available for a CPU."""
        return dbus.Array(self._handle(Operations.GetCPUEnergyPrefs(int(cpu)), sender),
                          signature="s")

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="s",
                         sender_keyword="sender")
    def get_cpu_governor(self, cpu, sender=None):
        """Return the current governor of a CPU."""
        return self._handle(Operations.GetCPUGovernor(int(cpu)), sender)

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="s",
                         sender_keyword="sender")
    def get_cpu_energy_preference(self, cpu, sender=None):
        """Return the current energy performance preference of a CPU."""
        return self._handle(Operations.GetCPUEnergyPref(int(cpu)), sender)

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="ai",
                         sender_keyword="sender")
    def get_cpu_frequencies(self, cpu, sender=None):
        """Return the '[min, max]' scaling frequencies of a CPU."""
        return dbus.Array(self._handle(Operations.GetCPUFrequencies(int(cpu)), sender),
                          signature="i")

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="ai",
                         sender_keyword="sender")
    def get_cpu_limits(self, cpu, sender=None):
        """Return the '[min, max]' hardware frequency limits of a CPU."""
        return dbus.Array(self._handle(Operations.GetCPULimits(int(cpu)), sender),
                          signature="i")

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="i",
                         sender_keyword="sender")
    def cpu_allowed_offline(self, cpu, sender=None):
        """Return 1 if a CPU can be brought offline, 0 otherwise."""
        return self._handle(Operations.CPUAllowedOffline(int(cpu)), sender)

    @dbus.service.method(INTERFACE_NAME, in_signature="iii", out_signature="i",
                         sender_keyword="sender")
    def update_cpu_settings(self, cpu, freq_min, freq_max, sender=None):
        """Change the scaling frequency range of a CPU."""
        op = Operations.UpdateCPUSettings(int(cpu), int(freq_min), int(freq_max))
        return self._handle(op, sender)

    @dbus.service.method(INTERFACE_NAME, in_signature="is", out_signature="i",
                         sender_keyword="sender")
    def update_cpu_governor(self, cpu, governor, sender=None):
        """Change the governor of a CPU."""
        return self._handle(Operations.UpdateCPUGovernor(int(cpu), str(governor)), sender)

    @dbus.service.method(INTERFACE_NAME, in_signature="is", out_signature="i",
                         sender_keyword="sender")
    def update_cpu_energy_prefs(self, cpu, pref, sender=None):
        """Change the energy performance preference of a CPU."""
        return self._handle(Operations.UpdateCPUEnergyPrefs(int(cpu), str(pref)), sender)

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="i",
                         sender_keyword="sender")
    def set_cpu_online(self, cpu, sender=None):
        """Bring a CPU online."""
        return self._handle(Operations.SetCPUOnline(int(cpu)), sender)

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="i",
                         sender_keyword="sender")
    def set_cpu_offline(self, cpu, sender=None):
        """Bring a CPU offline."""
        return self._handle(Operations.SetCPUOffline(int(cpu)), sender)

    @dbus.service.method(INTERFACE_NAME, in_signature="", out_signature="",
                         sender_keyword="sender")
    def quit(self, sender=None):
        """Shut the helper down."""
        self._handle(Operations.Quit(), sender)

    def unexport(self):
        """Remove the object from the bus and release the service name."""

        self.remove_from_connection()
        self._bus_name = None
