# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Provide the D-Bus transport for talking to the privileged helper from the unprivileged client.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import threading
from typing import Any
import dbus
import dbus.exceptions
from cpupwrlibs.HelperService import SERVICE_NAME, INTERFACE_NAME, OBJECT_PATH
from cpupwrlibs.helperlibs import Logging, ClassHelpers
from cpupwrlibs.helperlibs.Exceptions import Error, ErrorConnect

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

# D-Bus errors meaning that the helper is not reachable.
_UNREACHABLE_ERRORS = {"org.freedesktop.DBus.Error.ServiceUnknown",
                       "org.freedesktop.DBus.Error.NameHasNoOwner",
                       "org.freedesktop.DBus.Error.NoServer",
                       "org.freedesktop.DBus.Error.Disconnected",
                       "org.freedesktop.DBus.Error.FileNotFound"}

def _to_python(value: Any) -> Any:
    """Convert a D-Bus reply value to plain python types."""

    if isinstance(value, (dbus.Array, list, tuple, dbus.Struct)):
        return [_to_python(elt) for elt in value]
    if isinstance(value, dbus.Boolean):
        return bool(value)
    if isinstance(value, int):
        return int(value)
    if isinstance(value, str):
        return str(value)
    return value

class DBusTransport(ClassHelpers.SimpleCloseContext):
    """
    Call the privileged helper methods over the system bus. The connection is established on first
    use, and re-established after it has been lost.
    """

    def __init__(self, bus: dbus.Bus | None = None):
        """
        Initialize a class instance.

        Args:
            bus: The bus connection to use. Connect to the system bus by default.
        """

        self._bus = bus
        self._iface: dbus.Interface | None = None
        self._lock = threading.Lock()

    def close(self):
        """Uninitialize the class object."""

        ClassHelpers.close(self, unref_attrs=("_iface", "_bus"))

    def _connect(self) -> dbus.Interface:
        """Connect to the helper, return the helper D-Bus interface object."""

        with self._lock:
            if self._iface:
                return self._iface

            try:
                if not self._bus:
                    self._bus = dbus.SystemBus()
                proxy = self._bus.get_object(SERVICE_NAME, OBJECT_PATH)
            except dbus.exceptions.DBusException as err:
                raise ErrorConnect(str(err), service=SERVICE_NAME) from None

            self._iface = dbus.Interface(proxy, INTERFACE_NAME)
            _LOG.debug("connected to D-Bus service '%s'", SERVICE_NAME)
            return self._iface

    def is_connected(self) -> bool:
        """Return 'True' if the helper is reachable (running or activatable)."""

        try:
            self._connect()
        except ErrorConnect as err:
            _LOG.debug("%s", err)
            return False

        assert self._bus is not None
        try:
            if self._bus.name_has_owner(SERVICE_NAME):
                return True
            return SERVICE_NAME in self._bus.list_activatable_names()
        except dbus.exceptions.DBusException as err:
            _LOG.debug("failed to check the D-Bus service '%s' status: %s", SERVICE_NAME, err)
            return False

    def call(self, method: str, *args: Any, timeout: float | None = None) -> Any:
        """
        Call a helper method.

        Args:
            method: The D-Bus method name.
            *args: The method arguments.
            timeout: The call timeout in seconds. The D-Bus default timeout is used by default.

        Returns:
            The method reply converted to plain python types.

        Raises:
            ErrorConnect: If the helper is not reachable.
            Error: If the method call failed.
        """

        iface = self._connect()

        kwargs: dict[str, Any] = {}
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            reply = getattr(iface, method)(*args, **kwargs)
        except dbus.exceptions.DBusException as err:
            if err.get_dbus_name() in _UNREACHABLE_ERRORS:
                with self._lock:
                    self._iface = None
                raise ErrorConnect(err.get_dbus_message() or str(err),
                                   service=SERVICE_NAME) from None
            msg = Error(str(err)).indent(2)
            raise Error(f"helper method '{method}()' failed:\n{msg}") from None

        return _to_python(reply)
