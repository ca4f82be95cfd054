# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
cpupwr-helper - the privileged helper service of the 'cpupwr' tool.

The helper runs as root, usually started by D-Bus activation. It owns the helper name on the system
bus, serves the CPU settings methods, and exits after being idle for the configured time.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import sys
import signal
import argparse
import argcomplete
import dbus
import dbus.mainloop.glib
from gi.repository import GLib
from cpupwrlibs import Config, CPUInfo, SysfsIO, HelperService, _DBusHelperService
from cpupwrlibs.helperlibs import ArgParse, Logging
from cpupwrlibs.helperlibs.Exceptions import Error
from cpupwrtool._Cpupwr import _VERSION

TOOLNAME = "cpupwr-helper"

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr").configure(prefix=TOOLNAME)

def build_arguments_parser() -> ArgParse.ArgsParser:
    """Build and return the the command-line arguments parser object."""

    text = "cpupwr-helper - the privileged helper service of the 'cpupwr' tool."
    parser = ArgParse.ArgsParser(description=text, prog=TOOLNAME, ver=_VERSION)

    text = """Exit after being idle for this many seconds. Use 0 to never exit because of being
              idle. The default comes from the configuration file, or 60 seconds."""
    parser.add_argument("--idle-timeout", metavar="SECS", type=float, dest="idle_timeout",
                        help=text)

    text = """Path to the configuration file to use instead of the system configuration file."""
    arg = parser.add_argument("--config", metavar="PATH", dest="config", help=text)
    setattr(arg, "completer", argcomplete.completers.FilesCompleter)

    argcomplete.autocomplete(parser)

    return parser

def _run(args: argparse.Namespace) -> int:
    """Run the helper service until it shuts down. Return the exit code."""

    if args.config:
        config = Config.load((args.config,))
    else:
        config = Config.load((Config.SYSTEM_CONFIG_PATH,))

    idle_timeout = config["idle_timeout"]
    if args.idle_timeout is not None:
        if args.idle_timeout < 0:
            raise Error(f"bad idle timeout '{args.idle_timeout}', should be a non-negative number")
        idle_timeout = args.idle_timeout

    dbus.mainloop.glib.DBusGMainLoop(set_as_default=True)
    bus = dbus.SystemBus()
    loop = GLib.MainLoop()

    def _on_shutdown(_: str):
        """Quit the main loop once the current D-Bus call has been answered."""

        GLib.idle_add(loop.quit)

    with SysfsIO.SysfsIO(base=config["sysfs_base"] or None) as sysfs_io, \
         CPUInfo.CPUInfo(sysfs_io=sysfs_io) as cpuinfo, \
         HelperService.HelperService(_on_shutdown, _DBusHelperService.GLibScheduler(),
                                     _DBusHelperService.PolkitAuthority(bus), cpuinfo=cpuinfo,
                                     idle_timeout=idle_timeout, action_id=config["action_id"],
                                     auth_timeout=config["auth_timeout"]) as service:
        try:
            obj = _DBusHelperService.HelperObject(bus, service)
        except Error as err:
            _LOG.error("%s", err)
            return 1

        def _on_signal(signame: str) -> bool:
            """Handle a termination signal."""

            service.request_shutdown(f"got {signame}")
            return False

        GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGINT, _on_signal, "SIGINT")
        GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGTERM, _on_signal, "SIGTERM")

        _LOG.info("Registered D-Bus service '%s' at '%s'",
                  HelperService.SERVICE_NAME, HelperService.OBJECT_PATH)

        service.start()
        loop.run()

        obj.unexport()

    return 0

def main() -> int:
    """Script entry point."""

    try:
        args = build_arguments_parser().parse_args()
        return _run(args)
    except KeyboardInterrupt:
        _LOG.info("\nInterrupted, exiting")
        return -1
    except Error as err:
        _LOG.error_out(err)

    return 0

if __name__ == "__main__":
    sys.exit(main())
