# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
cpupwr - CPU frequency scaling and CPU hotplug configuration tool for Linux.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import sys
import argparse
import argcomplete
from cpupwrlibs.helperlibs import ArgParse, Logging
from cpupwrlibs.helperlibs.Exceptions import Error

_VERSION = "1.0.0"
TOOLNAME = "cpupwr"

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr").configure(prefix=TOOLNAME)

_CPUS_OPTION: ArgParse.ArgTypedDict = {
    "short": None,
    "long": "--cpus",
    "argcomplete": None,
    "kwargs": {
        "dest": "cpus",
        "help": """List of CPUs to operate on. Specify individual CPU numbers or ranges, e.g.,
                   '1-4,7,8,10-12' for CPUs 1 to 4, 7, 8, and 10 to 12. Use 'all' to specify all
                   CPUs, which is the default.""",
    },
}

_CONFIG_OPTION: ArgParse.ArgTypedDict = {
    "short": None,
    "long": "--config",
    "argcomplete": "FilesCompleter",
    "kwargs": {
        "dest": "config",
        "metavar": "PATH",
        "help": """Path to the configuration file to use instead of the system and user
                   configuration files.""",
    },
}

def build_arguments_parser() -> ArgParse.ArgsParser:
    """Build and return the the command-line arguments parser object."""

    text = "cpupwr - CPU frequency scaling and CPU hotplug configuration tool for Linux."
    parser = ArgParse.ArgsParser(description=text, prog=TOOLNAME, ver=_VERSION)

    ArgParse.add_options(parser, (_CONFIG_OPTION,))

    subparsers = parser.add_subparsers(title="commands", dest="a command")
    subparsers.required = True

    #
    # Create parser for the 'info' command.
    #
    text = "Print CPU frequency scaling information."
    descr = """Print the list of online and offline CPUs, and the frequency range, frequency
               limits, governor, and energy performance preference of every CPU."""
    subpars = subparsers.add_parser("info", help=text, description=descr)
    subpars.set_defaults(func=_info_command)
    ArgParse.add_options(subpars, (_CPUS_OPTION,))

    #
    # Create parser for the 'set' command.
    #
    text = "Change CPU frequency scaling settings."
    descr = """Change CPU frequency scaling settings and online state. The changes are applied
               by the privileged helper as one batch, which may require authentication."""
    subpars = subparsers.add_parser("set", help=text, description=descr)
    subpars.set_defaults(func=_set_command)
    ArgParse.add_options(subpars, (_CPUS_OPTION,))

    text = """The minimum CPU frequency in kHz. If only the maximum frequency is specified, the
              current minimum frequency is kept."""
    subpars.add_argument("--min-freq", metavar="KHZ", type=int, dest="min_freq", help=text)

    text = """The maximum CPU frequency in kHz. If only the minimum frequency is specified, the
              current maximum frequency is kept."""
    subpars.add_argument("--max-freq", metavar="KHZ", type=int, dest="max_freq", help=text)

    text = "The CPU frequency scaling governor name, e.g., 'powersave'."
    subpars.add_argument("--governor", help=text)

    text = "The energy performance preference name, e.g., 'balance_performance'."
    subpars.add_argument("--epp", help=text)

    group = subpars.add_mutually_exclusive_group()
    text = "Bring the CPUs online."
    group.add_argument("--online", dest="online", action="store_const", const=True, help=text)
    text = "Bring the CPUs offline. CPU 0 is never brought offline."
    group.add_argument("--offline", dest="online", action="store_const", const=False, help=text)

    #
    # Create parser for the 'profile' command.
    #
    text = "CPU settings profile commands."
    descr = """Commands for listing, applying, creating, and deleting CPU settings profiles."""
    subpars = subparsers.add_parser("profile", help=text, description=descr)
    subparsers2 = subpars.add_subparsers(title="further sub-commands")
    subparsers2.required = True

    text = "List the available profiles."
    subpars2 = subparsers2.add_parser("list", help=text, description=text)
    subpars2.set_defaults(func=_profile_list_command)

    text = "Print the per-CPU settings of a profile."
    subpars2 = subparsers2.add_parser("show", help=text, description=text)
    subpars2.set_defaults(func=_profile_show_command)
    subpars2.add_argument("name", help="The profile name.")

    text = "Apply a profile."
    descr = """Apply a profile. The changes are applied by the privileged helper as one batch,
               which may require authentication."""
    subpars2 = subparsers2.add_parser("apply", help=text, description=descr)
    subpars2.set_defaults(func=_profile_apply_command)
    subpars2.add_argument("name", help="The profile name.")

    text = "Create a user profile from the current CPU settings."
    subpars2 = subparsers2.add_parser("create", help=text, description=text)
    subpars2.set_defaults(func=_profile_create_command)
    subpars2.add_argument("name", help="The profile name.")
    ArgParse.add_options(subpars2, (_CPUS_OPTION,))

    text = "Delete a user profile."
    subpars2 = subparsers2.add_parser("delete", help=text, description=text)
    subpars2.set_defaults(func=_profile_delete_command)
    subpars2.add_argument("name", help="The profile name.")

    argcomplete.autocomplete(parser)

    return parser

def parse_arguments() -> argparse.Namespace:
    """Parse command-line arguments."""

    parser = build_arguments_parser()
    args = parser.parse_args()

    if not hasattr(args, "cpus"):
        setattr(args, "cpus", None)

    return args

# pylint: disable=import-outside-toplevel

def _info_command(args: argparse.Namespace):
    """Implement the 'info' command."""

    from cpupwrtool import _CpupwrInfo

    _CpupwrInfo.info_command(args)

def _set_command(args: argparse.Namespace):
    """Implement the 'set' command."""

    from cpupwrtool import _CpupwrSet

    _CpupwrSet.set_command(args)

def _profile_list_command(args: argparse.Namespace):
    """Implement the 'profile list' command."""

    from cpupwrtool import _CpupwrProfile

    _CpupwrProfile.profile_list_command(args)

def _profile_show_command(args: argparse.Namespace):
    """Implement the 'profile show' command."""

    from cpupwrtool import _CpupwrProfile

    _CpupwrProfile.profile_show_command(args)

def _profile_apply_command(args: argparse.Namespace):
    """Implement the 'profile apply' command."""

    from cpupwrtool import _CpupwrProfile

    _CpupwrProfile.profile_apply_command(args)

def _profile_create_command(args: argparse.Namespace):
    """Implement the 'profile create' command."""

    from cpupwrtool import _CpupwrProfile

    _CpupwrProfile.profile_create_command(args)

def _profile_delete_command(args: argparse.Namespace):
    """Implement the 'profile delete' command."""

    from cpupwrtool import _CpupwrProfile

    _CpupwrProfile.profile_delete_command(args)

def main() -> int:
    """Script entry point."""

    try:
        args = parse_arguments()

        if not getattr(args, "func", None):
            _LOG.error("please, run '%s -h' for help", TOOLNAME)
            return -1

        args.func(args)
    except KeyboardInterrupt:
        _LOG.info("\nInterrupted, exiting")
        return -1
    except Error as err:
        _LOG.error_out(err)

    return 0

if __name__ == "__main__":
    sys.exit(main())
