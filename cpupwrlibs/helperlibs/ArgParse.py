# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Helpful classes extending 'argparse.ArgumentParser' class functionality.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import types
import typing
import argparse
import argcomplete
from cpupwrlibs.helperlibs import DamerauLevenshtein, Trivial, Logging
from cpupwrlibs.helperlibs.Exceptions import Error

if typing.TYPE_CHECKING:
    from typing import TypedDict, Iterable, Any

    # The class type returned by 'add_subparsers()'. It is private, but documented.
    SubParsersType = argparse._SubParsersAction # pylint: disable=protected-access

    class ArgKwargsTypedDict(TypedDict, total=False):
        """
        Keyword arguments passed to 'argparse.add_argument()' for an option.

        Attributes:
            dest: The 'argparse' attribute name to store the option value in.
            default: The default value.
            nargs: The number of command line arguments to consume.
            metavar: The name of the argument in the help text.
            action: The 'argparse' action.
            help: A brief description of the option.
        """

        dest: str
        default: str | int | None
        nargs: str | int
        metavar: str
        action: str | type[argparse.Action]
        help: str

    class ArgTypedDict(TypedDict, total=False):
        """
        An option definition.

        Attributes:
            short: The short option name.
            long: The long option name.
            argcomplete: The 'argcomplete' completer class name for the option.
            kwargs: Keyword arguments for 'argparse.add_argument()'.
        """

        short: str | None
        long: str
        argcomplete: str | None
        kwargs: ArgKwargsTypedDict

    class CommonArgsTypedDict(TypedDict, total=False):
        """
        The common command-line arguments.

        Attributes:
            quiet: Print only important messages (-q option).
            force_color: Force colorized output (--force-color option).
            debug: Print debugging messages (-d option).
            debug_modules: Modules to print debugging messages for (--debug-modules option),
                           'None' means all modules.
        """

        quiet: bool
        force_color: bool
        debug: bool
        debug_modules: list[str] | None

def add_options(parser: argparse.ArgumentParser | ArgsParser, options: Iterable[ArgTypedDict]):
    """
    Add command line options to a parser.

    Args:
        parser: The argument parser object to add the options to.
        options: Option definition dictionaries.
    """

    for opt in options:
        args: tuple[str, ...]

        if opt.get("short") is None:
            args = (opt["long"], )
        else:
            args = (typing.cast(str, opt["short"]), opt["long"])

        arg = parser.add_argument(*args, **opt["kwargs"])
        if opt.get("argcomplete"):
            setattr(arg, "completer",
                    getattr(argcomplete.completers, typing.cast(str, opt["argcomplete"])))

def format_common_args(args: argparse.Namespace) -> CommonArgsTypedDict:
    """
    Validate the common command-line arguments and return them as a dictionary.

    Args:
        args: Parsed command-line arguments.

    Returns:
        A dictionary with the common options.
    """

    cmdl: CommonArgsTypedDict = {}

    cmdl["quiet"] = getattr(args, "quiet", False)
    cmdl["debug"] = getattr(args, "debug", False)
    if cmdl["quiet"] and cmdl["debug"]:
        raise Error("the '-q' and '-d' options cannot be used together")

    debug_modules: str | None = getattr(args, "debug_modules", None)
    if debug_modules:
        if cmdl["quiet"]:
            raise Error("the '-q' and '--debug-modules' options cannot be used together")
        if not cmdl["debug"]:
            raise Error("the '--debug-modules' option requires the '-d' option to be used")
        cmdl["debug_modules"] = Trivial.split_csv_line(debug_modules)
    else:
        cmdl["debug_modules"] = None

    cmdl["force_color"] = getattr(args, "force_color", False)
    return cmdl

def _add_parser(subparsers: SubParsersType, *args: Any, **kwargs: Any) -> argparse.ArgumentParser:
    """
    Replacement for the 'add_parser()' method of a subparsers object: squeeze newlines and extra
    white-spaces out of the 'description' keyword argument, then call the original method.
    """

    if "description" in kwargs:
        kwargs["description"] = " ".join(kwargs["description"].split())

    orig_add_parser = getattr(subparsers, "__orig_add_parser")
    return orig_add_parser(*args, **kwargs)

class ArgsParser(argparse.ArgumentParser):
    """
    Enhance 'argparse.ArgumentParser' with standard options and improved usability.
      - Add and validate the standard options, such as '-h', '-q' and '-d'.
      - Remove extra whitespace and newlines from 'description' in 'add_parser()'.
      - Raise 'Error' from 'error()' instead of exiting, suggest the closest valid choice.
    """

    def __init__(self, *args: Any, **kwargs: Any):
        """
        Initialize the parser and add the standard options. The 'ver' keyword argument adds the
        '--version' option.
        """

        version = kwargs.pop("ver", None)

        kwargs["add_help"] = False
        super().__init__(*args, **kwargs)

        text = "Show this help message and exit."
        self.add_argument("-h", "--help", dest="help", action="help", help=text)

        text = "Be quiet (print only important messages like warnings)."
        self.add_argument("-q", "--quiet", dest="quiet", action="store_true", help=text)

        text = """Force colorized output even if the output stream is not a terminal (adds ANSI
                  escape codes)."""
        self.add_argument("--force-color", action="store_true", help=text)

        text = "Print debugging information."
        self.add_argument("-d", "--debug", dest="debug", action="store_true", help=text)

        text = "Print debugging information only from the specified modules."
        self.add_argument("--debug-modules", action="store", metavar="MODNAME[,MODNAME1,...]",
                          help=text)

        if version:
            text = "Print the version number and exit."
            self.add_argument("--version", action="version", help=text, version=version)

    def parse_args(self, *args: Any, **kwargs: Any) -> argparse.Namespace: # type: ignore[override]
        """
        Parse command line arguments and apply the '--debug-modules' option to the logging
        filters.
        """

        _args = super().parse_args(*args, **kwargs)

        cmdl = format_common_args(_args)
        if cmdl["debug_modules"] is not None:
            Logging.DEBUG_MODULE_NAMES = set(cmdl["debug_modules"])

        return _args

    def add_subparsers(self, *args: Any, **kwargs: Any) -> SubParsersType:
        """Create subparsers with the description-squeezing 'add_parser()' method."""

        subparsers = super().add_subparsers(*args, **kwargs)
        setattr(subparsers, "__orig_add_parser", subparsers.add_parser)
        setattr(subparsers, "add_parser", types.MethodType(_add_parser, subparsers))

        return subparsers

    def error(self, message: str): # type: ignore[override]
        """
        Raise 'Error' with an improved message instead of exiting.

        Args:
            message: The original error message.
        """

        if "invalid choice: " not in message:
            message += "\nUse -h for help."
        else:
            offending, opts = message.split(" (choose from ")
            offending = offending.split("invalid choice: ")[1].strip("'")
            options = [opt.strip(")'") for opt in opts.split(", ")]
            suggestion = DamerauLevenshtein.closest_match(offending, options)
            if suggestion:
                message = f"bad argument '{offending}', use '{self.prog} -h'.\n\nThe most " \
                          f"similar argument is\n  {suggestion}"

        raise Error(message)
