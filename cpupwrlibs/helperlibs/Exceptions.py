# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Exception types used in cpupwr.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

from typing import Any, Match
import re

class Error(Exception):
    """The base class for all exceptions raised by cpupwr."""

    def __init__(self, msg: str, *args: Any, **kwargs: Any):
        """
        Initialize the exception object.

        Args:
            msg: The exception message.
            *args: Positional arguments for the message ('%' formatting).
            **kwargs: Extra attributes to set in the exception object.
        """

        msg = str(msg)
        super().__init__(msg)

        for key, val in kwargs.items():
            setattr(self, key, val)

        if args:
            self.msg = msg % tuple(args)
        else:
            self.msg = msg

    def indent(self, indent: int | str, capitalize: bool = True) -> str:
        """
        Indent or prefix each line of the error message.

        Args:
            indent: Number of white spaces to prefix each line with, or the prefix string.
            capitalize: If True, make sure the message starts with a capital letter.

        Returns:
            The indented error message.
        """

        def capitalize_mobj(mobj: Match[str]):
            """Capitalize the first non-blank character of the message."""

            return mobj.group(1) + mobj.group(2).capitalize()

        if isinstance(indent, int):
            pfx = " " * indent
        else:
            pfx = indent

        msg = pfx + self.msg.replace("\n", f"\n{pfx}")
        if capitalize:
            msg = re.sub(r"^(\s*)(\S)", capitalize_mobj, msg)

        return msg

    def __str__(self):
        """The string representation of the exception."""
        return self.msg

class ErrorTimeOut(Error):
    """Something timed out."""

class ErrorExists(Error):
    """Something already exists."""

class ErrorNotFound(Error):
    """Something was not found."""

class ErrorNotSupported(Error):
    """Feature/option/etc is not supported."""

class ErrorPermissionDenied(Error):
    """Permission to do something was denied."""

class ErrorBadFormat(Error):
    """Bad format of something, e.g., file contents."""

class ErrorConnect(Error):
    """The privileged helper service is not reachable."""

    def __init__(self, msg: str, *args: Any, service: str | None = None, **kwargs: Any):
        """
        Initialize the exception object.

        Args:
            msg: The exception message.
            *args: Positional arguments for the message.
            service: Name of the D-Bus service that could not be reached.
            **kwargs: Extra attributes to set in the exception object.
        """

        self.service = service
        if service:
            msg = f"Cannot connect to D-Bus service '{service}'\n{msg}"

        super().__init__(msg, *args, **kwargs)
