# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2023-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Authors: Antti Laakso <antti.laakso@intel.com>
#          Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""Helper functions for running command-line tools from tests."""

from __future__ import annotations # Remove when switching to Python 3.10+.

import sys
import typing
from cpupwrlibs.helperlibs import Logging

if typing.TYPE_CHECKING:
    from types import ModuleType
    from typing import Any

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

def run_tool(tool: ModuleType,
             toolname: str,
             arguments: str,
             exp_exc: type[Exception] | None = None) -> Any:
    """
    Run a command-line tool in-process and verify the outcome.

    Args:
        tool: The main Python module of the tool to run. Must provide 'parse_arguments()'.
        toolname: The name of the tool to run, used in error messages.
        arguments: The arguments to run the tool with, e.g. 'info --cpus 0-3'.
        exp_exc: The expected exception. By default, any exception is considered to be a failure.
                 When set, the test fails if the tool does not raise the expected exception.

    Returns:
        The value returned by the command function.
    """

    cmd = f"{tool.__file__} {arguments}"
    _LOG.debug("running: %s", cmd)
    sys.argv = cmd.split()
    try:
        args = tool.parse_arguments()
        ret = args.func(args)
    except Exception as err: # pylint: disable=broad-except
        msg = f"command '{toolname} {arguments}' raised the following exception:\n" \
              f"- {type(err).__name__}({err})"
        if exp_exc is None:
            assert False, msg

        if isinstance(err, exp_exc):
            return None

        assert False, f"{msg}\nbut it was expected to raise the following exception:\n" \
                      f"- {exp_exc.__name__}"

    if exp_exc is not None:
        assert False, f"command '{toolname} {arguments}' did not raise the following " \
                      f"exception type:\n- {exp_exc.__name__}"

    return ret
