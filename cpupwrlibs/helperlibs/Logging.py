# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Logging helpers: the cpupwr logger class, message formatting and coloring.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import sys
import logging
import traceback
from typing import NoReturn, Any, IO, cast
import colorama
from cpupwrlibs.helperlibs.Exceptions import Error

# Log levels.
#   * INFO: No prefixes, just the message.
#   * NOTICE: An INFO message, but with a prefix.
#   * DEBUG, WARNING, ERROR, CRITICAL: Also have the prefix.
#   * ERRINFO: An ERROR message, but without a prefix.
INFO = logging.INFO
NOTICE = logging.INFO + 1
DEBUG = logging.DEBUG
WARNING = logging.WARNING
ERROR = logging.ERROR
ERRINFO = logging.ERROR + 1
CRITICAL = logging.CRITICAL

# Name of the main logger instance. Other project loggers are children of this one.
MAIN_LOGGER_NAME = "main"

# Names of modules to print debug messages for ('--debug-modules'). All modules if 'None'.
DEBUG_MODULE_NAMES: set[str] | None = None

# The default prefix for debug messages.
_DEFAULT_DBG_PREFIX = "[%(created)f] [%(asctime)s] [%(module)s,%(lineno)d]"

class _MyFormatter(logging.Formatter):
    """A log formatter using different message formats for different log levels."""

    def __init__(self,
                 prefix: str | None = None,
                 prefix_debug: str | None = None,
                 colors: dict[int, str] | None = None):
        """
        Initialize the formatter.

        Args:
            prefix: Prefix for non-info and non-debug messages. Info messages go without any
                    formatting.
            prefix_debug: Prefix for debug messages. The default is '_DEFAULT_DBG_PREFIX'.
            colors: 'colorama' color codes to use for the prefixes, indexed by log level.
        """

        logging.Formatter.__init__(self, "%(levelname)s: %(message)s", "%H:%M:%S")

        self._prefix = ""
        self._prefix_debug = ""
        self._myfmt: dict[int, str] = {}

        if not colors:
            colors = {}
        self._colors = colors

        self.set_prefix(prefix=prefix, prefix_debug=prefix_debug)

    def set_prefix(self, prefix: str | None = None, prefix_debug: str | None = None):
        """
        Set the message prefixes.

        Args:
            prefix: Prefix for non-info and non-debug messages.
            prefix_debug: Prefix for debug messages.
        """

        def _start(level):
            """Return the "start color output" code for log level 'level'."""
            return str(self._colors.get(level, ""))

        def _end(level):
            """Return the "end color output" code for log level 'level'."""

            if level in self._colors:
                return str(colorama.Style.RESET_ALL)
            return ""

        if not prefix:
            prefix = ""
        if prefix:
            prefix += ": "

        self._prefix = prefix

        for lvl, pfx in ((WARNING, "warning"), (ERROR, "error"), (CRITICAL, "critical error"),
                         (NOTICE, "notice")):
            if not prefix:
                pfx = pfx.title()
            self._myfmt[lvl] = _start(lvl) + prefix + pfx + _end(lvl) + ": %(message)s"

        lvl = DEBUG
        if prefix_debug is None:
            prefix_debug = _DEFAULT_DBG_PREFIX
        if prefix_debug:
            prefix_debug += ": "

        self._prefix_debug = prefix_debug

        self._myfmt[lvl] = prefix_debug + "%(message)s"
        self._myfmt[lvl] = self._myfmt[lvl].replace("[", "[" + _start(lvl))
        self._myfmt[lvl] = self._myfmt[lvl].replace("]", _end(lvl) + "]")

        # Leave the info messages without any formatting.
        self._myfmt[ERRINFO] = self._myfmt[INFO] = "%(message)s"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record 'record' using the format for its log level."""

        # pylint: disable=protected-access
        self._style._fmt = self._myfmt[record.levelno]
        return logging.Formatter.format(self, record)

class _MyFilter(logging.Filter):
    """
    Let through only the specified log levels. Debug messages are additionally limited to the
    modules in 'DEBUG_MODULE_NAMES', if it is set.
    """

    def __init__(self, let_go: list[int]):
        """
        Initialize the filter.

        Args:
            let_go: Log levels to let through.
        """

        logging.Filter.__init__(self)
        self._let_go = let_go

    def filter(self, record: logging.LogRecord) -> bool:
        """Return 'True' if 'record' should be printed."""

        if record.levelno not in self._let_go:
            return False

        if record.levelno == DEBUG and DEBUG_MODULE_NAMES is not None:
            return record.module in DEBUG_MODULE_NAMES

        return True

class Logger(logging.Logger):
    """
    The cpupwr logger. On top of the standard logger, provide:
      * Message coloring.
      * Different prefixes for different log levels.
      * Debug messages with timestamps and file line numbers.
      * The NOTICE and ERRINFO log levels.
      * The 'warn_once()', 'error_out()' and 'debug_print_stacktrace()' methods.
    """

    def __init__(self, name: str | None = None):
        """
        Initialize the logger.

        Args:
            name: The name of the logger (same as in 'logging.Logger()').
        """

        self.prefix = ""
        self.colored = True

        self._colors: dict[int, str] = {}
        self._seen_msgs: set[str] = set()
        self._formatters: list[_MyFormatter] = []

        if not name:
            name = "default"

        super().__init__(name)

    def _init_colors(self):
        """Initialize the log level colors."""

        self._colors[DEBUG] = colorama.Fore.GREEN
        self._colors[WARNING] = colorama.Fore.YELLOW + colorama.Style.BRIGHT
        self._colors[NOTICE] = colorama.Fore.CYAN + colorama.Style.BRIGHT
        self._colors[ERROR] = self._colors[CRITICAL] = colorama.Fore.RED + colorama.Style.BRIGHT

    def configure(self,
                  prefix: str | None = None,
                  level: int | None = None,
                  colored: bool | None = None,
                  info_stream: IO[str] = sys.stdout,
                  error_stream: IO[str] = sys.stderr) -> Logger:
        """
        Configure the logger.

        Args:
            prefix: The prefix for log messages, used for all levels except 'INFO' and 'ERRINFO'.
            level: The log level. By default, detect it from the '-d' (debug) and '-q' (quiet)
                   command line options.
            colored: Whether to use colored output. By default, colorize only when both streams are
                     TTYs, or when the '--force-color' command line option is used.
            info_stream: The stream for 'INFO' level messages.
            error_stream: The stream for messages of all other levels.

        Returns:
            The configured logger.
        """

        if not prefix:
            prefix = ""

        self.prefix = prefix

        if not level:
            if "-q" in sys.argv:
                level = WARNING
            elif "-d" in sys.argv:
                level = DEBUG
            else:
                level = INFO

        self.setLevel(level)

        if colored is None:
            if "--force-color" in sys.argv:
                colored = True
            else:
                colored = info_stream.isatty() and error_stream.isatty()

        self.colored = colored
        if colored:
            self._init_colors()

        # Remove existing handlers.
        self.handlers = []
        self._formatters = []

        formatter = _MyFormatter(prefix=self.prefix, colors=self._colors)
        self._formatters.append(formatter)

        stream_handler = logging.StreamHandler(info_stream)
        stream_handler.setFormatter(formatter)
        stream_handler.addFilter(_MyFilter([INFO]))
        self.addHandler(stream_handler)

        stream_handler = logging.StreamHandler(error_stream)
        stream_handler.setFormatter(formatter)
        stream_handler.addFilter(_MyFilter([DEBUG, WARNING, NOTICE, ERROR, ERRINFO, CRITICAL]))
        self.addHandler(stream_handler)

        return self

    def set_prefix(self, prefix: str):
        """Change the log message prefix to 'prefix'."""

        self.prefix = prefix

        for formatter in self._formatters:
            formatter.set_prefix(prefix=prefix)

    def _print_traceback(self, level: int = ERROR):
        """Print the current exception traceback or the stack trace at log level 'level'."""

        if sys.exc_info()[0]:
            lines = traceback.format_exc().splitlines()
        else:
            lines = [line.strip() for line in traceback.format_stack()]

        idx = 0
        last_idx = len(lines) - 1
        while idx < len(lines):
            if lines[idx].startswith('  File "'):
                idx += 2
                last_idx = idx
            else:
                idx += 1

        tback = lines[0:last_idx]
        if not tback:
            return

        dim = colorama.Style.RESET_ALL + colorama.Style.DIM
        undim = colorama.Style.RESET_ALL
        if not self.colored:
            dim = undim = ""

        self.log(level, "--- Debug trace starts here ---")
        self.log(level, "%sAn error occurred, here is the traceback:\n%s%s",
                 dim, "\n".join(tback), undim)
        self.log(level, "--- Debug trace ends here ---\n")

    def error_out(self, fmt: str | Error, *args: Any, print_tb: bool = False) -> NoReturn:
        """
        Print an error message and exit with status 1.

        Args:
            fmt: The error message format string.
            *args: The arguments to format the error message.
            print_tb: Print the stack trace. It is always printed in debug mode.

        Raises:
            SystemExit: Always.
        """

        if args:
            errmsg = str(fmt) % args
        else:
            errmsg = str(fmt)

        if print_tb or self.getEffectiveLevel() == DEBUG:
            self._print_traceback(level=ERRINFO)

        self.error(errmsg)

        raise SystemExit(1)

    def debug_print_stacktrace(self):
        """Print the stack trace if debugging is enabled."""

        if self.getEffectiveLevel() == DEBUG:
            self._print_traceback(level=DEBUG)

    def notice(self, fmt: str, *args: Any):
        """Log a message with level 'NOTICE'."""

        self.log(NOTICE, fmt, *args)

    def warn_once(self, fmt: str, *args: Any):
        """
        Log a warning message, but only once per call site.

        Args:
            fmt: The format string for the warning message.
            *args: The arguments to format the warning message.
        """

        import inspect # pylint: disable=import-outside-toplevel

        caller_frame = inspect.stack()[1][0]
        if not caller_frame:
            raise Error("python interpretor does not support 'inspect.stack()'")

        caller_info = inspect.getframeinfo(caller_frame)
        msg_hash = f"{caller_info.filename}:{caller_info.lineno}"

        if msg_hash not in self._seen_msgs:
            self._seen_msgs.add(msg_hash)
            self.log(WARNING, fmt, *args)

logging.setLoggerClass(Logger)

def getLogger(name: str | None = None) -> Logger:
    """
    Get a logger by name (similar to 'logging.getLogger()').

    Args:
        name: The name of the logger.

    Returns:
        The 'Logger' instance.
    """

    # Because of 'setLoggerClass()', this returns a 'Logger' instance (except for the root logger).
    return cast(Logger, logging.getLogger(name=name))
