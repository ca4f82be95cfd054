# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Provide the API for reading and writing CPU control files in sysfs.

The accessor contains no policy: it reads and writes single values, and parses the two list formats
used by the CPU topology files: range lists (e.g., "0-3,5,7-9") and white-space separated lists
(e.g., "performance powersave").
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

from pathlib import Path
from typing import IO, Any, cast
from cpupwrlibs.helperlibs import Logging, ClassHelpers, Trivial
from cpupwrlibs.helperlibs.Exceptions import Error, ErrorPermissionDenied, ErrorNotFound

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

# The default base directory of the CPU topology tree.
SYSFS_BASE = Path("/sys/devices/system/cpu")

def parse_range_list(text: str) -> set[int]:
    """
    Parse a range list, such as the contents of the 'present' or 'online' sysfs files.

    Args:
        text: Comma-separated integers and inclusive 'a-b' ranges. May be empty and may end with
              white-spaces or newlines.

    Returns:
        The set of integers.

    Raises:
        ErrorBadFormat: If a token is not an integer or a valid range.

    Example:
        "0-3,5,7-9" -> {0, 1, 2, 3, 5, 7, 8, 9}
    """

    text = text.strip()
    if not text:
        return set()

    return set(Trivial.split_csv_line_int(text, what="CPU range list"))

def parse_whitespace_list(text: str) -> list[str]:
    """Split 'text' by white-spaces and return the tokens in order."""

    return text.split()

def _get_err_prefix(fobj: IO[str], method: str) -> str:
    """Return the exception message prefix for a failed file object method."""

    return f"method '{method}()' failed for '{fobj.name}'"

class SysfsIO(ClassHelpers.SimpleCloseContext):
    """
    Read and write CPU control files.

    Public methods overview.

    1. Read and write single values.
        * 'read_value()' - read a value, an empty string if the file cannot be read.
        * 'read_int()' - read an integer value, 0 if the file cannot be read or parsed.
        * 'write_value()' - write a value, 'False' on failure.
    2. Miscellaneous.
        * 'exists()' - check if a file exists.
        * 'cpu_path()', 'cpufreq_path()' - build paths to per-CPU files.
    """

    def __init__(self, base: Path | str | None = None):
        """
        Initialize a class instance.

        Args:
            base: The CPU topology tree base directory. Relative paths passed to the methods are
                  relative to it. Defaults to '/sys/devices/system/cpu'.
        """

        if base is None:
            base = SYSFS_BASE

        self.base = Path(base)

        _LOG.debug("sysfs base directory: %s", self.base)

    def close(self):
        """Uninitialize the class object."""

    def _resolve(self, path: Path | str) -> Path:
        """Return the absolute path for 'path'."""

        path = Path(path)
        if path.is_absolute():
            return path
        return self.base / path

    def cpu_path(self, cpu: int, name: str) -> Path:
        """Return the path of file 'name' in the 'cpu<cpu>' directory."""

        return self.base / f"cpu{cpu}" / name

    def cpufreq_path(self, cpu: int, name: str) -> Path:
        """Return the path of file 'name' in the 'cpu<cpu>/cpufreq' directory."""

        return self.base / f"cpu{cpu}" / "cpufreq" / name

    def _open(self, path: Path, mode: str) -> Any:
        """
        Open a file and return a file object with translated exceptions.

        Args:
            path: The file to open.
            mode: The open mode.

        Returns:
            The 'WrapExceptions' wrapped file object.

        Raises:
            ErrorNotFound: If the file does not exist.
            ErrorPermissionDenied: If there is no permission to open the file.
            Error: In case of any other failure.
        """

        try:
            # pylint: disable-next=consider-using-with
            fobj = open(path, mode, encoding="utf-8")
        except PermissionError as err:
            msg = Error(str(err)).indent(2)
            raise ErrorPermissionDenied(f"failed to open file '{path}':\n{msg}") from None
        except FileNotFoundError as err:
            msg = Error(str(err)).indent(2)
            raise ErrorNotFound(f"failed to open file '{path}':\n{msg}") from None
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"failed to open file '{path}' in '{mode}' mode:\n{msg}") from None

        return ClassHelpers.WrapExceptions(fobj, get_err_prefix=_get_err_prefix)

    def exists(self, path: Path | str) -> bool:
        """Return 'True' if 'path' exists."""

        return self._resolve(path).exists()

    def read_value(self, path: Path | str) -> str:
        """
        Read a control file.

        Args:
            path: The file to read (absolute, or relative to the base directory).

        Returns:
            The file contents with the surrounding white-spaces stripped. An empty string if the
            file does not exist or cannot be read.
        """

        path = self._resolve(path)

        try:
            with self._open(path, "r") as fobj:
                val = cast(str, fobj.read())
        except ErrorNotFound:
            _LOG.debug("file '%s' does not exist", path)
            return ""
        except Error as err:
            _LOG.debug("failed to read '%s':\n%s", path, err.indent(2))
            return ""

        return val.strip()

    def read_int(self, path: Path | str) -> int:
        """
        Read an integer from a control file.

        Args:
            path: The file to read.

        Returns:
            The integer value, 0 if the file cannot be read or does not contain an integer.
        """

        val = self.read_value(path)
        if not Trivial.is_int(val, base=10):
            if val:
                _LOG.debug("file '%s' contains a non-integer value '%s'", path, val)
            return 0

        return int(val)

    def write_value(self, path: Path | str, value: str | int) -> bool:
        """
        Write a value to a control file. The entire value is written with a single 'write()' call.

        Args:
            path: The file to write to.
            value: The value to write.

        Returns:
            'True' on success, 'False' if the file could not be opened or written.
        """

        path = self._resolve(path)
        val = str(value)

        _LOG.debug("writing '%s' to '%s'", val, path)

        # Control files are never created.
        if not path.exists():
            _LOG.warning("failed to write '%s' to '%s': the file does not exist", val, path)
            return False

        try:
            with self._open(path, "w") as fobj:
                fobj.write(val)
        except Error as err:
            _LOG.warning("failed to write '%s' to '%s':\n%s", val, path, err.indent(2))
            return False

        return True
